"""SQLAlchemy-backed storage gateway.

Maps gateway calls onto SQLAlchemy Core statements against the tables
declared in ``payguard.db.models``. Each call runs in its own session and
commits before returning.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import ColumnElement, Table, delete, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payguard.core.logging import get_logger
from payguard.db.models import Base
from payguard.db.models.base import new_id
from payguard.storage.gateway import Filter, FilterOp, Row, TableName
from payguard.utils.exceptions import StorageError

logger = get_logger(__name__)


def _to_db(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(UTC)
    return value


def _from_db(value: Any) -> Any:
    # SQLite drops tzinfo; every stored timestamp is UTC
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class SQLAlchemyStorageGateway:
    """StorageGateway implementation over an async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    def _table(self, table: TableName) -> Table:
        return Base.metadata.tables[TableName(table).value]

    def _column(self, table: Table, name: str):
        column = table.c.get(name)
        if column is None:
            raise StorageError(f"Unknown column {name!r} on table {table.name}")
        return column

    def _values(self, table: Table, fields: Row) -> Row:
        return {self._column(table, key).key: _to_db(value) for key, value in fields.items()}

    def _clause(self, table: Table, flt: Filter) -> ColumnElement[bool]:
        column = self._column(table, flt.field)
        value = _to_db(flt.value)
        match flt.op:
            case FilterOp.EQ:
                return column.is_(None) if value is None else column == value
            case FilterOp.NE:
                if value is None:
                    return column.is_not(None)
                return or_(column != value, column.is_(None))
            case FilterOp.IN:
                return column.in_([_to_db(v) for v in flt.value])
            case FilterOp.LT:
                return column < value
            case FilterOp.LTE:
                return column <= value
            case FilterOp.GT:
                return column > value
            case FilterOp.GTE:
                return column >= value
            case FilterOp.IS_NULL:
                return column.is_(None)
            case FilterOp.NOT_NULL:
                return column.is_not(None)
        raise StorageError(f"Unsupported filter operator: {flt.op}")

    async def select(
        self,
        table: TableName,
        filters: Sequence[Filter] = (),
        *,
        columns: Sequence[str] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        """Return rows matching all filters."""
        tbl = self._table(table)
        stmt = select(*(self._column(tbl, c) for c in columns)) if columns else select(tbl)
        stmt = stmt.where(*(self._clause(tbl, f) for f in filters))
        if order_by is not None:
            column = self._column(tbl, order_by)
            stmt = stmt.order_by(column.desc().nulls_last() if descending else column.asc().nulls_last())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [
                    {key: _from_db(value) for key, value in row._mapping.items()}
                    for row in result
                ]
        except SQLAlchemyError as e:
            raise StorageError(f"Select on {tbl.name} failed: {e}") from e

    async def insert(self, table: TableName, row: Row) -> Row:
        """Insert a row and return it as stored, column defaults included."""
        tbl = self._table(table)
        values = self._values(tbl, row)
        values.setdefault("id", new_id())

        try:
            async with self._session_factory() as session:
                await session.execute(tbl.insert().values(**values))
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Insert into {tbl.name} failed: {e}") from e

        stored = await self.select(table, [Filter("id", FilterOp.EQ, values["id"])], limit=1)
        return stored[0]

    async def update(self, table: TableName, record_id: str, fields: Row) -> bool:
        return await self.update_batch(table, [record_id], fields) > 0

    async def update_batch(self, table: TableName, record_ids: Sequence[str], fields: Row) -> int:
        if not record_ids or not fields:
            return 0
        tbl = self._table(table)
        stmt = update(tbl).where(tbl.c.id.in_(list(record_ids))).values(**self._values(tbl, fields))

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Update of {tbl.name} failed: {e}") from e
        return result.rowcount

    async def delete(self, table: TableName, record_ids: Sequence[str]) -> int:
        if not record_ids:
            return 0
        tbl = self._table(table)
        stmt = delete(tbl).where(tbl.c.id.in_(list(record_ids)))

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Delete from {tbl.name} failed: {e}") from e

        logger.debug("Rows deleted", table=tbl.name, count=result.rowcount)
        return result.rowcount
