"""In-memory storage gateway for tests and local development."""

import copy
from collections.abc import Iterable, Sequence
from uuid import uuid7

from payguard.storage.gateway import Filter, Row, TableName


class InMemoryStorageGateway:
    """Dictionary-backed gateway. Rows are deep-copied on the way in and out."""

    def __init__(self) -> None:
        """Initialize storage."""
        self._tables: dict[TableName, dict[str, Row]] = {table: {} for table in TableName}

    def seed(self, table: TableName, rows: Iterable[Row]) -> None:
        """Load rows directly, bypassing insert bookkeeping."""
        for row in rows:
            stored = copy.deepcopy(row)
            stored.setdefault("id", str(uuid7()))
            self._tables[TableName(table)][stored["id"]] = stored

    def rows(self, table: TableName) -> list[Row]:
        """Snapshot of every row in a table."""
        return [copy.deepcopy(row) for row in self._tables[TableName(table)].values()]

    def get_row(self, table: TableName, record_id: str) -> Row | None:
        row = self._tables[TableName(table)].get(record_id)
        return copy.deepcopy(row) if row is not None else None

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
        matched = [
            row
            for row in self._tables[TableName(table)].values()
            if all(f.matches(row) for f in filters)
        ]
        if order_by is not None:
            # Nulls sort last in either direction
            present = [row for row in matched if row.get(order_by) is not None]
            missing = [row for row in matched if row.get(order_by) is None]
            present.sort(key=lambda row: row[order_by], reverse=descending)
            matched = present + missing
        if limit is not None:
            matched = matched[:limit]
        if columns is not None:
            return [{col: copy.deepcopy(row.get(col)) for col in columns} for row in matched]
        return [copy.deepcopy(row) for row in matched]

    async def insert(self, table: TableName, row: Row) -> Row:
        """Insert a row, assigning an id when missing."""
        stored = copy.deepcopy(row)
        stored.setdefault("id", str(uuid7()))
        self._tables[TableName(table)][stored["id"]] = stored
        return copy.deepcopy(stored)

    async def update(self, table: TableName, record_id: str, fields: Row) -> bool:
        row = self._tables[TableName(table)].get(record_id)
        if row is None:
            return False
        row.update(copy.deepcopy(fields))
        return True

    async def update_batch(self, table: TableName, record_ids: Sequence[str], fields: Row) -> int:
        updated = 0
        for record_id in record_ids:
            if await self.update(table, record_id, fields):
                updated += 1
        return updated

    async def delete(self, table: TableName, record_ids: Sequence[str]) -> int:
        rows = self._tables[TableName(table)]
        deleted = 0
        for record_id in record_ids:
            if rows.pop(record_id, None) is not None:
                deleted += 1
        return deleted
