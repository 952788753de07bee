"""Repository layer mapping compliance entities onto gateway tables.

Usage:
    class ErasureRequestRepository(EntityRepository[ErasureRequest]):
        table = TableName.ERASURE_REQUESTS
        entity_name = "erasure_request"

    repo = ErasureRequestRepository(gateway)
    request = await repo.get_or_raise(request_id)
"""

from collections.abc import Sequence
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from payguard.core.exceptions import RequestNotFoundError
from payguard.storage.gateway import Filter, Row, StorageGateway, TableName, eq

EntityType = TypeVar("EntityType", bound=BaseModel)


def to_row(entity: BaseModel, fields: Sequence[str] | None = None) -> Row:
    """Dump an entity to a storage row, storing enums by value."""
    data = entity.model_dump(include=set(fields) if fields is not None else None)
    return {key: _plain(value) for key, value in data.items()}


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


class EntityRepository(Generic[EntityType]):
    """Generic gateway-backed repository for pydantic entities.

    Type Parameters:
        EntityType: The pydantic model persisted in ``table``

    Attributes:
        model: The entity class
        table: Gateway table holding the entity
        entity_name: Label used in not-found errors
    """

    model: type[EntityType]
    table: TableName
    entity_name: str

    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway

    def __init_subclass__(cls, **kwargs):
        """Extract model type from generic parameter."""
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", []):
            args = getattr(base, "__args__", None)
            if args and isinstance(args[0], type) and issubclass(args[0], BaseModel):
                cls.model = args[0]
                break

    async def get(self, entity_id: str) -> EntityType | None:
        rows = await self.gateway.select(self.table, [eq("id", entity_id)], limit=1)
        return self.model.model_validate(rows[0]) if rows else None

    async def get_or_raise(self, entity_id: str) -> EntityType:
        """Get an entity by id.

        Raises:
            RequestNotFoundError: If no row has this id
        """
        entity = await self.get(entity_id)
        if entity is None:
            raise RequestNotFoundError(self.entity_name, entity_id)
        return entity

    async def list(
        self,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[EntityType]:
        rows = await self.gateway.select(
            self.table, filters, order_by=order_by, descending=descending, limit=limit
        )
        return [self.model.model_validate(row) for row in rows]

    async def create(self, entity: EntityType) -> EntityType:
        row = await self.gateway.insert(self.table, to_row(entity))
        return self.model.model_validate(row)

    async def save(self, entity: EntityType, *fields: str) -> EntityType:
        """Persist the named fields of ``entity`` (all fields when none given)."""
        names = list(fields) if fields else [f for f in type(entity).model_fields if f != "id"]
        await self.gateway.update(self.table, entity.id, to_row(entity, names))  # type: ignore[attr-defined]
        return entity
