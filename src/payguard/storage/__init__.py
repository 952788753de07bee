"""Storage gateway protocol and in-memory implementation."""

from .gateway import (
    Filter,
    FilterOp,
    Row,
    StorageGateway,
    TableName,
    eq,
    gt,
    gte,
    in_,
    is_null,
    lt,
    lte,
    ne,
)
from .memory import InMemoryStorageGateway

__all__ = [
    "Filter",
    "FilterOp",
    "InMemoryStorageGateway",
    "Row",
    "StorageGateway",
    "TableName",
    "eq",
    "gt",
    "gte",
    "in_",
    "is_null",
    "lt",
    "lte",
    "ne",
]
