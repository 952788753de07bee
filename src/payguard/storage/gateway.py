"""Storage gateway protocol consumed by the compliance engine.

The engine never talks to a database directly. Every read and write goes
through a ``StorageGateway``: per-table CRUD with simple filter predicates
over a fixed set of tables. Implementations live in
``payguard.storage.memory`` and ``payguard.db.gateway``.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

Row = dict[str, Any]


class TableName(str, Enum):
    """Tables reachable through the storage gateway."""

    EMPLOYEES = "employees"
    """Root record for every data subject."""

    PAYROLL_RESULTS = "payroll_results"
    TIMESHEET_ENTRIES = "timesheet_entries"
    EMPLOYEE_SICKNESS_RECORDS = "employee_sickness_records"
    WORK_PATTERNS = "work_patterns"
    DOCUMENTS = "documents"

    DATA_ACCESS_AUDIT_LOG = "data_access_audit_log"
    """Sensitive data access history, keyed by user id."""

    LEGAL_HOLDS = "legal_holds"
    """Externally managed holds; read-only for the engine."""

    ERASURE_REQUESTS = "erasure_requests"
    DATA_RETENTION_POLICIES = "data_retention_policies"
    DATA_RETENTION_JOBS = "data_retention_jobs"
    DATA_EXPORT_REQUESTS = "data_export_requests"


class FilterOp(str, Enum):
    """Comparison operators supported by gateway filters."""

    EQ = "eq"
    NE = "ne"
    IN = "in"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"


@dataclass(frozen=True)
class Filter:
    """A single column predicate. Filters passed together are AND-ed."""

    field: str
    op: FilterOp
    value: Any = None

    def matches(self, row: Row) -> bool:
        """Evaluate the predicate against an in-memory row."""
        actual = row.get(self.field)
        match self.op:
            case FilterOp.EQ:
                return actual == self.value
            case FilterOp.NE:
                return actual != self.value
            case FilterOp.IN:
                return actual in self.value
            case FilterOp.IS_NULL:
                return actual is None
            case FilterOp.NOT_NULL:
                return actual is not None

        if actual is None:
            return False
        match self.op:
            case FilterOp.LT:
                return actual < self.value
            case FilterOp.LTE:
                return actual <= self.value
            case FilterOp.GT:
                return actual > self.value
            case FilterOp.GTE:
                return actual >= self.value
        raise ValueError(f"Unsupported filter operator: {self.op}")


def eq(field: str, value: Any) -> Filter:
    return Filter(field, FilterOp.EQ, value)


def ne(field: str, value: Any) -> Filter:
    return Filter(field, FilterOp.NE, value)


def in_(field: str, values: Iterable[Any]) -> Filter:
    return Filter(field, FilterOp.IN, tuple(values))


def lt(field: str, value: Any) -> Filter:
    return Filter(field, FilterOp.LT, value)


def lte(field: str, value: Any) -> Filter:
    return Filter(field, FilterOp.LTE, value)


def gt(field: str, value: Any) -> Filter:
    return Filter(field, FilterOp.GT, value)


def gte(field: str, value: Any) -> Filter:
    return Filter(field, FilterOp.GTE, value)


def is_null(field: str) -> Filter:
    return Filter(field, FilterOp.IS_NULL)


@runtime_checkable
class StorageGateway(Protocol):
    """Per-table CRUD with filter predicates.

    Each call touches exactly one table and is its own unit of work; the
    gateway offers no transactions spanning several calls.
    """

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
        ...

    async def insert(self, table: TableName, row: Row) -> Row:
        """Insert a row and return it as stored."""
        ...

    async def update(self, table: TableName, record_id: str, fields: Row) -> bool:
        """Update one row by id. Returns False when no row matched."""
        ...

    async def update_batch(self, table: TableName, record_ids: Sequence[str], fields: Row) -> int:
        """Apply the same field values to many rows. Returns rows updated."""
        ...

    async def delete(self, table: TableName, record_ids: Sequence[str]) -> int:
        """Delete rows by id. Returns rows deleted."""
        ...
