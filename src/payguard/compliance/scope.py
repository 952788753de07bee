"""Scope analysis for data subjects.

Walks a fixed dependency map rooted at ``employees`` and reports, per table,
which records belong to a subject and which of their fields are sensitive.
The map is static; sensitive fields are an allowlist per table and are never
inferred from the data.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from payguard.core.logging import get_logger
from payguard.storage.gateway import StorageGateway, TableName, eq

logger = get_logger(__name__)

ROOT_TABLE = TableName.EMPLOYEES


@dataclass(frozen=True)
class TableBinding:
    """How a table links back to the subject's employee record."""

    table: TableName
    link_field: str
    """Column matched against the employee."""

    employee_field: str
    """Employee column supplying the match value (``id`` or ``user_id``)."""

    sensitive_fields: tuple[str, ...]


SUBJECT_TABLES: tuple[TableBinding, ...] = (
    TableBinding(
        table=TableName.EMPLOYEES,
        link_field="id",
        employee_field="id",
        sensitive_fields=(
            "first_name",
            "last_name",
            "email",
            "date_of_birth",
            "national_insurance_number",
            "address1",
            "address2",
            "address3",
            "address4",
            "postcode",
        ),
    ),
    TableBinding(
        table=TableName.PAYROLL_RESULTS,
        link_field="employee_id",
        employee_field="id",
        sensitive_fields=(
            "gross_pay_this_period",
            "net_pay_this_period",
            "income_tax_this_period",
        ),
    ),
    TableBinding(
        table=TableName.TIMESHEET_ENTRIES,
        link_field="employee_id",
        employee_field="id",
        sensitive_fields=("actual_start", "actual_end"),
    ),
    TableBinding(
        table=TableName.EMPLOYEE_SICKNESS_RECORDS,
        link_field="employee_id",
        employee_field="id",
        sensitive_fields=("reason", "notes", "start_date", "end_date"),
    ),
    TableBinding(
        table=TableName.WORK_PATTERNS,
        link_field="employee_id",
        employee_field="id",
        sensitive_fields=("start_time", "end_time"),
    ),
    TableBinding(
        table=TableName.DOCUMENTS,
        link_field="employee_id",
        employee_field="id",
        sensitive_fields=("title", "file_name", "file_path"),
    ),
    TableBinding(
        table=TableName.DATA_ACCESS_AUDIT_LOG,
        link_field="user_id",
        employee_field="user_id",
        sensitive_fields=("user_agent", "ip_address"),
    ),
)

BINDINGS_BY_TABLE: dict[TableName, TableBinding] = {b.table: b for b in SUBJECT_TABLES}


@dataclass
class ErasureScope:
    """Records of one table that belong to a subject.

    Never cached: record sets can change between analysis and execution.
    """

    table: TableName
    record_ids: list[str]
    sensitive_fields: list[str]
    dependencies: list[TableName] = field(default_factory=list)
    """Tables this table's records reference (parents)."""

    @property
    def total_records(self) -> int:
        return len(self.record_ids)


class ScopeAnalyzer:
    """Resolve the tables, records and sensitive fields touched by a subject."""

    def __init__(self, gateway: StorageGateway):
        self._gateway = gateway

    async def analyze_scope(self, subject_id: str) -> list[ErasureScope]:
        """Return one entry per table holding at least one of the subject's records.

        An unknown subject yields an empty list. Dependent tables are
        searched by ``employee_id`` even when the employee row itself is
        gone, so records left behind by a partial erasure remain visible.
        """
        employees = await self._gateway.select(
            ROOT_TABLE, [eq("id", subject_id)], columns=["id", "user_id"], limit=1
        )
        employee = employees[0] if employees else {"id": subject_id, "user_id": None}

        scopes: list[ErasureScope] = []
        for binding in SUBJECT_TABLES:
            match_value = employee.get(binding.employee_field)
            if match_value is None:
                continue
            rows = await self._gateway.select(
                binding.table,
                [eq(binding.link_field, match_value)],
                columns=["id"],
                order_by="id",
            )
            if not rows:
                continue
            scopes.append(
                ErasureScope(
                    table=binding.table,
                    record_ids=[row["id"] for row in rows],
                    sensitive_fields=list(binding.sensitive_fields),
                    dependencies=[] if binding.table == ROOT_TABLE else [ROOT_TABLE],
                )
            )

        logger.debug(
            "Scope analyzed",
            subject_id=subject_id,
            tables=[s.table.value for s in scopes],
            total_records=count_records(scopes),
        )
        return scopes


def count_records(scopes: Sequence[ErasureScope]) -> int:
    return sum(s.total_records for s in scopes)


def execution_order(scopes: Sequence[ErasureScope]) -> list[ErasureScope]:
    """Order scopes so every table runs after the tables that depend on it.

    The root record is mutated last; if execution stops early the subject
    row is still there to anchor a resumed run.
    """
    return sorted(scopes, key=lambda s: (len(s.dependencies) == 0, s.table.value))
