"""Collect a subject's personal data into an export package."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from payguard.compliance.export.types import (
    ExportFormat,
    ExportMetadata,
    ExportScope,
    PersonalDataPackage,
)
from payguard.core.logging import get_logger
from payguard.storage.gateway import Filter, StorageGateway, TableName, eq, gte
from payguard.utils.dates import subtract_months, utcnow

logger = get_logger(__name__)

ALL_SCOPES = frozenset(ExportScope)

EMPLOYEE_BASE_FIELDS: tuple[str, ...] = (
    "id",
    "first_name",
    "last_name",
    "email",
    "hire_date",
    "leave_date",
    "department",
    "status",
    "hours_per_week",
    "created_at",
    "updated_at",
)

# Only released for complete_profile exports
EMPLOYEE_PROFILE_FIELDS: tuple[str, ...] = (
    "date_of_birth",
    "national_insurance_number",
    "tax_code",
    "nic_code",
    "address1",
    "address2",
    "address3",
    "address4",
    "postcode",
    "payroll_id",
    "hourly_rate",
)


@dataclass(frozen=True)
class ExportCategory:
    """One list category of the package and where it is read from."""

    name: str
    table: TableName
    columns: tuple[str, ...]
    scopes: frozenset[ExportScope]
    order_by: str
    descending: bool = False
    date_field: str | None = None
    """Column bounded to the recent window when history is excluded."""

    date_only: bool = False
    link_field: str = "employee_id"
    employee_field: str = "id"
    limited: bool = False
    """Capped at the configured audit trail limit."""


EXPORT_CATEGORIES: tuple[ExportCategory, ...] = (
    ExportCategory(
        name="payroll_data",
        table=TableName.PAYROLL_RESULTS,
        columns=(
            "id",
            "tax_year",
            "tax_period",
            "gross_pay_this_period",
            "net_pay_this_period",
            "income_tax_this_period",
            "tax_code",
            "created_at",
        ),
        scopes=frozenset({ExportScope.PAYROLL_DATA, ExportScope.COMPLETE_PROFILE}),
        order_by="created_at",
        descending=True,
        date_field="created_at",
    ),
    ExportCategory(
        name="timesheet_data",
        table=TableName.TIMESHEET_ENTRIES,
        columns=(
            "id",
            "date",
            "scheduled_start",
            "scheduled_end",
            "actual_start",
            "actual_end",
            "created_at",
        ),
        scopes=frozenset({ExportScope.EMPLOYMENT_DATA, ExportScope.COMPLETE_PROFILE}),
        order_by="date",
        descending=True,
        date_field="date",
        date_only=True,
    ),
    ExportCategory(
        name="sickness_records",
        table=TableName.EMPLOYEE_SICKNESS_RECORDS,
        columns=("id", "start_date", "end_date", "total_days", "reason", "notes", "created_at"),
        scopes=frozenset({ExportScope.EMPLOYMENT_DATA, ExportScope.COMPLETE_PROFILE}),
        order_by="start_date",
        descending=True,
        date_field="start_date",
        date_only=True,
    ),
    ExportCategory(
        name="work_patterns",
        table=TableName.WORK_PATTERNS,
        columns=("id", "day", "is_working", "start_time", "end_time"),
        scopes=frozenset({ExportScope.EMPLOYMENT_DATA, ExportScope.COMPLETE_PROFILE}),
        order_by="day",
    ),
    ExportCategory(
        name="documents",
        table=TableName.DOCUMENTS,
        columns=("id", "title", "file_name", "mime_type", "file_size", "created_at"),
        scopes=frozenset({ExportScope.PERSONAL_DATA, ExportScope.COMPLETE_PROFILE}),
        order_by="created_at",
        descending=True,
        date_field="created_at",
    ),
    ExportCategory(
        name="audit_trail",
        table=TableName.DATA_ACCESS_AUDIT_LOG,
        columns=("accessed_table", "access_type", "created_at"),
        scopes=ALL_SCOPES,
        order_by="created_at",
        descending=True,
        date_field="created_at",
        link_field="user_id",
        employee_field="user_id",
        limited=True,
    ),
)


def employee_fields_for(scope: ExportScope) -> tuple[str, ...]:
    if ExportScope(scope) == ExportScope.COMPLETE_PROFILE:
        return EMPLOYEE_BASE_FIELDS + EMPLOYEE_PROFILE_FIELDS
    return EMPLOYEE_BASE_FIELDS


class ExportCollector:
    """Assemble a scope-filtered, bounded package of a subject's data."""

    def __init__(
        self,
        gateway: StorageGateway,
        history_months: int = 12,
        audit_trail_limit: int = 50,
    ):
        self._gateway = gateway
        self.history_months = history_months
        self.audit_trail_limit = audit_trail_limit

    async def collect(
        self,
        subject_id: str,
        scope: ExportScope,
        include_historical: bool = False,
        request_id: str = "",
        export_format: ExportFormat = ExportFormat.JSON,
        now: datetime | None = None,
    ) -> PersonalDataPackage:
        """Gather every category implied by ``scope``.

        When ``include_historical`` is False, dated categories are limited
        to the last ``history_months`` months. Empty categories are left
        out of the package and of ``data_sources``.
        """
        scope = ExportScope(scope)
        cutoff = None if include_historical else subtract_months(now or utcnow(), self.history_months)

        employee_rows = await self._gateway.select(
            TableName.EMPLOYEES,
            [eq("id", subject_id)],
            limit=1,
        )
        employee = employee_rows[0] if employee_rows else None

        data_sources: list[str] = []
        values: dict[str, Any] = {}
        if employee is not None:
            values["employee_info"] = {f: employee.get(f) for f in employee_fields_for(scope)}
            data_sources.append(TableName.EMPLOYEES.value)

        link_values = {"id": subject_id, "user_id": employee.get("user_id") if employee else None}
        total_records = 1 if employee is not None else 0
        for category in EXPORT_CATEGORIES:
            if scope not in category.scopes:
                continue
            match_value = link_values[category.employee_field]
            if match_value is None:
                continue
            rows = await self._gateway.select(
                category.table,
                self._filters(category, match_value, cutoff),
                columns=list(category.columns),
                order_by=category.order_by,
                descending=category.descending,
                limit=self.audit_trail_limit if category.limited else None,
            )
            if not rows:
                continue
            values[category.name] = rows
            data_sources.append(category.table.value)
            total_records += len(rows)

        package = PersonalDataPackage(
            **values,
            export_metadata=ExportMetadata(
                request_id=request_id,
                format=ExportFormat(export_format),
                scope=scope,
                total_records=total_records,
                data_sources=data_sources,
            ),
        )
        logger.info(
            "Personal data collected",
            subject_id=subject_id,
            scope=scope.value,
            total_records=total_records,
            data_sources=data_sources,
        )
        return package

    @staticmethod
    def _filters(category: ExportCategory, match_value: str, cutoff: datetime | None) -> list[Filter]:
        filters = [eq(category.link_field, match_value)]
        if cutoff is not None and category.date_field is not None:
            filters.append(gte(category.date_field, cutoff.date() if category.date_only else cutoff))
        return filters
