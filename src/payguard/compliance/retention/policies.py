"""Retention bindings and default policies.

Each policy type is bound to one table and the column its age is measured
from. Cutoffs are computed in calendar months.
"""

from dataclasses import dataclass
from datetime import datetime

from payguard.compliance.retention.types import RetentionPolicy, RetentionPolicyType
from payguard.storage.gateway import Filter, TableName, eq
from payguard.utils.dates import subtract_months, utcnow

# Standard retention periods (months)
SEVEN_YEARS = 7 * 12
SIX_YEARS = 6 * 12


@dataclass(frozen=True)
class RetentionBinding:
    """Table and age column governed by a policy type."""

    table: TableName
    date_field: str
    date_only: bool = False
    """Column holds calendar dates; compared against the cutoff's date."""

    extra_filters: tuple[Filter, ...] = ()


RETENTION_BINDINGS: dict[RetentionPolicyType, RetentionBinding] = {
    RetentionPolicyType.EMPLOYEE_RECORDS: RetentionBinding(
        table=TableName.EMPLOYEES,
        date_field="leave_date",
        date_only=True,
        extra_filters=(eq("status", "inactive"),),
    ),
    RetentionPolicyType.PAYROLL_DATA: RetentionBinding(
        table=TableName.PAYROLL_RESULTS,
        date_field="created_at",
    ),
    RetentionPolicyType.TIMESHEET_DATA: RetentionBinding(
        table=TableName.TIMESHEET_ENTRIES,
        date_field="date",
        date_only=True,
    ),
    RetentionPolicyType.SICKNESS_RECORDS: RetentionBinding(
        table=TableName.EMPLOYEE_SICKNESS_RECORDS,
        date_field="end_date",
        date_only=True,
    ),
    RetentionPolicyType.DOCUMENT_DATA: RetentionBinding(
        table=TableName.DOCUMENTS,
        date_field="created_at",
    ),
    RetentionPolicyType.AUDIT_LOGS: RetentionBinding(
        table=TableName.DATA_ACCESS_AUDIT_LOG,
        date_field="created_at",
    ),
}


def retention_cutoff(months: int, now: datetime | None = None) -> datetime:
    return subtract_months(now or utcnow(), months)


def get_binding(policy_type: RetentionPolicyType) -> RetentionBinding:
    return RETENTION_BINDINGS[RetentionPolicyType(policy_type)]


def create_default_policies(
    employee_records_months: int = SEVEN_YEARS,
    payroll_data_months: int = SIX_YEARS,
    scope_id: str | None = None,
) -> list[RetentionPolicy]:
    """Create the default set of retention policies.

    Returns:
        List of default RetentionPolicy instances
    """
    return [
        RetentionPolicy(
            policy_type=RetentionPolicyType.EMPLOYEE_RECORDS,
            retention_period_months=employee_records_months,
            auto_delete=False,
            legal_hold_override=False,
            scope_id=scope_id,
            description="Inactive employee records kept 7 years after leaving",
        ),
        RetentionPolicy(
            policy_type=RetentionPolicyType.PAYROLL_DATA,
            retention_period_months=payroll_data_months,
            auto_delete=True,
            legal_hold_override=False,
            scope_id=scope_id,
            description="Payroll results kept 6 years for HMRC record keeping",
        ),
    ]
