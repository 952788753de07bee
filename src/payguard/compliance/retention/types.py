"""Type definitions for data retention management."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid7

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid7())


class RetentionPolicyType(str, Enum):
    """Record categories a retention policy can govern."""

    EMPLOYEE_RECORDS = "employee_records"
    """Inactive employees, measured from their leave date."""

    PAYROLL_DATA = "payroll_data"
    """Payroll results, measured from creation."""

    TIMESHEET_DATA = "timesheet_data"
    """Timesheet entries, measured from the worked date."""

    SICKNESS_RECORDS = "sickness_records"
    """Sickness records, measured from the end of the absence."""

    DOCUMENT_DATA = "document_data"
    """Uploaded documents, measured from upload."""

    AUDIT_LOGS = "audit_logs"
    """Sensitive data access log entries."""


class RetentionJobStatus(str, Enum):
    """Status of a retention job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RetentionPolicy(BaseModel):
    """A time-based retention rule for one record category.

    Policies are never deleted. Updating a policy creates a successor and
    deactivates this one.
    """

    id: str = Field(default_factory=_new_id)
    policy_type: RetentionPolicyType
    retention_period_months: int = Field(ge=1)
    auto_delete: bool = False
    legal_hold_override: bool = False
    """Recorded for reference only; scheduled retention always honours holds."""

    scope_id: str | None = None
    """Optional tenant the policy is limited to."""

    description: str = ""
    is_active: bool = True
    superseded_by: str | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class RetentionJob(BaseModel):
    """One scheduled evaluation of one policy."""

    id: str = Field(default_factory=_new_id)
    policy_id: str
    table_name: str
    scheduled_date: datetime
    execution_date: datetime | None = None
    status: RetentionJobStatus = RetentionJobStatus.PENDING
    records_identified: int = 0
    records_processed: int = 0
    records_on_hold: int = 0
    error_message: str | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


@dataclass
class ExpiredRecords:
    """Candidate records past their retention period."""

    table: str
    record_ids: list[str] = field(default_factory=list)
    cutoff: datetime | None = None

    @property
    def total_count(self) -> int:
        return len(self.record_ids)
