"""Request and response schemas for the privacy API."""

from datetime import datetime

from pydantic import BaseModel, Field

from payguard.compliance.erasure.types import ErasureMethod
from payguard.compliance.export.types import ExportScope
from payguard.compliance.retention.types import RetentionPolicyType

# =============================================================================
# Erasure
# =============================================================================


class ErasureRequestCreate(BaseModel):
    """Body of a right-to-erasure request."""

    subject_id: str = Field(..., description="Employee id of the data subject")
    requester_id: str = Field(..., description="User submitting the request")
    reason: str = Field(..., min_length=1)
    erasure_method: ErasureMethod
    legal_basis: str | None = None
    retention_override: bool = Field(
        default=False, description="Proceed past active legal holds"
    )
    notes: str | None = None


class ScopeSummary(BaseModel):
    """One table's share of a subject's erasure scope."""

    table: str
    record_count: int
    record_ids: list[str]
    sensitive_fields: list[str]
    dependencies: list[str]


class SubjectScopeResponse(BaseModel):
    subject_id: str
    total_records: int
    tables: list[ScopeSummary]


# =============================================================================
# Export
# =============================================================================


class ExportRequestCreate(BaseModel):
    """Body of a subject access export request."""

    subject_id: str
    requester_id: str
    export_format: str = Field(..., description="json, csv or pdf")
    export_scope: ExportScope
    include_historical: bool = False
    expiry_days: int | None = Field(
        default=None, ge=1, description="Days the file stays downloadable (default: configured window)"
    )


class CleanupResponse(BaseModel):
    expired: int


# =============================================================================
# Retention
# =============================================================================


class RetentionPolicyCreate(BaseModel):
    policy_type: RetentionPolicyType
    retention_period_months: int = Field(..., ge=1)
    auto_delete: bool = False
    legal_hold_override: bool = False
    scope_id: str | None = None
    description: str = ""


class RetentionPolicyUpdate(BaseModel):
    """Fields to change. The current policy is superseded, never edited."""

    retention_period_months: int | None = Field(default=None, ge=1)
    auto_delete: bool | None = None
    legal_hold_override: bool | None = None
    scope_id: str | None = None
    description: str | None = None


class RetentionJobCreate(BaseModel):
    policy_id: str
    scheduled_date: datetime


class ExpiredRecordsResponse(BaseModel):
    table: str
    total_count: int
    record_ids: list[str]
    cutoff: datetime | None = None
