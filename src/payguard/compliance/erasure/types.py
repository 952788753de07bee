"""Type definitions for right-to-erasure processing.

This module defines erasure methods, request statuses, the persisted
erasure request entity, legal holds and verification results.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid7

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid7())


class ErasureMethod(str, Enum):
    """Mutation strategy applied to a subject's records."""

    HARD_DELETE = "hard_delete"
    """Physically remove records."""

    ANONYMIZATION = "anonymization"
    """Overwrite sensitive fields with generic placeholders."""

    PSEUDONYMIZATION = "pseudonymization"
    """Replace sensitive fields with a per-record token."""

    ARCHIVAL = "archival"
    """Soft-mark records as archived without removing them."""


class ErasureRequestStatus(str, Enum):
    """Status of an erasure request."""

    PENDING = "pending"
    """Created, not yet executed."""

    IN_PROGRESS = "in_progress"
    """Strategies are being applied table by table."""

    COMPLETED = "completed"
    """All tables processed; verification hash assigned."""

    FAILED = "failed"
    """Execution crashed; earlier tables stay mutated. Resumable."""

    REJECTED = "rejected"
    """Blocked by an active legal hold before any write."""

    CANCELLED = "cancelled"
    """Withdrawn before execution started."""


class LegalHold(BaseModel):
    """Externally managed hold on a single record."""

    id: str = Field(default_factory=_new_id)
    subject_id: str
    table_name: str
    record_id: str
    reason: str = ""
    is_active: bool = True


class ErasureRequest(BaseModel):
    """A right-to-erasure request and its progress."""

    id: str = Field(default_factory=_new_id)
    subject_id: str
    requester_id: str
    request_date: datetime = Field(default_factory=_now)
    completion_date: datetime | None = None
    status: ErasureRequestStatus = ErasureRequestStatus.PENDING
    erasure_method: ErasureMethod
    reason: str
    legal_basis: str | None = None
    retention_override: bool = False
    affected_tables: list[str] = Field(default_factory=list)
    completed_tables: list[str] = Field(default_factory=list)
    """Tables fully processed so far; a resumed run skips these."""

    records_processed: int = 0
    total_records: int = 0
    verification_hash: str | None = None
    notes: str | None = None

    @property
    def is_partial(self) -> bool:
        return self.records_processed < self.total_records

    def add_note(self, note: str) -> None:
        self.notes = f"{self.notes}\n{note}" if self.notes else note


class ErasureVerification(BaseModel):
    """Outcome of re-checking a finished erasure request."""

    request_id: str
    verified: bool
    status: ErasureRequestStatus
    method: ErasureMethod
    remaining_records: int
    remaining_tables: list[str] = Field(default_factory=list)
    verification_hash: str | None = None
    completion_date: datetime | None = None
    checked_at: datetime = Field(default_factory=_now)
