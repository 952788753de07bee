"""Type definitions for personal data exports."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid7

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(UTC)


class ExportFormat(str, Enum):
    """Serialization formats for export files."""

    JSON = "json"
    """Full fidelity, nested values preserved."""

    CSV = "csv"
    """One section per category; nested values are not expanded."""

    PDF = "pdf"
    """Placeholder document."""


class ExportScope(str, Enum):
    """How much of a subject's data an export covers."""

    PERSONAL_DATA = "personal_data"
    EMPLOYMENT_DATA = "employment_data"
    PAYROLL_DATA = "payroll_data"
    COMPLETE_PROFILE = "complete_profile"
    """Union of all scopes, including national identifiers."""


class ExportStatus(str, Enum):
    """Status of a data export request."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    """File removed after ``expires_at`` passed."""


class DataExportRequest(BaseModel):
    """A subject access export request."""

    id: str = Field(default_factory=lambda: str(uuid7()))
    subject_id: str
    requester_id: str
    request_date: datetime = Field(default_factory=_now)
    completion_date: datetime | None = None
    status: ExportStatus = ExportStatus.PENDING
    export_format: ExportFormat
    export_scope: ExportScope
    include_historical: bool = False
    file_path: str | None = None
    file_size: int | None = None
    download_count: int = 0
    expires_at: datetime
    error_message: str | None = None


class ExportMetadata(BaseModel):
    request_id: str
    export_date: datetime = Field(default_factory=_now)
    format: ExportFormat
    scope: ExportScope
    total_records: int = 0
    data_sources: list[str] = Field(default_factory=list)


class PersonalDataPackage(BaseModel):
    """Assembled personal data for one subject.

    Categories with no records are left as None and omitted on output.
    """

    employee_info: dict[str, Any] | None = None
    payroll_data: list[dict[str, Any]] | None = None
    timesheet_data: list[dict[str, Any]] | None = None
    sickness_records: list[dict[str, Any]] | None = None
    work_patterns: list[dict[str, Any]] | None = None
    documents: list[dict[str, Any]] | None = None
    audit_trail: list[dict[str, Any]] | None = None
    export_metadata: ExportMetadata

    def categories(self) -> dict[str, list[dict[str, Any]]]:
        """Populated list categories in declaration order."""
        names = [
            "payroll_data",
            "timesheet_data",
            "sickness_records",
            "work_patterns",
            "documents",
            "audit_trail",
        ]
        return {name: getattr(self, name) for name in names if getattr(self, name)}

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


@dataclass
class ExportFile:
    """A generated export file."""

    file_path: str
    file_size: int
    content_type: str
    checksum: str
