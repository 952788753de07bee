"""Compliance tables: requests, jobs, policies, holds and the access log."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import ArchivableMixin, Base, CreatedAtMixin, IdMixin, PortableJSON, TimestampMixin, utcnow


class DataAccessAuditLog(IdMixin, CreatedAtMixin, ArchivableMixin, Base):
    """Append-only log of sensitive data access and compliance events."""

    __tablename__ = "data_access_audit_log"

    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    accessed_table: Mapped[str] = mapped_column(String(100), nullable=False)
    accessed_record_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    access_type: Mapped[str] = mapped_column(String(50), nullable=False)
    sensitive_fields: Mapped[list | None] = mapped_column(PortableJSON(), nullable=True)
    additional_context: Mapped[dict | None] = mapped_column(PortableJSON(), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_access_log_user", "user_id"),
        Index("idx_access_log_created", "created_at"),
    )


class LegalHoldRecord(IdMixin, CreatedAtMixin, Base):
    """Hold on a single record. Maintained outside the engine."""

    __tablename__ = "legal_holds"

    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    table_name: Mapped[str] = mapped_column(String(100), nullable=False)
    record_id: Mapped[str] = mapped_column(String(36), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("idx_legal_holds_lookup", "table_name", "record_id", "is_active"),)


class ErasureRequestRecord(IdMixin, Base):
    __tablename__ = "erasure_requests"

    subject_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    requester_id: Mapped[str] = mapped_column(String(36), nullable=False)
    request_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    completion_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    erasure_method: Mapped[str] = mapped_column(String(30), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    legal_basis: Mapped[str | None] = mapped_column(Text, nullable=True)
    retention_override: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    affected_tables: Mapped[list] = mapped_column(PortableJSON(), nullable=False, default=list)
    completed_tables: Mapped[list] = mapped_column(PortableJSON(), nullable=False, default=list)
    records_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_records: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    verification_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class RetentionPolicyRecord(IdMixin, TimestampMixin, Base):
    __tablename__ = "data_retention_policies"

    policy_type: Mapped[str] = mapped_column(String(50), nullable=False)
    retention_period_months: Mapped[int] = mapped_column(Integer, nullable=False)
    auto_delete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    legal_hold_override: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    scope_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    superseded_by: Mapped[str | None] = mapped_column(String(36), nullable=True)


class RetentionJobRecord(IdMixin, TimestampMixin, Base):
    __tablename__ = "data_retention_jobs"

    policy_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    table_name: Mapped[str] = mapped_column(String(100), nullable=False)
    scheduled_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    execution_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    records_identified: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    records_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    records_on_hold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("idx_retention_jobs_due", "status", "scheduled_date"),)


class DataExportRequestRecord(IdMixin, Base):
    __tablename__ = "data_export_requests"

    subject_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    requester_id: Mapped[str] = mapped_column(String(36), nullable=False)
    request_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    completion_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    export_format: Mapped[str] = mapped_column(String(10), nullable=False)
    export_scope: Mapped[str] = mapped_column(String(30), nullable=False)
    include_historical: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    file_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("idx_export_requests_expiry", "status", "expires_at"),)
