"""Initial database schema

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _archive_columns() -> list[sa.Column]:
    return [
        sa.Column("status", sa.String(20), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_reason", sa.String(50), nullable=True),
    ]


def upgrade() -> None:
    # Subject data
    op.create_table(
        "employees",
        _id(),
        sa.Column("company_id", sa.String(36), nullable=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("national_insurance_number", sa.String(64), nullable=True),
        sa.Column("address1", sa.String(255), nullable=True),
        sa.Column("address2", sa.String(255), nullable=True),
        sa.Column("address3", sa.String(255), nullable=True),
        sa.Column("address4", sa.String(255), nullable=True),
        sa.Column("postcode", sa.String(64), nullable=True),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("payroll_id", sa.String(50), nullable=True),
        sa.Column("tax_code", sa.String(20), nullable=True),
        sa.Column("nic_code", sa.String(5), nullable=True),
        sa.Column("hourly_rate", sa.Float, nullable=True),
        sa.Column("hours_per_week", sa.Float, nullable=True),
        sa.Column("hire_date", sa.Date, nullable=True),
        sa.Column("leave_date", sa.Date, nullable=True),
        *_archive_columns(),
        _created_at(),
        _updated_at(),
    )
    op.create_index("idx_employees_user", "employees", ["user_id"])
    op.create_index("idx_employees_status_leave", "employees", ["status", "leave_date"])

    op.create_table(
        "payroll_results",
        _id(),
        sa.Column("employee_id", sa.String(36), nullable=False),
        sa.Column("tax_year", sa.String(9), nullable=True),
        sa.Column("tax_period", sa.Integer, nullable=True),
        sa.Column("tax_code", sa.String(20), nullable=True),
        sa.Column("gross_pay_this_period", sa.Float, nullable=True),
        sa.Column("net_pay_this_period", sa.Float, nullable=True),
        sa.Column("income_tax_this_period", sa.Float, nullable=True),
        *_archive_columns(),
        _created_at(),
    )
    op.create_index("ix_payroll_results_employee_id", "payroll_results", ["employee_id"])

    op.create_table(
        "timesheet_entries",
        _id(),
        sa.Column("employee_id", sa.String(36), nullable=False),
        sa.Column("payroll_id", sa.String(50), nullable=True),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("scheduled_start", sa.String(8), nullable=True),
        sa.Column("scheduled_end", sa.String(8), nullable=True),
        sa.Column("actual_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_end", sa.DateTime(timezone=True), nullable=True),
        *_archive_columns(),
        _created_at(),
    )
    op.create_index("ix_timesheet_entries_employee_id", "timesheet_entries", ["employee_id"])

    op.create_table(
        "employee_sickness_records",
        _id(),
        sa.Column("employee_id", sa.String(36), nullable=False),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("total_days", sa.Float, nullable=True),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_archive_columns(),
        _created_at(),
    )
    op.create_index(
        "ix_employee_sickness_records_employee_id", "employee_sickness_records", ["employee_id"]
    )

    op.create_table(
        "work_patterns",
        _id(),
        sa.Column("employee_id", sa.String(36), nullable=False),
        sa.Column("payroll_id", sa.String(50), nullable=True),
        sa.Column("day", sa.String(10), nullable=False),
        sa.Column("is_working", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("start_time", sa.String(8), nullable=True),
        sa.Column("end_time", sa.String(8), nullable=True),
        *_archive_columns(),
    )
    op.create_index("ix_work_patterns_employee_id", "work_patterns", ["employee_id"])

    op.create_table(
        "documents",
        _id(),
        sa.Column("employee_id", sa.String(36), nullable=True),
        sa.Column("company_id", sa.String(36), nullable=True),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=True),
        sa.Column("file_path", sa.Text, nullable=True),
        sa.Column("mime_type", sa.String(100), nullable=True),
        sa.Column("file_size", sa.Integer, nullable=True),
        sa.Column("uploaded_by", sa.String(36), nullable=True),
        *_archive_columns(),
        _created_at(),
    )
    op.create_index("ix_documents_employee_id", "documents", ["employee_id"])

    op.create_table(
        "data_access_audit_log",
        _id(),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("accessed_table", sa.String(100), nullable=False),
        sa.Column("accessed_record_id", sa.String(36), nullable=True),
        sa.Column("access_type", sa.String(50), nullable=False),
        sa.Column("sensitive_fields", JSONType, nullable=True),
        sa.Column("additional_context", JSONType, nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        *_archive_columns(),
        _created_at(),
    )
    op.create_index("idx_access_log_user", "data_access_audit_log", ["user_id"])
    op.create_index("idx_access_log_created", "data_access_audit_log", ["created_at"])

    # Compliance bookkeeping
    op.create_table(
        "legal_holds",
        _id(),
        sa.Column("subject_id", sa.String(36), nullable=False),
        sa.Column("table_name", sa.String(100), nullable=False),
        sa.Column("record_id", sa.String(36), nullable=False),
        sa.Column("reason", sa.Text, nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _created_at(),
    )
    op.create_index(
        "idx_legal_holds_lookup", "legal_holds", ["table_name", "record_id", "is_active"]
    )

    op.create_table(
        "erasure_requests",
        _id(),
        sa.Column("subject_id", sa.String(36), nullable=False),
        sa.Column("requester_id", sa.String(36), nullable=False),
        sa.Column("request_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completion_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("erasure_method", sa.String(30), nullable=False),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("legal_basis", sa.Text, nullable=True),
        sa.Column("retention_override", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("affected_tables", JSONType, nullable=False),
        sa.Column("completed_tables", JSONType, nullable=False),
        sa.Column("records_processed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_records", sa.Integer, nullable=False, server_default="0"),
        sa.Column("verification_hash", sa.String(64), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
    )
    op.create_index("ix_erasure_requests_subject_id", "erasure_requests", ["subject_id"])

    op.create_table(
        "data_retention_policies",
        _id(),
        sa.Column("policy_type", sa.String(50), nullable=False),
        sa.Column("retention_period_months", sa.Integer, nullable=False),
        sa.Column("auto_delete", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("legal_hold_override", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("scope_id", sa.String(36), nullable=True),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("superseded_by", sa.String(36), nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "data_retention_jobs",
        _id(),
        sa.Column("policy_id", sa.String(36), nullable=False),
        sa.Column("table_name", sa.String(100), nullable=False),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("execution_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("records_identified", sa.Integer, nullable=False, server_default="0"),
        sa.Column("records_processed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("records_on_hold", sa.Integer, nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text, nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_data_retention_jobs_policy_id", "data_retention_jobs", ["policy_id"])
    op.create_index("idx_retention_jobs_due", "data_retention_jobs", ["status", "scheduled_date"])

    op.create_table(
        "data_export_requests",
        _id(),
        sa.Column("subject_id", sa.String(36), nullable=False),
        sa.Column("requester_id", sa.String(36), nullable=False),
        sa.Column("request_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completion_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("export_format", sa.String(10), nullable=False),
        sa.Column("export_scope", sa.String(30), nullable=False),
        sa.Column("include_historical", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("file_path", sa.Text, nullable=True),
        sa.Column("file_size", sa.Integer, nullable=True),
        sa.Column("download_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("error_message", sa.Text, nullable=True),
    )
    op.create_index("ix_data_export_requests_subject_id", "data_export_requests", ["subject_id"])
    op.create_index(
        "idx_export_requests_expiry", "data_export_requests", ["status", "expires_at"]
    )


def downgrade() -> None:
    op.drop_table("data_export_requests")
    op.drop_table("data_retention_jobs")
    op.drop_table("data_retention_policies")
    op.drop_table("erasure_requests")
    op.drop_table("legal_holds")
    op.drop_table("data_access_audit_log")
    op.drop_table("documents")
    op.drop_table("work_patterns")
    op.drop_table("employee_sickness_records")
    op.drop_table("timesheet_entries")
    op.drop_table("payroll_results")
    op.drop_table("employees")
