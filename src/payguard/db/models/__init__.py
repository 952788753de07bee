"""Database models for PayGuard."""

from .base import Base, PortableJSON
from .compliance import (
    DataAccessAuditLog,
    DataExportRequestRecord,
    ErasureRequestRecord,
    LegalHoldRecord,
    RetentionJobRecord,
    RetentionPolicyRecord,
)
from .payroll import (
    Document,
    Employee,
    PayrollResult,
    SicknessRecord,
    TimesheetEntry,
    WorkPattern,
)

__all__ = [
    "Base",
    "PortableJSON",
    # Compliance
    "DataAccessAuditLog",
    "DataExportRequestRecord",
    "ErasureRequestRecord",
    "LegalHoldRecord",
    "RetentionJobRecord",
    "RetentionPolicyRecord",
    # Payroll
    "Document",
    "Employee",
    "PayrollResult",
    "SicknessRecord",
    "TimesheetEntry",
    "WorkPattern",
]
