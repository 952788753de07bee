"""Core services and utilities for PayGuard."""

from .audit import (
    AuditEvent,
    AuditEventType,
    AuditSink,
    ComplianceAuditor,
    GatewayAuditSink,
    InMemoryAuditSink,
)
from .exceptions import (
    BatchExecutionError,
    ExportNotAvailableError,
    InvalidStatusTransitionError,
    PolicyConflictError,
    RequestNotFoundError,
    UnsupportedExportFormatError,
)
from .locks import SubjectLockManager

__all__ = [
    # Audit
    "AuditEvent",
    "AuditEventType",
    "AuditSink",
    "ComplianceAuditor",
    "GatewayAuditSink",
    "InMemoryAuditSink",
    # Exceptions
    "BatchExecutionError",
    "ExportNotAvailableError",
    "InvalidStatusTransitionError",
    "PolicyConflictError",
    "RequestNotFoundError",
    "UnsupportedExportFormatError",
    # Locks
    "SubjectLockManager",
]
