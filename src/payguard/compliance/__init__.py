"""Data lifecycle compliance for payroll data.

Scope analysis, right-to-erasure, personal data export and retention
scheduling, bound together by ``ComplianceEngine``.
"""

from payguard.compliance.engine import ComplianceEngine, create_compliance_engine
from payguard.compliance.lifecycle import (
    ERASURE_LIFECYCLE,
    EXPORT_LIFECYCLE,
    RETENTION_JOB_LIFECYCLE,
    StatusLifecycle,
)
from payguard.compliance.scope import (
    SUBJECT_TABLES,
    ErasureScope,
    ScopeAnalyzer,
    TableBinding,
    count_records,
    execution_order,
)

__all__ = [
    # Engine
    "ComplianceEngine",
    "create_compliance_engine",
    # Lifecycle
    "ERASURE_LIFECYCLE",
    "EXPORT_LIFECYCLE",
    "RETENTION_JOB_LIFECYCLE",
    "StatusLifecycle",
    # Scope
    "SUBJECT_TABLES",
    "ErasureScope",
    "ScopeAnalyzer",
    "TableBinding",
    "count_records",
    "execution_order",
]
