"""Data retention management.

Provides time-based retention policies bound to payroll tables, expiry
identification, and batched deletion jobs that always respect legal holds.
"""

from payguard.compliance.retention.manager import (
    RetentionJobRepository,
    RetentionManager,
    RetentionManagerConfig,
    RetentionPolicyRepository,
)
from payguard.compliance.retention.policies import (
    RETENTION_BINDINGS,
    RetentionBinding,
    create_default_policies,
    retention_cutoff,
    subtract_months,
)
from payguard.compliance.retention.types import (
    ExpiredRecords,
    RetentionJob,
    RetentionJobStatus,
    RetentionPolicy,
    RetentionPolicyType,
)

__all__ = [
    # Manager
    "RetentionJobRepository",
    "RetentionManager",
    "RetentionManagerConfig",
    "RetentionPolicyRepository",
    # Policies
    "RETENTION_BINDINGS",
    "RetentionBinding",
    "create_default_policies",
    "retention_cutoff",
    "subtract_months",
    # Types
    "ExpiredRecords",
    "RetentionJob",
    "RetentionJobStatus",
    "RetentionPolicy",
    "RetentionPolicyType",
]
