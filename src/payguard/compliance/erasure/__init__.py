"""Right-to-erasure processing.

Provides scope-driven erasure of a subject's data using one of four
strategies, with legal hold enforcement, resumable progress and
verification hashing.
"""

from payguard.compliance.erasure.service import (
    ErasureRequestRepository,
    ErasureService,
    ErasureServiceConfig,
    compute_verification_hash,
)
from payguard.compliance.erasure.strategies import (
    ANONYMIZED_VALUES,
    ErasureStrategyExecutor,
    FieldCategory,
    anonymized_values,
    classify_field,
    pseudonymized_values,
)
from payguard.compliance.erasure.types import (
    ErasureMethod,
    ErasureRequest,
    ErasureRequestStatus,
    ErasureVerification,
    LegalHold,
)

__all__ = [
    # Service
    "ErasureRequestRepository",
    "ErasureService",
    "ErasureServiceConfig",
    "compute_verification_hash",
    # Strategies
    "ANONYMIZED_VALUES",
    "ErasureStrategyExecutor",
    "FieldCategory",
    "anonymized_values",
    "classify_field",
    "pseudonymized_values",
    # Types
    "ErasureMethod",
    "ErasureRequest",
    "ErasureRequestStatus",
    "ErasureVerification",
    "LegalHold",
]
