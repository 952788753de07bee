"""API schemas."""

from .errors import APIError, ErrorCode
from .privacy import (
    CleanupResponse,
    ErasureRequestCreate,
    ExpiredRecordsResponse,
    ExportRequestCreate,
    RetentionJobCreate,
    RetentionPolicyCreate,
    RetentionPolicyUpdate,
    ScopeSummary,
    SubjectScopeResponse,
)

__all__ = [
    "APIError",
    "CleanupResponse",
    "ErasureRequestCreate",
    "ErrorCode",
    "ExpiredRecordsResponse",
    "ExportRequestCreate",
    "RetentionJobCreate",
    "RetentionPolicyCreate",
    "RetentionPolicyUpdate",
    "ScopeSummary",
    "SubjectScopeResponse",
]
