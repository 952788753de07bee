"""Error response schemas for API."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    EXPORT_NOT_AVAILABLE = "export_not_available"
    UNSUPPORTED_FORMAT = "unsupported_format"
    VALIDATION_ERROR = "validation_error"
    STORAGE_ERROR = "storage_error"
    INTERNAL_ERROR = "internal_error"


class APIError(BaseModel):
    """Standardized API error response format."""

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context")
    timestamp: datetime = Field(..., description="When the error occurred")
