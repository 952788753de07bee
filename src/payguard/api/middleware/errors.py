"""Exception handlers mapping domain errors to HTTP responses."""

from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from payguard.api.schemas.errors import APIError, ErrorCode
from payguard.core.exceptions import (
    ExportNotAvailableError,
    InvalidStatusTransitionError,
    RequestNotFoundError,
    UnsupportedExportFormatError,
)
from payguard.core.logging import get_logger
from payguard.utils.exceptions import StorageError

logger = get_logger(__name__)

# Exception to HTTP status/error code mapping
# Format: Exception -> (status_code, error_code)
EXCEPTION_MAP: dict[type[Exception], tuple[int, ErrorCode]] = {
    RequestNotFoundError: (404, ErrorCode.NOT_FOUND),
    InvalidStatusTransitionError: (409, ErrorCode.INVALID_TRANSITION),
    ExportNotAvailableError: (409, ErrorCode.EXPORT_NOT_AVAILABLE),
    UnsupportedExportFormatError: (422, ErrorCode.UNSUPPORTED_FORMAT),
    ValueError: (422, ErrorCode.VALIDATION_ERROR),
    StorageError: (503, ErrorCode.STORAGE_ERROR),
}


def _details(exc: Exception) -> dict | None:
    if isinstance(exc, RequestNotFoundError):
        return {"entity": exc.entity, "id": exc.entity_id}
    if isinstance(exc, InvalidStatusTransitionError):
        return {"entity": exc.entity, "current": exc.current, "target": exc.target}
    if isinstance(exc, ExportNotAvailableError):
        return {"request_id": exc.request_id, "status": exc.status}
    if isinstance(exc, UnsupportedExportFormatError):
        return {"export_format": exc.export_format}
    return None


def map_exception(exc: Exception) -> tuple[int, ErrorCode]:
    """Find the status and error code for an exception, most specific first."""
    for exc_type in type(exc).__mro__:
        if exc_type in EXCEPTION_MAP:
            return EXCEPTION_MAP[exc_type]
    return 500, ErrorCode.INTERNAL_ERROR


async def handle_domain_error(request: Request, exc: Exception) -> JSONResponse:
    """Convert a mapped exception to an APIError response."""
    status_code, error_code = map_exception(exc)
    if status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=str(exc))

    error = APIError(
        error_code=error_code.value,
        message=str(exc),
        details=_details(exc),
        timestamp=datetime.now(UTC),
    )
    return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    for exc_type in EXCEPTION_MAP:
        app.add_exception_handler(exc_type, handle_domain_error)
