"""Unit tests for mapping domain exceptions to HTTP responses."""

import json

import pytest
from starlette.requests import Request

from payguard.api.middleware.errors import handle_domain_error, map_exception
from payguard.api.schemas.errors import ErrorCode
from payguard.core.exceptions import (
    BatchExecutionError,
    ExportNotAvailableError,
    InvalidStatusTransitionError,
    RequestNotFoundError,
    UnsupportedExportFormatError,
)
from payguard.utils.exceptions import StorageError


def make_request(path: str = "/v1/privacy/erasure-requests") -> Request:
    return Request({"type": "http", "method": "GET", "path": path, "headers": [], "query_string": b""})


class TestMapException:
    """Tests for map_exception."""

    @pytest.mark.parametrize(
        "exc,expected",
        [
            (RequestNotFoundError("erasure_request", "r-1"), (404, ErrorCode.NOT_FOUND)),
            (
                InvalidStatusTransitionError("retention_job", "completed", "cancelled"),
                (409, ErrorCode.INVALID_TRANSITION),
            ),
            (ExportNotAvailableError("x-1", "expired"), (409, ErrorCode.EXPORT_NOT_AVAILABLE)),
            (UnsupportedExportFormatError("xml"), (422, ErrorCode.UNSUPPORTED_FORMAT)),
            (ValueError("bad field"), (422, ErrorCode.VALIDATION_ERROR)),
            (StorageError("down"), (503, ErrorCode.STORAGE_ERROR)),
        ],
    )
    def test_mapped(self, exc, expected):
        assert map_exception(exc) == expected

    def test_unmapped_is_internal(self):
        assert map_exception(BatchExecutionError("boom", "employees", 0)) == (
            500,
            ErrorCode.INTERNAL_ERROR,
        )

    def test_subclass_uses_parent_mapping(self):
        class StrictValueError(ValueError):
            pass

        assert map_exception(StrictValueError("x")) == (422, ErrorCode.VALIDATION_ERROR)


class TestHandleDomainError:
    """Tests for handle_domain_error."""

    @pytest.mark.asyncio
    async def test_not_found_body(self):
        response = await handle_domain_error(
            make_request(), RequestNotFoundError("data_export_request", "x-9")
        )

        body = json.loads(response.body)
        assert response.status_code == 404
        assert body["error_code"] == "not_found"
        assert body["message"] == "data_export_request not found: x-9"
        assert body["details"] == {"entity": "data_export_request", "id": "x-9"}
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_storage_error_has_no_details(self):
        response = await handle_domain_error(make_request(), StorageError("Select failed"))

        body = json.loads(response.body)
        assert response.status_code == 503
        assert body["details"] is None
