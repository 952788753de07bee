"""Unit tests for the DataExportService."""

import json
import threading
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from payguard.compliance.export.packager import ExportPackager
from payguard.compliance.export.service import DataExportService, ExportServiceConfig
from payguard.compliance.export.types import ExportFormat, ExportScope, ExportStatus
from payguard.core.audit import AuditEventType
from payguard.core.exceptions import (
    ExportNotAvailableError,
    InvalidStatusTransitionError,
    UnsupportedExportFormatError,
)
from payguard.storage.memory import InMemoryStorageGateway

SUBJECT_ID = "emp-0001"


class CountingGateway(InMemoryStorageGateway):
    def __init__(self):
        super().__init__()
        self.calls = 0

    async def select(self, *args, **kwargs):
        self.calls += 1
        return await super().select(*args, **kwargs)

    async def insert(self, table, row):
        self.calls += 1
        return await super().insert(table, row)


class BrokenPackager(ExportPackager):
    def generate_file(self, package, export_format):
        raise OSError("disk full")


class ThreadRecordingPackager(ExportPackager):
    """Remembers which thread wrote the file."""

    def __init__(self, directory):
        super().__init__(directory)
        self.threads: list[int] = []

    def generate_file(self, package, export_format):
        self.threads.append(threading.get_ident())
        return super().generate_file(package, export_format)


@pytest.fixture
def service(gateway, auditor, export_dir):
    return DataExportService(gateway, auditor, ExportServiceConfig(export_directory=str(export_dir)))


async def completed_export(service, export_format=ExportFormat.JSON):
    request = await service.create_request(
        SUBJECT_ID, "emp-0001", export_format, ExportScope.COMPLETE_PROFILE
    )
    return await service.process_request(request.id)


class TestCreateRequest:
    """Tests for export request creation."""

    @pytest.mark.asyncio
    async def test_create_pending(self, service, subject, audit_sink):
        before = datetime.now(UTC)
        request = await service.create_request(
            SUBJECT_ID, "emp-0001", "csv", "payroll_data", include_historical=True
        )

        assert request.status == ExportStatus.PENDING
        assert request.export_format == ExportFormat.CSV
        assert request.export_scope == ExportScope.PAYROLL_DATA
        assert request.include_historical is True
        assert request.download_count == 0
        assert request.expires_at >= before + timedelta(days=30)
        assert len(audit_sink.of_type(AuditEventType.DATA_EXPORT)) == 1

    @pytest.mark.asyncio
    async def test_custom_expiry(self, service, subject):
        before = datetime.now(UTC)
        request = await service.create_request(
            SUBJECT_ID, "emp-0001", "json", "personal_data", expiry_days=7
        )
        assert before + timedelta(days=7) <= request.expires_at < before + timedelta(days=8)

    @pytest.mark.asyncio
    async def test_unsupported_format_rejected_before_any_io(self, auditor, audit_sink, export_dir):
        gateway = CountingGateway()
        service = DataExportService(
            gateway, auditor, ExportServiceConfig(export_directory=str(export_dir))
        )

        with pytest.raises(UnsupportedExportFormatError):
            await service.create_request(SUBJECT_ID, "emp-0001", "xlsx", "personal_data")

        assert gateway.calls == 0
        assert audit_sink.events == []
        assert not export_dir.exists()


class TestProcessRequest:
    """Tests for processing exports."""

    @pytest.mark.asyncio
    async def test_json_export(self, service, subject, export_dir):
        result = await completed_export(service)

        assert result.status == ExportStatus.COMPLETED
        assert result.completion_date is not None
        path = Path(result.file_path)
        assert path.parent == export_dir
        assert path.name == f"personal_data_{result.id}.json"
        assert result.file_size == path.stat().st_size
        document = json.loads(path.read_text())
        assert document["employee_info"]["id"] == SUBJECT_ID
        assert document["export_metadata"]["request_id"] == result.id

    @pytest.mark.asyncio
    async def test_pdf_export(self, service, subject):
        result = await completed_export(service, ExportFormat.PDF)

        content = Path(result.file_path).read_bytes()
        assert content.startswith(b"%PDF-1.4\n")
        assert content.endswith(b"\n%%EOF")

    @pytest.mark.asyncio
    async def test_processing_twice_is_noop(self, service, subject):
        first = await completed_export(service)
        second = await service.process_request(first.id)

        assert second.status == ExportStatus.COMPLETED
        assert second.file_path == first.file_path
        assert second.completion_date == first.completion_date

    @pytest.mark.asyncio
    async def test_failure_is_recorded(self, gateway, auditor, subject, tmp_path):
        service = DataExportService(gateway, auditor, packager=BrokenPackager(tmp_path))
        request = await service.create_request(
            SUBJECT_ID, "emp-0001", "json", "personal_data"
        )

        with pytest.raises(OSError, match="disk full"):
            await service.process_request(request.id)

        stored = await service.get_request(request.id)
        assert stored.status == ExportStatus.FAILED
        assert stored.error_message == "OSError: disk full"
        assert stored.file_path is None

    @pytest.mark.asyncio
    async def test_file_written_off_the_event_loop_thread(self, gateway, auditor, subject, tmp_path):
        packager = ThreadRecordingPackager(tmp_path)
        service = DataExportService(gateway, auditor, packager=packager)
        request = await service.create_request(
            SUBJECT_ID, "emp-0001", "json", "personal_data"
        )

        processed = await service.process_request(request.id)

        assert processed.status == ExportStatus.COMPLETED
        assert Path(processed.file_path).exists()
        assert packager.threads and packager.threads[0] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_cancel_pending(self, service, subject):
        request = await service.create_request(
            SUBJECT_ID, "emp-0001", "json", "personal_data"
        )

        cancelled = await service.cancel_request(request.id)
        processed = await service.process_request(request.id)

        assert cancelled.status == ExportStatus.CANCELLED
        assert processed.status == ExportStatus.CANCELLED
        assert processed.file_path is None

    @pytest.mark.asyncio
    async def test_cancel_completed_raises(self, service, subject):
        result = await completed_export(service)
        with pytest.raises(InvalidStatusTransitionError):
            await service.cancel_request(result.id)

    @pytest.mark.asyncio
    async def test_list_requests(self, service, subject):
        done = await completed_export(service)
        pending = await service.create_request(
            "emp-0002", "emp-0002", "json", "personal_data"
        )

        completed = await service.list_requests(status=ExportStatus.COMPLETED)
        mine = await service.list_requests(subject_id="emp-0002")

        assert [r.id for r in completed] == [done.id]
        assert [r.id for r in mine] == [pending.id]


class TestDownloads:
    """Tests for track_download."""

    @pytest.mark.asyncio
    async def test_counts_downloads(self, service, subject, audit_sink):
        result = await completed_export(service)

        await service.track_download(result.id)
        tracked = await service.track_download(result.id)

        assert tracked.download_count == 2
        assert (await service.get_request(result.id)).download_count == 2
        actions = [
            e.additional_context["action"] for e in audit_sink.of_type(AuditEventType.DATA_EXPORT)
        ]
        assert actions.count("downloaded") == 2

    @pytest.mark.asyncio
    async def test_pending_export_not_available(self, service, subject):
        request = await service.create_request(
            SUBJECT_ID, "emp-0001", "json", "personal_data"
        )
        with pytest.raises(ExportNotAvailableError) as exc_info:
            await service.track_download(request.id)
        assert exc_info.value.status == "pending"

    @pytest.mark.asyncio
    async def test_past_expiry_not_available(self, service, gateway, subject):
        result = await completed_export(service)
        await gateway.update(
            "data_export_requests",
            result.id,
            {"expires_at": datetime.now(UTC) - timedelta(minutes=1)},
        )

        with pytest.raises(ExportNotAvailableError):
            await service.track_download(result.id)


class TestCleanup:
    """Tests for cleanup_expired_exports."""

    @pytest.mark.asyncio
    async def test_expires_old_exports(self, service, subject):
        result = await completed_export(service)
        fresh = await service.create_request(
            SUBJECT_ID, "emp-0001", "json", "personal_data", expiry_days=90
        )
        fresh = await service.process_request(fresh.id)

        count = await service.cleanup_expired_exports(now=datetime.now(UTC) + timedelta(days=31))

        assert count == 1
        stored = await service.get_request(result.id)
        assert stored.status == ExportStatus.EXPIRED
        assert stored.file_path is None
        assert not Path(result.file_path).exists()
        assert Path(fresh.file_path).exists()
        with pytest.raises(ExportNotAvailableError):
            await service.track_download(result.id)

    @pytest.mark.asyncio
    async def test_nothing_to_expire(self, service, subject):
        await completed_export(service)
        assert await service.cleanup_expired_exports() == 0

    @pytest.mark.asyncio
    async def test_missing_file_still_expires(self, service, subject):
        result = await completed_export(service)
        Path(result.file_path).unlink()

        count = await service.cleanup_expired_exports(now=datetime.now(UTC) + timedelta(days=31))

        assert count == 1
        assert (await service.get_request(result.id)).status == ExportStatus.EXPIRED
