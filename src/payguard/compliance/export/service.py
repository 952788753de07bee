"""Personal data export service.

Creates export requests, assembles and writes the export file, tracks
downloads, and expires files once their download window closes.
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from payguard.compliance.export.collector import ExportCollector
from payguard.compliance.export.packager import ExportPackager, parse_format
from payguard.compliance.export.types import (
    DataExportRequest,
    ExportFormat,
    ExportScope,
    ExportStatus,
)
from payguard.compliance.lifecycle import EXPORT_LIFECYCLE
from payguard.compliance.repository import EntityRepository
from payguard.config.settings import ExportSettings
from payguard.core.audit import AuditEventType, ComplianceAuditor
from payguard.core.exceptions import ExportNotAvailableError
from payguard.core.logging import LogContext, get_logger
from payguard.storage.gateway import StorageGateway, TableName, eq, lt

logger = get_logger(__name__)


@dataclass
class ExportServiceConfig:
    """Configuration for the DataExportService."""

    export_directory: str = "exports"
    expiry_days: int = 30
    """Default download window."""

    history_months: int = 12
    audit_trail_limit: int = 50

    @classmethod
    def from_settings(cls, settings: ExportSettings) -> "ExportServiceConfig":
        return cls(
            export_directory=settings.export_directory,
            expiry_days=settings.expiry_days,
            history_months=settings.history_months,
            audit_trail_limit=settings.audit_trail_limit,
        )


class DataExportRepository(EntityRepository[DataExportRequest]):
    table = TableName.DATA_EXPORT_REQUESTS
    entity_name = "data_export_request"


class DataExportService:
    """Handle subject access export requests."""

    def __init__(
        self,
        gateway: StorageGateway,
        auditor: ComplianceAuditor,
        config: ExportServiceConfig | None = None,
        collector: ExportCollector | None = None,
        packager: ExportPackager | None = None,
    ):
        self.config = config or ExportServiceConfig()
        self._auditor = auditor
        self._collector = collector or ExportCollector(
            gateway,
            history_months=self.config.history_months,
            audit_trail_limit=self.config.audit_trail_limit,
        )
        self._packager = packager or ExportPackager(self.config.export_directory)
        self.requests = DataExportRepository(gateway)

    async def create_request(
        self,
        subject_id: str,
        requester_id: str,
        export_format: ExportFormat | str,
        export_scope: ExportScope | str,
        include_historical: bool = False,
        expiry_days: int | None = None,
    ) -> DataExportRequest:
        """Create a pending export request.

        Raises:
            UnsupportedExportFormatError: Before anything is read or written
        """
        fmt = parse_format(export_format)
        scope = ExportScope(export_scope)
        days = expiry_days if expiry_days is not None else self.config.expiry_days

        request = await self.requests.create(
            DataExportRequest(
                subject_id=subject_id,
                requester_id=requester_id,
                export_format=fmt,
                export_scope=scope,
                include_historical=include_historical,
                expires_at=datetime.now(UTC) + timedelta(days=days),
            )
        )
        await self._auditor.record(
            AuditEventType.DATA_EXPORT,
            TableName.DATA_EXPORT_REQUESTS,
            record_id=request.id,
            actor_id=requester_id,
            action="requested",
            subject_id=subject_id,
            format=fmt.value,
            scope=scope.value,
        )
        logger.info(
            "Export request created",
            request_id=request.id,
            subject_id=subject_id,
            format=fmt.value,
            scope=scope.value,
        )
        return request

    async def get_request(self, request_id: str) -> DataExportRequest:
        return await self.requests.get_or_raise(request_id)

    async def list_requests(
        self,
        subject_id: str | None = None,
        status: ExportStatus | None = None,
    ) -> list[DataExportRequest]:
        filters = []
        if subject_id is not None:
            filters.append(eq("subject_id", subject_id))
        if status is not None:
            filters.append(eq("status", ExportStatus(status).value))
        return await self.requests.list(filters, order_by="request_date", descending=True)

    async def cancel_request(self, request_id: str) -> DataExportRequest:
        request = await self.requests.get_or_raise(request_id)
        EXPORT_LIFECYCLE.ensure(request.status, ExportStatus.CANCELLED)
        request.status = ExportStatus.CANCELLED
        await self.requests.save(request, "status")
        logger.info("Export request cancelled", request_id=request_id)
        return request

    async def process_request(self, request_id: str) -> DataExportRequest:
        """Collect, serialize and write the export. No-op once terminal.

        Errors are recorded on the request before being re-raised.
        """
        request = await self.requests.get_or_raise(request_id)
        if EXPORT_LIFECYCLE.is_terminal(request.status):
            logger.info(
                "Export request already finished",
                request_id=request_id,
                status=request.status.value,
            )
            return request
        EXPORT_LIFECYCLE.ensure(request.status, ExportStatus.PROCESSING)

        with LogContext(request_id=request.id, subject_id=request.subject_id):
            request.status = ExportStatus.PROCESSING
            await self.requests.save(request, "status")
            try:
                package = await self._collector.collect(
                    request.subject_id,
                    request.export_scope,
                    include_historical=request.include_historical,
                    request_id=request.id,
                    export_format=request.export_format,
                )
                # File writes run in the default executor
                loop = asyncio.get_running_loop()
                export_file = await loop.run_in_executor(
                    None, self._packager.generate_file, package, request.export_format
                )
            except Exception as e:
                request.status = ExportStatus.FAILED
                request.error_message = f"{type(e).__name__}: {e}"
                await self.requests.save(request, "status", "error_message")
                await self._auditor.record(
                    AuditEventType.DATA_EXPORT,
                    TableName.DATA_EXPORT_REQUESTS,
                    record_id=request.id,
                    action="failed",
                    error=request.error_message,
                )
                logger.exception("Export request failed", error=str(e))
                raise

            request.status = ExportStatus.COMPLETED
            request.completion_date = datetime.now(UTC)
            request.file_path = export_file.file_path
            request.file_size = export_file.file_size
            await self.requests.save(
                request, "status", "completion_date", "file_path", "file_size"
            )
            await self._auditor.record(
                AuditEventType.DATA_EXPORT,
                TableName.DATA_EXPORT_REQUESTS,
                record_id=request.id,
                action="completed",
                total_records=package.export_metadata.total_records,
                data_sources=package.export_metadata.data_sources,
                file_size=export_file.file_size,
                checksum=export_file.checksum,
            )
            logger.info(
                "Export request completed",
                total_records=package.export_metadata.total_records,
                size_bytes=export_file.file_size,
            )
            return request

    async def track_download(self, request_id: str) -> DataExportRequest:
        """Count a download of a completed, unexpired export.

        Raises:
            ExportNotAvailableError: If the file is not ready or has expired
        """
        request = await self.requests.get_or_raise(request_id)
        if (
            request.status != ExportStatus.COMPLETED
            or request.file_path is None
            or request.expires_at <= datetime.now(UTC)
        ):
            raise ExportNotAvailableError(request.id, request.status.value)

        request.download_count += 1
        await self.requests.save(request, "download_count")
        await self._auditor.record(
            AuditEventType.DATA_EXPORT,
            TableName.DATA_EXPORT_REQUESTS,
            record_id=request.id,
            action="downloaded",
            download_count=request.download_count,
        )
        return request

    async def cleanup_expired_exports(self, now: datetime | None = None) -> int:
        """Expire completed exports past ``expires_at`` and remove their files.

        Returns:
            Number of requests marked expired
        """
        now = now or datetime.now(UTC)
        expired = await self.requests.list(
            [eq("status", ExportStatus.COMPLETED.value), lt("expires_at", now)]
        )
        for request in expired:
            if request.file_path is not None:
                try:
                    await asyncio.get_running_loop().run_in_executor(
                        None, self._packager.remove_file, request.file_path
                    )
                except OSError as e:
                    logger.warning(
                        "Could not remove export file",
                        request_id=request.id,
                        file_path=request.file_path,
                        error=str(e),
                    )
            EXPORT_LIFECYCLE.ensure(request.status, ExportStatus.EXPIRED)
            request.status = ExportStatus.EXPIRED
            request.file_path = None
            await self.requests.save(request, "status", "file_path")
            await self._auditor.record(
                AuditEventType.DATA_EXPORT,
                TableName.DATA_EXPORT_REQUESTS,
                record_id=request.id,
                action="expired",
            )

        if expired:
            logger.info("Expired exports cleaned up", count=len(expired))
        return len(expired)
