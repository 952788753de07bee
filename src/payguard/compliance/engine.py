"""Compliance engine facade.

Binds the erasure, export and retention services behind the operations a
calling UI or job scheduler uses. Construct it once at startup with
``create_compliance_engine`` and pass it where it is needed.
"""

from datetime import datetime
from typing import Any

from payguard.compliance.erasure.service import ErasureService, ErasureServiceConfig
from payguard.compliance.erasure.types import (
    ErasureMethod,
    ErasureRequest,
    ErasureRequestStatus,
    ErasureVerification,
)
from payguard.compliance.export.service import DataExportService, ExportServiceConfig
from payguard.compliance.export.types import (
    DataExportRequest,
    ExportFormat,
    ExportScope,
    ExportStatus,
)
from payguard.compliance.retention.manager import RetentionManager, RetentionManagerConfig
from payguard.compliance.retention.types import (
    ExpiredRecords,
    RetentionJob,
    RetentionJobStatus,
    RetentionPolicy,
    RetentionPolicyType,
)
from payguard.compliance.scope import ErasureScope, ScopeAnalyzer
from payguard.config.settings import Settings, get_settings
from payguard.core.audit import AuditSink, ComplianceAuditor
from payguard.core.locks import SubjectLockManager
from payguard.core.logging import get_logger
from payguard.storage.gateway import StorageGateway

logger = get_logger(__name__)


class ComplianceEngine:
    """Request lifecycle controller for erasure, export and retention."""

    def __init__(
        self,
        analyzer: ScopeAnalyzer,
        erasure: ErasureService,
        exports: DataExportService,
        retention: RetentionManager,
    ):
        self.analyzer = analyzer
        self.erasure = erasure
        self.exports = exports
        self.retention = retention

    # =========================================================================
    # Erasure
    # =========================================================================

    async def analyze_scope(self, subject_id: str) -> list[ErasureScope]:
        return await self.analyzer.analyze_scope(subject_id)

    async def create_erasure_request(
        self,
        subject_id: str,
        requester_id: str,
        reason: str,
        method: ErasureMethod | str,
        legal_basis: str | None = None,
        retention_override: bool = False,
        notes: str | None = None,
    ) -> ErasureRequest:
        return await self.erasure.create_request(
            subject_id,
            requester_id,
            reason,
            ErasureMethod(method),
            legal_basis=legal_basis,
            retention_override=retention_override,
            notes=notes,
        )

    async def execute_erasure_request(self, request_id: str) -> ErasureRequest:
        return await self.erasure.execute_request(request_id)

    async def resume_erasure_request(self, request_id: str) -> ErasureRequest:
        return await self.erasure.resume_request(request_id)

    async def cancel_erasure_request(self, request_id: str) -> ErasureRequest:
        return await self.erasure.cancel_request(request_id)

    async def get_erasure_request(self, request_id: str) -> ErasureRequest:
        return await self.erasure.get_request(request_id)

    async def list_erasure_requests(
        self,
        subject_id: str | None = None,
        status: ErasureRequestStatus | None = None,
    ) -> list[ErasureRequest]:
        return await self.erasure.list_requests(subject_id=subject_id, status=status)

    async def verify_erasure(self, request_id: str) -> ErasureVerification:
        return await self.erasure.verify_erasure(request_id)

    # =========================================================================
    # Export
    # =========================================================================

    async def create_export_request(
        self,
        subject_id: str,
        requester_id: str,
        export_format: ExportFormat | str,
        export_scope: ExportScope | str,
        include_historical: bool = False,
        expiry_days: int | None = None,
    ) -> DataExportRequest:
        return await self.exports.create_request(
            subject_id,
            requester_id,
            export_format,
            export_scope,
            include_historical=include_historical,
            expiry_days=expiry_days,
        )

    async def process_export_request(self, request_id: str) -> DataExportRequest:
        return await self.exports.process_request(request_id)

    async def get_export_request(self, request_id: str) -> DataExportRequest:
        return await self.exports.get_request(request_id)

    async def list_export_requests(
        self,
        subject_id: str | None = None,
        status: ExportStatus | None = None,
    ) -> list[DataExportRequest]:
        return await self.exports.list_requests(subject_id=subject_id, status=status)

    async def cancel_export_request(self, request_id: str) -> DataExportRequest:
        return await self.exports.cancel_request(request_id)

    async def track_download(self, request_id: str) -> DataExportRequest:
        return await self.exports.track_download(request_id)

    async def cleanup_expired_exports(self) -> int:
        return await self.exports.cleanup_expired_exports()

    # =========================================================================
    # Retention
    # =========================================================================

    async def create_retention_policy(
        self,
        policy_type: RetentionPolicyType | str,
        retention_period_months: int,
        auto_delete: bool = False,
        legal_hold_override: bool = False,
        scope_id: str | None = None,
        description: str = "",
    ) -> RetentionPolicy:
        return await self.retention.create_policy(
            RetentionPolicyType(policy_type),
            retention_period_months,
            auto_delete=auto_delete,
            legal_hold_override=legal_hold_override,
            scope_id=scope_id,
            description=description,
        )

    async def update_retention_policy(self, policy_id: str, **changes: Any) -> RetentionPolicy:
        return await self.retention.update_policy(policy_id, **changes)

    async def get_retention_policy(self, policy_id: str) -> RetentionPolicy:
        return await self.retention.get_policy(policy_id)

    async def install_default_retention_policies(
        self, scope_id: str | None = None
    ) -> list[RetentionPolicy]:
        return await self.retention.install_default_policies(scope_id=scope_id)

    async def list_retention_policies(
        self,
        scope_id: str | None = None,
        include_superseded: bool = False,
    ) -> list[RetentionPolicy]:
        return await self.retention.list_policies(
            scope_id=scope_id, include_superseded=include_superseded
        )

    async def identify_expired(
        self,
        policy_type: RetentionPolicyType | str,
        retention_months: int,
    ) -> ExpiredRecords:
        return await self.retention.identify_expired(RetentionPolicyType(policy_type), retention_months)

    async def schedule_retention_job(self, policy_id: str, scheduled_date: datetime) -> RetentionJob:
        return await self.retention.schedule_job(policy_id, scheduled_date)

    async def execute_retention_job(self, job_id: str) -> RetentionJob:
        return await self.retention.execute_job(job_id)

    async def cancel_retention_job(self, job_id: str) -> RetentionJob:
        return await self.retention.cancel_job(job_id)

    async def get_retention_job(self, job_id: str) -> RetentionJob:
        return await self.retention.get_job(job_id)

    async def list_retention_jobs(
        self,
        policy_id: str | None = None,
        status: RetentionJobStatus | None = None,
    ) -> list[RetentionJob]:
        return await self.retention.list_jobs(policy_id=policy_id, status=status)

    async def run_due_retention_jobs(self) -> list[RetentionJob]:
        return await self.retention.run_due_jobs()


def create_compliance_engine(
    gateway: StorageGateway,
    audit_sink: AuditSink,
    settings: Settings | None = None,
) -> ComplianceEngine:
    """Build the engine and its services around explicit collaborators.

    Args:
        gateway: Storage gateway used by every service
        audit_sink: Destination for audit events (wrapped as best-effort)
        settings: Application settings (default: cached environment settings)

    Returns:
        A ready ComplianceEngine
    """
    settings = settings or get_settings()
    auditor = ComplianceAuditor(audit_sink)
    analyzer = ScopeAnalyzer(gateway)

    engine = ComplianceEngine(
        analyzer=analyzer,
        erasure=ErasureService(
            gateway,
            auditor,
            locks=SubjectLockManager(),
            config=ErasureServiceConfig.from_settings(settings.erasure),
            analyzer=analyzer,
        ),
        exports=DataExportService(
            gateway,
            auditor,
            config=ExportServiceConfig.from_settings(settings.export),
        ),
        retention=RetentionManager(
            gateway,
            auditor,
            config=RetentionManagerConfig.from_settings(settings.retention),
        ),
    )
    logger.info("Compliance engine initialized", environment=settings.ENVIRONMENT)
    return engine
