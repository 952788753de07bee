"""Right-to-erasure service.

This module provides the ErasureService class that drives erasure requests
through their lifecycle: scope analysis at creation, legal hold checks,
table-by-table strategy execution with saga-style progress, verification
hashing at completion, and audit events for every transition.
"""

import hashlib
import json
from dataclasses import dataclass
from datetime import UTC, datetime

from payguard.compliance.erasure.strategies import ErasureStrategyExecutor
from payguard.compliance.erasure.types import (
    ErasureMethod,
    ErasureRequest,
    ErasureRequestStatus,
    ErasureVerification,
)
from payguard.compliance.lifecycle import ERASURE_LIFECYCLE
from payguard.compliance.repository import EntityRepository
from payguard.compliance.scope import (
    ErasureScope,
    ScopeAnalyzer,
    count_records,
    execution_order,
)
from payguard.config.settings import ErasureSettings
from payguard.core.audit import AuditEventType, ComplianceAuditor
from payguard.core.exceptions import (
    BatchExecutionError,
    InvalidStatusTransitionError,
    PolicyConflictError,
)
from payguard.core.locks import SubjectLockManager
from payguard.core.logging import LogContext, get_logger
from payguard.storage.gateway import StorageGateway, TableName, eq

logger = get_logger(__name__)

_PROGRESS_FIELDS = ("status", "records_processed", "total_records", "completed_tables", "notes")
_RESUMABLE = (ErasureRequestStatus.FAILED, ErasureRequestStatus.IN_PROGRESS)


@dataclass
class ErasureServiceConfig:
    """Configuration for the ErasureService."""

    block_on_any_legal_hold: bool = True
    """Reject the whole request when any record in scope is held.

    When False, hard deletes skip held records and the request completes
    with a partial count.
    """

    delete_batch_size: int = 100
    """Maximum ids per gateway delete call."""

    pseudonym_token_bytes: int = 8
    """Random bytes in each pseudonym token."""

    @classmethod
    def from_settings(cls, settings: ErasureSettings) -> "ErasureServiceConfig":
        return cls(
            block_on_any_legal_hold=settings.block_on_any_legal_hold,
            delete_batch_size=settings.delete_batch_size,
            pseudonym_token_bytes=settings.pseudonym_token_bytes,
        )


class ErasureRequestRepository(EntityRepository[ErasureRequest]):
    table = TableName.ERASURE_REQUESTS
    entity_name = "erasure_request"


def compute_verification_hash(request: ErasureRequest, timestamp: datetime) -> str:
    """Digest attesting that ``request`` finished with its current counts.

    A point-in-time attestation; it is computed once and never refreshed.
    """
    payload = {
        "request_id": request.id,
        "subject_id": request.subject_id,
        "method": request.erasure_method.value,
        "processed_records": request.records_processed,
        "timestamp": timestamp.isoformat(),
    }
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()


class ErasureService:
    """Handle right-to-erasure requests.

    Execution is serialized per subject through ``SubjectLockManager``.
    Tables are processed dependents-first and each finished table is
    recorded on the request, so a failed request can be resumed without
    repeating completed work.
    """

    def __init__(
        self,
        gateway: StorageGateway,
        auditor: ComplianceAuditor,
        locks: SubjectLockManager | None = None,
        config: ErasureServiceConfig | None = None,
        analyzer: ScopeAnalyzer | None = None,
        executor: ErasureStrategyExecutor | None = None,
    ):
        """Initialize the erasure service.

        Args:
            gateway: Storage gateway for subject data and request rows
            auditor: Best-effort audit recorder
            locks: Per-subject lock manager (shared across services)
            config: Service configuration
            analyzer: Optional scope analyzer instance
            executor: Optional strategy executor instance
        """
        self.config = config or ErasureServiceConfig()
        self._auditor = auditor
        self._locks = locks or SubjectLockManager()
        self._analyzer = analyzer or ScopeAnalyzer(gateway)
        self._executor = executor or ErasureStrategyExecutor(
            gateway,
            delete_batch_size=self.config.delete_batch_size,
            pseudonym_token_bytes=self.config.pseudonym_token_bytes,
        )
        self.requests = ErasureRequestRepository(gateway)

    # =========================================================================
    # Request Management
    # =========================================================================

    async def create_request(
        self,
        subject_id: str,
        requester_id: str,
        reason: str,
        method: ErasureMethod,
        legal_basis: str | None = None,
        retention_override: bool = False,
        notes: str | None = None,
    ) -> ErasureRequest:
        """Create a pending erasure request sized by a fresh scope analysis.

        Args:
            subject_id: Employee whose data should be erased
            requester_id: Who asked for the erasure
            reason: Free-text reason for the request
            method: Strategy to apply at execution
            legal_basis: Optional legal basis cited by the requester
            retention_override: Whether legal holds may be bypassed
            notes: Optional initial notes

        Returns:
            The persisted request
        """
        scopes = await self._analyzer.analyze_scope(subject_id)
        request = await self.requests.create(
            ErasureRequest(
                subject_id=subject_id,
                requester_id=requester_id,
                erasure_method=ErasureMethod(method),
                reason=reason,
                legal_basis=legal_basis,
                retention_override=retention_override,
                affected_tables=[s.table.value for s in scopes],
                total_records=count_records(scopes),
                notes=notes,
            )
        )

        await self._auditor.record(
            AuditEventType.PRIVACY_REQUEST,
            TableName.ERASURE_REQUESTS,
            record_id=request.id,
            actor_id=requester_id,
            request_type="erasure",
            subject_id=subject_id,
            method=request.erasure_method.value,
            total_records=request.total_records,
        )
        logger.info(
            "Erasure request created",
            request_id=request.id,
            subject_id=subject_id,
            method=request.erasure_method.value,
            total_records=request.total_records,
        )
        return request

    async def get_request(self, request_id: str) -> ErasureRequest:
        return await self.requests.get_or_raise(request_id)

    async def list_requests(
        self,
        subject_id: str | None = None,
        status: ErasureRequestStatus | None = None,
    ) -> list[ErasureRequest]:
        filters = []
        if subject_id is not None:
            filters.append(eq("subject_id", subject_id))
        if status is not None:
            filters.append(eq("status", ErasureRequestStatus(status).value))
        return await self.requests.list(filters, order_by="request_date", descending=True)

    async def cancel_request(self, request_id: str) -> ErasureRequest:
        """Cancel a request that has not started executing.

        Raises:
            InvalidStatusTransitionError: If the request is no longer pending
        """
        request = await self.requests.get_or_raise(request_id)
        ERASURE_LIFECYCLE.ensure(request.status, ErasureRequestStatus.CANCELLED)
        request.status = ErasureRequestStatus.CANCELLED
        await self.requests.save(request, "status")

        await self._auditor.record(
            AuditEventType.PRIVACY_REQUEST,
            TableName.ERASURE_REQUESTS,
            record_id=request.id,
            request_type="erasure",
            outcome="cancelled",
        )
        logger.info("Erasure request cancelled", request_id=request.id)
        return request

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute_request(self, request_id: str) -> ErasureRequest:
        """Execute a pending request. A no-op for requests already terminal.

        Legal-hold conflicts and batch failures are reported through the
        request status. Any other exception is recorded on the request and
        re-raised.
        """
        request = await self.requests.get_or_raise(request_id)
        if ERASURE_LIFECYCLE.is_terminal(request.status):
            logger.info(
                "Erasure request already finished",
                request_id=request_id,
                status=request.status.value,
            )
            return request
        return await self._run(request_id, resuming=False)

    async def resume_request(self, request_id: str) -> ErasureRequest:
        """Re-run a failed request, skipping tables already completed.

        A request left ``in_progress`` by a process that died mid-run is
        resumed the same way. Within one process the subject lock makes
        an ``in_progress`` request seen after acquiring it a stale one.

        Raises:
            InvalidStatusTransitionError: If the request is neither failed
                nor stuck in progress
        """
        request = await self.requests.get_or_raise(request_id)
        if request.status not in _RESUMABLE:
            raise InvalidStatusTransitionError(
                "erasure_request", request.status.value, ErasureRequestStatus.IN_PROGRESS.value
            )
        logger.info(
            "Resuming erasure request",
            request_id=request_id,
            completed_tables=request.completed_tables,
        )
        return await self._run(request_id, resuming=True)

    async def _run(self, request_id: str, resuming: bool) -> ErasureRequest:
        request = await self.requests.get_or_raise(request_id)
        with LogContext(request_id=request.id, subject_id=request.subject_id):
            async with self._locks.hold(request.subject_id):
                # Another execution may have finished while we waited
                request = await self.requests.get_or_raise(request_id)
                expected = _RESUMABLE if resuming else (ErasureRequestStatus.PENDING,)
                if request.status not in expected:
                    logger.info("Erasure request no longer runnable", status=request.status.value)
                    return request
                try:
                    return await self._execute_locked(request, resuming)
                except Exception as e:
                    await self._record_crash(request, e)
                    raise

    async def _execute_locked(self, request: ErasureRequest, resuming: bool) -> ErasureRequest:
        scopes = await self._analyzer.analyze_scope(request.subject_id)
        remaining = [
            s for s in execution_order(scopes) if s.table.value not in request.completed_tables
        ]

        held = await self._find_held(remaining)
        if held and not request.retention_override and not resuming:
            if self.config.block_on_any_legal_hold:
                return await self._reject(request, PolicyConflictError(held))
        if held and not request.retention_override and request.erasure_method == ErasureMethod.HARD_DELETE:
            request.add_note(
                f"Skipped {sum(len(ids) for ids in held.values())} record(s) under legal hold"
            )

        if request.status != ErasureRequestStatus.IN_PROGRESS:
            ERASURE_LIFECYCLE.ensure(request.status, ErasureRequestStatus.IN_PROGRESS)
        request.status = ErasureRequestStatus.IN_PROGRESS
        request.total_records = request.records_processed + count_records(remaining)
        request.affected_tables = sorted(
            set(request.affected_tables) | {s.table.value for s in remaining}
        )
        await self.requests.save(request, *_PROGRESS_FIELDS, "affected_tables")

        for scope in remaining:
            try:
                processed = await self._executor.execute(
                    scope, request.erasure_method, allow_override=request.retention_override
                )
            except BatchExecutionError as e:
                # Rewritten rows stay in scope and are counted again on resume
                if request.erasure_method == ErasureMethod.HARD_DELETE:
                    request.records_processed += e.processed
                return await self._fail(request, scope, e)

            request.records_processed += processed
            request.completed_tables.append(scope.table.value)
            await self.requests.save(request, "records_processed", "completed_tables")
            logger.info(
                "Erasure table completed",
                table=scope.table.value,
                processed=processed,
                records_processed=request.records_processed,
            )

        return await self._complete(request)

    async def _find_held(self, scopes: list[ErasureScope]) -> dict[str, list[str]]:
        held: dict[str, list[str]] = {}
        for scope in scopes:
            ids = await self._executor.held_record_ids(scope.table, scope.record_ids)
            if ids:
                held[scope.table.value] = sorted(ids)
        return held

    # =========================================================================
    # Finalization
    # =========================================================================

    async def _complete(self, request: ErasureRequest) -> ErasureRequest:
        ERASURE_LIFECYCLE.ensure(request.status, ErasureRequestStatus.COMPLETED)
        completed_at = datetime.now(UTC)
        request.status = ErasureRequestStatus.COMPLETED
        request.completion_date = completed_at
        if request.verification_hash is None:
            request.verification_hash = compute_verification_hash(request, completed_at)
        await self.requests.save(request, *_PROGRESS_FIELDS, "completion_date", "verification_hash")

        await self._auditor.record(
            AuditEventType.DATA_DELETE,
            TableName.ERASURE_REQUESTS,
            record_id=request.id,
            subject_id=request.subject_id,
            method=request.erasure_method.value,
            records_processed=request.records_processed,
            total_records=request.total_records,
            affected_tables=request.affected_tables,
            verification_hash=request.verification_hash,
        )
        logger.info(
            "Erasure request completed",
            records_processed=request.records_processed,
            total_records=request.total_records,
        )
        return request

    async def _reject(self, request: ErasureRequest, conflict: PolicyConflictError) -> ErasureRequest:
        ERASURE_LIFECYCLE.ensure(request.status, ErasureRequestStatus.REJECTED)
        request.status = ErasureRequestStatus.REJECTED
        request.add_note(conflict.describe())
        await self.requests.save(request, *_PROGRESS_FIELDS)

        await self._auditor.record(
            AuditEventType.PRIVACY_REQUEST,
            TableName.ERASURE_REQUESTS,
            record_id=request.id,
            request_type="erasure",
            outcome="rejected",
            held_records=conflict.held_records,
        )
        logger.warning("Erasure request rejected", held_records=conflict.held_records)
        return request

    async def _fail(
        self, request: ErasureRequest, scope: ErasureScope, error: BatchExecutionError
    ) -> ErasureRequest:
        ERASURE_LIFECYCLE.ensure(request.status, ErasureRequestStatus.FAILED)
        request.status = ErasureRequestStatus.FAILED
        request.add_note(
            f"Failed on {scope.table.value} after {error.processed} record(s): {error.args[0]}. "
            "Earlier tables remain erased; resume to continue."
        )
        await self.requests.save(request, *_PROGRESS_FIELDS)

        await self._auditor.record(
            AuditEventType.PRIVACY_REQUEST,
            TableName.ERASURE_REQUESTS,
            record_id=request.id,
            request_type="erasure",
            outcome="failed",
            failed_table=scope.table.value,
            records_processed=request.records_processed,
        )
        logger.error(
            "Erasure request failed",
            table=scope.table.value,
            records_processed=request.records_processed,
            error=error.args[0],
        )
        return request

    async def _record_crash(self, request: ErasureRequest, error: Exception) -> None:
        if request.status != ErasureRequestStatus.FAILED:
            request.status = ErasureRequestStatus.FAILED
        request.add_note(f"Execution error: {type(error).__name__}: {error}")
        await self.requests.save(request, *_PROGRESS_FIELDS)
        await self._auditor.record(
            AuditEventType.PRIVACY_REQUEST,
            TableName.ERASURE_REQUESTS,
            record_id=request.id,
            request_type="erasure",
            outcome="error",
            error=str(error),
        )
        logger.exception("Erasure request crashed", error=str(error))

    # =========================================================================
    # Verification
    # =========================================================================

    async def verify_erasure(self, request_id: str) -> ErasureVerification:
        """Re-check the subject's data against a request's outcome.

        Non-delete methods leave rows in place, so only completion is
        checked for them. Hard deletes additionally require that no
        matching record remains.
        """
        request = await self.requests.get_or_raise(request_id)
        scopes = await self._analyzer.analyze_scope(request.subject_id)
        remaining = count_records(scopes)

        if request.status != ErasureRequestStatus.COMPLETED:
            verified = False
        elif request.erasure_method != ErasureMethod.HARD_DELETE:
            verified = True
        else:
            verified = remaining == 0

        logger.info(
            "Erasure verified",
            request_id=request_id,
            verified=verified,
            remaining_records=remaining,
        )
        return ErasureVerification(
            request_id=request.id,
            verified=verified,
            status=request.status,
            method=request.erasure_method,
            remaining_records=remaining,
            remaining_tables=[s.table.value for s in scopes],
            verification_hash=request.verification_hash,
            completion_date=request.completion_date,
        )
