"""Data retention manager for enforcing retention policies.

This module provides the RetentionManager class that:
- Maintains retention policies, superseding instead of deleting them
- Identifies records past their retention period
- Schedules and executes batched deletion jobs
- Runs due jobs for auto-delete policies in the background
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import uuid7

from payguard.compliance.holds import active_hold_ids
from payguard.compliance.lifecycle import RETENTION_JOB_LIFECYCLE
from payguard.compliance.repository import EntityRepository
from payguard.compliance.retention.policies import (
    SEVEN_YEARS,
    SIX_YEARS,
    create_default_policies,
    get_binding,
    retention_cutoff,
)
from payguard.compliance.retention.types import (
    ExpiredRecords,
    RetentionJob,
    RetentionJobStatus,
    RetentionPolicy,
    RetentionPolicyType,
)
from payguard.config.settings import RetentionSettings
from payguard.core.audit import AuditEventType, ComplianceAuditor
from payguard.core.exceptions import InvalidStatusTransitionError
from payguard.core.logging import LogContext
from payguard.storage.gateway import StorageGateway, TableName, eq, lt, lte

logger = logging.getLogger(__name__)

_POLICY_FIELDS = frozenset(
    {"retention_period_months", "auto_delete", "legal_hold_override", "scope_id", "description"}
)


@dataclass
class RetentionManagerConfig:
    """Configuration for the RetentionManager."""

    batch_size: int = 100
    """Records deleted per batch; progress is persisted after each."""

    check_interval_seconds: int = 3600  # 1 hour
    """How often the background loop looks for due jobs."""

    employee_records_months: int = SEVEN_YEARS
    payroll_data_months: int = SIX_YEARS

    @classmethod
    def from_settings(cls, settings: RetentionSettings) -> "RetentionManagerConfig":
        return cls(
            batch_size=settings.batch_size,
            check_interval_seconds=settings.check_interval_seconds,
            employee_records_months=settings.employee_records_months,
            payroll_data_months=settings.payroll_data_months,
        )


class RetentionPolicyRepository(EntityRepository[RetentionPolicy]):
    table = TableName.DATA_RETENTION_POLICIES
    entity_name = "retention_policy"


class RetentionJobRepository(EntityRepository[RetentionJob]):
    table = TableName.DATA_RETENTION_JOBS
    entity_name = "retention_job"


class RetentionManager:
    """Manages retention policies and deletion jobs.

    Legal holds always win during scheduled retention: held records are
    excluded from every job regardless of the policy's override flag.
    """

    def __init__(
        self,
        gateway: StorageGateway,
        auditor: ComplianceAuditor,
        config: RetentionManagerConfig | None = None,
    ):
        """Initialize the retention manager.

        Args:
            gateway: Storage gateway for policies, jobs and governed tables
            auditor: Best-effort audit recorder
            config: Manager configuration
        """
        self.config = config or RetentionManagerConfig()
        self._gateway = gateway
        self._auditor = auditor
        self.policies = RetentionPolicyRepository(gateway)
        self.jobs = RetentionJobRepository(gateway)

        # Background task
        self._check_task: asyncio.Task[None] | None = None
        self._running = False

    # =========================================================================
    # Policy Management
    # =========================================================================

    async def create_policy(
        self,
        policy_type: RetentionPolicyType,
        retention_period_months: int,
        auto_delete: bool = False,
        legal_hold_override: bool = False,
        scope_id: str | None = None,
        description: str = "",
    ) -> RetentionPolicy:
        """Create and persist a retention policy."""
        policy = await self.policies.create(
            RetentionPolicy(
                policy_type=RetentionPolicyType(policy_type),
                retention_period_months=retention_period_months,
                auto_delete=auto_delete,
                legal_hold_override=legal_hold_override,
                scope_id=scope_id,
                description=description,
            )
        )
        await self._auditor.record(
            AuditEventType.POLICY_CHANGE,
            TableName.DATA_RETENTION_POLICIES,
            record_id=policy.id,
            action="created",
            policy_type=policy.policy_type.value,
            retention_period_months=policy.retention_period_months,
            auto_delete=policy.auto_delete,
        )
        logger.info(f"Retention policy created: {policy.id} ({policy.policy_type.value})")
        return policy

    async def update_policy(self, policy_id: str, **changes: Any) -> RetentionPolicy:
        """Supersede a policy with a copy carrying ``changes``.

        The original stays on record, deactivated and pointing at its
        successor.

        Raises:
            ValueError: If ``changes`` names a field that cannot be updated
            InvalidStatusTransitionError: If the policy was already superseded
        """
        unknown = set(changes) - _POLICY_FIELDS
        if unknown:
            raise ValueError(f"Cannot update policy fields: {sorted(unknown)}")

        current = await self.policies.get_or_raise(policy_id)
        if not current.is_active:
            raise InvalidStatusTransitionError("retention_policy", "superseded", "superseded")

        # Validated before anything is written
        successor = RetentionPolicy.model_validate(
            {
                **current.model_dump(),
                **changes,
                "id": str(uuid7()),
                "created_at": datetime.now(UTC),
                "updated_at": datetime.now(UTC),
            }
        )
        successor = await self.policies.create(successor)
        current.is_active = False
        current.superseded_by = successor.id
        current.updated_at = datetime.now(UTC)
        await self.policies.save(current, "is_active", "superseded_by", "updated_at")

        await self._auditor.record(
            AuditEventType.POLICY_CHANGE,
            TableName.DATA_RETENTION_POLICIES,
            record_id=successor.id,
            action="superseded",
            previous_policy_id=current.id,
            changes=sorted(changes),
        )
        logger.info(f"Retention policy {current.id} superseded by {successor.id}")
        return successor

    async def get_policy(self, policy_id: str) -> RetentionPolicy:
        return await self.policies.get_or_raise(policy_id)

    async def list_policies(
        self,
        scope_id: str | None = None,
        include_superseded: bool = False,
    ) -> list[RetentionPolicy]:
        filters = []
        if scope_id is not None:
            filters.append(eq("scope_id", scope_id))
        if not include_superseded:
            filters.append(eq("is_active", True))
        return await self.policies.list(filters, order_by="created_at")

    async def install_default_policies(self, scope_id: str | None = None) -> list[RetentionPolicy]:
        """Create default policies for types that have no active policy yet."""
        existing = {p.policy_type for p in await self.list_policies(scope_id=scope_id)}
        installed = []
        for default in create_default_policies(
            employee_records_months=self.config.employee_records_months,
            payroll_data_months=self.config.payroll_data_months,
            scope_id=scope_id,
        ):
            if default.policy_type in existing:
                continue
            installed.append(
                await self.create_policy(
                    default.policy_type,
                    default.retention_period_months,
                    auto_delete=default.auto_delete,
                    legal_hold_override=default.legal_hold_override,
                    scope_id=scope_id,
                    description=default.description,
                )
            )
        return installed

    # =========================================================================
    # Expiry Identification
    # =========================================================================

    async def identify_expired(
        self,
        policy_type: RetentionPolicyType,
        retention_months: int,
        now: datetime | None = None,
    ) -> ExpiredRecords:
        """Find records older than ``retention_months``. Read-only."""
        binding = get_binding(policy_type)
        cutoff = retention_cutoff(retention_months, now)
        bound = cutoff.date() if binding.date_only else cutoff
        rows = await self._gateway.select(
            binding.table,
            [*binding.extra_filters, lt(binding.date_field, bound)],
            columns=["id"],
            order_by="id",
        )
        return ExpiredRecords(
            table=binding.table.value,
            record_ids=[row["id"] for row in rows],
            cutoff=cutoff,
        )

    # =========================================================================
    # Job Lifecycle
    # =========================================================================

    async def schedule_job(self, policy_id: str, scheduled_date: datetime) -> RetentionJob:
        """Schedule a job, snapshotting the current candidate count.

        The snapshot may drift; execution re-resolves candidates.
        """
        policy = await self.policies.get_or_raise(policy_id)
        expired = await self.identify_expired(policy.policy_type, policy.retention_period_months)
        job = await self.jobs.create(
            RetentionJob(
                policy_id=policy.id,
                table_name=expired.table,
                scheduled_date=scheduled_date,
                records_identified=expired.total_count,
            )
        )
        await self._auditor.record(
            AuditEventType.RETENTION_JOB,
            TableName.DATA_RETENTION_JOBS,
            record_id=job.id,
            action="scheduled",
            policy_id=policy.id,
            table=job.table_name,
            records_identified=job.records_identified,
            scheduled_date=scheduled_date.isoformat(),
        )
        logger.info(f"Retention job {job.id} scheduled: {job.records_identified} candidate(s)")
        return job

    async def get_job(self, job_id: str) -> RetentionJob:
        return await self.jobs.get_or_raise(job_id)

    async def list_jobs(
        self,
        policy_id: str | None = None,
        status: RetentionJobStatus | None = None,
    ) -> list[RetentionJob]:
        filters = []
        if policy_id is not None:
            filters.append(eq("policy_id", policy_id))
        if status is not None:
            filters.append(eq("status", RetentionJobStatus(status).value))
        return await self.jobs.list(filters, order_by="scheduled_date")

    async def cancel_job(self, job_id: str) -> RetentionJob:
        """Cancel a job that has not started.

        Raises:
            InvalidStatusTransitionError: If the job is no longer pending
        """
        job = await self.jobs.get_or_raise(job_id)
        RETENTION_JOB_LIFECYCLE.ensure(job.status, RetentionJobStatus.CANCELLED)
        job.status = RetentionJobStatus.CANCELLED
        job.updated_at = datetime.now(UTC)
        await self.jobs.save(job, "status", "updated_at")
        logger.info(f"Retention job cancelled: {job_id}")
        return job

    async def execute_job(self, job_id: str) -> RetentionJob:
        """Run a pending job. A no-op for jobs already terminal.

        A failing batch marks the job failed and stops; batches already
        deleted stay deleted. Other errors are recorded on the job and
        re-raised.
        """
        job = await self.jobs.get_or_raise(job_id)
        if RETENTION_JOB_LIFECYCLE.is_terminal(job.status):
            logger.info(f"Retention job {job_id} already {job.status.value}")
            return job
        RETENTION_JOB_LIFECYCLE.ensure(job.status, RetentionJobStatus.RUNNING)

        with LogContext(job_id=job.id, policy_id=job.policy_id):
            job.status = RetentionJobStatus.RUNNING
            job.execution_date = datetime.now(UTC)
            job.records_processed = 0
            await self._save_progress(job, "status", "execution_date")
            try:
                return await self._run_job(job)
            except Exception as e:
                job.status = RetentionJobStatus.FAILED
                job.error_message = f"{type(e).__name__}: {e}"
                await self._save_progress(job, "status", "error_message")
                await self._audit_outcome(job)
                logger.exception(f"Retention job {job.id} crashed")
                raise

    async def _run_job(self, job: RetentionJob) -> RetentionJob:
        policy = await self.policies.get_or_raise(job.policy_id)
        if policy.legal_hold_override:
            logger.warning(
                f"Policy {policy.id} requests legal hold override; "
                "ignored for scheduled retention"
            )

        expired = await self.identify_expired(policy.policy_type, policy.retention_period_months)
        table = TableName(expired.table)
        held = await active_hold_ids(self._gateway, table, expired.record_ids)
        survivors = [rid for rid in expired.record_ids if rid not in held]

        job.table_name = table.value
        job.records_identified = len(survivors)
        job.records_on_hold = len(held)
        await self._save_progress(job, "table_name", "records_identified", "records_on_hold")

        batch_size = self.config.batch_size
        for start in range(0, len(survivors), batch_size):
            batch = survivors[start : start + batch_size]
            try:
                deleted = await self._gateway.delete(table, batch)
            except Exception as e:
                job.status = RetentionJobStatus.FAILED
                job.error_message = (
                    f"Batch {start // batch_size + 1} failed after "
                    f"{job.records_processed} record(s): {e}"
                )
                await self._save_progress(job, "status", "error_message")
                await self._audit_outcome(job)
                logger.error(f"Retention job {job.id} failed: {job.error_message}")
                return job

            job.records_processed = min(job.records_processed + deleted, job.records_identified)
            await self._save_progress(job)

        job.status = RetentionJobStatus.COMPLETED
        await self._save_progress(job, "status")
        await self._audit_outcome(job)
        logger.info(
            f"Retention job {job.id} completed: {job.records_processed} deleted, "
            f"{job.records_on_hold} on hold"
        )
        return job

    async def _save_progress(self, job: RetentionJob, *fields: str) -> None:
        job.updated_at = datetime.now(UTC)
        await self.jobs.save(job, "records_processed", "updated_at", *fields)

    async def _audit_outcome(self, job: RetentionJob) -> None:
        await self._auditor.record(
            AuditEventType.RETENTION_JOB,
            TableName.DATA_RETENTION_JOBS,
            record_id=job.id,
            action=job.status.value,
            policy_id=job.policy_id,
            table=job.table_name,
            records_identified=job.records_identified,
            records_processed=job.records_processed,
            records_on_hold=job.records_on_hold,
            error_message=job.error_message,
        )

    async def run_due_jobs(self, now: datetime | None = None) -> list[RetentionJob]:
        """Execute pending jobs whose date has come, for active auto-delete policies."""
        now = now or datetime.now(UTC)
        due = await self.jobs.list(
            [eq("status", RetentionJobStatus.PENDING.value), lte("scheduled_date", now)],
            order_by="scheduled_date",
        )
        executed = []
        for job in due:
            policy = await self.policies.get(job.policy_id)
            if policy is None or not policy.is_active or not policy.auto_delete:
                continue
            try:
                executed.append(await self.execute_job(job.id))
            except Exception as e:
                logger.error(f"Error executing retention job {job.id}: {e}")
        return executed

    # =========================================================================
    # Background Processing
    # =========================================================================

    async def start(self) -> None:
        """Start background processing of due jobs."""
        if self._running:
            return

        self._running = True
        self._check_task = asyncio.create_task(self._background_loop())
        logger.info("Retention manager started")

    async def stop(self) -> None:
        """Stop background processing."""
        self._running = False
        if self._check_task:
            self._check_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._check_task
            self._check_task = None
        logger.info("Retention manager stopped")

    async def _background_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.config.check_interval_seconds)
                executed = await self.run_due_jobs()
                if executed:
                    logger.info(f"Executed {len(executed)} due retention job(s)")
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in retention background loop: {e}")
