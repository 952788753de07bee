"""Audit event recording for compliance operations.

Every request creation and every terminal transition of an erasure,
export or retention job produces an ``AuditEvent``. Events are delivered
to an ``AuditSink``; delivery is best-effort. ``ComplianceAuditor`` is the
failure boundary: a sink outage is reported on stderr and never aborts
the data operation that triggered the event.
"""

import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from payguard.core.logging import get_logger
from payguard.storage.gateway import StorageGateway, TableName

logger = get_logger(__name__)

FALLBACK_LOGGER_NAME = "payguard.audit.fallback"


class AuditEventType(str, Enum):
    """Categories of compliance audit events."""

    PRIVACY_REQUEST = "privacy_request"
    """Erasure request created or finalized."""

    DATA_DELETE = "data_delete"
    """Records deleted, anonymized, pseudonymized or archived."""

    DATA_EXPORT = "data_export"
    """Export requested, generated, downloaded or expired."""

    RETENTION_JOB = "retention_job"
    """Retention job scheduled or finished."""

    POLICY_CHANGE = "policy_change"
    """Retention policy created or superseded."""


class AuditEvent(BaseModel):
    """A structured audit event."""

    event_type: AuditEventType
    table_name: str
    record_id: str | None = None
    actor_id: str | None = None
    additional_context: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


@runtime_checkable
class AuditSink(Protocol):
    """Destination for audit events."""

    async def log_event(self, event: AuditEvent) -> None: ...


class InMemoryAuditSink:
    """Collects events in a list."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    async def log_event(self, event: AuditEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]


class GatewayAuditSink:
    """Writes events into the ``data_access_audit_log`` table."""

    def __init__(self, gateway: StorageGateway):
        self._gateway = gateway

    async def log_event(self, event: AuditEvent) -> None:
        await self._gateway.insert(
            TableName.DATA_ACCESS_AUDIT_LOG,
            {
                "user_id": event.actor_id,
                "accessed_table": event.table_name,
                "accessed_record_id": event.record_id,
                "access_type": event.event_type.value,
                "sensitive_fields": event.additional_context.get("sensitive_fields"),
                "additional_context": event.model_dump(mode="json")["additional_context"],
                "created_at": event.occurred_at,
            },
        )


def _build_fallback_logger() -> logging.Logger:
    fallback = logging.getLogger(FALLBACK_LOGGER_NAME)
    if not fallback.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        fallback.addHandler(handler)
        fallback.propagate = False
    return fallback


class ComplianceAuditor:
    """Best-effort wrapper around an ``AuditSink``.

    ``record`` never raises. When the sink fails, the failure and the
    undelivered event are written to a plain stderr logger that does not
    depend on the sink or on structlog configuration.
    """

    def __init__(self, sink: AuditSink, fallback: logging.Logger | None = None):
        self._sink = sink
        self._fallback = fallback or _build_fallback_logger()
        self.failures = 0

    async def record(
        self,
        event_type: AuditEventType,
        table: TableName | str,
        record_id: str | None = None,
        actor_id: str | None = None,
        **context: Any,
    ) -> bool:
        """Deliver an event. Returns False when delivery failed."""
        event = AuditEvent(
            event_type=event_type,
            table_name=table.value if isinstance(table, TableName) else table,
            record_id=record_id,
            actor_id=actor_id,
            additional_context=context,
        )
        try:
            await self._sink.log_event(event)
        except Exception as e:
            self.failures += 1
            logger.warning(
                "Audit sink unavailable",
                event_type=event.event_type.value,
                table=event.table_name,
                record_id=record_id,
                error=str(e),
            )
            self._fallback.error(
                "audit delivery failed (%s): %s", type(e).__name__, event.model_dump_json()
            )
            return False
        return True
