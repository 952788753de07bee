"""Status lifecycles shared by erasure requests, retention jobs and exports.

All three entities follow the same shape::

    pending -> active -> completed | failed | rejected
    pending -> cancelled

Terminal states admit no further transition, with two exceptions that are
modelled explicitly: a failed erasure request may be resumed, and a
completed export may expire.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from payguard.core.exceptions import InvalidStatusTransitionError


@dataclass(frozen=True)
class StatusLifecycle:
    """Allowed transitions for one entity type."""

    entity: str
    transitions: Mapping[str, frozenset[str]]
    terminal: frozenset[str]

    def is_terminal(self, status: Enum | str) -> bool:
        return _value(status) in self.terminal

    def can_transition(self, current: Enum | str, target: Enum | str) -> bool:
        return _value(target) in self.transitions.get(_value(current), frozenset())

    def ensure(self, current: Enum | str, target: Enum | str) -> None:
        """Raise ``InvalidStatusTransitionError`` unless the move is allowed."""
        if not self.can_transition(current, target):
            raise InvalidStatusTransitionError(self.entity, _value(current), _value(target))


def _value(status: Enum | str) -> str:
    return status.value if isinstance(status, Enum) else status


ERASURE_LIFECYCLE = StatusLifecycle(
    entity="erasure_request",
    transitions={
        "pending": frozenset({"in_progress", "rejected", "cancelled", "failed"}),
        "in_progress": frozenset({"completed", "failed", "rejected"}),
        # Resume re-enters execution and skips tables already finished
        "failed": frozenset({"in_progress"}),
    },
    terminal=frozenset({"completed", "failed", "rejected", "cancelled"}),
)

RETENTION_JOB_LIFECYCLE = StatusLifecycle(
    entity="retention_job",
    transitions={
        "pending": frozenset({"running", "cancelled", "failed"}),
        "running": frozenset({"completed", "failed"}),
    },
    terminal=frozenset({"completed", "failed", "cancelled"}),
)

EXPORT_LIFECYCLE = StatusLifecycle(
    entity="data_export_request",
    transitions={
        "pending": frozenset({"processing", "cancelled", "failed"}),
        "processing": frozenset({"completed", "failed"}),
        "completed": frozenset({"expired"}),
    },
    terminal=frozenset({"completed", "failed", "cancelled", "expired"}),
)
