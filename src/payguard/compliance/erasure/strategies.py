"""Erasure strategies applied to a single table scope.

Four strategies are supported. Hard delete removes rows, skipping records
under an active legal hold unless the caller overrides. Anonymization and
pseudonymization rewrite sensitive fields record by record. Archival
soft-marks every record in one batched update.

Strategies are not transactional across tables: each gateway call commits
on its own, so a failure leaves earlier calls applied.
"""

import logging
import re
import secrets
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from payguard.compliance.erasure.types import ErasureMethod
from payguard.compliance.holds import active_hold_ids
from payguard.compliance.scope import ErasureScope
from payguard.core.exceptions import BatchExecutionError
from payguard.storage.gateway import StorageGateway, TableName

logger = logging.getLogger(__name__)


class FieldCategory(str, Enum):
    """Kinds of sensitive values, each with its own placeholder."""

    NAME = "name"
    EMAIL = "email"
    IDENTIFIER = "identifier"
    DATE = "date"
    MONETARY = "monetary"


# Checked in order; anything unmatched is treated as an identifier
FIELD_CATEGORY_PATTERNS: list[tuple[re.Pattern[str], FieldCategory]] = [
    (
        re.compile(r"(?i)^(first_?name|last_?name|middle_?name|full_?name|name)$"),
        FieldCategory.NAME,
    ),
    (re.compile(r"(?i)^(email|e_?mail|email_?address)$"), FieldCategory.EMAIL),
    (
        re.compile(r"(?i)(date|_at$|^dob$|^actual_(start|end)$|_time$)"),
        FieldCategory.DATE,
    ),
    (
        re.compile(r"(?i)(pay|salary|amount|_tax_|rate$|hours|total_days)"),
        FieldCategory.MONETARY,
    ),
]

ANONYMIZED_VALUES: dict[FieldCategory, Any] = {
    FieldCategory.NAME: "ANONYMIZED",
    FieldCategory.EMAIL: "anonymized@redacted.invalid",
    FieldCategory.IDENTIFIER: "REDACTED",
    FieldCategory.DATE: None,
    FieldCategory.MONETARY: 0,
}

PSEUDONYM_EMAIL_DOMAIN = "pseudonymized.invalid"
ARCHIVED_REASON = "right_to_erasure"


def classify_field(field_name: str) -> FieldCategory:
    for pattern, category in FIELD_CATEGORY_PATTERNS:
        if pattern.search(field_name):
            return category
    return FieldCategory.IDENTIFIER


def anonymized_values(fields: Sequence[str]) -> dict[str, Any]:
    """Placeholder values for ``fields``. Stable, so reapplying is a no-op."""
    return {name: ANONYMIZED_VALUES[classify_field(name)] for name in fields}


def pseudonymized_values(fields: Sequence[str], token: str) -> dict[str, Any]:
    """Substitute one token across a record's text fields.

    Dates and monetary values cannot carry a token and fall back to their
    anonymized placeholders.
    """
    values: dict[str, Any] = {}
    for name in fields:
        category = classify_field(name)
        if category == FieldCategory.EMAIL:
            values[name] = f"{token}@{PSEUDONYM_EMAIL_DOMAIN}"
        elif category in (FieldCategory.NAME, FieldCategory.IDENTIFIER):
            values[name] = token
        else:
            values[name] = ANONYMIZED_VALUES[category]
    return values


class ErasureStrategyExecutor:
    """Apply an erasure method to one ``ErasureScope``."""

    def __init__(
        self,
        gateway: StorageGateway,
        delete_batch_size: int = 100,
        pseudonym_token_bytes: int = 8,
    ):
        self._gateway = gateway
        self.delete_batch_size = delete_batch_size
        self.pseudonym_token_bytes = pseudonym_token_bytes

    async def held_record_ids(self, table: TableName, record_ids: Sequence[str]) -> set[str]:
        return await active_hold_ids(self._gateway, table, record_ids)

    def new_pseudonym(self) -> str:
        return f"pseudo_{int(time.time() * 1000)}_{secrets.token_hex(self.pseudonym_token_bytes)}"

    async def execute(
        self,
        scope: ErasureScope,
        method: ErasureMethod,
        allow_override: bool = False,
    ) -> int:
        """Apply ``method`` to every record in ``scope``.

        Returns:
            Number of records actually processed

        Raises:
            BatchExecutionError: If a gateway call fails; carries the count
                processed before the failure
        """
        match method:
            case ErasureMethod.HARD_DELETE:
                return await self._hard_delete(scope, allow_override)
            case ErasureMethod.ANONYMIZATION:
                return await self._rewrite(
                    scope, lambda: anonymized_values(scope.sensitive_fields)
                )
            case ErasureMethod.PSEUDONYMIZATION:
                return await self._rewrite(
                    scope,
                    lambda: pseudonymized_values(scope.sensitive_fields, self.new_pseudonym()),
                )
            case ErasureMethod.ARCHIVAL:
                return await self._archive(scope)
        raise ValueError(f"Unknown erasure method: {method}")

    async def _hard_delete(self, scope: ErasureScope, allow_override: bool) -> int:
        targets = list(scope.record_ids)
        if not allow_override:
            held = await self.held_record_ids(scope.table, targets)
            if held:
                logger.info(
                    "Skipping %d held record(s) in %s", len(held), scope.table.value
                )
                targets = [rid for rid in targets if rid not in held]

        processed = 0
        for start in range(0, len(targets), self.delete_batch_size):
            batch = targets[start : start + self.delete_batch_size]
            try:
                processed += await self._gateway.delete(scope.table, batch)
            except Exception as e:
                raise BatchExecutionError(str(e), scope.table.value, processed) from e
        return processed

    async def _rewrite(self, scope: ErasureScope, values_for_record) -> int:
        # Field sets vary by table, so each record is updated on its own
        processed = 0
        for record_id in scope.record_ids:
            try:
                if await self._gateway.update(scope.table, record_id, values_for_record()):
                    processed += 1
            except Exception as e:
                raise BatchExecutionError(str(e), scope.table.value, processed) from e
        return processed

    async def _archive(self, scope: ErasureScope) -> int:
        fields = {
            "status": "archived",
            "archived_at": datetime.now(UTC),
            "archived_reason": ARCHIVED_REASON,
        }
        try:
            return await self._gateway.update_batch(scope.table, scope.record_ids, fields)
        except Exception as e:
            raise BatchExecutionError(str(e), scope.table.value, 0) from e
