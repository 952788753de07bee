"""Legal hold lookups. Holds are managed elsewhere; the engine only reads them."""

from collections.abc import Sequence

from payguard.storage.gateway import StorageGateway, TableName, eq, in_


async def active_hold_ids(
    gateway: StorageGateway,
    table: TableName,
    record_ids: Sequence[str],
) -> set[str]:
    """Ids among ``record_ids`` covered by an active legal hold on ``table``."""
    if not record_ids:
        return set()
    holds = await gateway.select(
        TableName.LEGAL_HOLDS,
        [
            eq("table_name", TableName(table).value),
            eq("is_active", True),
            in_("record_id", record_ids),
        ],
        columns=["record_id"],
    )
    return {h["record_id"] for h in holds}
