"""Core exceptions for PayGuard compliance operations."""

from payguard.utils.exceptions import PayguardError


class RequestNotFoundError(PayguardError):
    """Raised when a compliance entity cannot be found by id.

    Attributes:
        entity: Kind of entity looked up (e.g., "erasure_request")
        entity_id: The identifier that did not match any row
    """

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InvalidStatusTransitionError(PayguardError):
    """Raised when a status change is not allowed by the lifecycle.

    Attributes:
        entity: Kind of entity being transitioned
        current: Status the entity currently holds
        target: Status that was requested
    """

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(f"Cannot move {entity} from {current} to {target}")
        self.entity = entity
        self.current = current
        self.target = target

    def __str__(self) -> str:
        return (
            f"InvalidStatusTransitionError({self.entity}): "
            f"{self.current} -> {self.target} is not permitted"
        )


class UnsupportedExportFormatError(PayguardError):
    """Raised when an export is requested in a format that cannot be produced.

    Attributes:
        export_format: The rejected format value
    """

    def __init__(self, export_format: str):
        super().__init__(f"Unsupported export format: {export_format}")
        self.export_format = export_format


class PolicyConflictError(PayguardError):
    """Raised when records in scope are protected by active legal holds.

    Services catch this and record a rejection on the owning request;
    it only escapes to callers that use the strategy layer directly.

    Attributes:
        held_records: Mapping of table name to held record ids
    """

    def __init__(self, held_records: dict[str, list[str]]):
        count = sum(len(ids) for ids in held_records.values())
        super().__init__(f"{count} record(s) under active legal hold")
        self.held_records = held_records

    def describe(self) -> str:
        """Render a human-readable note listing held records per table."""
        parts = [f"{table}: {', '.join(ids)}" for table, ids in sorted(self.held_records.items())]
        return "Blocked by active legal hold (" + "; ".join(parts) + ")"


class BatchExecutionError(PayguardError):
    """Raised when a batch mutation fails partway through a scope.

    Attributes:
        table: Table the failing batch targeted
        processed: Records successfully processed before the failure
    """

    def __init__(self, message: str, table: str, processed: int):
        super().__init__(message)
        self.table = table
        self.processed = processed

    def __str__(self) -> str:
        return f"BatchExecutionError({self.table}, processed={self.processed}): {self.args[0]}"


class ExportNotAvailableError(PayguardError):
    """Raised when an export file is requested but cannot be served.

    Attributes:
        request_id: The export request
        status: Status the request holds
    """

    def __init__(self, request_id: str, status: str):
        super().__init__(f"Export {request_id} is not available for download ({status})")
        self.request_id = request_id
        self.status = status
