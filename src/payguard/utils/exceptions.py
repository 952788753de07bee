"""Custom exceptions for PayGuard."""


class PayguardError(Exception):
    """Base exception for all PayGuard errors."""

    pass


class StorageError(PayguardError):
    """Error raised by a storage gateway operation."""

    pass
