"""Shared utilities for PayGuard."""

from .exceptions import PayguardError, StorageError

__all__ = [
    "PayguardError",
    "StorageError",
]
