"""API middleware and exception handlers."""

from .errors import EXCEPTION_MAP, handle_domain_error, map_exception, register_exception_handlers
from .logging import RequestLoggingMiddleware

__all__ = [
    "EXCEPTION_MAP",
    "RequestLoggingMiddleware",
    "handle_domain_error",
    "map_exception",
    "register_exception_handlers",
]
