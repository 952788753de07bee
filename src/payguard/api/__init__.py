"""HTTP API for the compliance engine."""

from .app import create_app

__all__ = ["create_app"]
