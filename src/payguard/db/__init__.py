"""Database layer: models, engine setup and the SQL storage gateway."""

from .config import close_db, create_engine, create_session_factory, init_db
from .gateway import SQLAlchemyStorageGateway

__all__ = [
    "SQLAlchemyStorageGateway",
    "close_db",
    "create_engine",
    "create_session_factory",
    "init_db",
]
