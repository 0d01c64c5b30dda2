"""
Core module - Configuration, database, security, and utilities.
"""

from app.core.config import get_settings, settings
from app.core.database import Base, close_db, get_db, init_db
from app.core.errors import ConflictOnWriteError, ServiceError, StoreUnavailableError
from app.core.redis import close_redis, get_redis, init_redis
from app.core.security import (
    generate_session_token,
    hash_password,
    hash_token,
    verify_password,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Errors
    "ServiceError",
    "ConflictOnWriteError",
    "StoreUnavailableError",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Security
    "hash_password",
    "verify_password",
    "generate_session_token",
    "hash_token",
]
