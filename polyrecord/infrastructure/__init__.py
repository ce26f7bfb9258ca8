"""
Infrastructure package for polyrecord.

Centralizes backing-store concerns (connection factories, pooling, the
activity table adapter). Keep this layer focused on I/O and resource
management, decoupled from codec logic.
"""

from polyrecord.infrastructure.activity_store import ActivityStore
from polyrecord.infrastructure.db_factory import (
    build_dsn,
    get_sync_connection,
    get_sync_pool,
    pooled_connection,
)

__all__ = [
    "ActivityStore",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
    "pooled_connection",
]
