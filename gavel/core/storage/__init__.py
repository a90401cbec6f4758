"""
Persistent Storage Module.

Provides SQLite-backed persistence for the three marketplace documents:
- users
- auctions
- currentUser (session)
"""

from gavel.core.storage.sqlite_adapter import SQLiteAdapter
from gavel.core.storage.storage_manager import (
    StorageManager,
    USERS_KEY,
    AUCTIONS_KEY,
    CURRENT_USER_KEY,
)

__all__ = [
    "SQLiteAdapter",
    "StorageManager",
    "USERS_KEY",
    "AUCTIONS_KEY",
    "CURRENT_USER_KEY",
]
