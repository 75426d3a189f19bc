"""
Storage layer for campusfeed.

Handles persistent storage including:
- SQLite database management
- Announcement storage and retrieval
- Per-source ingestion run tracking
- In-memory fallback when no database is configured
"""

from typing import Optional, Union

from .models import Announcement
from .sqlite import SQLiteStorage, init_db
from .memory import MemStorage


def open_storage(db_path: Optional[str] = None) -> Union[SQLiteStorage, MemStorage]:
    """
    Open the configured announcement store.

    Args:
        db_path: SQLite file path; None or empty selects the in-memory store

    Returns:
        SQLiteStorage or MemStorage
    """
    if db_path:
        return SQLiteStorage(db_path)
    return MemStorage()


__all__ = [
    "Announcement",
    "SQLiteStorage",
    "MemStorage",
    "init_db",
    "open_storage",
]
