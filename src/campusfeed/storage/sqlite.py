"""
SQLite storage layer for campusfeed.

Provides:
- Database initialization
- Announcement storage with optional idempotency on external post id
- Per-source ingestion run tracking
"""

import sqlite3
import threading
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any, List

from .models import Announcement, matches_filter, to_utc


def init_db(db_path: str) -> sqlite3.Connection:
    """
    Initialize SQLite database with required tables.

    Creates tables if they don't exist:
    - announcements: Announcement storage, unique per (source_id, external_post_id)
    - source_runs: Last ingestion outcome for each content source

    Args:
        db_path: Path to SQLite database file (":memory:" allowed)

    Returns:
        sqlite3.Connection: Database connection
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    # The Flask dev server handles requests on worker threads; SQLiteStorage
    # serializes access to the shared connection
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.execute("PRAGMA foreign_keys = ON")

    conn.execute("""
        CREATE TABLE IF NOT EXISTS announcements (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            content TEXT NOT NULL,
            category TEXT NOT NULL,
            date TEXT NOT NULL,
            relevant_interests TEXT NOT NULL DEFAULT '[]',
            relevant_majors TEXT NOT NULL DEFAULT '[]',
            source_id TEXT,
            external_post_id TEXT,
            permalink TEXT,
            created_at TEXT NOT NULL,
            UNIQUE(source_id, external_post_id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS source_runs (
            source_id TEXT PRIMARY KEY,
            last_run_at TEXT NOT NULL,
            last_status TEXT NOT NULL,
            last_error TEXT,
            last_post_date TEXT,
            created_count INTEGER NOT NULL DEFAULT 0
        )
    """)

    conn.commit()
    return conn


def _row_to_announcement(row) -> Announcement:
    return Announcement(
        id=row[0],
        title=row[1],
        content=row[2],
        category=row[3],
        date=datetime.fromisoformat(row[4]),
        relevant_interests=json.loads(row[5]),
        relevant_majors=json.loads(row[6]),
        source_id=row[7],
        external_post_id=row[8],
        permalink=row[9],
    )


_SELECT_ANNOUNCEMENTS = """
    SELECT id, title, content, category, date, relevant_interests,
           relevant_majors, source_id, external_post_id, permalink
    FROM announcements
"""


def insert_announcement(conn: sqlite3.Connection, candidate: Dict[str, Any]) -> Announcement:
    """
    Insert an announcement and return the stored record.

    Raises:
        sqlite3.IntegrityError: If (source_id, external_post_id) already exists
    """
    now = datetime.now(timezone.utc).isoformat()
    date = to_utc(candidate.get("date")).isoformat()

    cursor = conn.execute("""
        INSERT INTO announcements
            (title, content, category, date, relevant_interests, relevant_majors,
             source_id, external_post_id, permalink, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    """, (
        candidate["title"],
        candidate["content"],
        candidate["category"],
        date,
        json.dumps(list(candidate.get("relevant_interests") or []), ensure_ascii=False),
        json.dumps(list(candidate.get("relevant_majors") or []), ensure_ascii=False),
        candidate.get("source_id"),
        candidate.get("external_post_id"),
        candidate.get("permalink"),
        now,
    ))
    conn.commit()

    return fetch_announcement(conn, cursor.lastrowid)


def insert_announcement_if_new(
    conn: sqlite3.Connection,
    candidate: Dict[str, Any],
) -> Optional[Announcement]:
    """
    Insert announcement if its external post is not already stored.

    The UNIQUE(source_id, external_post_id) constraint prevents duplicates.
    SQLite treats NULLs as distinct, so candidates without an external id
    always insert.

    Returns:
        The stored Announcement, or None if it already existed
    """
    try:
        return insert_announcement(conn, candidate)
    except sqlite3.IntegrityError:
        conn.rollback()
        return None


def fetch_announcement(conn: sqlite3.Connection, announcement_id: int) -> Optional[Announcement]:
    """Fetch one announcement by id."""
    row = conn.execute(
        _SELECT_ANNOUNCEMENTS + " WHERE id = ?",
        (announcement_id,)
    ).fetchone()

    if row is None:
        return None

    return _row_to_announcement(row)


def fetch_announcements(
    conn: sqlite3.Connection,
    category: Optional[str] = None,
    interests: Optional[List[str]] = None,
) -> List[Announcement]:
    """
    Fetch announcements, newest first.

    Category is filtered in SQL; interests are stored as JSON arrays and
    filtered after loading.

    Args:
        conn: Database connection
        category: Category to keep ("all" or None for every category)
        interests: Keep announcements sharing at least one of these

    Returns:
        List of Announcement records
    """
    query = _SELECT_ANNOUNCEMENTS + " WHERE 1=1"
    params = []

    if category and category != "all":
        query += " AND category = ?"
        params.append(category)

    query += " ORDER BY date DESC, id DESC"

    rows = conn.execute(query, params).fetchall()
    announcements = [_row_to_announcement(row) for row in rows]

    return [a for a in announcements if matches_filter(a, interests=interests)]


def upsert_source_run(
    conn: sqlite3.Connection,
    source_id: str,
    status: str,
    created: int = 0,
    error: Optional[str] = None,
    last_post_date: Optional[str] = None,
) -> None:
    """
    Update or insert the last ingestion outcome for a source.

    Args:
        conn: Database connection
        source_id: Source identifier (Facebook page id)
        status: success/failed
        created: Announcements created in this run
        error: Error message if failed
        last_post_date: Date of the newest post seen
    """
    now = datetime.now(timezone.utc).isoformat()

    conn.execute("""
        INSERT INTO source_runs
            (source_id, last_run_at, last_status, last_error, last_post_date, created_count)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT (source_id) DO UPDATE SET
            last_run_at = excluded.last_run_at,
            last_status = excluded.last_status,
            last_error = excluded.last_error,
            last_post_date = COALESCE(excluded.last_post_date, source_runs.last_post_date),
            created_count = excluded.created_count
    """, (source_id, now, status, error, last_post_date, created))

    conn.commit()


def get_source_runs(conn: sqlite3.Connection) -> Dict[str, Dict[str, Any]]:
    """
    Get last run info for all sources.

    Returns:
        Dict mapping source_id to run fields
    """
    cursor = conn.execute(
        "SELECT source_id, last_run_at, last_status, last_error, last_post_date, created_count "
        "FROM source_runs"
    )
    return {
        row[0]: {
            "last_run_at": row[1],
            "last_status": row[2],
            "last_error": row[3],
            "last_post_date": row[4],
            "created_count": row[5],
        }
        for row in cursor.fetchall()
    }


def get_announcement_stats(conn: sqlite3.Connection) -> Dict[str, Any]:
    """
    Get counts of stored announcements.

    Returns:
        Dict with total, scraped and per-category counts
    """
    row = conn.execute("""
        SELECT
            COUNT(*) as total,
            SUM(CASE WHEN external_post_id IS NOT NULL THEN 1 ELSE 0 END) as scraped
        FROM announcements
    """).fetchone()

    by_category = {
        category: count
        for category, count in conn.execute(
            "SELECT category, COUNT(*) FROM announcements GROUP BY category"
        ).fetchall()
    }

    return {
        "total_announcements": row[0] or 0,
        "scraped_announcements": row[1] or 0,
        "by_category": by_category,
    }


class SQLiteStorage:
    """
    Announcement store backed by a SQLite file.

    One connection is shared by every caller, so each operation runs under
    a lock to keep one thread's rollback away from another's insert.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.conn = init_db(db_path)
        self._lock = threading.Lock()

    def create_announcement(self, candidate: Dict[str, Any]) -> Announcement:
        with self._lock:
            return insert_announcement(self.conn, candidate)

    def create_announcement_if_new(self, candidate: Dict[str, Any]) -> Optional[Announcement]:
        with self._lock:
            return insert_announcement_if_new(self.conn, candidate)

    def get_announcement(self, announcement_id: int) -> Optional[Announcement]:
        with self._lock:
            return fetch_announcement(self.conn, announcement_id)

    def get_announcements(self) -> List[Announcement]:
        return self.get_announcements_by_filter()

    def get_announcements_by_filter(
        self,
        category: Optional[str] = None,
        interests: Optional[List[str]] = None,
    ) -> List[Announcement]:
        with self._lock:
            return fetch_announcements(self.conn, category=category, interests=interests)

    def record_source_run(
        self,
        source_id: str,
        status: str,
        created: int = 0,
        error: Optional[str] = None,
        last_post_date: Optional[str] = None,
    ) -> None:
        with self._lock:
            upsert_source_run(self.conn, source_id, status, created, error, last_post_date)

    def get_source_runs(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return get_source_runs(self.conn)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return get_announcement_stats(self.conn)

    def close(self) -> None:
        with self._lock:
            self.conn.close()
