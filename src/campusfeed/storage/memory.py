"""
In-memory announcement store.

Fallback used when no database path is configured. Contents are lost when
the process exits.
"""

import threading
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Tuple

from .models import Announcement, matches_filter


class MemStorage:
    """Dict-backed store with the same interface as SQLiteStorage."""

    def __init__(self):
        self.announcements: Dict[int, Announcement] = {}
        self.source_runs: Dict[str, Dict[str, Any]] = {}
        self._external_ids: Dict[Tuple[str, str], int] = {}
        self._next_id = 1
        # Guards ids, the external key index and both dicts
        self._lock = threading.Lock()

    def create_announcement(self, candidate: Dict[str, Any]) -> Announcement:
        """
        Store an announcement and assign the next sequential id.

        Raises:
            ValueError: If (source_id, external_post_id) already exists
        """
        key = self._external_key(candidate)
        with self._lock:
            if key is not None and key in self._external_ids:
                raise ValueError(f"Announcement already stored for post {key[1]} from {key[0]}")
            return self._insert(key, candidate)

    def create_announcement_if_new(self, candidate: Dict[str, Any]) -> Optional[Announcement]:
        key = self._external_key(candidate)
        with self._lock:
            if key is not None and key in self._external_ids:
                return None
            return self._insert(key, candidate)

    def get_announcement(self, announcement_id: int) -> Optional[Announcement]:
        with self._lock:
            return self.announcements.get(announcement_id)

    def get_announcements(self) -> List[Announcement]:
        return self.get_announcements_by_filter()

    def get_announcements_by_filter(
        self,
        category: Optional[str] = None,
        interests: Optional[List[str]] = None,
    ) -> List[Announcement]:
        """Newest first; ties broken by id, newest id first."""
        with self._lock:
            snapshot = list(self.announcements.values())

        matching = [
            a for a in snapshot
            if matches_filter(a, category=category, interests=interests)
        ]
        return sorted(matching, key=lambda a: (a.date, a.id), reverse=True)

    def record_source_run(
        self,
        source_id: str,
        status: str,
        created: int = 0,
        error: Optional[str] = None,
        last_post_date: Optional[str] = None,
    ) -> None:
        with self._lock:
            previous = self.source_runs.get(source_id, {})
            self.source_runs[source_id] = {
                "last_run_at": datetime.now(timezone.utc).isoformat(),
                "last_status": status,
                "last_error": error,
                "last_post_date": last_post_date or previous.get("last_post_date"),
                "created_count": created,
            }

    def get_source_runs(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {source_id: dict(run) for source_id, run in self.source_runs.items()}

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            snapshot = list(self.announcements.values())

        by_category: Dict[str, int] = {}
        for announcement in snapshot:
            by_category[announcement.category] = by_category.get(announcement.category, 0) + 1

        return {
            "total_announcements": len(snapshot),
            "scraped_announcements": sum(1 for a in snapshot if a.external_post_id is not None),
            "by_category": by_category,
        }

    def close(self) -> None:
        pass

    def _insert(self, key: Optional[Tuple[str, str]], candidate: Dict[str, Any]) -> Announcement:
        """Caller must hold self._lock."""
        announcement = Announcement.from_candidate(self._next_id, candidate)
        self.announcements[announcement.id] = announcement
        self._next_id += 1

        if key is not None:
            self._external_ids[key] = announcement.id

        return announcement

    @staticmethod
    def _external_key(candidate: Dict[str, Any]) -> Optional[Tuple[str, str]]:
        if candidate.get("external_post_id") is None:
            return None
        return (candidate.get("source_id"), candidate["external_post_id"])
