"""
Announcement record shared by the storage backends.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def to_utc(value: Optional[datetime]) -> datetime:
    """Normalize a datetime to aware UTC; None means now. Naive values are taken as UTC."""
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Announcement:
    """A stored announcement. Never updated after creation."""
    id: int
    title: str
    content: str
    category: str
    date: datetime
    relevant_interests: List[str] = field(default_factory=list)
    relevant_majors: List[str] = field(default_factory=list)
    source_id: Optional[str] = None
    external_post_id: Optional[str] = None
    permalink: Optional[str] = None

    @classmethod
    def from_candidate(cls, announcement_id: int, candidate: Dict[str, Any]) -> "Announcement":
        """
        Build a record from an insert candidate.

        Missing list fields default to empty lists and a missing date
        defaults to now.
        """
        return cls(
            id=announcement_id,
            title=candidate["title"],
            content=candidate["content"],
            category=candidate["category"],
            date=to_utc(candidate.get("date")),
            relevant_interests=list(candidate.get("relevant_interests") or []),
            relevant_majors=list(candidate.get("relevant_majors") or []),
            source_id=candidate.get("source_id"),
            external_post_id=candidate.get("external_post_id"),
            permalink=candidate.get("permalink"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON form, keyed the way the web client expects."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "category": self.category,
            "date": self.date.isoformat(),
            "relevantInterests": list(self.relevant_interests),
            "relevantMajors": list(self.relevant_majors),
            "sourceId": self.source_id,
            "externalPostId": self.external_post_id,
            "permalink": self.permalink,
        }


def matches_filter(
    announcement: Announcement,
    category: Optional[str] = None,
    interests: Optional[List[str]] = None,
) -> bool:
    """Filter shared by both backends: category ("all" = any) and any-of interests."""
    if category and category != "all" and announcement.category != category:
        return False

    if interests:
        return any(interest in interests for interest in announcement.relevant_interests)

    return True
