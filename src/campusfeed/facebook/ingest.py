"""
Facebook post ingestion for campusfeed.

Fetches recent posts from configured organization pages through the Graph
API, classifies each post and stores it as an announcement:
- Sources processed one at a time, in configured order
- A failing source is reported and skipped, the run continues
- Posts without text are skipped
- Posts already stored (same page + post id) are not stored again
- JSON report generation
"""

import os
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List, Optional

import requests

from ..classify import classify
from ..settings import Settings
from .config import DEFAULT_SOURCES


POST_FIELDS = "id,message,story,created_time,permalink_url,from"
TITLE_PREVIEW_CHARS = 100


class ConfigurationError(Exception):
    """Raised when the scraper is missing required configuration."""
    pass


class FetchError(Exception):
    """Raised when posts for one source cannot be fetched."""
    pass


@dataclass
class FacebookPost:
    """A post as returned by the Graph API /{page-id}/posts edge."""
    id: str
    created_time: Optional[str] = None
    message: Optional[str] = None
    story: Optional[str] = None
    permalink_url: Optional[str] = None
    author: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_graph(cls, data: Dict[str, Any]) -> "FacebookPost":
        return cls(
            id=str(data.get("id", "")),
            created_time=data.get("created_time"),
            message=data.get("message"),
            story=data.get("story"),
            permalink_url=data.get("permalink_url"),
            author=data.get("from") or {},
        )

    @property
    def content(self) -> str:
        """Post text: the message, else the story, else empty."""
        return self.message or self.story or ""


def parse_graph_time(value: Optional[str]) -> datetime:
    """
    Parse a Graph API timestamp such as 2024-10-01T08:30:00+0000.

    Raises:
        ValueError: If the value is missing or malformed
    """
    if not value:
        raise ValueError("Post has no created_time")

    parsed = datetime.strptime(value, "%Y-%m-%dT%H:%M:%S%z")
    return parsed.astimezone(timezone.utc)


def _error_message(data: Any, status_code: int) -> str:
    """Graph API error message from a failed response body, else the HTTP status."""
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"HTTP {status_code}"


def build_title(display_name: str, content: str) -> str:
    """Source name plus the first 100 characters of content, with '...' if cut."""
    preview = content[:TITLE_PREVIEW_CHARS]
    if len(content) > TITLE_PREVIEW_CHARS:
        preview += "..."
    return f"{display_name}: {preview}"


class FacebookScraper:
    """
    Turns recent Facebook page posts into announcements.

    Features:
    - Fail-fast on a missing access token (before any request)
    - Per-source failure isolation
    - Per-post failure isolation for classification and storage
    - Report generation
    """

    def __init__(
        self,
        access_token: Optional[str],
        sources: Optional[List[Dict[str, Any]]] = None,
        limit_per_source: int = 5,
        graph_url: str = "https://graph.facebook.com/v23.0",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize FacebookScraper.

        Args:
            access_token: Graph API access token (required)
            sources: Source dicts with source_id/display_name (default: DEFAULT_SOURCES)
            limit_per_source: Maximum posts to fetch per source
            graph_url: Graph API base URL including version
            timeout: Per-request timeout in seconds
            session: requests.Session to use (a new one if omitted)

        Raises:
            ConfigurationError: If access_token is missing or empty
        """
        if not access_token:
            raise ConfigurationError("Facebook Access Token not configured")

        self.access_token = access_token
        self.sources = list(sources) if sources is not None else [dict(s) for s in DEFAULT_SOURCES]
        self.limit_per_source = limit_per_source
        self.graph_url = graph_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.last_results: List[Dict[str, Any]] = []

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        sources: Optional[List[Dict[str, Any]]] = None,
        session: Optional[requests.Session] = None,
    ) -> "FacebookScraper":
        """Build a scraper from injected Settings."""
        return cls(
            access_token=settings.facebook_access_token,
            sources=sources,
            limit_per_source=settings.posts_per_source,
            graph_url=settings.graph_url,
            timeout=settings.request_timeout,
            session=session,
        )

    def fetch_page_posts(self, page_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Fetch up to `limit` recent posts for a page.

        Follows paging.next until enough posts are collected or the
        edge has no further pages.

        Args:
            page_id: Facebook page id or vanity name
            limit: Maximum posts to return

        Returns:
            List of raw post dicts, newest first

        Raises:
            FetchError: On network errors, non-JSON bodies or API errors
        """
        url = f"{self.graph_url}/{page_id}/posts"
        params: Optional[Dict[str, Any]] = {
            "fields": POST_FIELDS,
            "limit": limit,
            "access_token": self.access_token,
        }
        posts: List[Dict[str, Any]] = []

        while url and len(posts) < limit:
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                raise FetchError(f"Request failed for {page_id}: {e}")

            # requests.JSONDecodeError is a ValueError
            try:
                data = response.json()
                json_error = None
            except ValueError as e:
                data = None
                json_error = e

            if not response.ok:
                raise FetchError(f"Graph API error for {page_id}: {_error_message(data, response.status_code)}")

            if json_error is not None:
                raise FetchError(f"Invalid JSON response for {page_id}: {json_error}")

            if not isinstance(data, dict):
                raise FetchError(f"Unexpected response for {page_id}: expected a JSON object")

            page_posts = data.get("data") or []
            if not isinstance(page_posts, list):
                raise FetchError(f"Unexpected response for {page_id}: 'data' is not a list")

            if not page_posts:
                break

            posts.extend(page_posts)

            # paging.next already embeds every query parameter
            paging = data.get("paging")
            url = paging.get("next") if isinstance(paging, dict) else None
            params = None

        return posts[:limit]

    def build_announcement(self, source: Dict[str, Any], post: FacebookPost) -> Dict[str, Any]:
        """
        Build an announcement candidate from a post with text.

        Raises:
            ValueError: If the post timestamp cannot be parsed
        """
        content = post.content
        result = classify(content)

        return {
            "title": build_title(source.get("display_name", source["source_id"]), content),
            "content": content,
            "date": parse_graph_time(post.created_time),
            "category": result.category,
            "relevant_interests": result.relevant_interests,
            "relevant_majors": result.relevant_majors,
            "source_id": source["source_id"],
            "external_post_id": post.id or None,
            "permalink": post.permalink_url,
        }

    def ingest_source(self, source: Dict[str, Any], storage) -> Dict[str, Any]:
        """
        Ingest recent posts from a single source.

        Args:
            source: Source configuration dict
            storage: Announcement store (SQLiteStorage or MemStorage)

        Returns:
            Dict with ingestion results
        """
        source_id = source["source_id"]
        display_name = source.get("display_name", source_id)
        result = {
            "source_id": source_id,
            "display_name": display_name,
            "fetched": 0,
            "created": 0,
            "duplicates": 0,
            "skipped": 0,
            "errors": 0,
            "error_message": None,
        }

        print(f"   [INFO] Fetching posts from {display_name} ({source_id})...")

        try:
            raw_posts = self.fetch_page_posts(source_id, self.limit_per_source)
        except FetchError as e:
            print(f"   [FAIL] {e}")
            result["errors"] += 1
            result["error_message"] = str(e)
            storage.record_source_run(source_id, "failed", error=str(e))
            return result

        result["fetched"] = len(raw_posts)
        newest_post_date = None

        for raw in raw_posts:
            if not isinstance(raw, dict):
                print(f"   [WARN] Ignoring malformed post entry: {raw!r}")
                result["errors"] += 1
                continue

            post = FacebookPost.from_graph(raw)

            # Media-only posts carry no text
            if not post.content:
                result["skipped"] += 1
                continue

            try:
                candidate = self.build_announcement(source, post)
                announcement = storage.create_announcement_if_new(candidate)
            except Exception as e:
                print(f"   [WARN] Error processing post {post.id}: {e}")
                result["errors"] += 1
                continue

            if announcement is None:
                result["duplicates"] += 1
                continue

            result["created"] += 1
            if newest_post_date is None or announcement.date > newest_post_date:
                newest_post_date = announcement.date
            print(f"   [OK] Created announcement: {announcement.title}")

        storage.record_source_run(
            source_id,
            "success",
            created=result["created"],
            last_post_date=newest_post_date.isoformat() if newest_post_date else None,
        )

        return result

    def ingest_all(self, storage, only_source: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Ingest posts from all enabled sources, sequentially.

        Args:
            storage: Announcement store
            only_source: If set, only ingest this source

        Returns:
            List of ingestion results (one per source)

        Raises:
            ValueError: If only_source names no configured source
        """
        sources = [s for s in self.sources if s.get("enabled", True)]

        if only_source:
            sources = [s for s in sources if s["source_id"] == only_source]
            if not sources:
                raise ValueError(f"Source not found: {only_source}")

        print(f"\n[INFO] Ingesting from {len(sources)} source(s)")

        results = []
        for source in sources:
            results.append(self.ingest_source(source, storage))

        self.last_results = results
        return results

    def scrape_and_store_announcements(self, storage) -> int:
        """
        Run one ingestion pass over every source.

        Returns:
            Number of announcements created
        """
        results = self.ingest_all(storage)
        total = sum(r["created"] for r in results)
        print(f"[INFO] Total announcements created: {total}")
        return total

    def write_report(
        self,
        results: List[Dict[str, Any]],
        report_dir: str,
    ) -> str:
        """
        Write ingestion report to JSON file.

        Args:
            results: List of ingestion results
            report_dir: Report directory path

        Returns:
            Path to report file
        """
        Path(report_dir).mkdir(parents=True, exist_ok=True)

        now = datetime.now(timezone.utc)
        report_path = os.path.join(report_dir, f"ingestion_report_{now.strftime('%Y%m%d_%H%M%S')}.json")

        report = {
            "timestamp": now.isoformat(),
            "summary": {
                "total_sources": len(results),
                "total_fetched": sum(r.get("fetched", 0) for r in results),
                "total_created": sum(r.get("created", 0) for r in results),
                "total_duplicates": sum(r.get("duplicates", 0) for r in results),
                "total_skipped": sum(r.get("skipped", 0) for r in results),
                "total_errors": sum(r.get("errors", 0) for r in results),
                "sources_with_errors": sum(1 for r in results if r.get("errors", 0) > 0),
            },
            "results": results,
        }

        with open(report_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)

        return report_path
