"""
Runtime configuration for campusfeed.

Values come from environment variables. Entry points call load_dotenv()
first so a local .env file is honored.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_GRAPH_URL = "https://graph.facebook.com/v23.0"


@dataclass
class Settings:
    """Configuration shared by the CLI and the web app."""
    facebook_access_token: Optional[str] = None
    graph_url: str = DEFAULT_GRAPH_URL
    sources_path: str = "config/facebook_sources.yaml"
    db_path: Optional[str] = None
    posts_per_source: int = 5
    request_timeout: float = 30.0
    report_dir: str = "data/reports"


def _parse_number(environ: Mapping[str, str], name: str, default, cast):
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"Invalid {name}: '{raw}' must be a {cast.__name__}")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Environment Variables:
        FACEBOOK_ACCESS_TOKEN        Graph API access token
        FACEBOOK_GRAPH_URL           Graph API base URL
        CAMPUSFEED_SOURCES           Path to facebook_sources.yaml
        CAMPUSFEED_DB                SQLite path (unset = in-memory store)
        CAMPUSFEED_POSTS_PER_SOURCE  Posts fetched per source
        CAMPUSFEED_REQUEST_TIMEOUT   HTTP timeout in seconds
        CAMPUSFEED_REPORT_DIR        Directory for ingestion reports

    Args:
        environ: Mapping to read instead of os.environ (for testing)

    Returns:
        Settings

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    if environ is None:
        environ = os.environ

    return Settings(
        facebook_access_token=environ.get("FACEBOOK_ACCESS_TOKEN") or None,
        graph_url=environ.get("FACEBOOK_GRAPH_URL") or DEFAULT_GRAPH_URL,
        sources_path=environ.get("CAMPUSFEED_SOURCES") or "config/facebook_sources.yaml",
        db_path=environ.get("CAMPUSFEED_DB") or None,
        posts_per_source=_parse_number(environ, "CAMPUSFEED_POSTS_PER_SOURCE", 5, int),
        request_timeout=_parse_number(environ, "CAMPUSFEED_REQUEST_TIMEOUT", 30.0, float),
        report_dir=environ.get("CAMPUSFEED_REPORT_DIR") or "data/reports",
    )
