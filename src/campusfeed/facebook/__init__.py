"""
Facebook module for campusfeed.

Handles scraping organization pages into announcements:
- Source configuration
- Post fetching through the Graph API
- Classification and storage of posts
"""

from .config import load_sources, get_enabled_sources, find_source_by_id, resolve_sources, DEFAULT_SOURCES
from .ingest import (
    FacebookScraper,
    FacebookPost,
    ConfigurationError,
    FetchError,
    build_title,
    parse_graph_time,
)

__all__ = [
    "load_sources",
    "get_enabled_sources",
    "find_source_by_id",
    "resolve_sources",
    "DEFAULT_SOURCES",
    "FacebookScraper",
    "FacebookPost",
    "ConfigurationError",
    "FetchError",
    "build_title",
    "parse_graph_time",
]
