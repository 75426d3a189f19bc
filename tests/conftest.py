"""
Shared pytest fixtures.

Provides a fake Graph API session so ingestion tests never touch the
network.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

# Allow running the suite from a checkout without installing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from campusfeed.storage import MemStorage, SQLiteStorage


def make_response(payload, ok=True, status_code=200):
    """Mock requests.Response returning `payload` from .json()."""
    response = MagicMock(spec=requests.Response)
    response.ok = ok
    response.status_code = status_code
    response.json.return_value = payload
    return response


def make_post(post_id, message=None, story=None, created_time="2024-10-01T08:30:00+0000"):
    post = {
        "id": post_id,
        "created_time": created_time,
        "permalink_url": f"https://www.facebook.com/{post_id}",
        "from": {"name": "Page", "id": post_id.split("_")[0]},
    }
    if message is not None:
        post["message"] = message
    if story is not None:
        post["story"] = story
    return post


class FakeGraphSession:
    """
    Stand-in for requests.Session keyed by page id.

    Each page maps to a response or an exception to raise.
    """

    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        page_id = url.rsplit("/", 2)[-2]
        outcome = self.pages[page_id]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def mem_storage():
    return MemStorage()


@pytest.fixture
def sqlite_storage(tmp_path):
    storage = SQLiteStorage(str(tmp_path / "db" / "campusfeed.sqlite3"))
    yield storage
    storage.close()


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, tmp_path):
    """Run a test against both storage backends."""
    if request.param == "memory":
        yield MemStorage()
    else:
        backend = SQLiteStorage(str(tmp_path / "campusfeed.sqlite3"))
        yield backend
        backend.close()


@pytest.fixture
def sources():
    return [
        {"source_id": "page.one", "display_name": "Page One", "enabled": True},
        {"source_id": "page.two", "display_name": "Page Two", "enabled": True},
        {"source_id": "page.three", "display_name": "Page Three", "enabled": True},
    ]
