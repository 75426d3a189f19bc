import sqlite3
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from campusfeed.storage import MemStorage, SQLiteStorage, init_db, open_storage


def candidate(title="Title", category="academics", date=None, interests=None, majors=None, **extra):
    data = {
        "title": title,
        "content": f"{title} content",
        "category": category,
        "date": date,
        "relevant_interests": interests,
        "relevant_majors": majors,
    }
    data.update(extra)
    return data


BASE = datetime(2024, 10, 1, 9, 0, tzinfo=timezone.utc)


# -------------------------------------------------------
# Creation
# -------------------------------------------------------
def test_ids_are_sequential(storage):
    first = storage.create_announcement(candidate("A"))
    second = storage.create_announcement(candidate("B"))

    assert second.id == first.id + 1


def test_missing_lists_default_to_empty(storage):
    announcement = storage.create_announcement(candidate())

    assert announcement.relevant_interests == []
    assert announcement.relevant_majors == []


def test_missing_date_defaults_to_now(storage):
    before = datetime.now(timezone.utc)
    announcement = storage.create_announcement(candidate())

    assert announcement.date >= before - timedelta(seconds=1)
    assert announcement.date.tzinfo is not None


def test_naive_date_is_treated_as_utc(storage):
    announcement = storage.create_announcement(candidate(date=datetime(2024, 1, 2, 3, 4)))
    assert announcement.date == datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)


def test_round_trip(storage):
    created = storage.create_announcement(candidate(
        "Career fair",
        category="career-services",
        date=BASE,
        interests=["business"],
        majors=["rvrcob", "soe"],
        source_id="dlsu.usg",
        external_post_id="123_456",
        permalink="https://www.facebook.com/123_456",
    ))

    fetched = storage.get_announcement(created.id)

    assert fetched == created
    assert fetched.relevant_majors == ["rvrcob", "soe"]
    assert fetched.date == BASE


def test_get_missing_announcement(storage):
    assert storage.get_announcement(999) is None


# -------------------------------------------------------
# Idempotency on external post id
# -------------------------------------------------------
def test_create_if_new_skips_known_post(storage):
    first = storage.create_announcement_if_new(candidate(source_id="p", external_post_id="1"))
    again = storage.create_announcement_if_new(candidate(source_id="p", external_post_id="1"))

    assert first is not None
    assert again is None
    assert len(storage.get_announcements()) == 1


def test_same_post_id_from_other_source_is_new(storage):
    storage.create_announcement_if_new(candidate(source_id="p", external_post_id="1"))
    other = storage.create_announcement_if_new(candidate(source_id="q", external_post_id="1"))

    assert other is not None


def test_candidates_without_external_id_always_insert(storage):
    assert storage.create_announcement_if_new(candidate()) is not None
    assert storage.create_announcement_if_new(candidate()) is not None
    assert len(storage.get_announcements()) == 2


def test_sqlite_create_duplicate_raises(sqlite_storage):
    sqlite_storage.create_announcement(candidate(source_id="p", external_post_id="1"))
    with pytest.raises(sqlite3.IntegrityError):
        sqlite_storage.create_announcement(candidate(source_id="p", external_post_id="1"))


def test_memory_create_duplicate_raises(mem_storage):
    mem_storage.create_announcement(candidate(source_id="p", external_post_id="1"))
    with pytest.raises(ValueError):
        mem_storage.create_announcement(candidate(source_id="p", external_post_id="1"))


# -------------------------------------------------------
# Listing and filtering
# -------------------------------------------------------
def test_announcements_newest_first(storage):
    storage.create_announcement(candidate("old", date=BASE - timedelta(days=2)))
    storage.create_announcement(candidate("new", date=BASE))
    storage.create_announcement(candidate("mid", date=BASE - timedelta(days=1)))

    assert [a.title for a in storage.get_announcements()] == ["new", "mid", "old"]


def test_filter_by_category(storage):
    storage.create_announcement(candidate("a", category="academics"))
    storage.create_announcement(candidate("b", category="student-life"))

    titles = [a.title for a in storage.get_announcements_by_filter("student-life")]
    assert titles == ["b"]

    assert len(storage.get_announcements_by_filter("all")) == 2
    assert len(storage.get_announcements_by_filter(None)) == 2


def test_filter_by_interests_matches_any(storage):
    storage.create_announcement(candidate("tech", interests=["technology"], date=BASE))
    storage.create_announcement(candidate("arts", interests=["arts", "music"], date=BASE - timedelta(hours=1)))
    storage.create_announcement(candidate("none", interests=[], date=BASE - timedelta(hours=2)))

    titles = [a.title for a in storage.get_announcements_by_filter(interests=["arts", "technology"])]
    assert titles == ["tech", "arts"]


def test_filter_by_category_and_interests(storage):
    storage.create_announcement(candidate("x", category="academics", interests=["science"]))
    storage.create_announcement(candidate("y", category="campus-events", interests=["science"]))

    titles = [a.title for a in storage.get_announcements_by_filter("academics", ["science"])]
    assert titles == ["x"]


# -------------------------------------------------------
# Source runs
# -------------------------------------------------------
def test_source_runs(storage):
    storage.record_source_run("page", "success", created=3, last_post_date="2024-10-01T00:00:00+00:00")
    storage.record_source_run("page", "failed", error="boom")

    run = storage.get_source_runs()["page"]
    assert run["last_status"] == "failed"
    assert run["last_error"] == "boom"
    assert run["created_count"] == 0
    # A failed run keeps the last known post date
    assert run["last_post_date"] == "2024-10-01T00:00:00+00:00"


def test_stats(storage):
    storage.create_announcement(candidate("a", category="academics"))
    storage.create_announcement(candidate("b", category="academics", source_id="p", external_post_id="1"))

    stats = storage.get_stats()
    assert stats["total_announcements"] == 2
    assert stats["scraped_announcements"] == 1
    assert stats["by_category"] == {"academics": 2}


# -------------------------------------------------------
# Backend selection
# -------------------------------------------------------
def test_open_storage_without_path_is_in_memory():
    assert isinstance(open_storage(None), MemStorage)
    assert isinstance(open_storage(""), MemStorage)


def test_open_storage_with_path_is_sqlite(tmp_path):
    storage = open_storage(str(tmp_path / "nested" / "campusfeed.sqlite3"))
    try:
        assert isinstance(storage, SQLiteStorage)
        assert (tmp_path / "nested" / "campusfeed.sqlite3").exists()
    finally:
        storage.close()


def test_sqlite_persists_across_connections(tmp_path):
    path = str(tmp_path / "campusfeed.sqlite3")

    storage = SQLiteStorage(path)
    created = storage.create_announcement(candidate("kept"))
    storage.close()

    storage = SQLiteStorage(path)
    try:
        assert storage.get_announcement(created.id).title == "kept"
    finally:
        storage.close()


def test_init_db_creates_tables():
    conn = init_db(":memory:")
    tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()

    assert {"announcements", "source_runs"} <= tables


# -------------------------------------------------------
# Concurrency
# -------------------------------------------------------
@pytest.fixture
def fast_switching():
    interval = sys.getswitchinterval()
    sys.setswitchinterval(1e-6)
    yield
    sys.setswitchinterval(interval)


def test_concurrent_creates_get_unique_ids(storage, fast_switching):
    workers, per_worker = 8, 50

    def create_many(worker):
        return [storage.create_announcement(candidate(f"{worker}-{i}")).id for i in range(per_worker)]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        ids = [i for batch in pool.map(create_many, range(workers)) for i in batch]

    assert len(set(ids)) == workers * per_worker
    assert len(storage.get_announcements()) == workers * per_worker


def test_concurrent_duplicate_posts_store_once(storage, fast_switching):
    post = candidate("Shared", source_id="page.one", external_post_id="1_1")

    with ThreadPoolExecutor(max_workers=8) as pool:
        stored = list(pool.map(lambda _: storage.create_announcement_if_new(dict(post)), range(32)))

    created = [a for a in stored if a is not None]
    assert len(created) == 1
    assert len(storage.get_announcements()) == 1
