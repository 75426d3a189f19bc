from pathlib import Path

import pytest
import yaml

from campusfeed.facebook import (
    DEFAULT_SOURCES,
    find_source_by_id,
    get_enabled_sources,
    load_sources,
    resolve_sources,
)
from campusfeed.settings import DEFAULT_GRAPH_URL, load_settings


REPO_SOURCES = Path(__file__).parent.parent / "config" / "facebook_sources.yaml"


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


# -------------------------------------------------------
# Settings
# -------------------------------------------------------
def test_settings_defaults():
    settings = load_settings({})

    assert settings.facebook_access_token is None
    assert settings.graph_url == DEFAULT_GRAPH_URL
    assert settings.db_path is None
    assert settings.posts_per_source == 5
    assert settings.request_timeout == 30.0
    assert settings.sources_path == "config/facebook_sources.yaml"


def test_settings_from_environment():
    settings = load_settings({
        "FACEBOOK_ACCESS_TOKEN": "abc",
        "FACEBOOK_GRAPH_URL": "https://graph.example.com/v9.0",
        "CAMPUSFEED_DB": "/tmp/x.sqlite3",
        "CAMPUSFEED_POSTS_PER_SOURCE": "10",
        "CAMPUSFEED_REQUEST_TIMEOUT": "2.5",
        "CAMPUSFEED_SOURCES": "other.yaml",
        "CAMPUSFEED_REPORT_DIR": "out",
    })

    assert settings.facebook_access_token == "abc"
    assert settings.graph_url == "https://graph.example.com/v9.0"
    assert settings.db_path == "/tmp/x.sqlite3"
    assert settings.posts_per_source == 10
    assert settings.request_timeout == 2.5
    assert settings.sources_path == "other.yaml"
    assert settings.report_dir == "out"


def test_settings_empty_token_is_none():
    assert load_settings({"FACEBOOK_ACCESS_TOKEN": ""}).facebook_access_token is None


def test_settings_invalid_number():
    with pytest.raises(ValueError, match="CAMPUSFEED_POSTS_PER_SOURCE"):
        load_settings({"CAMPUSFEED_POSTS_PER_SOURCE": "five"})


# -------------------------------------------------------
# Sources
# -------------------------------------------------------
def test_repo_sources_file_matches_defaults():
    data = load_sources(str(REPO_SOURCES))

    assert [s["source_id"] for s in get_enabled_sources(data)] == [s["source_id"] for s in DEFAULT_SOURCES]


def test_load_sources_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_sources(str(tmp_path / "missing.yaml"))


def test_load_sources_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    with pytest.raises(ValueError, match="empty"):
        load_sources(str(path))


@pytest.mark.parametrize("data,message", [
    ({"pages": []}, "sources"),
    ({"sources": {"a": 1}}, "must be a list"),
    ({"sources": ["page"]}, "not a dictionary"),
    ({"sources": [{"display_name": "No id"}]}, "source_id"),
    ({"sources": [{"source_id": "x"}]}, "display_name"),
    ({"sources": [
        {"source_id": "x", "display_name": "X"},
        {"source_id": "x", "display_name": "X again"},
    ]}, "Duplicate"),
])
def test_load_sources_validation(tmp_path, data, message):
    path = write_yaml(tmp_path / "sources.yaml", data)

    with pytest.raises(ValueError, match=message):
        load_sources(path)


def test_numeric_source_id_becomes_string(tmp_path):
    path = write_yaml(tmp_path / "sources.yaml", {"sources": [{"source_id": 12345, "display_name": "Numeric"}]})

    assert load_sources(path)["sources"][0]["source_id"] == "12345"


def test_enabled_and_find(tmp_path):
    path = write_yaml(tmp_path / "sources.yaml", {"sources": [
        {"source_id": "a", "display_name": "A"},
        {"source_id": "b", "display_name": "B", "enabled": False},
    ]})
    enabled = get_enabled_sources(load_sources(path))

    assert [s["source_id"] for s in enabled] == ["a"]
    assert find_source_by_id(enabled, "a")["display_name"] == "A"
    assert find_source_by_id(enabled, "b") is None


def test_resolve_sources_defaults_when_file_missing(tmp_path):
    sources = resolve_sources(str(tmp_path / "missing.yaml"))

    assert sources == DEFAULT_SOURCES
    sources[0]["display_name"] = "changed"
    assert DEFAULT_SOURCES[0]["display_name"] == "De La Salle University"


def test_resolve_sources_reads_file(tmp_path):
    path = write_yaml(tmp_path / "sources.yaml", {"sources": [{"source_id": "a", "display_name": "A"}]})

    assert [s["source_id"] for s in resolve_sources(path)] == ["a"]
