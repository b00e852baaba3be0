import json
from pathlib import Path

import pytest

from src.errors import FeedConfigError
from src.feeds import load_feeds, slugify, validate_feeds
from src.schemas import FeedDescriptor

REPO_ROOT = Path(__file__).resolve().parents[1]


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Ars Technica", "ars-technica"),
        ("NYT > Technology", "nyt-technology"),
        ("  Hacker   News  ", "hacker-news"),
        ("C++ Weekly!", "c-weekly"),
        ("BBC -- World", "bbc-world"),
        ("under_score", "under_score"),
        ("Café Crème", "caf-crme"),
        ("???", ""),
    ],
)
def test_slugify(name, expected):
    assert slugify(name) == expected


def write_feeds(tmp_path, payload) -> str:
    path = tmp_path / "feeds.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_load_feeds_preserves_order_and_defaults_category(tmp_path):
    path = write_feeds(tmp_path, [
        {"name": "B", "url": "https://b.example.com/rss", "category": "news"},
        {"name": "A", "url": "https://a.example.com/rss"},
        {"name": "C", "url": "https://c.example.com/rss", "category": ""},
    ])

    feeds = load_feeds(path)
    assert [f.name for f in feeds] == ["B", "A", "C"]
    assert [f.category for f in feeds] == ["news", "general", "general"]


def test_load_feeds_missing_file(tmp_path):
    with pytest.raises(FeedConfigError):
        load_feeds(tmp_path / "nope.json")


def test_load_feeds_invalid_json(tmp_path):
    path = tmp_path / "feeds.json"
    path.write_text("[{not json", encoding="utf-8")
    with pytest.raises(FeedConfigError):
        load_feeds(path)


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "A", "url": "https://a.example.com"},
        ["just a string"],
        [{"name": "A"}],
        [{"name": "", "url": "https://a.example.com"}],
    ],
)
def test_load_feeds_rejects_bad_shapes(tmp_path, payload):
    with pytest.raises(FeedConfigError):
        load_feeds(write_feeds(tmp_path, payload))


def test_shipped_registry_loads():
    feeds = load_feeds(REPO_ROOT / "config" / "feeds.json")
    assert len(feeds) >= 1
    assert validate_feeds(feeds) == []


def test_validate_feeds_reports_bad_and_duplicate_urls():
    feeds = [
        FeedDescriptor(name="Good", url="https://a.example.com/rss"),
        FeedDescriptor(name="Ftp", url="ftp://a.example.com/rss"),
        FeedDescriptor(name="Copy", url="https://a.example.com/rss"),
    ]
    assert validate_feeds(feeds) == [
        "Ftp: URL must start with http(s)",
        "Copy: duplicate URL https://a.example.com/rss",
    ]
