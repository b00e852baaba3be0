# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import pytest

from src.config import ENV_FIELDS, ENV_PREFIX


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """FEEDPAGES_* variables from the developer's shell must not leak into tests."""
    for name in ENV_FIELDS:
        monkeypatch.delenv(ENV_PREFIX + name.upper(), raising=False)


@pytest.fixture
def make_rss():
    """
    Build an RSS 2.0 document with n dated items, newest first.
    Item i is published `start - i hours`.
    """
    def _make(n: int, *, prefix: str = "Item", start: datetime | None = None, link: str = "https://example.com") -> str:
        start = start or datetime(2026, 1, 16, 12, 0, tzinfo=timezone.utc)
        items = []
        for i in range(n):
            pub = format_datetime(start - timedelta(hours=i))
            items.append(
                f"""
    <item>
      <title>{prefix} {i}</title>
      <link>{link}/{prefix.lower()}/{i}</link>
      <guid>{prefix.lower()}-{i}</guid>
      <pubDate>{pub}</pubDate>
      <description>&lt;p&gt;Body {i}&lt;/p&gt;</description>
    </item>"""
            )
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>{prefix} Feed</title>
    <link>{link}</link>
    <description>{prefix} description</description>{"".join(items)}
  </channel>
</rss>
"""

    return _make
