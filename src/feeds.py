# src/feeds.py
"""Feed source registry: load descriptors from a JSON file, validate, derive slugs."""
from __future__ import annotations

import json
import re
from pathlib import Path

from pydantic import ValidationError

from src.errors import FeedConfigError
from src.schemas import FeedDescriptor


DEFAULT_FEEDS_PATH = Path("config/feeds.json")


def load_feeds(path: str | Path = DEFAULT_FEEDS_PATH) -> list[FeedDescriptor]:
    """
    Read a JSON array of {name, url, category?} objects.
    Order is preserved; category defaults to "general".
    """
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except OSError as exc:
        raise FeedConfigError(f"cannot read feeds file {p}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise FeedConfigError(f"feeds file {p} is not valid JSON: {exc}") from exc

    if not isinstance(raw, list):
        raise FeedConfigError(f"feeds file {p} must contain a JSON array")

    feeds: list[FeedDescriptor] = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise FeedConfigError(f"feed #{i} must be an object")
        data = dict(entry)
        if not data.get("category"):
            data.pop("category", None)
        try:
            feeds.append(FeedDescriptor(**data))
        except ValidationError as exc:
            raise FeedConfigError(f"feed #{i} is invalid: {exc}") from exc

    return feeds


def validate_feeds(feeds: list[FeedDescriptor]) -> list[str]:
    """Return a list of problems (empty when every feed looks usable)."""
    problems: list[str] = []
    seen: set[str] = set()

    for feed in feeds:
        if not re.match(r"^https?://\S+$", feed.url, flags=re.IGNORECASE):
            problems.append(f"{feed.name}: URL must start with http(s)")
        if feed.url in seen:
            problems.append(f"{feed.name}: duplicate URL {feed.url}")
        seen.add(feed.url)

    return problems


def slugify(name: str) -> str:
    """
    URL-safe identifier for a feed name:
    - lowercase
    - drop non-word characters (keeping whitespace and hyphens)
    - whitespace runs -> single hyphen
    - repeated hyphens collapsed, leading/trailing hyphens trimmed
    """
    slug = name.lower()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")
