# src/normalize.py
"""
Item normalization: raw feed item -> NormalizedItem.
Pure functions: no side effects besides logging, no network access.
"""
from __future__ import annotations

import base64
import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING
from urllib.parse import urljoin

from src.error_codes import ITEM_ERROR
from src.logging_utils import log_event
from src.rss_parse import NO_LINK, NO_TITLE
from src.sanitize import sanitize_html, scheme_allowed, strip_tags, truncate, unwrap_cdata
from src.schemas import NormalizedItem

if TYPE_CHECKING:
    from src.config import BuildConfig
    from src.rss_parse import RawItem
    from src.schemas import FeedDescriptor


ID_LENGTH = 16
LINK_SCHEMES = ("http", "https")


@dataclass
class NormalizeResult:
    ok: bool
    item: NormalizedItem | None = None
    error_code: str | None = None
    error_message: str | None = None


def normalize_title(title: str) -> str:
    """
    Title as plain text:
    - all markup stripped
    - strip ends, collapse internal whitespace to single spaces
    - nothing left -> "No Title", same as a missing <title>
    """
    stripped = re.sub(r"\s+", " ", strip_tags(title).strip())
    return stripped or NO_TITLE


def normalize_link(link: str, *, base: str = "") -> str:
    """
    Absolute http(s) URL, or "#" when absent or unsafe.
    Relative links are resolved against the feed's own link.
    """
    link = link.strip()
    if not link or link == NO_LINK:
        return NO_LINK
    if base and not re.match(r"^[A-Za-z][A-Za-z0-9+.\-]*:", link):
        link = urljoin(base, link)
    if not re.match(r"^https?://", link, flags=re.IGNORECASE):
        return NO_LINK
    if not scheme_allowed(link, LINK_SCHEMES):
        return NO_LINK
    return link


def derive_item_id(key: str, feed_name: str) -> str:
    """
    Stable short ID for an item.
    SHA-256 of (guid or link) + feed name, URL-safe base64, first 16 chars.
    Same inputs always give the same ID; advisory-unique only.
    """
    raw = f"{key}{feed_name}".encode("utf-8")
    digest = hashlib.sha256(raw).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")[:ID_LENGTH]


def parse_pub_date(text: str) -> datetime | None:
    """RFC 822/2822 first, then ISO 8601. Naive values are taken as UTC. None if unparseable."""
    value = (text or "").strip()
    if not value:
        return None

    dt: datetime | None = None
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        dt = None

    if dt is None:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def resolve_timestamp(pub_date: str, *, policy: str, now: datetime) -> int:
    """
    strict:  unparseable/absent pubDate -> 0 (item is excluded later)
    lenient: unparseable/absent pubDate -> now
    """
    dt = parse_pub_date(pub_date)
    if dt is not None:
        try:
            return to_epoch_ms(dt)
        except (OverflowError, OSError, ValueError):
            dt = None

    if policy == "lenient":
        return to_epoch_ms(now)
    return 0


def normalize_description(description: str, *, cfg: BuildConfig) -> str:
    text = unwrap_cdata(description)
    text = sanitize_html(
        text,
        allowed_tags=cfg.allowed_tags,
        allowed_attributes=cfg.allowed_attributes,
        allowed_schemes=cfg.allowed_schemes,
    )
    return truncate(text, cfg.max_description_length)


def normalize_item(
    raw: RawItem,
    descriptor: FeedDescriptor,
    *,
    feed_link: str,
    cfg: BuildConfig,
    now: datetime,
) -> NormalizeResult:
    """
    Contract:
    - ALWAYS returns NormalizeResult (never raises)
    - ok=True carries the item, ok=False carries ITEM_ERROR + message
    """
    try:
        key = raw.guid or raw.link
        item = NormalizedItem(
            id=derive_item_id(key, descriptor.name),
            title=normalize_title(raw.title),
            link=normalize_link(raw.link, base=feed_link or descriptor.url),
            description=normalize_description(raw.description, cfg=cfg),
            pub_date=raw.pub_date,
            timestamp=resolve_timestamp(raw.pub_date, policy=cfg.timestamp_policy, now=now),
            feed_name=descriptor.name,
            category=descriptor.category,
            feed_source=feed_link,
        )
    except Exception as exc:
        return NormalizeResult(
            ok=False,
            error_code=ITEM_ERROR,
            error_message=f"{type(exc).__name__}: {exc}",
        )

    return NormalizeResult(ok=True, item=item)


def normalize_items(
    raw_items: list[RawItem],
    descriptor: FeedDescriptor,
    *,
    feed_link: str,
    cfg: BuildConfig,
    now: datetime,
) -> list[NormalizedItem]:
    """
    Normalize every raw item of one feed, preserving document order.
    Failed items and items without a positive timestamp are dropped.
    """
    out: list[NormalizedItem] = []
    undated = 0

    for raw in raw_items:
        result = normalize_item(raw, descriptor, feed_link=feed_link, cfg=cfg, now=now)
        if not result.ok:
            log_event(
                "item_normalize_failed",
                level=logging.WARNING,
                feed=descriptor.name,
                link=raw.link,
                error_code=result.error_code,
                error=result.error_message,
            )
            continue
        if result.item.timestamp <= 0:
            undated += 1
            continue
        out.append(result.item)

    if undated:
        log_event("items_without_date_dropped", feed=descriptor.name, count=undated)

    return out
