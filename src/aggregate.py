"""
Aggregation across feeds.
Pure functions. Per-feed results in, one sorted item stream + metadata out.
"""
from __future__ import annotations

from datetime import datetime

from src.paginate import page_count
from src.schemas import BuildMetadata, FeedFetchResult, FeedSummary, NormalizedItem


def dedupe_items(items: list[NormalizedItem]) -> list[NormalizedItem]:
    """
    Remove items whose ID was already seen.
    Preserves order (first occurrence wins).
    """
    seen: set[str] = set()
    out: list[NormalizedItem] = []

    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        out.append(item)

    return out


def aggregate_items(results: list[FeedFetchResult], *, dedupe: bool = False) -> list[NormalizedItem]:
    """
    Union of all feeds' items, newest first.

    - Feeds are visited in descriptor order, items in document order
    - Items with a non-positive timestamp are excluded
    - sorted() is stable, so equal timestamps keep encounter order
    """
    merged: list[NormalizedItem] = []
    for result in results:
        merged.extend(item for item in result.items if item.timestamp > 0)

    if dedupe:
        merged = dedupe_items(merged)

    return sorted(merged, key=lambda item: item.timestamp, reverse=True)


def unique_categories(items: list[NormalizedItem]) -> list[str]:
    """Categories in first-seen order."""
    return list(dict.fromkeys(item.category for item in items))


def failures_by_code(results: list[FeedFetchResult]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for result in results:
        if result.success:
            continue
        code = result.error_code or "UNKNOWN"
        counts[code] = counts.get(code, 0) + 1
    return counts


def build_metadata(
    results: list[FeedFetchResult],
    items: list[NormalizedItem],
    *,
    items_per_page: int,
    now: datetime,
) -> BuildMetadata:
    last_updated = now.isoformat()
    successful = sum(1 for r in results if r.success)

    feeds = [
        FeedSummary(
            name=r.descriptor.name,
            category=r.descriptor.category,
            item_count=len(r.items),
            error=r.error,
            last_updated=last_updated,
            feed_info=r.feed_info,
        )
        for r in results
    ]

    return BuildMetadata(
        total_feeds=len(results),
        successful_feeds=successful,
        failed_feeds=len(results) - successful,
        total_items=len(items),
        total_pages=page_count(len(items), items_per_page),
        items_per_page=items_per_page,
        last_updated=last_updated,
        categories=unique_categories(items),
        feeds=feeds,
    )
