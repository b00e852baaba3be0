# src/build.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from src.aggregate import aggregate_items, build_metadata, failures_by_code
from src.artifacts import write_feed_documents, write_metadata, write_pages
from src.config import BuildConfig
from src.error_codes import FETCH_TRANSPORT, PARSE_ERROR
from src.feeds import slugify
from src.logging_utils import log_event
from src.normalize import normalize_items
from src.paginate import paginate
from src.rss_fetch import FetchResult, fetch_feed
from src.rss_parse import ParseResult, parse_feed
from src.schemas import BuildMetadata, FeedDescriptor, FeedFetchResult, FeedInfo, PageRecord


MODES = ("prod", "fixtures")


@dataclass
class BuildResult:
    metadata: BuildMetadata
    pages: list[PageRecord]
    feed_results: list[FeedFetchResult]
    written: list[Path] = field(default_factory=list)


def fixture_path(fixtures_dir: str | Path, descriptor: FeedDescriptor) -> Path:
    """Fixtures mode reads <fixtures_dir>/<slug>.xml instead of the feed URL."""
    return Path(fixtures_dir) / f"{slugify(descriptor.name)}.xml"


def read_fixture(path: Path) -> FetchResult:
    try:
        return FetchResult(ok=True, content=path.read_text(encoding="utf-8"))
    except OSError as exc:
        return FetchResult(ok=False, error_code=FETCH_TRANSPORT, error_message=f"fixture unreadable: {exc}")


def failed_result(descriptor: FeedDescriptor, *, error_code: str | None, error: str | None) -> FeedFetchResult:
    return FeedFetchResult(
        descriptor=descriptor,
        feed_info=FeedInfo(title=descriptor.name, description="", link=""),
        items=[],
        error=error or "unknown error",
        error_code=error_code,
    )


def process_feed(
    descriptor: FeedDescriptor,
    *,
    cfg: BuildConfig,
    mode: str,
    fixtures_dir: str | Path | None,
    now: datetime,
) -> FeedFetchResult:
    """
    Fetch -> parse -> normalize one feed.
    Never raises: every failure ends up in the returned result's error fields.
    """
    if mode == "fixtures":
        fetched = read_fixture(fixture_path(fixtures_dir or "fixtures", descriptor))
    else:
        fetched = fetch_feed(descriptor.url, timeout_s=cfg.timeout_s, user_agent=cfg.user_agent)

    if not fetched.ok:
        log_event(
            "feed_fetch_failed",
            level=logging.WARNING,
            feed=descriptor.name,
            url=descriptor.url,
            error_code=fetched.error_code,
            error_message=fetched.error_message,
        )
        return failed_result(descriptor, error_code=fetched.error_code, error=fetched.error_message)

    try:
        parsed = parse_feed(fetched.content or "", feed_name=descriptor.name, max_items=cfg.max_items_per_feed)
    except Exception as exc:
        parsed = ParseResult(ok=False, error_code=PARSE_ERROR, error_message=f"{type(exc).__name__}: {exc}")

    if not parsed.ok:
        log_event(
            "feed_parse_failed",
            level=logging.WARNING,
            feed=descriptor.name,
            url=descriptor.url,
            error_code=parsed.error_code,
            error=parsed.error_message,
        )
        return failed_result(descriptor, error_code=parsed.error_code, error=parsed.error_message)

    feed = parsed.feed
    items = normalize_items(feed.items, descriptor, feed_link=feed.link, cfg=cfg, now=now)
    log_event("feed_fetch_ok", feed=descriptor.name, url=descriptor.url, raw_items=len(feed.items), items=len(items))

    return FeedFetchResult(
        descriptor=descriptor,
        feed_info=FeedInfo(title=feed.title, description=feed.description, link=feed.link),
        items=items,
    )


def collect_feeds(
    feeds: list[FeedDescriptor],
    *,
    cfg: BuildConfig,
    mode: str = "prod",
    fixtures_dir: str | Path | None = None,
    now: datetime,
    sleep: Callable[[float], None] = time.sleep,
) -> list[FeedFetchResult]:
    """
    Serialized fetch: one feed at a time in registry order, with a fixed
    delay between consecutive HTTP requests (none after the last one).
    """
    results: list[FeedFetchResult] = []
    for i, descriptor in enumerate(feeds):
        results.append(process_feed(descriptor, cfg=cfg, mode=mode, fixtures_dir=fixtures_dir, now=now))

        if (i + 1) % 10 == 0 or i == len(feeds) - 1:
            log_event("feeds_progress", done=i + 1, total=len(feeds))

        if mode == "prod" and cfg.request_delay_s > 0 and i < len(feeds) - 1:
            sleep(cfg.request_delay_s)

    return results


def run_build(
    feeds: list[FeedDescriptor],
    *,
    cfg: BuildConfig | None = None,
    mode: str = "prod",
    fixtures_dir: str | Path | None = None,
    now: datetime | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BuildResult:
    """
    Full rebuild: collect every feed, aggregate, paginate, write artifacts.
    Feed failures are recorded in the metadata; only artifact write
    failures (BuildError) escape.
    """
    if mode not in MODES:
        raise ValueError(f"unknown mode: {mode}")

    cfg = cfg or BuildConfig()
    now = now or datetime.now(timezone.utc)
    t0 = time.perf_counter()

    log_event("build_started", feeds=len(feeds), mode=mode, output_dir=cfg.output_dir)

    results = collect_feeds(feeds, cfg=cfg, mode=mode, fixtures_dir=fixtures_dir, now=now, sleep=sleep)

    items = aggregate_items(results, dedupe=cfg.dedupe)
    pages = paginate(items, items_per_page=cfg.items_per_page)
    metadata = build_metadata(results, items, items_per_page=cfg.items_per_page, now=now)

    out_dir = Path(cfg.output_dir)
    data_dir = out_dir / "data"
    written = write_pages(data_dir, pages)
    written.append(write_metadata(data_dir, metadata))
    if cfg.write_feed_pages:
        written.extend(write_feed_documents(out_dir / "feeds", results, now=now))

    elapsed_ms = int((time.perf_counter() - t0) * 1000)
    log_event(
        "build_complete",
        status="ok",
        elapsed_ms=elapsed_ms,
        failures_by_code=failures_by_code(results),
        counts={
            "feeds": metadata.total_feeds,
            "successful_feeds": metadata.successful_feeds,
            "failed_feeds": metadata.failed_feeds,
            "items": metadata.total_items,
            "pages": metadata.total_pages,
        },
    )

    return BuildResult(metadata=metadata, pages=pages, feed_results=results, written=written)
