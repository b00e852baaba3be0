"""
JSON artifact writer.

Layout under the output directory:
    data/page-<n>.json        one PageRecord per page
    data/metadata.json        BuildMetadata
    feeds/<slug>/data.json    one FeedDocument per feed (optional)
    feeds/manifest.json       FeedManifest (optional)

Every build overwrites the previous one; page files left over from a
larger previous build are removed, as are per-feed documents of feeds no
longer in the registry. Any filesystem failure is a BuildError.
"""
from __future__ import annotations

import json
import re
from datetime import datetime
from pathlib import Path

from src.errors import BuildError
from src.feeds import slugify
from src.schemas import (
    BuildMetadata,
    FeedDocument,
    FeedFetchResult,
    FeedManifest,
    FeedPageInfo,
    ManifestEntry,
    PageRecord,
)


PAGE_FILE_RE = re.compile(r"^page-(\d+)\.json$")


def write_json(path: Path, payload: dict) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        raise BuildError(f"cannot write {path}: {exc}") from exc
    return path


def page_path(data_dir: Path, page: int) -> Path:
    return data_dir / f"page-{page}.json"


def remove_stale_pages(data_dir: Path, total_pages: int) -> list[Path]:
    """Delete page-<n>.json files with n > total_pages."""
    removed: list[Path] = []
    if not data_dir.is_dir():
        return removed
    try:
        for path in data_dir.iterdir():
            m = PAGE_FILE_RE.match(path.name)
            if m and int(m.group(1)) > total_pages:
                path.unlink()
                removed.append(path)
    except OSError as exc:
        raise BuildError(f"cannot clean {data_dir}: {exc}") from exc
    return removed


def write_pages(data_dir: Path, pages: list[PageRecord]) -> list[Path]:
    paths = [write_json(page_path(data_dir, p.page), p.to_json_dict()) for p in pages]
    remove_stale_pages(data_dir, len(pages))
    return paths


def write_metadata(data_dir: Path, metadata: BuildMetadata) -> Path:
    return write_json(data_dir / "metadata.json", metadata.to_json_dict())


def remove_stale_feed_documents(feeds_dir: Path, slugs: set[str]) -> list[Path]:
    """
    Delete feeds/<dir>/data.json for every dir not in slugs, then the dir
    itself once empty. Files this writer does not own are left alone.
    """
    removed: list[Path] = []
    if not feeds_dir.is_dir():
        return removed
    try:
        for path in feeds_dir.iterdir():
            if not path.is_dir() or path.name in slugs:
                continue
            doc = path / "data.json"
            if doc.is_file():
                doc.unlink()
                removed.append(doc)
            if not any(path.iterdir()):
                path.rmdir()
    except OSError as exc:
        raise BuildError(f"cannot clean {feeds_dir}: {exc}") from exc
    return removed


def feed_slug(result: FeedFetchResult) -> str:
    return slugify(result.descriptor.name) or "feed"


def feed_page_info(result: FeedFetchResult) -> FeedPageInfo:
    return FeedPageInfo(
        title=result.feed_info.title,
        description=result.feed_info.description,
        link=result.feed_info.link,
        slug=feed_slug(result),
        category=result.descriptor.category,
    )


def build_feed_document(result: FeedFetchResult, *, now: datetime) -> FeedDocument:
    return FeedDocument(
        feed_info=feed_page_info(result),
        items=result.items,
        last_updated=now.isoformat(),
        success=result.success,
        error=result.error,
    )


def build_manifest(results: list[FeedFetchResult], *, now: datetime) -> FeedManifest:
    entries: list[ManifestEntry] = []
    for r in results:
        slug = feed_slug(r)
        entries.append(
            ManifestEntry(
                name=r.feed_info.title,
                slug=slug,
                category=r.descriptor.category,
                url=f"/feeds/{slug}/",
                rss_url=r.descriptor.url,
                article_count=len(r.items),
                success=r.success,
                error=r.error,
            )
        )

    successful = sum(1 for e in entries if e.success)
    return FeedManifest(
        total_feeds=len(entries),
        successful_feeds=successful,
        failed_feeds=len(entries) - successful,
        last_updated=now.isoformat(),
        feeds=entries,
    )


def write_feed_documents(feeds_dir: Path, results: list[FeedFetchResult], *, now: datetime) -> list[Path]:
    """
    One data.json per feed plus manifest.json.
    Feeds whose names slugify to the same value share a directory; the
    later one wins, matching the manifest's url for both.
    """
    paths: list[Path] = []
    for result in results:
        doc = build_feed_document(result, now=now)
        paths.append(write_json(feeds_dir / doc.feed_info.slug / "data.json", doc.to_json_dict()))

    manifest = build_manifest(results, now=now)
    paths.append(write_json(feeds_dir / "manifest.json", manifest.to_json_dict()))
    remove_stale_feed_documents(feeds_dir, {entry.slug for entry in manifest.feeds})
    return paths
