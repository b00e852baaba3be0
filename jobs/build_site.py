from __future__ import annotations

# Load .env before other imports that use env vars
from dotenv import load_dotenv
load_dotenv()

import argparse
import logging

from pydantic import ValidationError

from src.build import MODES, run_build
from src.config import BuildConfig
from src.errors import BuildError, FeedConfigError
from src.feeds import DEFAULT_FEEDS_PATH, load_feeds, validate_feeds
from src.logging_utils import log_event


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Fetch all feeds and write paginated JSON artifacts.")
    p.add_argument("--feeds", default=str(DEFAULT_FEEDS_PATH), help="JSON array of {name, url, category}")
    p.add_argument("--out", default=None, help="output directory (default: dist)")
    p.add_argument("--mode", default="prod", choices=MODES)
    p.add_argument("--fixtures-dir", default="fixtures", help="where <slug>.xml files live in fixtures mode")
    p.add_argument("--items-per-page", type=int, default=None)
    p.add_argument("--max-description", type=int, default=None)
    p.add_argument("--timestamp-policy", default=None, choices=["strict", "lenient"])
    p.add_argument("--delay", type=float, default=None, help="seconds between feed requests")
    p.add_argument("--dedupe", action="store_true", default=None, help="drop repeated item IDs")
    p.add_argument("--no-feed-pages", action="store_true", help="skip feeds/<slug>/data.json + manifest")
    args = p.parse_args(argv)

    try:
        cfg = BuildConfig.from_env(
            output_dir=args.out,
            items_per_page=args.items_per_page,
            max_description_length=args.max_description,
            timestamp_policy=args.timestamp_policy,
            request_delay_s=args.delay,
            dedupe=args.dedupe,
            write_feed_pages=False if args.no_feed_pages else None,
        )
    except ValidationError as exc:
        print(f"ERROR invalid configuration: {exc}")
        return 1

    try:
        feeds = load_feeds(args.feeds)
        for problem in validate_feeds(feeds):
            log_event("feed_config_warning", level=logging.WARNING, problem=problem)

        result = run_build(feeds, cfg=cfg, mode=args.mode, fixtures_dir=args.fixtures_dir)

    except (BuildError, FeedConfigError) as exc:
        log_event("build_failed", level=logging.ERROR, error_code=exc.code, error=str(exc))
        print(f"ERROR code={exc.code} error={exc}")
        return 1
    except Exception as exc:
        log_event("build_failed", level=logging.ERROR, error_type=type(exc).__name__, error=str(exc))
        print(f"ERROR error={exc}")
        return 1

    md = result.metadata
    print(
        f"OK feeds={md.total_feeds} ok={md.successful_feeds} failed={md.failed_feeds} "
        f"items={md.total_items} pages={md.total_pages} out={cfg.output_dir}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
