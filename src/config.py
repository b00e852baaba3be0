from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, Field


DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; feedpages/0.1; +RSS aggregator)"

# Environment overrides: FEEDPAGES_<FIELD> -> field name
ENV_PREFIX = "FEEDPAGES_"
ENV_FIELDS = (
    "items_per_page",
    "max_description_length",
    "max_items_per_feed",
    "timeout_s",
    "user_agent",
    "request_delay_s",
    "timestamp_policy",
    "write_feed_pages",
    "dedupe",
    "output_dir",
)


class BuildConfig(BaseModel):
    # Pagination
    items_per_page: int = Field(default=20, ge=1)
    # Text budgets
    max_description_length: int = Field(default=300, ge=1)
    max_items_per_feed: int = Field(default=50, ge=1)
    # HTTP
    timeout_s: float = Field(default=10.0, gt=0)
    user_agent: str = DEFAULT_USER_AGENT
    # Serialized fetch: delay between consecutive requests
    request_delay_s: float = Field(default=0.5, ge=0)
    # strict: unparseable pubDate -> timestamp 0 -> item excluded
    # lenient: unparseable pubDate -> build time
    timestamp_policy: Literal["strict", "lenient"] = "strict"
    write_feed_pages: bool = True
    dedupe: bool = False
    output_dir: str = "dist"

    # Sanitizer allow-lists for descriptions
    allowed_tags: list[str] = Field(default_factory=lambda: [
        "p", "br", "strong", "b", "em", "i", "a", "ul", "ol", "li",
    ])
    allowed_attributes: dict[str, list[str]] = Field(default_factory=lambda: {
        "a": ["href", "target"],
    })
    allowed_schemes: list[str] = Field(default_factory=lambda: ["http", "https", "mailto"])

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides) -> "BuildConfig":
        """
        Build a config from FEEDPAGES_* environment variables.
        Explicit keyword overrides (e.g. CLI flags) win; None overrides are ignored.
        Values are validated by pydantic, so strings like "25" or "false" coerce.
        """
        env = os.environ if environ is None else environ
        data: dict[str, object] = {}
        for name in ENV_FIELDS:
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None and raw.strip() != "":
                data[name] = raw.strip()

        for key, value in overrides.items():
            if value is not None:
                data[key] = value

        return cls(**data)
