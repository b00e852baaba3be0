from __future__ import annotations

from src.error_codes import BUILD_ERROR, CONFIG_ERROR


class BuildError(Exception):
    """Raised when an error escapes the per-feed isolation boundary (fatal)."""

    code = BUILD_ERROR


class FeedConfigError(ValueError):
    """Raised when the feed registry cannot be loaded."""

    code = CONFIG_ERROR
