"""Stable failure codes for fetch, parse and build operations.

Used by: rss_fetch, rss_parse, normalize, build, logging, metadata failure counts.
"""

FETCH_TIMEOUT = "FETCH_TIMEOUT"
FETCH_HTTP_ERROR = "FETCH_HTTP_ERROR"
FETCH_TRANSPORT = "FETCH_TRANSPORT"
PARSE_ERROR = "PARSE_ERROR"

ITEM_ERROR = "ITEM_ERROR"              # Single item dropped, never propagated

# Fatal codes
BUILD_ERROR = "BUILD_ERROR"            # Artifact write failed
CONFIG_ERROR = "CONFIG_ERROR"          # Feed registry unreadable or invalid
