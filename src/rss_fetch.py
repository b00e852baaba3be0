from __future__ import annotations

from dataclasses import dataclass

# Import http.client for the exceptions a broken connection can raise mid-response
import http.client
# Import re for sniffing the encoding out of the XML declaration
import re
# Import urllib modules for making HTTP requests
import urllib.request
import urllib.error

from src.config import DEFAULT_USER_AGENT
from src.error_codes import FETCH_HTTP_ERROR, FETCH_TIMEOUT, FETCH_TRANSPORT


# <?xml version="1.0" encoding="ISO-8859-1"?> -> ISO-8859-1 (only looked at when HTTP gives no charset)
_XML_DECL_ENCODING = re.compile(rb"""^\s*<\?xml[^>]*?encoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")


# Custom exception class for RSS fetching errors - carries the HTTP status and whether it was a timeout
class RSSFetchError(Exception):
    """Raised when RSS cannot be fetched (used internally by fetch_rss)."""

    def __init__(self, message: str, *, status: int | None = None, reason: str | None = None, timeout: bool = False):
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.timeout = timeout


@dataclass
class FetchResult:
    ok: bool
    content: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    status: int | None = None


def _is_timeout(reason: object) -> bool:
    return isinstance(reason, TimeoutError) or "timed out" in str(reason).lower()


def sniff_xml_encoding(raw: bytes) -> str | None:
    """Encoding named in the document's XML declaration, or None."""
    m = _XML_DECL_ENCODING.match(raw.lstrip(b"\xef\xbb\xbf")[:512])
    if m is None:
        return None
    return m.group(1).decode("ascii")


def decode_body(raw: bytes, charset: str | None) -> str:
    """
    Charset precedence: HTTP Content-Type, then the XML declaration, then UTF-8.
    Unknown encoding names fall back to UTF-8; undecodable bytes are replaced.
    """
    for encoding in (charset, sniff_xml_encoding(raw)):
        if not encoding:
            continue
        try:
            return raw.decode(encoding, errors="replace")
        except LookupError:
            continue
    return raw.decode("utf-8", errors="replace")


# Fetch feed XML from a URL - one attempt, no retries
def fetch_rss(url: str, *, timeout_s: float = 10.0, user_agent: str = DEFAULT_USER_AGENT) -> str:
    """Fetch feed XML from a URL and return response text. One attempt, no retries."""
    # Create an HTTP request object with the URL and custom User-Agent header
    req = urllib.request.Request(
        url,
        headers={"User-Agent": user_agent},
    )

    try:
        # Open the URL and get the response (using context manager for automatic cleanup)
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            # Get the HTTP status code from the response (some responses might not have status attribute)
            status = getattr(resp, "status", None)
            reason = getattr(resp, "reason", None) or ""
            raw = resp.read()

            # Anything outside 2xx is a failure for this feed
            if status is None or not 200 <= status < 300:
                raise RSSFetchError(f"HTTP {status}: {reason}".rstrip(": "), status=status, reason=reason)

            # Decode: Content-Type charset, then the XML declaration, then UTF-8
            headers = getattr(resp, "headers", None)
            charset = headers.get_content_charset() if headers is not None else None
            return decode_body(raw, charset)

    # HTTPError is a URLError subclass, so it must be handled first
    except urllib.error.HTTPError as exc:
        raise RSSFetchError(f"HTTP {exc.code}: {exc.reason}", status=exc.code, reason=str(exc.reason)) from exc
    # Catch URL-related errors (like connection refused, DNS failure); a timeout can hide in reason
    except urllib.error.URLError as exc:
        if _is_timeout(exc.reason):
            raise RSSFetchError("timeout", timeout=True) from exc
        raise RSSFetchError(f"URL error: {exc.reason}") from exc
    # Catch read timeouts raised after the connection was opened
    except TimeoutError as exc:
        raise RSSFetchError("timeout", timeout=True) from exc
    # Connection resets, truncated responses, malformed URLs
    except (OSError, http.client.HTTPException, ValueError) as exc:
        raise RSSFetchError(f"transport error: {exc}") from exc


# Result-typed wrapper: classify the failure instead of raising
def fetch_feed(url: str, *, timeout_s: float = 10.0, user_agent: str = DEFAULT_USER_AGENT) -> FetchResult:
    """
    Result-typed wrapper around fetch_rss.
    Never raises for fetch failures; the caller decides what a failed feed means.
    """
    try:
        content = fetch_rss(url, timeout_s=timeout_s, user_agent=user_agent)
    except RSSFetchError as exc:
        # Timeout first, then anything with an HTTP status, everything else is transport
        if exc.timeout:
            code = FETCH_TIMEOUT
        elif exc.status is not None:
            code = FETCH_HTTP_ERROR
        else:
            code = FETCH_TRANSPORT
        return FetchResult(ok=False, error_code=code, error_message=str(exc), status=exc.status)

    return FetchResult(ok=True, content=content, status=200)
