"""
Allow-list HTML sanitization for feed text.

Pure functions. Anything not on the allow-list is removed, never escaped-and-kept:
- disallowed tags are unwrapped (their text stays), except tags whose content
  is never display text (script, style, ...), which are dropped entirely
- disallowed attributes are dropped
- URL attributes whose scheme is not allowed are dropped
Text nodes are entity-escaped on output, so stripped markup cannot reappear.
"""
from __future__ import annotations

import re
import warnings

from bs4 import (
    BeautifulSoup,
    CData,
    Comment,
    Declaration,
    Doctype,
    MarkupResemblesLocatorWarning,
    NavigableString,
    ProcessingInstruction,
)


DEFAULT_ALLOWED_TAGS = ("p", "br", "strong", "b", "em", "i", "a", "ul", "ol", "li")
DEFAULT_ALLOWED_ATTRIBUTES = {"a": ("href", "target")}
DEFAULT_ALLOWED_SCHEMES = ("http", "https", "mailto")

# Tags whose content is dropped along with the tag
DROP_CONTENT_TAGS = ("script", "style", "textarea", "option", "noscript")
URL_ATTRIBUTES = frozenset(["href", "src", "action", "formaction", "cite", "background", "poster"])

_CDATA = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_SCHEME = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):")
# Browsers ignore these inside a URL, so "java\tscript:" is still javascript:
_URL_NOISE = re.compile(r"[\x00-\x20\x7f]+")

ELLIPSIS = "..."

# Titles that look like URLs or file names are still markup to us
warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)


def unwrap_cdata(text: str) -> str:
    """<![CDATA[ ... ]]> -> inner text (non-greedy, across lines)."""
    return _CDATA.sub(r"\1", text)


def scheme_allowed(value: str, allowed_schemes) -> bool:
    """Relative URLs have no scheme and are allowed."""
    cleaned = _URL_NOISE.sub("", value)
    m = _SCHEME.match(cleaned)
    if m is None:
        return True
    return m.group(1).lower() in {s.lower() for s in allowed_schemes}


def sanitize_html(
    html: str,
    *,
    allowed_tags=DEFAULT_ALLOWED_TAGS,
    allowed_attributes=None,
    allowed_schemes=DEFAULT_ALLOWED_SCHEMES,
) -> str:
    if not html:
        return ""
    if allowed_attributes is None:
        allowed_attributes = DEFAULT_ALLOWED_ATTRIBUTES
    allowed = {t.lower() for t in allowed_tags}

    soup = BeautifulSoup(html, "html.parser")

    # Non-display content goes first so unwrapping never exposes it
    while True:
        tag = soup.find(list(DROP_CONTENT_TAGS))
        if tag is None:
            break
        tag.decompose()

    for node in soup.find_all(string=True):
        if isinstance(node, CData):
            node.replace_with(NavigableString(str(node)))
        elif isinstance(node, (Comment, Declaration, Doctype, ProcessingInstruction)):
            node.extract()

    for tag in soup.find_all(True):
        if tag.name not in allowed:
            tag.unwrap()
            continue

        keep = set(allowed_attributes.get(tag.name, ()))
        for attr in list(tag.attrs):
            if attr not in keep:
                del tag[attr]
                continue
            value = tag[attr]
            if isinstance(value, list):
                value = " ".join(value)
            if attr in URL_ATTRIBUTES and not scheme_allowed(value, allowed_schemes):
                del tag[attr]

    return str(soup)


def strip_tags(text: str) -> str:
    """Sanitize with zero allowed tags: plain (escaped) text."""
    return sanitize_html(text, allowed_tags=(), allowed_attributes={})


def truncate(text: str, max_chars: int) -> str:
    """Cut at max_chars and append "..." only when something was cut."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + ELLIPSIS
