# src/rss_parse.py
from __future__ import annotations

from dataclasses import dataclass, field
from html.entities import name2codepoint
import logging
import re
import xml.etree.ElementTree as ET

from src.error_codes import PARSE_ERROR
from src.logging_utils import log_event


DEFAULT_MAX_ITEMS = 50

NO_TITLE = "No Title"
NO_LINK = "#"

# Characters XML 1.0 forbids even when escaped
_ILLEGAL_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
# "&" that does not start a character or entity reference
_BARE_AMPERSAND = re.compile(r"&(?!#\d+;|#x[0-9a-fA-F]+;|[A-Za-z][A-Za-z0-9]*;)")
_NAMED_ENTITY = re.compile(r"&([A-Za-z][A-Za-z0-9]*);")
_XML_ENTITIES = frozenset(["amp", "lt", "gt", "quot", "apos"])


class RSSParseError(ValueError):
    """Raised when feed XML cannot yield any structure (maps to PARSE_ERROR)."""


@dataclass(frozen=True)
class RawItem:
    title: str
    link: str
    description: str
    pub_date: str
    guid: str


@dataclass(frozen=True)
class ParsedFeed:
    title: str
    description: str
    link: str
    items: list[RawItem] = field(default_factory=list)


@dataclass
class ParseResult:
    ok: bool
    feed: ParsedFeed | None = None
    error_code: str | None = None
    error_message: str | None = None


# ---------- element lookups ----------
# Every lookup returns None for "absent"; callers map None to the documented default.

def local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    if "}" in tag:
        return tag.rsplit("}", 1)[-1]
    return tag


def child_text(elem: ET.Element, names: tuple[str, ...]) -> str | None:
    """Text of the first direct child matching one of names (by local name, in preference order)."""
    for name in names:
        for child in elem:
            if local_name(child.tag) != name:
                continue
            text = "".join(child.itertext()).strip()
            if text:
                return text
    return None


def child_link(elem: ET.Element) -> str | None:
    """
    RSS <link>text</link> or Atom <link href="..."/>.
    Prefers element text, then an alternate href, then any other href.
    """
    fallback_href: str | None = None
    for child in elem:
        if local_name(child.tag) != "link":
            continue

        text = (child.text or "").strip()
        if text:
            return text

        href = (child.attrib.get("href") or "").strip()
        rel = (child.attrib.get("rel") or "").strip()
        if href and rel in ("", "alternate"):
            return href
        if href and fallback_href is None:
            fallback_href = href

    return fallback_href


def find_first(root: ET.Element, names: set[str]) -> ET.Element | None:
    for elem in root.iter():
        if local_name(elem.tag) in names:
            return elem
    return None


# ---------- parsing ----------

def repair_xml(xml: str) -> str:
    """
    Fix the markup faults real feeds commonly ship with:
    leading junk before the first tag, illegal control characters,
    HTML named entities, bare ampersands.
    """
    text = xml.lstrip("\ufeff")
    start = text.find("<")
    if start > 0:
        text = text[start:]
    text = _ILLEGAL_XML_CHARS.sub("", text)

    def _entity(m: re.Match) -> str:
        name = m.group(1)
        if name in _XML_ENTITIES:
            return m.group(0)
        codepoint = name2codepoint.get(name)
        if codepoint is None:
            return f"&amp;{name};"
        return f"&#{codepoint};"

    text = _NAMED_ENTITY.sub(_entity, text)
    return _BARE_AMPERSAND.sub("&amp;", text)


def _parse_root(xml: str, *, feed_name: str) -> ET.Element:
    try:
        return ET.fromstring(xml)
    except ET.ParseError as exc:
        log_event("feed_xml_recover", level=logging.WARNING, feed=feed_name, error=str(exc))

    try:
        return ET.fromstring(repair_xml(xml))
    except ET.ParseError as exc:
        raise RSSParseError(f"RSS_PARSE_FAIL: malformed XML: {exc}") from exc


def _parse_item(it: ET.Element) -> RawItem:
    title = child_text(it, ("title",))
    link = child_link(it)
    description = child_text(it, ("description", "summary", "content"))
    pub = child_text(it, ("pubDate", "published", "updated", "date"))
    guid = child_text(it, ("guid", "id"))

    link = link if link is not None else NO_LINK
    return RawItem(
        title=title if title is not None else NO_TITLE,
        link=link,
        description=description if description is not None else "",
        pub_date=pub if pub is not None else "",
        guid=guid if guid is not None else link,
    )


def parse_rss(xml: str, *, feed_name: str, max_items: int = DEFAULT_MAX_ITEMS) -> ParsedFeed:
    """
    Convert an RSS 2.0 / RSS 1.0 / Atom document into a ParsedFeed.

    Rules:
    - Recoverable markup errors are logged and repaired once
    - No recoverable document, or no channel/feed and no items -> RSSParseError
    - At most max_items item/entry elements, document order preserved
    - Missing fields get placeholders: "No Title", "#", "", "", guid -> link
    """
    if not xml or not xml.strip():
        raise RSSParseError("RSS_PARSE_FAIL: empty document")

    root = _parse_root(xml, feed_name=feed_name)

    root_name = local_name(root.tag)
    if root_name in ("channel", "feed"):
        channel = root
    else:
        channel = find_first(root, {"channel", "feed"})

    items = [elem for elem in root.iter() if local_name(elem.tag) in ("item", "entry")]

    if channel is None and not items:
        raise RSSParseError("RSS_PARSE_FAIL: no channel or item elements")

    if channel is not None:
        title = child_text(channel, ("title",))
        description = child_text(channel, ("description", "subtitle"))
        link = child_link(channel)
    else:
        title = description = link = None

    return ParsedFeed(
        title=title if title is not None else feed_name,
        description=description if description is not None else "",
        link=link if link is not None else "",
        items=[_parse_item(it) for it in items[:max_items]],
    )


def parse_feed(xml: str, *, feed_name: str, max_items: int = DEFAULT_MAX_ITEMS) -> ParseResult:
    """Result-typed wrapper around parse_rss; never raises for malformed feeds."""
    try:
        feed = parse_rss(xml, feed_name=feed_name, max_items=max_items)
    except RSSParseError as exc:
        return ParseResult(ok=False, error_code=PARSE_ERROR, error_message=str(exc))
    return ParseResult(ok=True, feed=feed)
