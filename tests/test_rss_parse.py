import pytest

from src.error_codes import PARSE_ERROR
from src.rss_parse import RSSParseError, parse_feed, parse_rss

GOOD_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">
  <channel>
    <title>Example Feed</title>
    <atom:link href="https://example.com/feed.xml" rel="self" type="application/rss+xml"/>
    <link>https://example.com</link>
    <description>All the examples</description>
    <item>
      <title>First</title>
      <link>https://example.com/1</link>
      <guid>urn:example:1</guid>
      <pubDate>Fri, 10 Jan 2026 12:00:00 GMT</pubDate>
      <description><![CDATA[<p>Evidence one</p>]]></description>
    </item>
    <item>
      <title>Second</title>
      <link>https://example.com/2</link>
      <pubDate>Fri, 10 Jan 2026 13:00:00 GMT</pubDate>
      <description>Evidence two</description>
    </item>
  </channel>
</rss>
"""

def test_parse_rss_valid_xml_returns_feed_info_and_items():
    feed = parse_rss(GOOD_RSS, feed_name="example")
    assert feed.title == "Example Feed"
    assert feed.description == "All the examples"
    assert feed.link == "https://example.com"  # text <link>, not the atom self link
    assert len(feed.items) == 2
    assert feed.items[0].title == "First"
    assert feed.items[0].guid == "urn:example:1"
    assert feed.items[0].description == "<p>Evidence one</p>"
    assert feed.items[0].pub_date == "Fri, 10 Jan 2026 12:00:00 GMT"


def test_parse_rss_preserves_item_order():
    feed = parse_rss(GOOD_RSS, feed_name="example")
    assert [x.title for x in feed.items] == ["First", "Second"]


def test_parse_rss_guid_falls_back_to_link():
    feed = parse_rss(GOOD_RSS, feed_name="example")
    assert feed.items[1].guid == "https://example.com/2"


SPARSE_RSS = """<rss version="2.0">
  <channel>
    <item>
      <category>misc</category>
    </item>
  </channel>
</rss>
"""

def test_parse_rss_missing_fields_get_placeholders():
    feed = parse_rss(SPARSE_RSS, feed_name="Fallback Name")
    assert feed.title == "Fallback Name"
    assert feed.description == ""
    assert feed.link == ""

    item = feed.items[0]
    assert item.title == "No Title"
    assert item.link == "#"
    assert item.description == ""
    assert item.pub_date == ""
    assert item.guid == "#"


def test_parse_rss_caps_item_count(make_rss):
    feed = parse_rss(make_rss(40), feed_name="example", max_items=30)
    assert len(feed.items) == 30
    assert feed.items[-1].title == "Item 29"


ATOM = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <subtitle>Atom subtitle</subtitle>
  <link rel="self" href="https://atom.example.com/feed"/>
  <link rel="alternate" href="https://atom.example.com/"/>
  <entry>
    <title>Atom entry</title>
    <link rel="alternate" href="https://atom.example.com/entry-1"/>
    <id>tag:atom.example.com,2026:1</id>
    <updated>2026-01-10T12:00:00Z</updated>
    <summary>Short summary</summary>
  </entry>
</feed>
"""

def test_parse_atom_feed():
    feed = parse_rss(ATOM, feed_name="atom")
    assert feed.title == "Atom Example"
    assert feed.description == "Atom subtitle"
    assert feed.link == "https://atom.example.com/"

    item = feed.items[0]
    assert item.title == "Atom entry"
    assert item.link == "https://atom.example.com/entry-1"
    assert item.guid == "tag:atom.example.com,2026:1"
    assert item.pub_date == "2026-01-10T12:00:00Z"
    assert item.description == "Short summary"


RECOVERABLE_RSS = """
<rss version="2.0">
  <channel>
    <title>AT&T news</title>
    <item>
      <title>Tom &amp; Jerry&nbsp;return</title>
      <link>https://example.com/tj?a=1&b=2</link>
      <pubDate>Fri, 10 Jan 2026 12:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""

def test_parse_rss_repairs_recoverable_markup():
    feed = parse_rss(RECOVERABLE_RSS, feed_name="example")
    assert feed.title == "AT&T news"
    assert feed.items[0].title == "Tom & Jerry\xa0return"
    assert feed.items[0].link == "https://example.com/tj?a=1&b=2"


def test_parse_rss_invalid_xml_raises():
    bad = "<rss><channel><item></rss>"  # malformed / mismatched tags
    with pytest.raises(RSSParseError):
        parse_rss(bad, feed_name="example")


def test_parse_rss_document_without_feed_structure_raises():
    with pytest.raises(RSSParseError):
        parse_rss("<html><body><p>Not a feed</p></body></html>", feed_name="example")


def test_parse_feed_degrades_to_error_result():
    result = parse_feed("this is not xml at all", feed_name="example")
    assert result.ok is False
    assert result.feed is None
    assert result.error_code == PARSE_ERROR


def test_parse_feed_ok_result():
    result = parse_feed(GOOD_RSS, feed_name="example")
    assert result.ok is True
    assert result.error_code is None
    assert len(result.feed.items) == 2
