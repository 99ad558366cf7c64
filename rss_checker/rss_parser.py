"""
RSS/Atom feed parsing module.

Extracts the newest entry of a feed document using feedparser,
after the dialect has been identified by the detector.
"""

import io
import logging
import xml.etree.ElementTree as ET
import xml.sax
from dataclasses import dataclass
from typing import Any

import feedparser

from rss_checker.detector import FeedType, detect_feed_type

logger = logging.getLogger(__name__)


class FeedParseError(Exception):
    """Base class for errors raised while parsing a feed document."""

    pass


class UnsupportedFormatError(FeedParseError):
    """Raised when a document is neither Atom nor RSS."""

    def __init__(self, message: str = "unsupported feed format"):
        super().__init__(message)


class MalformedDocumentError(FeedParseError):
    """Raised when a detected feed is not well-formed XML."""

    def __init__(self, feed_type: FeedType, cause: Exception):
        self.feed_type = feed_type
        self.cause = cause
        super().__init__(f"parsing {feed_type} feed: {cause}")


@dataclass(frozen=True)
class ParsedFeed:
    """
    Newest entry of a parsed feed.

    Attributes
    ----------
    feed_type : FeedType
        Dialect the document was decoded as.
    title : str
        Trimmed title of the newest entry.
    latest_link : str
        Trimmed link (or guid) of the newest entry, empty if the
        feed has no entries.
    """

    feed_type: FeedType
    title: str = ""
    latest_link: str = ""


def _atom_link(entry: Any) -> str:
    """Return the href of the first link element of an Atom entry."""
    links = entry.get("links") or []
    if not links:
        return ""
    return (links[0].get("href") or "").strip()


def _raw_atom_href(body: bytes) -> str | None:
    """
    Return the first entry's first link href exactly as written.

    feedparser resolves hrefs against ``xml:base`` while the registry
    keeps the attribute value untouched. Returns None if the document
    cannot be read strictly or has no such link.
    """
    try:
        root = ET.fromstring(body)
    except (ET.ParseError, ValueError):
        return None

    for child in root:
        if child.tag.rsplit("}", 1)[-1] != "entry":
            continue
        for element in child:
            if element.tag.rsplit("}", 1)[-1] == "link" and element.get("href") is not None:
                return element.get("href").strip()
        return None
    return None


def _rss_link(entry: Any) -> str:
    """Return the link of an RSS item, falling back to its guid."""
    link = (entry.get("link") or "").strip()
    if link:
        return link
    return (entry.get("id") or "").strip()


def parse_feed(body: bytes) -> ParsedFeed:
    """
    Parse a feed document and return its newest entry.

    Feeds are expected to list entries newest-first, so the first
    entry in document order is taken as the latest one.

    Parameters
    ----------
    body : bytes
        Raw feed document.

    Returns
    -------
    ParsedFeed
        The newest entry, or an empty title and link for a feed
        without entries.

    Raises
    ------
    UnsupportedFormatError
        If the document is neither Atom nor RSS.
    MalformedDocumentError
        If the document is not well-formed XML.
    """
    # Some servers send leading newlines, which breaks XML declaration parsing
    body = body.lstrip()
    feed_type = detect_feed_type(body)

    if feed_type is FeedType.UNKNOWN:
        raise UnsupportedFormatError()

    parsed: Any = feedparser.parse(io.BytesIO(body))

    if parsed.bozo and isinstance(parsed.bozo_exception, xml.sax.SAXException):
        raise MalformedDocumentError(feed_type, parsed.bozo_exception)
    if parsed.bozo and parsed.bozo_exception:
        logger.debug("Feed has minor parsing issues: %s", parsed.bozo_exception)

    if not parsed.entries:
        return ParsedFeed(feed_type=feed_type)

    entry = parsed.entries[0]
    if feed_type is FeedType.ATOM:
        latest_link = _atom_link(entry)
        if latest_link and b"xml:base" in body:
            latest_link = _raw_atom_href(body) or latest_link
    else:
        latest_link = _rss_link(entry)

    return ParsedFeed(
        feed_type=feed_type,
        title=(entry.get("title") or "").strip(),
        latest_link=latest_link,
    )
