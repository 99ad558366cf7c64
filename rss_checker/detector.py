"""
Feed format detection.

Classifies a raw feed document as Atom, RSS or unknown without
any prior knowledge of what the URL is supposed to serve.
"""

import logging
import xml.etree.ElementTree as ET
from enum import Enum

logger = logging.getLogger(__name__)

ATOM_NAMESPACE = b"http://www.w3.org/2005/Atom"


class FeedType(Enum):
    """Supported feed dialects."""

    UNKNOWN = "Unknown"
    ATOM = "Atom"
    RSS = "RSS"

    def __str__(self) -> str:
        return self.value


def _root_local_name(body: bytes) -> str | None:
    """Return the local name of the document root, or None if not XML."""
    try:
        root = ET.fromstring(body.lstrip())
    except (ET.ParseError, ValueError):
        return None
    # "{namespace}feed" -> "feed"
    return root.tag.rsplit("}", 1)[-1]


def detect_feed_type(body: bytes) -> FeedType:
    """
    Detect the dialect of a feed document.

    Cheap substring checks run first; a structural XML parse is only
    attempted when the usual markers are missing.

    Parameters
    ----------
    body : bytes
        Raw document as returned by the server.

    Returns
    -------
    FeedType
        The detected dialect, ``FeedType.UNKNOWN`` if none matched.
    """
    if b"<feed" in body and ATOM_NAMESPACE in body:
        return FeedType.ATOM

    if b"<rss" in body or b"<rdf:RDF" in body:
        return FeedType.RSS

    local_name = _root_local_name(body)
    if local_name == "feed":
        return FeedType.ATOM
    if local_name == "rss":
        return FeedType.RSS

    logger.debug("Could not detect feed type (root element: %s)", local_name)
    return FeedType.UNKNOWN
