"""
Interactive site registration.

Prompts for site names and feed URLs, probes each feed once and
saves the registry after every added site.
"""

import logging
import sys
from collections.abc import Callable
from typing import TextIO

from rss_checker.detector import FeedType
from rss_checker.poller import CheckError
from rss_checker.storage import SiteRegistry

logger = logging.getLogger(__name__)


class InputStreamError(Exception):
    """Raised when the input stream ends while a value is required."""

    pass


def _ask(prompt: str, reader: TextIO, writer: TextIO, what: str) -> str:
    writer.write(prompt)
    writer.flush()
    line = reader.readline()
    if not line:
        raise InputStreamError(f"error reading {what}: end of input")
    return line.strip()


def _confirm(prompt: str, reader: TextIO, writer: TextIO) -> bool:
    # End of input counts as "no"
    writer.write(prompt)
    writer.flush()
    return reader.readline().strip().lower() == "y"


def prompt_site(registry: SiteRegistry, reader: TextIO, writer: TextIO) -> tuple[str, str]:
    """
    Ask for a new site name and its feed URL.

    Re-prompts until a non-empty, unregistered name and a non-empty
    URL are given.

    Raises
    ------
    InputStreamError
        If the input ends before both values were read.
    """
    while True:
        name = _ask("Enter Site Name: ", reader, writer, "site name")
        if not name:
            writer.write("Site name cannot be empty\n")
            continue
        if name in registry:
            writer.write(f"Site '{name}' already exists!\n")
            continue

        url = _ask("Enter Site RSS URL: ", reader, writer, "RSS URL")
        if not url:
            writer.write("RSS URL cannot be empty\n")
            continue

        return name, url


def add_sites(
    registry: SiteRegistry,
    probe: Callable[[str], FeedType],
    reader: TextIO | None = None,
    writer: TextIO | None = None,
) -> int:
    """
    Run the interactive add-site loop.

    Parameters
    ----------
    registry : SiteRegistry
        Registry to add sites to. Saved after each addition.
    probe : Callable[[str], FeedType]
        Fetches a URL and returns its detected feed type, raising on
        fetch failure.
    reader : TextIO | None
        Input stream, stdin by default.
    writer : TextIO | None
        Output stream, stdout by default.

    Returns
    -------
    int
        Number of sites added.

    Raises
    ------
    InputStreamError
        If the input ends while a name or URL is expected.
    RegistrySaveError
        If the registry cannot be saved.
    """
    reader = reader or sys.stdin
    writer = writer or sys.stdout
    added = 0

    while True:
        name, url = prompt_site(registry, reader, writer)

        writer.write("Testing feed... ")
        writer.flush()
        try:
            feed_type = probe(url)
        except CheckError as e:
            logger.debug("Probing %s failed", url, exc_info=True)
            writer.write(f"FAILED: {e}\n")
            if not _confirm("Do you want to save anyway? (y/n): ", reader, writer):
                writer.write("Site not saved\n")
                continue
        else:
            writer.write(f"OK ({feed_type} feed detected)\n")

        registry.add(name, url)
        registry.save()
        added += 1
        logger.info("Added site '%s' (%s)", name, url)
        writer.write(f"✓ Successfully added '{name}'\n")

        if not _confirm("\nAdd another site? (y/n): ", reader, writer):
            break
        writer.write("\n")

    return added
