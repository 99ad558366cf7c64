"""
Concurrent feed polling.

Fetches every registered feed with a bounded number of requests in
flight and turns each fetch into exactly one check outcome.
"""

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

import aiohttp

from rss_checker.detector import FeedType, detect_feed_type
from rss_checker.rss_parser import FeedParseError, ParsedFeed, parse_feed
from rss_checker.storage import Site

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
DEFAULT_MAX_WORKERS = 50

# Transport errors do not reliably expose a typed timeout, so their text
# is inspected as a fallback.
TIMEOUT_MARKERS = ("timeout", "timed out", "deadline")


class CheckError(Exception):
    """Base class for per-site check failures."""

    pass


class FetchErrorKind(Enum):
    """Categories of fetch failures."""

    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    BODY_READ = "body_read"


class FetchError(CheckError):
    """Raised when a feed could not be downloaded."""

    def __init__(self, kind: FetchErrorKind, message: str):
        self.kind = kind
        super().__init__(message)

    @property
    def is_timeout(self) -> bool:
        return self.kind is FetchErrorKind.TIMEOUT


class ParseError(CheckError):
    """Raised when a downloaded feed could not be parsed."""

    def __init__(self, cause: FeedParseError):
        self.cause = cause
        super().__init__(f"parse error: {cause}")


class EmptyFeedError(CheckError):
    """A feed parsed fine but has no entry to compare against."""

    def __init__(self, feed_type: FeedType, elapsed: float):
        self.feed_type = feed_type
        self.elapsed = elapsed
        super().__init__(f"no entries found ({feed_type}) - checked in {elapsed:.2f}s")


@dataclass(frozen=True)
class CheckOutcome:
    """
    Result of checking one site.

    Attributes
    ----------
    site_name : str
        Registry key of the checked site.
    site : Site
        Snapshot of the site as it was when the check started.
    result : ParsedFeed | CheckError
        The parsed newest entry, or the reason there is none.
    elapsed : float
        Duration of the check in seconds.
    """

    site_name: str
    site: Site
    result: ParsedFeed | CheckError
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return isinstance(self.result, ParsedFeed)


def is_timeout_error(error: BaseException) -> bool:
    """
    Tell whether a transport error looks like a timeout.

    Parameters
    ----------
    error : BaseException
        Error raised by the HTTP client.

    Returns
    -------
    bool
        True for typed timeouts and for errors whose text mentions one.
    """
    if isinstance(error, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
        return True
    text = str(error).lower()
    return any(marker in text for marker in TIMEOUT_MARKERS)


class FeedPoller:
    """
    Async feed poller.

    Fetches feeds using a shared aiohttp session, parses them and
    classifies each result. At most ``max_workers`` fetches run at
    the same time.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """
        Initialize the poller.

        Parameters
        ----------
        timeout : int
            HTTP request timeout in seconds, covering the body read.
        max_workers : int
            Maximum number of fetches in flight.
        """
        if max_workers <= 0:
            raise ValueError("max_workers must be greater than zero")
        self.timeout = timeout
        self.max_workers = max_workers
        self._session: aiohttp.ClientSession | None = None
        self._semaphore: asyncio.Semaphore | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def _get_semaphore(self) -> asyncio.Semaphore:
        # Must be created inside the running loop
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_workers)
        return self._semaphore

    async def _fetch(self, url: str) -> bytes:
        """
        Download a feed document.

        Parameters
        ----------
        url : str
            Feed URL.

        Returns
        -------
        bytes
            Full response body.

        Raises
        ------
        FetchError
            If the request or the body read fails.
        """
        session = await self._get_session()

        # Hosts that fail IDNA encoding raise UnicodeError, a ValueError
        try:
            async with session.get(url) as response:
                try:
                    body = await response.read()
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    detail = str(e) or type(e).__name__
                    raise FetchError(
                        FetchErrorKind.BODY_READ,
                        f"error reading response: {detail}",
                    ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            if is_timeout_error(e):
                raise FetchError(
                    FetchErrorKind.TIMEOUT,
                    f"timeout exceeded after {self.timeout}s",
                ) from e
            raise FetchError(FetchErrorKind.TRANSPORT, f"URL fetch error: {e}") from e

        logger.debug("Fetched %s (HTTP %d, %d bytes)", url, response.status, len(body))
        return body

    async def check_site(self, site_name: str, site: Site) -> CheckOutcome:
        """
        Check a single site.

        Failures are returned as the outcome result, never raised.

        Parameters
        ----------
        site_name : str
            Registry key of the site.
        site : Site
            Snapshot of the site to check.

        Returns
        -------
        CheckOutcome
            The outcome of the check.
        """
        start = time.monotonic()

        try:
            async with self._get_semaphore():
                body = await self._fetch(site.rss_url)
        except FetchError as e:
            logger.debug("Fetching '%s' failed: %s", site_name, e)
            return CheckOutcome(site_name, site, e, time.monotonic() - start)

        try:
            parsed = parse_feed(body)
        except FeedParseError as e:
            logger.debug("Parsing '%s' failed: %s", site_name, e)
            return CheckOutcome(site_name, site, ParseError(e), time.monotonic() - start)

        elapsed = time.monotonic() - start
        if not parsed.latest_link:
            return CheckOutcome(site_name, site, EmptyFeedError(parsed.feed_type, elapsed), elapsed)

        return CheckOutcome(site_name, site, parsed, elapsed)

    async def _guarded_check(self, site_name: str, site: Site) -> CheckOutcome:
        """Check a site, turning unexpected errors into an outcome."""
        try:
            return await self.check_site(site_name, site)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Unexpected error checking '%s'", site_name)
            return CheckOutcome(site_name, site, CheckError(f"unexpected error: {e}"))

    async def check_all(self, sites: Mapping[str, Site]) -> list[CheckOutcome]:
        """
        Check every site concurrently.

        Parameters
        ----------
        sites : Mapping[str, Site]
            Sites to check, keyed by name.

        Returns
        -------
        list[CheckOutcome]
            Exactly one outcome per site, in no particular order.
        """
        logger.info(
            "Checking %d site(s) with up to %d concurrent fetches",
            len(sites),
            self.max_workers,
        )
        tasks = [self._guarded_check(name, site) for name, site in sites.items()]
        return list(await asyncio.gather(*tasks))

    async def probe(self, url: str) -> FeedType:
        """
        Fetch a URL once and detect its feed type.

        Raises
        ------
        FetchError
            If the URL cannot be fetched.
        """
        body = await self._fetch(url)
        return detect_feed_type(body)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
            logger.debug("HTTP session closed")

    async def __aenter__(self) -> "FeedPoller":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
