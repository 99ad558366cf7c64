"""
Change reporting.

Compares check outcomes against the site registry, reports one line
per site, advances the registry and persists it when needed.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from rss_checker.notifier import ConsoleNotifier, Notifier
from rss_checker.poller import CheckOutcome, EmptyFeedError, FetchError
from rss_checker.rss_parser import ParsedFeed
from rss_checker.storage import SiteRegistry

logger = logging.getLogger(__name__)


class OutcomeStatus(Enum):
    """How a check outcome was classified."""

    TIMEOUT = "timeout"
    ERROR = "error"
    EMPTY_FEED = "empty_feed"
    FIRST_CHECK = "first_check"
    NEW_ENTRY = "new_entry"
    UNCHANGED = "unchanged"


@dataclass
class CheckReport:
    """
    Aggregated result of one check run.

    Attributes
    ----------
    statuses : dict[str, OutcomeStatus]
        Classification of each checked site.
    lines : list[str]
        Rendered report lines, in emission order.
    saved : bool
        Whether the registry was written back.
    """

    statuses: dict[str, OutcomeStatus] = field(default_factory=dict)
    lines: list[str] = field(default_factory=list)
    saved: bool = False

    @property
    def updated(self) -> list[str]:
        """Names of the sites whose latest entry advanced."""
        return sorted(
            name
            for name, status in self.statuses.items()
            if status in (OutcomeStatus.FIRST_CHECK, OutcomeStatus.NEW_ENTRY)
        )


def classify(outcome: CheckOutcome) -> OutcomeStatus:
    """
    Classify a single outcome against the site snapshot it carries.

    Parameters
    ----------
    outcome : CheckOutcome
        The outcome to classify.

    Returns
    -------
    OutcomeStatus
        Exactly one status for the outcome.
    """
    result = outcome.result
    if isinstance(result, FetchError) and result.is_timeout:
        return OutcomeStatus.TIMEOUT
    if isinstance(result, EmptyFeedError):
        return OutcomeStatus.EMPTY_FEED
    if not isinstance(result, ParsedFeed):
        return OutcomeStatus.ERROR

    saved_link = outcome.site.latest_entry.strip()
    if not saved_link:
        return OutcomeStatus.FIRST_CHECK
    if result.latest_link != saved_link:
        return OutcomeStatus.NEW_ENTRY
    return OutcomeStatus.UNCHANGED


def render_line(outcome: CheckOutcome, status: OutcomeStatus) -> str:
    """Render the report line for a classified outcome."""
    name = outcome.site_name
    result = outcome.result

    if status is OutcomeStatus.TIMEOUT:
        return f"{name} → TIMEOUT: {result}"
    if status is OutcomeStatus.EMPTY_FEED:
        return f"{name} → {result}"
    if status is OutcomeStatus.ERROR:
        return f"{name} → ERROR: {result}"
    if status is OutcomeStatus.UNCHANGED:
        return f"(-_-) {name}"

    if not isinstance(result, ParsedFeed):
        raise TypeError(f"{status.name} outcome for '{name}' carries no parsed feed")
    if status is OutcomeStatus.FIRST_CHECK:
        return f"{name} → First time checking ({result.feed_type})"
    title = result.title or "Untitled"
    return f"{name} → NEW ENTRY: {title} - {result.latest_link} ({result.feed_type})"


class ChangeReporter:
    """
    Applies check outcomes to the site registry.

    Outcomes are handled in site-name order, so the report and the
    final registry do not depend on the order fetches completed in.
    """

    def __init__(self, notifier: Notifier | None = None):
        """
        Initialize the reporter.

        Parameters
        ----------
        notifier : Notifier | None
            Where report lines go. Defaults to the console.
        """
        self.notifier = notifier or ConsoleNotifier()

    def _emit(self, report: CheckReport, line: str) -> None:
        report.lines.append(line)
        self.notifier.send_line(line)

    def process(
        self, outcomes: Iterable[CheckOutcome], registry: SiteRegistry
    ) -> CheckReport:
        """
        Report every outcome and update the registry.

        The registry is saved once, and only if at least one site's
        latest entry advanced.

        Parameters
        ----------
        outcomes : Iterable[CheckOutcome]
            One outcome per checked site, in any order.
        registry : SiteRegistry
            Registry to update.

        Returns
        -------
        CheckReport
            The aggregated report.

        Raises
        ------
        RegistrySaveError
            If the updated registry cannot be persisted.
        """
        report = CheckReport()
        dirty = False

        for outcome in sorted(outcomes, key=lambda o: o.site_name):
            status = classify(outcome)
            report.statuses[outcome.site_name] = status
            self._emit(report, render_line(outcome, status))

            # render_line rejects advancing statuses without a parsed feed
            if isinstance(outcome.result, ParsedFeed) and status in (
                OutcomeStatus.FIRST_CHECK,
                OutcomeStatus.NEW_ENTRY,
            ):
                registry.update_latest(outcome.site_name, outcome.result.latest_link)
                dirty = True
            elif status in (OutcomeStatus.TIMEOUT, OutcomeStatus.ERROR):
                logger.debug("Check of '%s' failed: %s", outcome.site_name, outcome.result)

        if dirty:
            registry.save()
            report.saved = True
            self._emit(report, "✓ Site database updated")
            logger.info("Updated %d site(s): %s", len(report.updated), ", ".join(report.updated))

        return report
