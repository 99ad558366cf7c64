"""
Main entry point for RSS Checker.

Either registers new sites interactively or checks every registered
feed once and reports the ones with a new entry.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import coloredlogs
import yaml
from pydantic import ValidationError

from rss_checker.config import AppConfig, load_config
from rss_checker.detector import FeedType
from rss_checker.interactive import InputStreamError, add_sites
from rss_checker.notifier import ConsoleNotifier, Notifier
from rss_checker.poller import FeedPoller
from rss_checker.reporter import ChangeReporter, CheckReport
from rss_checker.storage import RegistryError, SiteRegistry

logger = logging.getLogger(__name__)


class RSSChecker:
    """
    Main RSS checker application.

    Coordinates the registry, the poller and the change reporter.
    """

    def __init__(
        self,
        config: AppConfig,
        database_path: str | Path | None = None,
        notifier: Notifier | None = None,
    ):
        """
        Initialize the RSS checker.

        Parameters
        ----------
        config : AppConfig
            Validated application configuration.
        database_path : str | Path | None
            Override for the registry path from the configuration.
        notifier : Notifier | None
            Where report lines go. Defaults to the console.
        """
        self.config = config
        self.database_path = Path(database_path or config.storage.database_path)
        self.notifier = notifier or ConsoleNotifier()
        self.registry: SiteRegistry | None = None

    def load_registry(self) -> SiteRegistry:
        """
        Load the site registry.

        Raises
        ------
        RegistryError
            If the registry cannot be read or parsed.
        """
        self.registry = SiteRegistry.load(self.database_path)
        logger.debug("Registry %s holds %d site(s)", self.database_path, len(self.registry))
        return self.registry

    def _new_poller(self) -> FeedPoller:
        return FeedPoller(
            timeout=self.config.defaults.request_timeout,
            max_workers=self.config.defaults.max_workers,
        )

    async def check(self) -> CheckReport | None:
        """
        Check every registered feed once.

        Returns
        -------
        CheckReport | None
            The report, or None if no site is registered.

        Raises
        ------
        RegistryError
            If the registry cannot be loaded or saved.
        """
        registry = self.registry if self.registry is not None else self.load_registry()

        if not registry:
            self.notifier.send_line("No sites configured. Use -a to add sites.")
            return None

        self.notifier.send_line(
            f"Checking {len(registry)} sites concurrently "
            f"(timeout: {self.config.defaults.request_timeout}s, "
            f"max workers: {self.config.defaults.max_workers})...\n"
        )

        async with self._new_poller() as poller:
            outcomes = await poller.check_all(registry.snapshot())

        return ChangeReporter(self.notifier).process(outcomes, registry)

    def probe(self, url: str) -> FeedType:
        """Fetch a URL once, with its own event loop, and detect its type."""

        async def _probe() -> FeedType:
            async with self._new_poller() as poller:
                return await poller.probe(url)

        return asyncio.run(_probe())

    def add(self) -> int:
        """
        Run the interactive add-site loop.

        Raises
        ------
        InputStreamError
            If the input ends while a name or URL is expected.
        RegistryError
            If the registry cannot be loaded or saved.
        """
        registry = self.registry if self.registry is not None else self.load_registry()
        return add_sites(registry, self.probe)


def setup_logging(verbose: bool = False) -> None:
    """
    Configure application logging.

    Parameters
    ----------
    verbose : bool
        If True, set log level to DEBUG.
    """
    level = logging.DEBUG if verbose else logging.INFO

    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description="Check RSS/Atom feeds for new entries",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-a",
        "--add",
        action="store_true",
        help="Add new site mode",
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.yaml",
        help="Path to optional configuration file",
    )
    parser.add_argument(
        "-d",
        "--database",
        default=None,
        help="Path to the site registry (overrides the configuration)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_arg_parser().parse_args(argv)

    setup_logging(args.verbose)

    try:
        config = load_config(args.config)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.error("Invalid configuration file %s: %s", args.config, e)
        sys.exit(1)

    checker = RSSChecker(config, database_path=args.database)

    try:
        checker.load_registry()
    except RegistryError as e:
        logger.error("Error reading sites: %s", e)
        sys.exit(1)

    if args.add:
        try:
            checker.add()
        except (InputStreamError, RegistryError) as e:
            logger.error("Error in add mode: %s", e)
            sys.exit(1)
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        return

    try:
        asyncio.run(checker.check())
    except RegistryError as e:
        logger.error("Error checking feeds: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
