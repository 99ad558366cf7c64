"""
JSON storage for the site registry.

Keeps the mapping of site names to feed URLs and the latest entry
seen on each feed, and persists it between runs.
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Base class for site registry errors."""

    pass


class RegistryLoadError(RegistryError):
    """Raised when the registry file cannot be read."""

    pass


class RegistryParseError(RegistryError):
    """Raised when the registry file content is not a valid registry."""

    pass


class RegistrySaveError(RegistryError):
    """Raised when the registry cannot be written back to disk."""

    pass


class Site(BaseModel):
    """
    A registered feed subscription.

    Attributes
    ----------
    rss_url : str
        URL of the RSS/Atom feed.
    latest_entry : str
        Link of the newest entry seen so far, empty if the feed was
        never successfully checked.
    """

    model_config = {"frozen": True}

    rss_url: str
    latest_entry: str = ""


class SiteRegistry:
    """
    In-memory site registry backed by a JSON file.

    Site names are unique and case-sensitive. ``Site`` values are
    immutable snapshots: updates replace the stored value.
    """

    def __init__(self, database_path: str | Path, sites: dict[str, Site] | None = None):
        """
        Initialize the registry.

        Parameters
        ----------
        database_path : str | Path
            Path to the JSON registry file.
        sites : dict[str, Site] | None
            Initial content, empty by default.
        """
        self.database_path = Path(database_path)
        self._sites: dict[str, Site] = dict(sites or {})

    @classmethod
    def load(cls, database_path: str | Path) -> "SiteRegistry":
        """
        Load the registry from disk.

        A missing or empty file yields an empty registry.

        Parameters
        ----------
        database_path : str | Path
            Path to the JSON registry file.

        Returns
        -------
        SiteRegistry
            The loaded registry.

        Raises
        ------
        RegistryLoadError
            If the file exists but cannot be read.
        RegistryParseError
            If the file is not a JSON object of sites.
        """
        database_path = Path(database_path)

        try:
            data = database_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("Registry %s does not exist yet", database_path)
            return cls(database_path)
        except (OSError, UnicodeDecodeError) as e:
            raise RegistryLoadError(f"error reading file: {e}") from e

        if not data.strip():
            return cls(database_path)

        try:
            raw = json.loads(data)
        except json.JSONDecodeError as e:
            raise RegistryParseError(f"error parsing JSON: {e}") from e

        if not isinstance(raw, dict):
            raise RegistryParseError("error parsing JSON: expected an object of sites")

        try:
            sites = {name: Site.model_validate(value) for name, value in raw.items()}
        except ValidationError as e:
            raise RegistryParseError(f"error parsing JSON: {e}") from e

        logger.debug("Loaded %d site(s) from %s", len(sites), database_path)
        return cls(database_path, sites)

    def save(self) -> None:
        """
        Write the registry to disk as indented JSON.

        Raises
        ------
        RegistrySaveError
            If the file cannot be written.
        """
        data = {name: site.model_dump() for name, site in self._sites.items()}

        try:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
            self.database_path.write_text(
                json.dumps(data, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            raise RegistrySaveError(f"error writing {self.database_path}: {e}") from e

        logger.debug("Saved %d site(s) to %s", len(self._sites), self.database_path)

    def add(self, name: str, rss_url: str) -> Site:
        """
        Register a new site with no latest entry.

        Raises
        ------
        KeyError
            If a site with that name already exists.
        """
        if name in self._sites:
            raise KeyError(f"Site '{name}' already exists")
        site = Site(rss_url=rss_url)
        self._sites[name] = site
        return site

    def update_latest(self, name: str, latest_entry: str) -> Site:
        """
        Advance the latest entry of a site.

        An empty link never overwrites a stored one.

        Raises
        ------
        KeyError
            If the site is not registered.
        """
        site = self._sites[name]
        if not latest_entry:
            return site
        site = site.model_copy(update={"latest_entry": latest_entry})
        self._sites[name] = site
        return site

    def snapshot(self) -> dict[str, Site]:
        """Return a shallow copy of the registry content."""
        return dict(self._sites)

    def __getitem__(self, name: str) -> Site:
        return self._sites[name]

    def __contains__(self, name: object) -> bool:
        return name in self._sites

    def __iter__(self) -> Iterator[str]:
        return iter(self._sites)

    def __len__(self) -> int:
        return len(self._sites)
