"""
Shared fixtures for RSS Checker tests.

Provides common test fixtures for use across all test modules.
"""

from pathlib import Path

import pytest

from rss_checker.config import AppConfig, DefaultsConfig, StorageConfig
from rss_checker.storage import Site, SiteRegistry


# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


class RecordingNotifier:
    """Notifier collecting report lines in memory."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def send_line(self, line: str) -> None:
        self.lines.append(line)


def atom_feed(*entries: tuple[str, str]) -> bytes:
    """Build an Atom document from (title, link) pairs."""
    body = "".join(
        f"<entry><title>{title}</title><link href=\"{link}\"/>"
        f"<id>{link}</id></entry>"
        for title, link in entries
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<feed xmlns="http://www.w3.org/2005/Atom">'
        f"<title>Test</title>{body}</feed>"
    ).encode()


def rss_feed(*items: tuple[str, str]) -> bytes:
    """Build an RSS 2.0 document from (title, link) pairs."""
    body = "".join(
        f"<item><title>{title}</title><link>{link}</link></item>"
        for title, link in items
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<rss version="2.0"><channel><title>Test</title>{body}</channel></rss>'
    ).encode()


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_rss_content(fixtures_dir: Path) -> bytes:
    """Return contents of sample RSS feed."""
    return (fixtures_dir / "sample_rss.xml").read_bytes()


@pytest.fixture
def sample_atom_content(fixtures_dir: Path) -> bytes:
    """Return contents of sample Atom feed."""
    return (fixtures_dir / "sample_atom.xml").read_bytes()


@pytest.fixture
def sample_rdf_content(fixtures_dir: Path) -> bytes:
    """Return contents of sample RDF (RSS 1.0) feed."""
    return (fixtures_dir / "sample_rdf.xml").read_bytes()


@pytest.fixture
def sample_config_path(fixtures_dir: Path) -> Path:
    """Return path to sample config file."""
    return fixtures_dir / "sample_config.yaml"


@pytest.fixture
def sample_sites_path(fixtures_dir: Path) -> Path:
    """Return path to sample site registry."""
    return fixtures_dir / "sample_sites.json"


@pytest.fixture
def registry_path(tmp_path: Path) -> Path:
    """Return a registry path inside a temporary directory."""
    return tmp_path / "sites.json"


@pytest.fixture
def blog_registry(registry_path: Path) -> SiteRegistry:
    """
    Create a registry with one never-checked site.

    Returns
    -------
    SiteRegistry
        A registry holding the "Blog" site.
    """
    return SiteRegistry(
        registry_path,
        {"Blog": Site(rss_url="http://x/feed", latest_entry="")},
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Create a notifier recording report lines."""
    return RecordingNotifier()


@pytest.fixture
def fast_config(registry_path: Path) -> AppConfig:
    """Create an app configuration with short timeouts."""
    return AppConfig(
        defaults=DefaultsConfig(request_timeout=5, max_workers=4),
        storage=StorageConfig(database_path=str(registry_path)),
    )


@pytest.fixture
def make_atom():
    """Return a builder for Atom documents."""
    return atom_feed


@pytest.fixture
def make_rss():
    """Return a builder for RSS 2.0 documents."""
    return rss_feed
