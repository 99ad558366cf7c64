"""
Unit tests for the configuration module.

Tests cover Pydantic model validation, environment variable substitution,
and YAML configuration loading.
"""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from rss_checker.config import (
    AppConfig,
    DefaultsConfig,
    StorageConfig,
    _substitute_env_vars,
    load_config,
)


class TestDefaultsConfig:
    """Tests for DefaultsConfig Pydantic model."""

    def test_default_values(self) -> None:
        """Test the polling defaults."""
        defaults = DefaultsConfig()

        assert defaults.request_timeout == 30
        assert defaults.max_workers == 50

    @pytest.mark.parametrize("field", ["request_timeout", "max_workers"])
    @pytest.mark.parametrize("value", [0, -1])
    def test_rejects_non_positive(self, field: str, value: int) -> None:
        """Test that limits must be strictly positive."""
        with pytest.raises(ValidationError):
            DefaultsConfig(**{field: value})


class TestStorageConfig:
    """Tests for StorageConfig Pydantic model."""

    def test_default_path(self) -> None:
        assert StorageConfig().database_path == "sites.json"

    def test_rejects_empty_path(self) -> None:
        with pytest.raises(ValidationError):
            StorageConfig(database_path="  ")


class TestSubstituteEnvVars:
    """Tests for environment variable substitution."""

    def test_substitutes_set_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FEEDS_DB", "/data/feeds.json")

        assert _substitute_env_vars("${FEEDS_DB}") == "/data/feeds.json"

    def test_uses_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("FEEDS_DB", raising=False)

        assert _substitute_env_vars("${FEEDS_DB:-sites.json}") == "sites.json"

    def test_leaves_unset_variable(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.delenv("FEEDS_DB", raising=False)

        assert _substitute_env_vars("${FEEDS_DB}") == "${FEEDS_DB}"
        assert "FEEDS_DB" in caplog.text

    def test_recurses_into_containers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WORKERS", "8")

        value = {"defaults": {"max_workers": "${WORKERS}"}, "list": ["${WORKERS}", 3]}

        assert _substitute_env_vars(value) == {
            "defaults": {"max_workers": "8"},
            "list": ["8", 3],
        }


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_sample(self, sample_config_path: Path) -> None:
        """Test loading the sample configuration."""
        config = load_config(sample_config_path)

        assert config.defaults.request_timeout == 10
        assert config.defaults.max_workers == 5
        assert config.storage.database_path == "data/sites.json"

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        """Test that the configuration file is optional."""
        config = load_config(tmp_path / "nonexistent.yaml")

        assert config == AppConfig()

    def test_none_uses_defaults(self) -> None:
        assert load_config(None) == AppConfig()

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(path) == AppConfig()

    def test_env_substitution(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that environment variables are expanded before validation."""
        monkeypatch.setenv("RSS_WORKERS", "12")
        monkeypatch.delenv("RSS_DB", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text(
            "defaults:\n"
            "  max_workers: ${RSS_WORKERS}\n"
            "storage:\n"
            "  database_path: ${RSS_DB:-/var/lib/rss/sites.json}\n"
        )

        config = load_config(path)

        assert config.defaults.max_workers == 12
        assert config.storage.database_path == "/var/lib/rss/sites.json"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("invalid: yaml: content")

        with pytest.raises(yaml.YAMLError):
            load_config(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("defaults:\n  max_workers: 0\n")

        with pytest.raises(ValidationError):
            load_config(path)
