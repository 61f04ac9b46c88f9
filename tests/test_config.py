"""Tests for configuration and data directory resolution."""

import importlib
from pathlib import Path

import batmon.config as config_module
from batmon.config import get_data_dir


class TestGetDataDir:
    def test_xdg_data_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
        assert get_data_dir() == tmp_path / "batmon"

    def test_default_home(self, monkeypatch):
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        assert get_data_dir() == Path.home() / ".local" / "share" / "batmon"


class TestConfig:
    """Config reads the environment at import time."""

    def test_defaults(self, monkeypatch, tmp_path):
        for name in (
            "BATMON_DATABASE_URL",
            "SAMPLE_INTERVAL_SECONDS",
            "DETAIL_INTERVAL_SECONDS",
            "SLOW_SAMPLE_INTERVAL_SECONDS",
            "BUFFER_SIZE",
            "RETENTION_DAYS",
        ):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
        try:
            config = importlib.reload(config_module).Config
            assert config.DATABASE_URL == f"sqlite:///{tmp_path / 'batmon' / 'batmon.sqlite'}"
            assert config.SAMPLE_INTERVAL_SECONDS == 30
            assert config.DETAIL_INTERVAL_SECONDS == 120
            assert config.SLOW_SAMPLE_INTERVAL_SECONDS == 300
            assert config.BUFFER_SIZE == 100
            assert config.RETENTION_DAYS == 90
        finally:
            monkeypatch.undo()
            importlib.reload(config_module)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("BATMON_DATABASE_URL", "sqlite:///custom.sqlite")
        monkeypatch.setenv("RETENTION_DAYS", "30")
        try:
            config = importlib.reload(config_module).Config
            assert config.DATABASE_URL == "sqlite:///custom.sqlite"
            assert config.RETENTION_DAYS == 30
        finally:
            monkeypatch.undo()
            importlib.reload(config_module)
