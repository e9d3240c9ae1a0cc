"""Tests for configuration management."""

import json
import tempfile
from pathlib import Path

import pytest

from parallel_downloader.utils.config import Config


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


class TestConfig:
    """Test Config loading and saving."""

    def test_defaults_when_file_missing(self, temp_dir):
        config = Config(temp_dir / "missing.json")

        assert config.get("output_dir") == "downloads"
        assert config.get("max_workers") == 4
        assert config.get("poll_interval") == 0.1
        assert config.get("proxy") is None

    def test_file_values_override_defaults(self, temp_dir):
        path = temp_dir / "config.json"
        path.write_text(json.dumps({"max_workers": 12}))

        config = Config(path)

        assert config.get("max_workers") == 12
        assert config.get("timeout") == 60

    def test_invalid_json_falls_back_to_defaults(self, temp_dir, caplog):
        path = temp_dir / "config.json"
        path.write_text("{not json")

        config = Config(path)

        assert config.get("max_workers") == 4
        assert "unreadable config file" in caplog.text

    def test_non_object_json_is_ignored(self, temp_dir):
        path = temp_dir / "config.json"
        path.write_text("[1, 2, 3]")

        config = Config(path)

        assert config.get("output_dir") == "downloads"

    def test_get_unknown_key_returns_default(self, temp_dir):
        config = Config(temp_dir / "missing.json")

        assert config.get("nope", "fallback") == "fallback"

    def test_set_and_save_round_trip(self, temp_dir):
        path = temp_dir / "config.json"
        config = Config(path)
        config.set("proxy", "socks5://127.0.0.1:9050")
        config.save()

        reloaded = Config(path)

        assert reloaded.get("proxy") == "socks5://127.0.0.1:9050"
