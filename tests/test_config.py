"""Tests for the configuration module."""

import json
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from testhistory.config import (
    HistoryConfig,
    LoggingConfig,
    TestHistoryConfig,
    TrendConfig,
    create_example_config,
    get_default_config,
)


class TestHistoryConfigSection:
    """Tests for HistoryConfig."""

    def test_default_values(self):
        """Test the scan is unbounded by default."""
        assert HistoryConfig().max_builds is None

    def test_max_builds_validation(self):
        """Test that max_builds must be positive."""
        with pytest.raises(ValidationError):
            HistoryConfig(max_builds=0)


class TestTrendConfig:
    """Tests for TrendConfig."""

    def test_default_values(self):
        assert TrendConfig().build_count == 50

    def test_build_count_validation(self):
        """Test that build_count must be positive."""
        with pytest.raises(ValidationError):
            TrendConfig(build_count=0)


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_default_values(self):
        assert LoggingConfig().level == "WARNING"

    def test_level_case_insensitive(self):
        """Test that level is normalized to upper case."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_level_validation(self):
        """Test that only known levels are accepted."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="chatty")


class TestTestHistoryConfig:
    """Tests for TestHistoryConfig."""

    def test_default_config(self):
        """Test creating a default configuration."""
        config = get_default_config()
        assert config.history.max_builds is None
        assert config.trend.build_count == 50
        assert config.logging.level == "WARNING"

    def test_from_file(self):
        """Test loading configuration from a file."""
        config_data = {
            "history": {"max_builds": 100},
            "trend": {"build_count": 20},
        }

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "testhistory.json"
            path.write_text(json.dumps(config_data))

            config = TestHistoryConfig.from_file(path)
            assert config.history.max_builds == 100
            assert config.trend.build_count == 20
            assert config.logging.level == "WARNING"

    def test_from_file_not_found(self):
        """Test loading from non-existent file raises error."""
        with pytest.raises(FileNotFoundError):
            TestHistoryConfig.from_file("/nonexistent/path.json")

    def test_to_file(self):
        """Test saving configuration to a file."""
        config = get_default_config()
        config.trend.build_count = 10

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            config.to_file(path)

            assert path.exists()

            loaded = TestHistoryConfig.from_file(path)
            assert loaded.trend.build_count == 10

    def test_find_and_load_searches_parents(self):
        """Test the configuration is found in a parent directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            (base / ".testhistory.json").write_text(json.dumps({"trend": {"build_count": 7}}))
            nested = base / "a" / "b"
            nested.mkdir(parents=True)

            config = TestHistoryConfig.find_and_load(nested)
            assert config.trend.build_count == 7

    def test_create_example_config(self):
        """Test creating an example configuration file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "example.json"
            result = create_example_config(path)

            assert result == path
            assert path.exists()

            with open(path) as f:
                data = json.load(f)
                assert "history" in data
                assert "trend" in data
                assert "logging" in data
