"""Configuration management for testhistory."""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class HistoryConfig(BaseModel):
    """History table configuration."""

    max_builds: Optional[int] = Field(
        default=None,
        description="Scan at most this many recent builds when no storage backend is attached",
    )

    @field_validator("max_builds")
    @classmethod
    def validate_max_builds(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("max_builds must be at least 1")
        return v


class TrendConfig(BaseModel):
    """Trend series configuration."""

    build_count: int = Field(default=50, description="Maximum number of builds in a trend series")

    @field_validator("build_count")
    @classmethod
    def validate_build_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError("build_count must be at least 1")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING", description="Log level (DEBUG, INFO, WARNING, ERROR)")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()


class TestHistoryConfig(BaseModel):
    """Main configuration for testhistory."""

    __test__ = False

    history: HistoryConfig = Field(default_factory=HistoryConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "TestHistoryConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        return cls.model_validate(data)

    @classmethod
    def find_and_load(cls, start_dir: Path | str | None = None) -> "TestHistoryConfig":
        """Find and load configuration file, searching up the directory tree."""
        if start_dir is None:
            start_dir = Path.cwd()
        else:
            start_dir = Path(start_dir)

        config_names = ["testhistory.json", ".testhistory.json"]

        current = start_dir.resolve()
        while True:
            for name in config_names:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Create testhistory.json or run 'testhistory init'"
        )

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)


def get_default_config() -> TestHistoryConfig:
    """Return a default configuration."""
    return TestHistoryConfig()


def create_example_config(output_path: Path | str) -> Path:
    """Create an example configuration file."""
    output_path = Path(output_path)
    config = get_default_config()
    config.history.max_builds = 200
    config.to_file(output_path)
    return output_path
