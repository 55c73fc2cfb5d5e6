"""Configuration persistence manager."""

import json
import logging
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import Any

from subtitle_study.exceptions import ConfigError

from .config import StudyModeConfig
from .defaults import create_default_config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path.home() / ".subtitle_study" / "config.json"


class ConfigManager:
    """Manager for study mode configuration persistence.

    Saves and loads the configuration as JSON, falling back to the default
    configuration if the file doesn't exist or is invalid.
    """

    def __init__(self, config_file: Path = DEFAULT_CONFIG_FILE):
        self.config_file = config_file

    def save_config(self, config: StudyModeConfig) -> None:
        """Save configuration to the JSON file.

        Args:
            config: Configuration to save

        Raises:
            OSError: If unable to create directory or write file
        """
        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self._to_jsonable(asdict(config))

        with self.config_file.open("w", encoding="utf-8") as f:
            json.dump(config_dict, f, indent=2, ensure_ascii=False)

    def load_config(self, **overrides) -> StudyModeConfig:
        """Load configuration from the JSON file.

        Args:
            **overrides: Values that take precedence over the stored ones

        Returns:
            Loaded configuration, or the default configuration (with overrides)
            if the file doesn't exist or is invalid
        """
        if not self.config_file.exists():
            return create_default_config(**overrides)

        try:
            with self.config_file.open("r", encoding="utf-8") as f:
                config_dict = json.load(f)
            if not isinstance(config_dict, dict):
                raise ValueError("top-level JSON value must be an object")

            config_dict.update(overrides)
            return StudyModeConfig(**config_dict)

        except (json.JSONDecodeError, TypeError, ValueError, ConfigError) as e:
            logger.warning(f"Invalid config file, using defaults: {e}")
            return create_default_config(**overrides)

    def config_exists(self) -> bool:
        """Check if the configuration file exists."""
        return self.config_file.exists()

    @classmethod
    def _to_jsonable(cls, value: Any) -> Any:
        """Recursively convert enums, paths and tuples to JSON-compatible values."""
        if isinstance(value, dict):
            return {key: cls._to_jsonable(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [cls._to_jsonable(item) for item in value]
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, Path):
            return str(value)
        return value
