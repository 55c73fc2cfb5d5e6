"""Configuration management for Subtitle Study."""

from .config import StudyModeConfig
from .defaults import create_default_config
from .manager import ConfigManager

__all__ = ["StudyModeConfig", "create_default_config", "ConfigManager"]
