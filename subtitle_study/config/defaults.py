"""Default configuration values for Subtitle Study."""

from .config import StudyModeConfig


def create_default_config(**overrides) -> StudyModeConfig:
    """Create a default configuration with optional overrides.

    Args:
        **overrides: Keyword arguments to override default values

    Returns:
        StudyModeConfig with defaults and overrides applied

    Example:
        config = create_default_config(
            enabled=True,
            frequency=5,
            line_selection="prioritize_unknown",
        )
    """
    return StudyModeConfig(**overrides)
