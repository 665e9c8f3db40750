"""Application configuration settings.

This module provides centralized configuration management using environment
variables with sensible defaults. The API key has no default.
"""

import os
from dataclasses import dataclass

from stock_vignette.data.polygon import DEFAULT_BASE_URL


def _get_bool_env(name: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable.

    Args:
        name: Environment variable name.
        default: Default value if not set.

    Returns:
        Boolean value from environment.
    """
    value = os.getenv(name, "").lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return default


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        POLYGON_API_KEY: Polygon.io API key for market data.
        POLYGON_BASE_URL: Polygon.io REST base URL.
        LOG_LEVEL: Logging level.
        LOG_JSON: Render log events as JSON lines.
    """

    POLYGON_API_KEY: str | None = None
    POLYGON_BASE_URL: str = DEFAULT_BASE_URL

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @property
    def has_api_key(self) -> bool:
        """Check if API key is configured."""
        return bool(self.POLYGON_API_KEY)

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables.

        Returns:
            Settings instance populated from environment.
        """
        return cls(
            POLYGON_API_KEY=os.getenv("POLYGON_API_KEY"),
            POLYGON_BASE_URL=os.getenv("POLYGON_BASE_URL", DEFAULT_BASE_URL),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
            LOG_JSON=_get_bool_env("LOG_JSON", default=False),
        )
