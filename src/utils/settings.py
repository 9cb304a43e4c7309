"""
Environment-driven settings for the intelligence engine.

Values come from the process environment, optionally seeded from a
``.env`` file in the working directory.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field


logger = logging.getLogger(__name__)


DEFAULT_TAXONOMY_PATH = "config/taxonomy.yaml"
DEFAULT_TRACKING_BASE_URL = "https://orthoiq.app/track"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


class Settings(BaseModel):
    """Runtime settings."""

    model_config = ConfigDict(frozen=True)

    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)
    taxonomy_path: str = Field(
        default=DEFAULT_TAXONOMY_PATH,
        description="YAML file with specialist and tier display configuration"
    )
    tracking_base_url: str = Field(
        default=DEFAULT_TRACKING_BASE_URL,
        description="Base URL of the public case-tracking page"
    )
    trailing_window_days: int = Field(
        default=7,
        ge=1,
        description="Window used for recent accuracy"
    )
    leaderboard_size: int = Field(default=5, ge=1)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            dotenv_path: Optional explicit .env file; the default search is used otherwise

        Returns:
            Settings instance
        """
        load_dotenv(dotenv_path)

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            taxonomy_path=os.getenv("ORTHOIQ_TAXONOMY_PATH", DEFAULT_TAXONOMY_PATH),
            tracking_base_url=os.getenv(
                "ORTHOIQ_TRACKING_BASE_URL", DEFAULT_TRACKING_BASE_URL
            ).rstrip("/"),
            trailing_window_days=max(1, _int_env("ORTHOIQ_TRAILING_WINDOW_DAYS", 7)),
            leaderboard_size=max(1, _int_env("ORTHOIQ_LEADERBOARD_SIZE", 5)),
        )
