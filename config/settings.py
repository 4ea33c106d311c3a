"""
Configuration settings for the venue demand heatmap.
Contains API endpoints, clustering and polling tuning, and logging settings.
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from config.constants import (
    DEFAULT_BUCKET_SIZE_DEG,
    DEFAULT_POLL_INTERVAL_SECONDS,
    SHORT_LINK_HOSTS,
)

# Load environment variables from .env file
load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class ApiConfig:
    """Booking/venue API configuration settings."""

    base_url: str = "http://localhost:5000/api"
    auth_token: Optional[str] = None
    timeout_seconds: float = 10.0
    venues_path: str = "/venues"
    bookings_path: str = "/bookings"

    def __post_init__(self):
        """Load API settings from environment variables."""
        self.base_url = os.getenv("API_BASE_URL", self.base_url)
        self.auth_token = os.getenv("API_AUTH_TOKEN", self.auth_token)
        self.timeout_seconds = float(
            os.getenv("API_TIMEOUT_SECONDS", str(self.timeout_seconds))
        )


@dataclass
class HeatmapConfig:
    """Heatmap clustering and refresh settings."""

    bucket_size_degrees: float = DEFAULT_BUCKET_SIZE_DEG
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    short_link_hosts: List[str] = field(default_factory=lambda: list(SHORT_LINK_HOSTS))

    def __post_init__(self):
        """Load tuning overrides from environment variables."""
        self.bucket_size_degrees = float(
            os.getenv("HEATMAP_BUCKET_SIZE", str(self.bucket_size_degrees))
        )
        self.poll_interval_seconds = float(
            os.getenv("BOOKINGS_POLL_INTERVAL", str(self.poll_interval_seconds))
        )


@dataclass
class AppConfig:
    """Application configuration settings."""

    debug: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        # Load from environment
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", self.log_level)


class Settings:
    """Main settings class that combines all configuration."""

    def __init__(self):
        self.api = ApiConfig()
        self.heatmap = HeatmapConfig()
        self.app = AppConfig()

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return (
            self.app.debug or os.getenv("ENVIRONMENT", "development") == "development"
        )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return os.getenv("ENVIRONMENT") == "production"

    def has_auth_token(self) -> bool:
        """Check if an API token is configured."""
        token = self.api.auth_token
        return token is not None and token.strip() != ""


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the settings instance."""
    return settings


def configure_logging(level: Optional[str] = None):
    """Configure root logging with the standard format."""
    level_name = (level or settings.app.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
