"""
Configuration management for the Instant Quote extractor.
Handles environment variables and application settings.
"""
import os
from typing import List, Optional
from dotenv import load_dotenv

from instant_quote.errors import ConfigurationError

load_dotenv()


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Config:
    """Application configuration loaded from environment variables."""

    # Server settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    APP_VERSION: str = os.getenv("APP_VERSION", "1.0.0")

    # Allowed web origins for CORS
    ALLOWED_ORIGINS: List[str] = _split_origins(
        os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173")
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")  # json or console

    # Direct fetch settings
    DIRECT_TIMEOUT: float = float(os.getenv("DIRECT_TIMEOUT", "18"))
    MAX_REDIRECTS: int = int(os.getenv("MAX_REDIRECTS", "5"))

    # Rendering proxy (ScrapingBee)
    # Loaded from environment variables, NEVER hardcoded
    SCRAPINGBEE_API_KEY: Optional[str] = os.getenv("SCRAPINGBEE_API_KEY")
    SCRAPINGBEE_ENDPOINT: str = os.getenv(
        "SCRAPINGBEE_ENDPOINT", "https://app.scrapingbee.com/api/v1/"
    )
    PROXY_TIMEOUT_MS: int = int(os.getenv("PROXY_TIMEOUT_MS", "30000"))
    PROXY_WAIT_MS: int = int(os.getenv("PROXY_WAIT_MS", "3200"))
    PROXY_COUNTRY: str = os.getenv("PROXY_COUNTRY", "us")
    PROXY_PREMIUM: bool = os.getenv("PROXY_PREMIUM", "true").lower() == "true"
    PROXY_MAX_RETRIES: int = int(os.getenv("PROXY_MAX_RETRIES", "2"))
    PROXY_BACKOFF_BASE: float = float(os.getenv("PROXY_BACKOFF_BASE", "0.8"))
    PROXY_MAX_CONCURRENCY: int = int(os.getenv("PROXY_MAX_CONCURRENCY", "4"))

    # Wall-clock budget for one extraction across both fetch strategies
    EXTRACTION_DEADLINE: float = float(os.getenv("EXTRACTION_DEADLINE", "75"))

    # Per-client request budget for routes that trigger extraction or quoting
    RATE_LIMIT_PER_MIN: int = int(os.getenv("RATE_LIMIT_PER_MIN", "120"))

    def is_proxy_configured(self) -> bool:
        """Check if the rendering proxy API key is present."""
        return bool(self.SCRAPINGBEE_API_KEY)

    def get_missing_vars(self) -> list:
        """Return list of missing required environment variables."""
        missing = []
        if not self.SCRAPINGBEE_API_KEY:
            missing.append("SCRAPINGBEE_API_KEY")
        return missing

    def validate(self) -> None:
        """
        Validate settings required to serve extraction requests.

        Raises:
            ConfigurationError: a required variable is missing or a
                numeric setting is out of range
        """
        missing = self.get_missing_vars()
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        if self.DIRECT_TIMEOUT <= 0 or self.EXTRACTION_DEADLINE <= 0:
            raise ConfigurationError("Timeouts must be positive")
        if self.MAX_REDIRECTS < 0 or self.PROXY_MAX_RETRIES < 0:
            raise ConfigurationError("Redirect and retry limits cannot be negative")
        if self.PROXY_MAX_CONCURRENCY < 1:
            raise ConfigurationError("PROXY_MAX_CONCURRENCY must be at least 1")
        if self.RATE_LIMIT_PER_MIN < 1:
            raise ConfigurationError("RATE_LIMIT_PER_MIN must be at least 1")


config = Config()
