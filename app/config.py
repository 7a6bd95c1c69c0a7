import logging
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


logger = logging.getLogger(__name__)

DEFAULT_PLEX_URL = "http://localhost:32400"
DEFAULT_PREFS_PATH = "/config/Library/Application Support/Plex Media Server/Preferences.xml"


class DVRSettings(BaseSettings):
    """Application settings loaded from DVR_MANAGER_* environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    plex_url: str | None = None
    plex_prefs_path: str = DEFAULT_PREFS_PATH
    plex_token: str | None = None

    tv_library_id: str | None = None
    film_library_id: str | None = None
    channels: Annotated[list[str], NoDecode] = []

    request_concurrency: int = 5
    request_timeout_sec: float = 30.0
    error_retry_sec: int = 60  # Wake delay after a failed cycle

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8765

    model_config = SettingsConfigDict(
        env_prefix="DVR_MANAGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("channels", mode="before")
    @classmethod
    def parse_channels(cls, value):
        """Parse comma-separated channel ids or list."""
        if value is None:
            return []
        if isinstance(value, str):
            return [channel.strip() for channel in value.split(",") if channel.strip()]
        return value

    @field_validator("plex_url")
    @classmethod
    def validate_plex_url(cls, value: str | None) -> str | None:
        """Validate the media server URL is HTTP/HTTPS."""
        if value is None:
            return value
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"Plex URL must be HTTP/HTTPS: {value}")
        return value.rstrip("/")

    @field_validator("tv_library_id", "film_library_id", "plex_token")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("request_concurrency", "error_retry_sec")
    @classmethod
    def validate_positive_ints(cls, value: int, info) -> int:
        """Ensure integer settings are positive."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("request_timeout_sec")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Ensure the request timeout is positive."""
        if value <= 0:
            raise ValueError("request_timeout_sec must be > 0")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.upper()
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    @property
    def base_url(self) -> str:
        return self.plex_url or DEFAULT_PLEX_URL

    def log_summary(self) -> None:
        """Log the effective configuration (credential omitted)."""
        logger.info("Configuration loaded:")
        logger.info("  Plex URL: %s", self.base_url)
        logger.info(
            "  Credential: %s",
            "explicit token" if self.plex_token else self.plex_prefs_path,
        )
        logger.info("  TV Library Default: %s", self.tv_library_id or "auto")
        logger.info("  Film Library Default: %s", self.film_library_id or "auto")
        logger.info(
            "  Channels: %s",
            ", ".join(self.channels) if self.channels else "all",
        )
        logger.info("  Request Concurrency: %s", self.request_concurrency)
        logger.info("  Request Timeout: %ss", self.request_timeout_sec)
        logger.info("  Error Retry Delay: %ss", self.error_retry_sec)


settings = DVRSettings()


def setup_logging(level: str | None = None) -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
