"""Typed settings loader for the aerodrome weather hazard monitor."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import AnyUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError
from .redaction import sanitize_text


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: Literal["dev", "staging", "prod"] = Field(default="dev", alias="APP_ENV")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )

    feed_url: AnyUrl | None = Field(default=None, alias="FEED_URL")
    feed_file: Path | None = Field(default=None, alias="FEED_FILE")
    feed_timeout_seconds: float = Field(default=15.0, alias="FEED_TIMEOUT_SECONDS")
    feed_user_agent: str = Field(
        default="wx-hazard-monitor/0.1 (contact: ops@example.com)",
        alias="FEED_USER_AGENT",
    )
    feed_max_retries: int = Field(default=1, alias="FEED_MAX_RETRIES")

    poll_interval_seconds: float = Field(default=60.0, alias="POLL_INTERVAL_SECONDS")
    expected_update_minutes: int = Field(default=10, alias="EXPECTED_UPDATE_MINUTES")

    state_dir: Path = Field(default=Path("./data/state"), alias="STATE_DIR")
    journal_dir: Path = Field(default=Path("./data/journal"), alias="JOURNAL_DIR")
    raw_payload_dir: Path = Field(default=Path("./data/raw"), alias="RAW_PAYLOAD_DIR")
    journal_raw_payloads: bool = Field(default=False, alias="JOURNAL_RAW_PAYLOADS")

    summary_max_samples: int = Field(default=240, alias="SUMMARY_MAX_SAMPLES")
    events_max_per_station: int = Field(default=30, alias="EVENTS_MAX_PER_STATION")
    history_max_stations: int = Field(default=250, alias="HISTORY_MAX_STATIONS")
    history_keep_stations: int = Field(default=200, alias="HISTORY_KEEP_STATIONS")

    max_print: int = Field(default=25, alias="MAX_PRINT")

    @field_validator("feed_url", "feed_file", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat empty env-string values as unset feed sources."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_case_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def validate_limits(self) -> Settings:
        """Validate numeric limits and cap relationships."""
        if self.feed_timeout_seconds <= 0:
            raise ValueError("FEED_TIMEOUT_SECONDS must be > 0.")
        if self.feed_max_retries < 0:
            raise ValueError("FEED_MAX_RETRIES must be >= 0.")
        if not self.feed_user_agent.strip():
            raise ValueError("FEED_USER_AGENT must not be empty.")
        if self.poll_interval_seconds <= 0:
            raise ValueError("POLL_INTERVAL_SECONDS must be > 0.")
        if self.expected_update_minutes <= 0:
            raise ValueError("EXPECTED_UPDATE_MINUTES must be > 0.")
        if self.summary_max_samples <= 0:
            raise ValueError("SUMMARY_MAX_SAMPLES must be > 0.")
        if self.events_max_per_station <= 0:
            raise ValueError("EVENTS_MAX_PER_STATION must be > 0.")
        if self.history_keep_stations <= 0:
            raise ValueError("HISTORY_KEEP_STATIONS must be > 0.")
        if self.history_keep_stations > self.history_max_stations:
            raise ValueError(
                "HISTORY_KEEP_STATIONS cannot exceed HISTORY_MAX_STATIONS."
            )
        if self.max_print <= 0:
            raise ValueError("MAX_PRINT must be > 0.")
        return self

    def safe_summary(self) -> dict[str, Any]:
        """Return non-secret settings for the startup journal record."""
        return {
            "app_env": self.app_env,
            "log_level": self.log_level,
            "feed_url": sanitize_text(str(self.feed_url)) if self.feed_url else None,
            "feed_file": str(self.feed_file) if self.feed_file else None,
            "feed_timeout_seconds": self.feed_timeout_seconds,
            "feed_max_retries": self.feed_max_retries,
            "poll_interval_seconds": self.poll_interval_seconds,
            "expected_update_minutes": self.expected_update_minutes,
            "state_dir": str(self.state_dir),
            "journal_raw_payloads": self.journal_raw_payloads,
            "summary_max_samples": self.summary_max_samples,
            "events_max_per_station": self.events_max_per_station,
            "history_max_stations": self.history_max_stations,
            "history_keep_stations": self.history_keep_stations,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        settings = Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc

    settings.state_dir.mkdir(parents=True, exist_ok=True)
    settings.journal_dir.mkdir(parents=True, exist_ok=True)
    settings.raw_payload_dir.mkdir(parents=True, exist_ok=True)
    return settings
