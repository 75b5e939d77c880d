"""Configuration management for drivekit."""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from drivekit.core.interfaces import ConfigProvider
from drivekit.core.types import BrowserKind, WaitOptions
from drivekit.error_handling.exceptions import LaunchError


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Browser Configuration
    browser_kind: str = Field(
        default="chromium", description="Browser opened when none is requested"
    )
    browser_headless: bool = Field(
        default=True, description="Run browser in headless mode"
    )
    browser_timeout: int = Field(
        default=30000, ge=1000, description="Default browser timeout (ms)"
    )
    browser_viewport_width: int = Field(
        default=1920, ge=800, description="Browser viewport width"
    )
    browser_viewport_height: int = Field(
        default=1080, ge=600, description="Browser viewport height"
    )
    navigation_wait_until: str = Field(
        default="load", description="Load state a navigation waits for"
    )
    submit_navigation_grace_ms: int = Field(
        default=250, ge=0, description="How long submit watches for a navigation to start (ms)"
    )

    # Element Configuration
    implicit_wait_ms: int = Field(
        default=0, ge=0, description="Default time element lookups keep polling (ms)"
    )
    poll_interval_ms: int = Field(
        default=500, ge=10, description="Delay between lookup attempts (ms)"
    )
    action_timeout_ms: int = Field(
        default=5000, ge=100, description="Upper bound for a single click or clear (ms)"
    )
    typing_delay_ms: int = Field(
        default=0, ge=0, description="Delay between simulated keystrokes (ms)"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path"
    )
    sanitize_logs: bool = Field(
        default=True, description="Redact typed text and secrets from logs"
    )

    @field_validator("browser_kind")
    def validate_browser_kind(cls, v: str) -> str:
        """Normalize browser names and aliases."""
        try:
            return BrowserKind.parse(v).value
        except LaunchError as exc:
            raise ValueError(f"Invalid browser kind: {v}") from exc

    @field_validator("navigation_wait_until")
    def validate_wait_until(cls, v: str) -> str:
        """Validate navigation load state."""
        valid_states = ["load", "domcontentloaded", "networkidle", "commit"]
        if v.lower() not in valid_states:
            raise ValueError(f"Invalid load state: {v}")
        return v.lower()

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ["json", "text"]:
            raise ValueError(f"Invalid log format: {v}")
        return v

    def default_wait(self) -> WaitOptions:
        """Polling window used when a lookup does not pass its own."""
        return WaitOptions(
            timeout_ms=self.implicit_wait_ms,
            poll_interval_ms=self.poll_interval_ms,
        )


class ConfigManager(ConfigProvider):
    """Configuration manager implementation."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """
        Initialize config manager.

        Args:
            settings: Optional settings instance
        """
        self.settings = settings or get_settings()

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        try:
            return getattr(self.settings, key)
        except AttributeError:
            return default

    def get_required(self, key: str) -> Any:
        """Get required configuration value."""
        try:
            return getattr(self.settings, key)
        except AttributeError:
            raise KeyError(f"Required configuration key not found: {key}")

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return self.settings.model_dump()


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    # Load .env file if it exists
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    return Settings()


def get_config() -> ConfigManager:
    """Get configuration manager instance."""
    return ConfigManager(get_settings())
