"""
PrismWatch Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.durations import parse_duration

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
_env_file = Path(__file__).parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try current working directory
    load_dotenv()


APP_PASSWORD_ENV_KEY = "PHOTOPRISM_APP_PASSWORD"
APP_PASSWORD_DOCS_URL = (
    "https://docs.photoprism.app/user-guide/users/client-credentials/#app-passwords"
)
DEFAULT_API_URL = "http://127.0.0.1:2342/api/v1/"


class WatcherSettings(BaseSettings):
    """Watcher and trigger defaults, overridable from the command line."""

    model_config = SettingsConfigDict(env_prefix="PRISMWATCH_")

    delay: float = Field(default=10.0, ge=0, description="Quiet window in seconds")
    url: str = Field(default=DEFAULT_API_URL, description="PhotoPrism API URL")
    move: bool = Field(default=False, description="Tell PhotoPrism to remove imported files")
    recursive: bool = Field(default=False, description="Watch subdirectories too")
    timeout: float | None = Field(default=None, gt=0, description="Request timeout in seconds")

    @field_validator("delay", "timeout", mode="before")
    @classmethod
    def parse_durations(cls, v: str | float | None) -> float | None:
        """Accept Go-style duration strings such as "10s" or "1m30s"."""
        if isinstance(v, str):
            if not v.strip():
                return None
            return parse_duration(v)
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="console")  # "json" or "console"


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="PrismWatch")
    app_version: str = Field(default="0.1.0")

    app_password: SecretStr | None = Field(
        default=None,
        validation_alias=APP_PASSWORD_ENV_KEY,
        description="PhotoPrism app-specific password used as bearer token",
    )

    # Sub-settings
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def token(self) -> str | None:
        """Return the bearer token, or None when unset or empty."""
        if self.app_password is None:
            return None
        value = self.app_password.get_secret_value()
        return value or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings for performance.
    """
    return Settings()
