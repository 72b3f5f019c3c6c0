"""Configuration settings for Grocerly."""
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from grocerly.errors import ConfigError


# Get project root directory (4 levels up from this file)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

# Default log directory
DEFAULT_LOG_DIR = PROJECT_ROOT / "logs"
DEFAULT_LOG_FILE = DEFAULT_LOG_DIR / "grocerly.log"

STORE_URL_PLACEHOLDER = "your_apps_script_url_here"
IMGBB_KEY_PLACEHOLDER = "your_imgbb_api_key_here"


class StoreSettings(BaseSettings):
    """Spreadsheet store (Apps Script endpoint) settings."""
    APPS_SCRIPT_URL: str = STORE_URL_PLACEHOLDER
    TIMEOUT: float = 30.0
    TARGETING: str = "id"  # id, row
    ROLLBACK: str = "snapshot"  # snapshot, cache

    model_config = SettingsConfigDict(
        env_prefix="GROCERLY_STORE_",
        case_sensitive=False,
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @field_validator("APPS_SCRIPT_URL")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v or v == STORE_URL_PLACEHOLDER:
            raise ValueError("Apps Script URL not configured")
        if not v.startswith(("http://", "https://")):
            raise ValueError("Apps Script URL must be an http(s) URL")
        return v

    @field_validator("TARGETING")
    @classmethod
    def validate_targeting(cls, v: str) -> str:
        valid = ["id", "row"]
        v = v.lower()
        if v not in valid:
            raise ValueError(f"Targeting must be one of: {', '.join(valid)}")
        return v

    @field_validator("ROLLBACK")
    @classmethod
    def validate_rollback(cls, v: str) -> str:
        valid = ["snapshot", "cache"]
        v = v.lower()
        if v not in valid:
            raise ValueError(f"Rollback mode must be one of: {', '.join(valid)}")
        return v


class ImageHostSettings(BaseSettings):
    """ImgBB image host settings."""
    API_KEY: str = IMGBB_KEY_PLACEHOLDER
    UPLOAD_URL: str = "https://api.imgbb.com/1/upload"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    MAX_DIMENSION: int = 600
    JPEG_QUALITY: float = 0.6
    TIMEOUT: float = 60.0

    model_config = SettingsConfigDict(
        env_prefix="GROCERLY_IMGBB_",
        case_sensitive=False,
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @field_validator("JPEG_QUALITY")
    @classmethod
    def validate_quality(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("JPEG quality must be between 0 and 1")
        return v

    @field_validator("MAX_DIMENSION", "MAX_UPLOAD_BYTES")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Limit must be positive")
        return v

    @property
    def is_configured(self) -> bool:
        """Whether a real API key is present."""
        key = self.API_KEY.strip()
        return bool(key) and key != IMGBB_KEY_PLACEHOLDER


class GrocerlySettings(BaseSettings):
    """Application settings with environment variable support."""

    # Local cache
    CACHE_DB_URL: str = "sqlite:///grocerly_cache.db"
    CACHE_DB_ECHO: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[Path] = DEFAULT_LOG_FILE
    LOG_FORMAT: str = "detailed"  # simple, detailed
    LOG_RETENTION_DAYS: int = 7
    LOG_ROTATION_SIZE_MB: int = 1

    # Display
    CURRENCY: str = "ETB"
    MIN_QUERY_LENGTH: int = 2

    model_config = SettingsConfigDict(
        env_prefix="GROCERLY_",
        case_sensitive=False,
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Convert relative cache DB path to absolute path from project root
        if self.CACHE_DB_URL.startswith("sqlite:///") and ":memory:" not in self.CACHE_DB_URL:
            relative_path = Path(self.CACHE_DB_URL.replace("sqlite:///", ""))
            if not relative_path.is_absolute():
                self.CACHE_DB_URL = f"sqlite:///{PROJECT_ROOT / relative_path}"

        # Ensure log file path is absolute; the directory is created by the logger
        if self.LOG_FILE and not self.LOG_FILE.is_absolute():
            self.LOG_FILE = PROJECT_ROOT / self.LOG_FILE

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid_formats = ["simple", "detailed"]
        v = v.lower()
        if v not in valid_formats:
            raise ValueError(f"Log format must be one of: {', '.join(valid_formats)}")
        return v

    @field_validator("MIN_QUERY_LENGTH")
    @classmethod
    def validate_min_query(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Minimum query length cannot be negative")
        return v


@dataclass(frozen=True)
class AppConfig:
    """Validated configuration handed to every component at construction."""
    app: GrocerlySettings
    store: StoreSettings
    image_host: ImageHostSettings


def _describe(e: ValidationError) -> str:
    messages = []
    for err in e.errors():
        field = ".".join(str(part) for part in err.get("loc", ()))
        msg = str(err.get("msg", "")).removeprefix("Value error, ")
        messages.append(f"{field}: {msg}" if field else msg)
    return "; ".join(messages)


def load_config(**overrides) -> AppConfig:
    """
    Build and validate the full configuration once at startup.

    Args:
        **overrides: Optional pre-built settings keyed by ``app``, ``store``
            and ``image_host`` (mostly for tests)

    Returns:
        The validated configuration

    Raises:
        ConfigError: If any required value is missing, a placeholder, or invalid
    """
    try:
        app = overrides.get("app") or GrocerlySettings()
        store = overrides.get("store") or StoreSettings()
        image_host = overrides.get("image_host") or ImageHostSettings()
    except ValidationError as e:
        raise ConfigError(
            f"Configuration error: {_describe(e)}",
            suggestions=[
                "Check your .env file",
                "Set GROCERLY_STORE_APPS_SCRIPT_URL to your deployed Apps Script URL",
            ],
        ) from e
    return AppConfig(app=app, store=store, image_host=image_host)


@lru_cache()
def get_settings() -> GrocerlySettings:
    """Get cached settings instance."""
    return GrocerlySettings()
