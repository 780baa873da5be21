"""
Configuration management with Pydantic settings.
Supports environment variables, a .env file and secure token handling.
"""
from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mirrorbot.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings with validation and type safety."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discord Configuration
    discord_token: SecretStr = Field(..., description="Bot token from the Discord developer portal")

    # Routing Configuration
    routing_config_path: Path = Field(
        default=Path("config.json"),
        description="JSON array of [source, target, ...] channel id arrays"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    debug_mode: bool = Field(default=False)
    log_file: Optional[Path] = Field(default=Path("bot.log"))

    # Behaviour
    canned_reply_enabled: bool = Field(default=True, description="Answer 'ping' with 'Pong!'")
    relay_cache_max_entries: Optional[int] = Field(
        default=None, ge=1,
        description="Cap on tracked source messages; unset keeps every entry"
    )
    use_uvloop: bool = Field(default=True)

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lower-case level names from the environment."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator('log_file', mode='before')
    @classmethod
    def parse_log_file(cls, v):
        """An empty LOG_FILE disables file logging."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, raising ConfigurationError on failure."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        missing = [
            ".".join(str(part) for part in error["loc"]).upper()
            for error in e.errors()
            if error.get("type") == "missing"
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required settings: {', '.join(missing)}"
            ) from e
        raise ConfigurationError(f"Invalid settings: {e}") from e
