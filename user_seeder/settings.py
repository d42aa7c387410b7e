import re
from pathlib import Path

from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from .errors import ConfigurationError

_BASE_DIR = Path(__file__).resolve().parent.parent
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Configuration from env vars or a local .env file."""

    model_config = SettingsConfigDict(env_file=str(_BASE_DIR / ".env"), env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str
    LOG_LEVEL: str = "INFO"
    SQL_ECHO: bool = False
    CREATE_SCHEMA: bool = True

    @field_validator("DATABASE_URL")
    @classmethod
    def _parse_database_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("DATABASE_URL is empty")
        try:
            make_url(value)
        except ArgumentError as e:
            raise ValueError(f"DATABASE_URL is not a valid database URL: {e}") from e
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")
        return value

    @model_validator(mode="after")
    def _normalize_database_url(self):
        url = self.DATABASE_URL
        if not url.startswith("sqlite:///"):
            return self

        path = url.removeprefix("sqlite:///")
        if path == ":memory:" or path.startswith("file:"):
            return self

        if path.startswith(("/", "\\")) or re.match(r"^[A-Za-z]:[\\\\/]", path):
            return self

        abs_path = (_BASE_DIR / Path(path)).resolve()
        self.DATABASE_URL = f"sqlite:///{abs_path.as_posix()}"
        return self


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, raising ConfigurationError on bad input."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(problems) from e
