"""Environment-driven settings shared by the backend and the client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import cache
from typing import Final

from dotenv import load_dotenv

ENV_FILE_FLAG: Final[str] = "SPLITBILLS_ENV_FILE"
DEFAULT_DATABASE_URL: Final[str] = "sqlite:///splitbills.db"
DEFAULT_API_URL: Final[str] = "http://localhost:3001/api"
DEFAULT_CORS_ORIGINS: Final[tuple[str, ...]] = (
    "http://localhost:5173",
    "http://localhost:3000",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration resolved once at process start."""

    database_url: str = DEFAULT_DATABASE_URL
    api_url: str = DEFAULT_API_URL
    host: str = "127.0.0.1"
    port: int = 3001
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    primary: str = "Primary"
    secondary: str = "Secondary"
    strict_payers: bool = False
    http_timeout: float = 5.0

    @property
    def participants(self) -> tuple[str, str]:
        return (self.primary, self.secondary)


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_str(name: str, default: str) -> str:
    value = os.environ.get(name, "").strip()
    return value or default


def _env_number(name: str, default: float, cast: type) -> float:
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        return cast(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.environ.get(name)
    if value is None:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


def load_env_file() -> None:
    """Load a dotenv file without overriding variables already exported."""

    env_file = os.environ.get(ENV_FILE_FLAG, ".env")
    if os.path.exists(env_file):
        load_dotenv(env_file, encoding="utf-8", override=False)


def load_settings() -> Settings:
    """Build :class:`Settings` from the process environment."""

    load_env_file()
    settings = Settings(
        database_url=_env_str("SPLITBILLS_DATABASE_URL", DEFAULT_DATABASE_URL),
        api_url=_env_str("SPLITBILLS_API_URL", DEFAULT_API_URL).rstrip("/"),
        host=_env_str("SPLITBILLS_HOST", "127.0.0.1"),
        port=int(_env_number("PORT", 3001, int)),
        cors_origins=_env_list("SPLITBILLS_CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
        primary=_env_str("SPLITBILLS_PRIMARY", "Primary"),
        secondary=_env_str("SPLITBILLS_SECONDARY", "Secondary"),
        strict_payers=_env_bool("SPLITBILLS_STRICT_PAYERS", False),
        http_timeout=float(_env_number("SPLITBILLS_HTTP_TIMEOUT", 5.0, float)),
    )
    if settings.primary == settings.secondary:
        raise ValueError("SPLITBILLS_PRIMARY and SPLITBILLS_SECONDARY must differ")
    return settings


@cache
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""

    return load_settings()


__all__ = ["Settings", "get_settings", "load_env_file", "load_settings"]
