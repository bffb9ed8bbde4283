"""Runtime settings loaded from environment variables.

APP_ENV                  development | staging | production (default production)
RACK_STRICT_VALIDATION   force strict drop validation on/off (1/true/yes)
RACK_DEFAULT_TIMEZONE    fallback timezone when a property has none (default UTC)
RACK_MAX_ALTERNATIVES    alternatives returned to the rack (default 4)
LOG_LEVEL                root level for JSON loggers (default INFO)

Each variable has its own reader so a consumer only parses what it uses: a
malformed RACK_MAX_ALTERNATIVES must not break drop validation or logging.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_env: str = "production"
    strict_validation: bool = False
    default_timezone: str = "UTC"
    max_alternatives: int = 4
    log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise RuntimeError(f"{name} must be >= 0, got {value}")
    return value


def app_env() -> str:
    return os.environ.get("APP_ENV", "production").strip().lower()


def strict_validation() -> bool:
    """Whether drop contract violations raise instead of degrading.

    Defaults to on in development so that caller contract violations surface
    as exceptions instead of a silent ``blocked``.
    """
    raw = os.environ.get("RACK_STRICT_VALIDATION")
    if raw is None or raw.strip() == "":
        return app_env() == "development"
    return raw.strip().lower() in _TRUTHY


def default_timezone() -> str:
    """Fallback IANA timezone; raises RuntimeError if it does not resolve."""
    name = os.environ.get("RACK_DEFAULT_TIMEZONE") or "UTC"
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise RuntimeError(f"RACK_DEFAULT_TIMEZONE is not a valid timezone: {name!r}") from None
    return name


def max_alternatives() -> int:
    return _env_int("RACK_MAX_ALTERNATIVES", 4)


def log_level() -> str:
    return (os.environ.get("LOG_LEVEL") or "INFO").upper()


def get_settings() -> Settings:
    """Read and validate every setting from the environment."""
    return Settings(
        app_env=app_env(),
        strict_validation=strict_validation(),
        default_timezone=default_timezone(),
        max_alternatives=max_alternatives(),
        log_level=log_level(),
    )
