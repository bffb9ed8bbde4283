"""Time utilities: UTC timestamps and property-local business dates."""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from roomrack.observability.logging import get_logger
from roomrack.settings import default_timezone

logger = get_logger(__name__)


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def local_today(tz_name: str | None, now: datetime | None = None) -> date:
    """Business date in ``tz_name``; falls back to RACK_DEFAULT_TIMEZONE.

    Args:
        tz_name: IANA timezone of the property (may be None or invalid).
        now: Reference instant, defaults to utc_now().

    Raises:
        RuntimeError: If RACK_DEFAULT_TIMEZONE itself is not a valid timezone.
    """
    fallback = default_timezone()
    try:
        tz = ZoneInfo(tz_name or fallback)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            "invalid timezone, using fallback",
            extra={"extra_fields": {"timezone": tz_name, "fallback": fallback}},
        )
        tz = ZoneInfo(fallback)
    return (now or utc_now()).astimezone(tz).date()
