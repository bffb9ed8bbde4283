"""Redaction helpers for safe logging.

Guest-identifying data (names, phones, emails) must never reach the logs.
Every value passed as log context goes through safe_log_context().
"""

import re
from datetime import date
from enum import Enum
from typing import Any

_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{8,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Context keys whose values are dropped regardless of content.
_PII_KEYS = frozenset({"guest_name", "guest", "name", "email", "phone"})

_REDACTED = "[REDACTED]"


def redact_string(value: str) -> str:
    """Redact phone and email patterns from a string."""
    result = _PHONE_PATTERN.sub(_REDACTED, value)
    result = _EMAIL_PATTERN.sub(_REDACTED, result)
    return result


def redact_value(value: Any) -> str:
    """Render a value for logs; containers are summarized, never dumped."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a log context dict with every value redacted."""
    return {
        key: _REDACTED if key.lower() in _PII_KEYS else redact_value(value)
        for key, value in kwargs.items()
    }
