"""Shared pytest fixtures for roomrack tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

_RACK_ENV_VARS = (
    "APP_ENV",
    "RACK_STRICT_VALIDATION",
    "RACK_DEFAULT_TIMEZONE",
    "RACK_MAX_ALTERNATIVES",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_rack_env(monkeypatch):
    """Run every test with default settings.

    Settings are read from the environment on each call, so a variable leaked
    from the shell (APP_ENV=development turns strict validation on) would
    change drop outcomes for unknown rooms.
    """
    for name in _RACK_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
