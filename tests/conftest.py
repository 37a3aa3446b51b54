"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports the settings module,
so no developer .env file leaks into the test run.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")

import pytest  # noqa: E402

from throttle.core import rate_limit as rate_limit_module  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_global_limiter(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop the cached process-wide limiter so counters never leak across tests."""
    monkeypatch.setattr(rate_limit_module, "_limiter", None)
    monkeypatch.setattr(rate_limit_module, "_limiter_config", None)
