"""
Shared test fixtures for the SolisCloud poller tests.

Provides environment variable fixtures for SolisSettings configuration tests
and a vendor-shaped inverter detail record. All poller env vars are cleaned
before each test to ensure isolation.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

_FIXTURES = Path(__file__).parent / "fixtures"

# All SolisSettings environment variable names, used for cleanup.
_ALL_POLLER_ENV_VARS = (
    "SOLIS_API",
    "SOLIS_KEY",
    "SOLIS_SECRET",
    "REQUEST_TIMEOUT_S",
    "DEVICE_INTERVAL_S",
    "CYCLE_INTERVAL_S",
    "ZERO_SUPPRESSION",
    "SINK_URL",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_poller_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove all poller env vars and isolate from .env files before each test."""
    for var in _ALL_POLLER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required and optional environment variables for SolisSettings."""
    env = {
        "SOLIS_API": "https://www.soliscloud.com:13333/",
        "SOLIS_KEY": "1300386381676000000",
        "SOLIS_SECRET": "test-secret",
        "REQUEST_TIMEOUT_S": "5",
        "DEVICE_INTERVAL_S": "2",
        "CYCLE_INTERVAL_S": "120",
        "ZERO_SUPPRESSION": "true",
        "SINK_URL": "http://victoria.local:8428",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def env_vars_required_only(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables (no optional ones)."""
    env = {
        "SOLIS_API": "https://www.soliscloud.com:13333",
        "SOLIS_KEY": "key-id",
        "SOLIS_SECRET": "secret-xyz",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def inverter_detail() -> dict[str, object]:
    """A recorded-shape inverterDetail ``data`` payload."""
    return json.loads((_FIXTURES / "inverter_detail.json").read_text(encoding="utf-8"))
