"""Shared test fixtures for Aura bio-age tests."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

_ENGINE_ENV_VARS = [
    "BIOAGE_SHRINKAGE",
    "BIOAGE_DOMAIN_CLAMP_YEARS",
    "BIOAGE_STALE_HOURS",
    "BIOAGE_DEFAULT_SLEEP_NIGHTS",
]


@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENGINE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AURA_LOG_LEVEL", "debug")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

NOW = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for freshness checks."""
    return NOW
