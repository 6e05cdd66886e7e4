"""
Shared fixtures.
"""

import datetime

import pytest

from meso.config import Settings


@pytest.fixture
def now():
    return datetime.datetime(2026, 10, 19, 18, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def settings(tmp_path):
    return Settings(cache_dir=str(tmp_path / "cache"), retries=1)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """
    Nothing from the developer's shell leaks into a test.
    """
    for name in ("MESO_LATITUDE", "MESO_LONGITUDE", "MESO_STATION",
                 "MESO_CACHE_DIR", "MESO_CACHE_TTL", "MESO_TIMEOUT",
                 "MESO_RETRIES", "MESO_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
