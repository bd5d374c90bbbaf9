"""
Shared fixtures for the developer helper tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

import developer_helper.cache.helper as cache_helper_module
import developer_helper.secrets_manager as secrets_manager_module
from developer_helper.config import HelperConfig, reset_config


class FakeClock:
    """Manually advanced clock for expiration tests."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def isolated_globals(monkeypatch):
    """Reset process-wide singletons between tests."""
    reset_config()
    monkeypatch.setattr(cache_helper_module, "_cache_helper", None)
    monkeypatch.setattr(secrets_manager_module, "_secrets_manager", None)
    yield
    reset_config()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config(tmp_path):
    """Settings independent of the caller's environment."""
    return HelperConfig(
        _env_file=None,
        cache_capacity_limit=10,
        cache_compaction_fraction=0.2,
        secrets_file=str(tmp_path / "secrets.json"),
        password_hash_iterations=1_000,
    )
