"""Pytest configuration and shared fixtures for promise-chan tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest
from hypothesis import HealthCheck, settings
from promise_chan._config import reset_config
from promise_chan._logging import clear_log_hooks

# clean_state runs once per @given test, not once per example
settings.register_profile('promise_chan', suppress_health_check=[HealthCheck.function_scoped_fixture])
settings.load_profile('promise_chan')


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return 'asyncio'


@pytest.fixture(autouse=True)
def clean_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Start every test from default config, no env overrides, no log hooks."""
    monkeypatch.delenv('PROMISE_CHAN_TIMEOUT_MS', raising=False)
    monkeypatch.delenv('PROMISE_CHAN_LOG_LEVEL', raising=False)
    reset_config()
    clear_log_hooks()
    yield
    reset_config()
    clear_log_hooks()
