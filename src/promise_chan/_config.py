"""Harness configuration: HarnessConfig, init(), and per-test config coercion."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

import msgspec

from promise_chan._logging import configure_logging, get_logger
from promise_chan.types import LogLevel, TimeoutMillis

__all__ = [
    'DEFAULT_TIMEOUT_MS',
    'HarnessConfig',
    'coerce_config',
    'get_config',
    'init',
    'reset_config',
]

DEFAULT_TIMEOUT_MS = 2000

TIMEOUT_ENV = 'PROMISE_CHAN_TIMEOUT_MS'
LOG_LEVEL_ENV = 'PROMISE_CHAN_LOG_LEVEL'

logger = get_logger(__name__)


class HarnessConfig(msgspec.Struct, frozen=True, kw_only=True, forbid_unknown_fields=True):
    """Configuration for async test executions.

    Attributes:
        timeout_ms: Deadline for a test body, in milliseconds.
        log_level: Logging level (e.g., "DEBUG", "INFO"). None = leave logging alone.
    """

    timeout_ms: TimeoutMillis = DEFAULT_TIMEOUT_MS
    log_level: LogLevel | None = None

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


# Global configuration (set by init())
_config: HarnessConfig | None = None


def _env_overrides() -> dict[str, Any]:
    """Read config overrides from the environment.

    Invalid values are logged and skipped.
    """
    overrides: dict[str, Any] = {}

    raw_timeout = os.environ.get(TIMEOUT_ENV, '').strip()
    if raw_timeout:
        try:
            overrides['timeout_ms'] = int(raw_timeout)
        except ValueError:
            logger.warning('config.invalid_env', variable=TIMEOUT_ENV, value=raw_timeout)

    raw_level = os.environ.get(LOG_LEVEL_ENV, '').strip()
    if raw_level:
        overrides['log_level'] = raw_level

    for key, value in list(overrides.items()):
        try:
            msgspec.convert({key: value}, HarnessConfig)
        except msgspec.ValidationError as e:
            logger.warning('config.invalid_env', field=key, value=value, error=str(e))
            del overrides[key]

    return overrides


def init(
    timeout_ms: int | None = None,
    log_level: str | None = None,
) -> HarnessConfig:
    """Initialize the process-wide harness configuration.

    Arguments win over environment variables (PROMISE_CHAN_TIMEOUT_MS,
    PROMISE_CHAN_LOG_LEVEL), which win over the defaults.

    Args:
        timeout_ms: Default deadline for async tests.
        log_level: Logging level ("DEBUG", "INFO", etc.). None = silent.

    Returns:
        The HarnessConfig that was set.

    Raises:
        msgspec.ValidationError: If an explicit argument is out of range.

    Example:
        ```python
        from promise_chan import init

        init(timeout_ms=500, log_level='DEBUG')
        ```
    """
    global _config  # noqa: PLW0603

    fields = _env_overrides()
    if timeout_ms is not None:
        fields['timeout_ms'] = timeout_ms
    if log_level is not None:
        fields['log_level'] = log_level

    _config = msgspec.convert(fields, HarnessConfig)

    if _config.log_level is not None:
        configure_logging(_config.log_level)

    return _config


def get_config() -> HarnessConfig:
    """Get the active harness configuration.

    Returns defaults (with environment overrides) when init() was never called.
    """
    if _config is None:
        return msgspec.convert(_env_overrides(), HarnessConfig)
    return _config


def reset_config() -> None:
    """Forget the configuration set by init()."""
    global _config  # noqa: PLW0603
    _config = None


def coerce_config(value: HarnessConfig | Mapping[str, Any] | None) -> HarnessConfig:
    """Turn a per-test config value into a validated HarnessConfig.

    Mapping values are layered over the active configuration, so
    ``{'timeout_ms': 500}`` keeps the configured log level.

    Raises:
        msgspec.ValidationError: If the mapping has unknown or out-of-range fields.
    """
    if value is None:
        return get_config()
    if isinstance(value, HarnessConfig):
        return value
    base = msgspec.structs.asdict(get_config())
    return msgspec.convert({**base, **value}, HarnessConfig)
