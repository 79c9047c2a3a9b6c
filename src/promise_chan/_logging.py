"""structlog setup for promise-chan.

Harness verdicts, config warnings and any stdlib records (anyio, pytest
plugins) go through one ProcessorFormatter, so a test run produces a single
stream of JSON or console lines. Error structs from :mod:`promise_chan.errors`
can be passed as log fields directly; they are rendered as plain dicts.

Hooks registered with :func:`add_log_hook` see every event after the shared
processors have run, e.g. to collect verdicts in a custom reporter.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from typing import TYPE_CHECKING, Any

import msgspec
import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

    type LogHook = Callable[[dict[str, Any]], None]

__all__ = [
    'add_log_hook',
    'clear_log_hooks',
    'configure_logging',
    'get_logger',
    'remove_log_hook',
]

_log_hooks: list[LogHook] = []


def _render_structs(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Replace msgspec.Struct field values with builtin dicts tagged by type."""
    for key, value in event_dict.items():
        if isinstance(value, msgspec.Struct):
            event_dict[key] = {'type': type(value).__name__, **msgspec.to_builtins(value)}
    return event_dict


def _run_hooks(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for hook in tuple(_log_hooks):
        # hook errors are dropped
        with contextlib.suppress(Exception):
            hook(dict(event_dict))
    return event_dict


def _pre_chain() -> list[Any]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.stdlib.ExtraAdder(),
        _render_structs,
        _run_hooks,
    ]


def _formatter(json_output: bool) -> logging.Formatter:
    renderer: Any = (
        structlog.processors.JSONRenderer(default=repr)
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def configure_logging(level: str = 'INFO', *, json_output: bool = True) -> None:
    """Route structlog and stdlib logging to stderr through one formatter.

    Replaces the root logger's handlers, so calling it again reconfigures
    rather than duplicating output.

    Args:
        level: Logging level name, case-insensitive. Unknown names mean INFO.
        json_output: JSON lines if True, otherwise the structlog console renderer.
    """
    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter(json_output))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


# --- Hooks ---


def add_log_hook(hook: LogHook) -> None:
    """Call ``hook`` with a copy of every log event dict."""
    _log_hooks.append(hook)


def remove_log_hook(hook: LogHook) -> None:
    """Unregister ``hook``; unknown hooks are ignored."""
    with contextlib.suppress(ValueError):
        _log_hooks.remove(hook)


def clear_log_hooks() -> None:
    _log_hooks.clear()
