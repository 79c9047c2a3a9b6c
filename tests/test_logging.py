"""Tests for logging configuration and hooks."""

from __future__ import annotations

import logging
from typing import Any

from promise_chan._logging import (
    add_log_hook,
    configure_logging,
    get_logger,
    remove_log_hook,
)
from promise_chan.errors import Cancelled, Timeout


class TestLogHooks:
    """Tests for logging hooks functionality."""

    def test_hook_receives_log_events(self) -> None:
        """Registered hooks receive log entry dicts."""
        received: list[dict[str, Any]] = []

        configure_logging(level='DEBUG', json_output=True)
        add_log_hook(received.append)

        logger = get_logger('test')
        logger.info('Test message', extra_field='extra_value')

        entries = [e for e in received if e.get('event') == 'Test message']
        assert len(entries) == 1
        assert entries[0]['extra_field'] == 'extra_value'
        assert entries[0]['level'] == 'info'

    def test_multiple_hooks_all_called(self) -> None:
        calls: list[str] = []

        configure_logging(level='DEBUG')
        add_log_hook(lambda _: calls.append('hook1'))
        add_log_hook(lambda _: calls.append('hook2'))

        get_logger('test').info('Test')

        assert calls == ['hook1', 'hook2']

    def test_remove_hook(self) -> None:
        """remove_log_hook() stops the hook from being called."""
        calls: list[str] = []

        def hook(event_dict: dict[str, Any]) -> None:
            calls.append('called')

        configure_logging(level='DEBUG')
        add_log_hook(hook)
        logger = get_logger('test')

        logger.info('First')
        remove_log_hook(hook)
        logger.info('Second')

        assert calls == ['called']

    def test_remove_unknown_hook_is_noop(self) -> None:
        remove_log_hook(lambda _: None)

    def test_broken_hook_does_not_break_logging(self) -> None:
        received: list[dict[str, Any]] = []

        def broken(event_dict: dict[str, Any]) -> None:
            raise RuntimeError('hook failure')

        configure_logging(level='DEBUG')
        add_log_hook(broken)
        add_log_hook(received.append)

        get_logger('test').warning('Still logged')

        assert [e['event'] for e in received] == ['Still logged']

    def test_struct_values_rendered_as_dicts(self) -> None:
        """msgspec structs in an event are rendered with their type name."""
        received: list[dict[str, Any]] = []

        configure_logging(level='DEBUG')
        add_log_hook(received.append)

        get_logger('test').error('read timed out', error=Timeout(1.0, 'op'), plain='kept')

        [entry] = [e for e in received if e.get('event') == 'read timed out']
        assert entry['error'] == {'type': 'Timeout', 'seconds': 1.0, 'operation': 'op'}
        assert entry['plain'] == 'kept'


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_sets_root_level(self) -> None:
        configure_logging(level='warning')
        assert logging.getLogger().level == logging.WARNING

    def test_single_handler(self) -> None:
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_console_output(self, capsys: Any) -> None:
        configure_logging(level='INFO', json_output=False)
        get_logger('console').info('plain text event')

        assert 'plain text event' in capsys.readouterr().err

    def test_json_output(self, capsys: Any) -> None:
        configure_logging(level='INFO', json_output=True)
        get_logger('json').info('json event', answer=42)

        err = capsys.readouterr().err
        assert '"event": "json event"' in err
        assert '"answer": 42' in err

    def test_json_output_renders_structs(self, capsys: Any) -> None:
        configure_logging(level='INFO', json_output=True)
        get_logger('json').info('cancelled', error=Cancelled('stopped'))

        assert '"error": {"type": "Cancelled", "reason": "stopped"}' in capsys.readouterr().err
