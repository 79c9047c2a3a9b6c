"""Tests for the Outcome union and the propagation protocol helpers."""

from __future__ import annotations

import traceback

import pytest
from hypothesis import given
from promise_chan import NIL, Failure, Payload, capture, captured, unwrap, unwrap_raw
from promise_chan.outcome import is_failure, is_payload
from promise_chan.propagate import capture_async, captured_async, from_item

from tests.strategies import exceptions, payloads


class TestPayload:
    """Tests for the Payload variant."""

    def test_is_payload(self) -> None:
        outcome = Payload(3)
        assert outcome.is_payload()
        assert not outcome.is_failure()
        assert is_payload(outcome)
        assert not is_failure(outcome)

    def test_nil_payload(self) -> None:
        """Payload(None) is nil and equals NIL."""
        assert Payload(None).is_nil()
        assert Payload(None) == NIL
        assert not Payload(0).is_nil()

    def test_map(self) -> None:
        assert Payload(2).map(lambda x: x * 3) == Payload(6)

    def test_match(self) -> None:
        match Payload('x'):
            case Payload(value):
                assert value == 'x'
            case _:
                pytest.fail('Payload did not match')

    def test_repr(self) -> None:
        assert repr(Payload(1)) == 'Payload(1)'


class TestFailure:
    """Tests for the Failure variant."""

    def test_is_failure(self) -> None:
        outcome = Failure(ValueError('bad'))
        assert outcome.is_failure()
        assert not outcome.is_payload()
        assert not outcome.is_nil()

    def test_unwrap_raises_same_object(self) -> None:
        error = ValueError('bad')
        with pytest.raises(ValueError) as info:
            Failure(error).unwrap()
        assert info.value is error

    def test_unwrap_raw_returns_error(self) -> None:
        error = KeyError('k')
        assert Failure(error).unwrap_raw() is error

    def test_repeated_unwrap_keeps_traceback_depth(self) -> None:
        """Each raise restores the captured traceback instead of extending it."""

        def fail() -> None:
            raise ValueError('bad')

        outcome = capture(fail)
        depths = []
        for _ in range(3):
            with pytest.raises(ValueError) as info:
                outcome.unwrap()
            depths.append(len(list(traceback.walk_tb(info.value.__traceback__))))

        assert depths[0] == depths[1] == depths[2]

    def test_map_is_noop(self) -> None:
        outcome = Failure(ValueError('bad'))
        assert outcome.map(lambda x: x + 1) is outcome


class TestCapture:
    """Tests for capture() and capture_async()."""

    def test_capture_value(self) -> None:
        assert capture(lambda: 6 / 2) == Payload(3.0)

    def test_capture_failure(self) -> None:
        outcome = capture(lambda: 6 / 0)
        assert isinstance(outcome, Failure)
        assert isinstance(outcome.error, ZeroDivisionError)

    def test_capture_passes_args(self) -> None:
        assert capture(pow, 2, 5) == Payload(32)

    def test_capture_does_not_catch_base_exception(self) -> None:
        def interrupt() -> None:
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            capture(interrupt)

    @pytest.mark.anyio
    async def test_capture_async_coroutine(self) -> None:
        async def body() -> int:
            return 7

        assert await capture_async(body) == Payload(7)

    @pytest.mark.anyio
    async def test_capture_async_sync_callable(self) -> None:
        assert await capture_async(lambda: 'sync') == Payload('sync')

    @pytest.mark.anyio
    async def test_capture_async_failure_identity(self) -> None:
        error = RuntimeError('boom')

        async def body() -> None:
            raise error

        outcome = await capture_async(body)
        assert isinstance(outcome, Failure)
        assert outcome.error is error


class TestChannelItems:
    """Tests for from_item(), the channel-item to Outcome mapping."""

    def test_none_is_nil(self) -> None:
        assert from_item(None) is NIL

    def test_outcomes_pass_through(self) -> None:
        failure = Failure(ValueError('x'))
        assert from_item(failure) is failure
        assert from_item(Payload(1)) == Payload(1)

    def test_untagged_exception_is_payload(self) -> None:
        """An exception put on a channel untagged is data, not a failure."""
        error = ValueError('looks like a failure')
        assert from_item(error) == Payload(error)


class TestUnwrap:
    """Tests for unwrap() and unwrap_raw()."""

    def test_unwrap_payload(self) -> None:
        assert unwrap(Payload(5)) == 5

    def test_unwrap_failure_raises(self) -> None:
        error = ValueError('v')
        with pytest.raises(ValueError) as info:
            unwrap(Failure(error))
        assert info.value is error

    def test_unwrap_keeps_cause(self) -> None:
        try:
            try:
                raise KeyError('inner')
            except KeyError as inner:
                raise RuntimeError('outer') from inner
        except RuntimeError as e:
            error = e

        with pytest.raises(RuntimeError) as info:
            unwrap(Failure(error))
        assert isinstance(info.value.__cause__, KeyError)

    def test_unwrap_raw(self) -> None:
        error = ValueError('v')
        assert unwrap_raw(Failure(error)) is error
        assert unwrap_raw(Payload(None)) is None


class TestCapturedDecorators:
    """Tests for @captured and @captured_async."""

    def test_captured_without_args(self) -> None:
        @captured
        def divide(a: int, b: int) -> float:
            return a / b

        assert divide(6, 2) == Payload(3.0)
        assert isinstance(divide(6, 0), Failure)

    def test_captured_with_exceptions(self) -> None:
        @captured(exceptions=(KeyError,))
        def lookup(key: str) -> int:
            return {'a': 1}[key]

        assert lookup('a') == Payload(1)
        assert isinstance(lookup('b'), Failure)

    def test_captured_lets_other_exceptions_through(self) -> None:
        @captured(exceptions=(KeyError,))
        def fail() -> None:
            raise ValueError('not captured')

        with pytest.raises(ValueError, match='not captured'):
            fail()

    def test_captured_preserves_name(self) -> None:
        @captured
        def named() -> None:
            return None

        assert named.__name__ == 'named'

    @pytest.mark.anyio
    async def test_captured_async(self) -> None:
        @captured_async
        async def fetch(ok: bool) -> str:
            if not ok:
                raise ConnectionError('down')
            return 'data'

        assert await fetch(True) == Payload('data')
        outcome = await fetch(False)
        assert isinstance(outcome, Failure)
        assert isinstance(outcome.error, ConnectionError)


@pytest.mark.hypothesis_property
class TestOutcomeProperties:
    """Property tests for the propagation protocol."""

    @given(payloads)
    def test_capture_then_unwrap_returns_value(self, value: object) -> None:
        assert unwrap(capture(lambda: value)) is value

    @given(exceptions)
    def test_raised_error_round_trips_by_identity(self, error: Exception) -> None:
        def body() -> None:
            raise error

        outcome = capture(body)
        assert unwrap_raw(outcome) is error
        with pytest.raises(type(error)) as info:
            unwrap(outcome)
        assert info.value is error

    @given(payloads)
    def test_from_item_never_produces_failure_from_data(self, value: object) -> None:
        assert from_item(value).is_payload()
