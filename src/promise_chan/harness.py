"""Async test harness: run a body as a promise, race it against a deadline.

A :class:`TestExecution` resolves the test body through
:func:`~promise_chan.promise.resolve_with` and waits for the promise under
an ``anyio.move_on_after`` deadline. Whichever finishes first decides the
verdict; the loser is cancelled:

- body first: leaving the deadline scope disarms the timer.
- deadline first: the body's CancellationToken is signalled once and the
  harness waits for the body to unwind before reporting.

Verdicts go to an injectable :class:`VerdictSink`. The default
:class:`RaisingSink` turns them into pytest outcomes: a failure re-raises
the exact exception the body raised, a timeout raises
``DeadlineExceededError``.

Example:
    ```python
    from promise_chan import async_test

    @async_test(timeout_ms=500)
    async def test_fetch():
        assert await fetch() == 'ok'
    ```
"""

from __future__ import annotations

import functools
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

import anyio

from promise_chan._config import HarnessConfig, coerce_config
from promise_chan._logging import get_logger
from promise_chan.errors import DeadlineExceeded, DeadlineExceededError
from promise_chan.outcome import Failure
from promise_chan.promise import CancellationToken, PromiseChannel, resolve_with

__all__ = [
    'CollectingSink',
    'Deadline',
    'ExecutionState',
    'Failed',
    'LoggingSink',
    'Passed',
    'RaisingSink',
    'TestExecution',
    'TimedOut',
    'Verdict',
    'VerdictSink',
    'async_test',
    'run_async_test',
]

logger = get_logger(__name__)

type TestBody = Callable[[], Any] | Callable[[], Awaitable[Any]]


# --- Verdicts ---


@dataclass(slots=True, frozen=True)
class Passed:
    """The body resolved with a payload before the deadline."""

    value: Any = None
    elapsed_ms: float = 0.0


@dataclass(slots=True, frozen=True)
class Failed:
    """The body resolved with a failure; ``error`` is the raised object."""

    error: BaseException


@dataclass(slots=True, frozen=True)
class TimedOut:
    """The deadline elapsed before the body resolved."""

    timeout_ms: int

    def to_exception(self, name: str | None = None) -> DeadlineExceededError:
        return DeadlineExceeded(self.timeout_ms, name).to_exception()


type Verdict = Passed | Failed | TimedOut


class ExecutionState(Enum):
    """Lifecycle of a TestExecution."""

    CREATED = 'created'
    RUNNING = 'running'
    PASSED = 'passed'
    FAILED = 'failed'
    TIMED_OUT = 'timed_out'


_TERMINAL = {
    Passed: ExecutionState.PASSED,
    Failed: ExecutionState.FAILED,
    TimedOut: ExecutionState.TIMED_OUT,
}


# --- Sinks ---


@runtime_checkable
class VerdictSink(Protocol):
    """Receives the verdict of each execution, exactly once."""

    def report(self, execution: TestExecution, verdict: Verdict) -> None: ...


class RaisingSink:
    """Report verdicts to pytest (or any caller) by raising.

    Passed returns quietly, Failed re-raises the original exception object,
    TimedOut raises DeadlineExceededError naming the configured duration.
    """

    def report(self, execution: TestExecution, verdict: Verdict) -> None:
        match verdict:
            case Failed(error):
                raise error
            case TimedOut():
                raise verdict.to_exception(execution.name)
            case _:
                return


class CollectingSink:
    """Record verdicts instead of raising; for custom reporters and tests."""

    def __init__(self) -> None:
        self.reports: list[tuple[TestExecution, Verdict]] = []

    def report(self, execution: TestExecution, verdict: Verdict) -> None:
        self.reports.append((execution, verdict))

    @property
    def verdicts(self) -> list[Verdict]:
        return [verdict for _, verdict in self.reports]


class LoggingSink:
    """Log verdicts through structlog, then hand them to another sink."""

    def __init__(self, inner: VerdictSink | None = None) -> None:
        self._inner = inner

    def report(self, execution: TestExecution, verdict: Verdict) -> None:
        log = logger.bind(test=execution.name, elapsed_ms=round(execution.elapsed_ms, 3))
        match verdict:
            case Passed():
                log.info('async_test.passed')
            case Failed(error):
                detail = error.to_struct() if hasattr(error, 'to_struct') else repr(error)
                log.error('async_test.failed', error=detail, error_type=type(error).__name__)
            case TimedOut(timeout_ms):
                log.error(
                    'async_test.timed_out',
                    timeout_ms=timeout_ms,
                    error=DeadlineExceeded(timeout_ms, execution.name),
                )
        if self._inner is not None:
            self._inner.report(execution, verdict)


# --- Execution ---


class Deadline:
    """Timer racing the body; armed as an anyio move_on_after scope."""

    __slots__ = ('_scope', 'timeout_ms')

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        self._scope: anyio.CancelScope | None = None

    def arm(self) -> anyio.CancelScope:
        self._scope = anyio.move_on_after(self.timeout_ms / 1000)
        return self._scope

    @property
    def armed(self) -> bool:
        return self._scope is not None and self._scope.deadline != float('inf')

    @property
    def expired(self) -> bool:
        return self._scope is not None and self._scope.cancelled_caught

    def disarm(self) -> None:
        if self._scope is not None:
            self._scope.deadline = float('inf')


class TestExecution:
    """One run of an async test body against a deadline.

    Owns the body's PromiseChannel, its Deadline and its CancellationToken,
    and is the only party that cancels whichever side loses the race.

    Attributes:
        name: Label for reports, defaults to the body's qualified name.
        config: Validated HarnessConfig for this run.
        token: Cancellation token the body runs under.
        deadline: Timer racing the body.
        promise: The body's promise once running, else None.
        state: Current ExecutionState.
        verdict: Terminal verdict once finished, else None.
    """

    __test__ = False

    def __init__(
        self,
        body: TestBody,
        config: HarnessConfig | Mapping[str, Any] | None = None,
        *,
        sink: VerdictSink | None = None,
        name: str | None = None,
    ) -> None:
        self._body = body
        self.config = coerce_config(config)
        self.name = name or getattr(body, '__qualname__', None)
        self.token = CancellationToken()
        self.deadline = Deadline(self.config.timeout_ms)
        self.promise: PromiseChannel[Any] | None = None
        self.state = ExecutionState.CREATED
        self.verdict: Verdict | None = None
        self._sink: VerdictSink = sink if sink is not None else RaisingSink()
        self._started_at: float | None = None
        self._elapsed: float = 0.0

    @property
    def elapsed_ms(self) -> float:
        if self._started_at is not None and self.verdict is None:
            return (time.monotonic() - self._started_at) * 1000
        return self._elapsed * 1000

    async def run(self) -> Verdict:
        """Run the body, decide the verdict, report it once, and return it.

        Raises:
            RuntimeError: If this execution was already run.
            BaseException: Whatever the sink raises (RaisingSink re-raises
                failures and timeouts).
        """
        if self.state is not ExecutionState.CREATED:
            msg = f'TestExecution {self.name!r} already {self.state.value}'
            raise RuntimeError(msg)

        self.state = ExecutionState.RUNNING
        self._started_at = time.monotonic()
        logger.debug('async_test.started', test=self.name, timeout_ms=self.deadline.timeout_ms)

        async with anyio.create_task_group() as tg:
            self.promise = resolve_with(self._body, task_group=tg, token=self.token, name=self.name)
            outcome = None
            with self.deadline.arm():
                outcome = await self.promise.outcome()
            if outcome is None:
                self.token.cancel(f'deadline of {self.deadline.timeout_ms} ms elapsed')
            else:
                self.deadline.disarm()

        self._elapsed = time.monotonic() - self._started_at
        verdict = self._decide(outcome)
        self.verdict = verdict
        self.state = _TERMINAL[type(verdict)]
        logger.debug('async_test.finished', test=self.name, verdict=type(verdict).__name__)
        self._sink.report(self, verdict)
        return verdict

    def _decide(self, outcome: Any) -> Verdict:
        if outcome is None:
            return TimedOut(self.deadline.timeout_ms)
        if isinstance(outcome, Failure):
            return Failed(outcome.error)
        return Passed(outcome.value, self._elapsed * 1000)

    def __repr__(self) -> str:
        return f'TestExecution({self.name!r}, {self.state.value})'


async def run_async_test(
    body: TestBody,
    config: HarnessConfig | Mapping[str, Any] | None = None,
    *,
    sink: VerdictSink | None = None,
    name: str | None = None,
) -> Verdict:
    """Run ``body`` as an async test and return its verdict.

    Args:
        body: Zero-argument sync or async callable.
        config: HarnessConfig, or a mapping such as ``{'timeout_ms': 500}``.
            Defaults to the active configuration (2000 ms unless changed).
        sink: Where the verdict is reported. Defaults to RaisingSink.
        name: Label for reports.

    Returns:
        The Verdict (when the sink does not raise).
    """
    execution = TestExecution(body, config, sink=sink, name=name)
    return await execution.run()


def async_test(
    func: Callable[..., Awaitable[Any]] | None = None,
    *,
    timeout_ms: int | None = None,
    sink: VerdictSink | None = None,
    backend: str = 'asyncio',
) -> Any:
    """Register an ``async def`` test as a plain test function.

    The wrapper is synchronous, so pytest collects and calls it like any
    other test; fixtures are passed through. Each call runs the body under
    ``anyio.run`` with the harness deadline.

    Can be used with or without arguments:
        @async_test
        async def test_a(): ...

        @async_test(timeout_ms=100)
        async def test_b(tmp_path): ...

    Args:
        func: The coroutine function (when used without parentheses).
        timeout_ms: Deadline override; the active config applies when None.
        sink: Verdict sink; RaisingSink when None.
        backend: anyio backend name ("asyncio" or "trio").
    """

    def decorate(fn: Callable[..., Awaitable[Any]]) -> Callable[..., None]:
        config = {'timeout_ms': timeout_ms} if timeout_ms is not None else None

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> None:
            body = functools.partial(fn, *args, **kwargs)
            anyio.run(
                functools.partial(run_async_test, body, config, sink=sink, name=fn.__qualname__),
                backend=backend,
            )

        wrapper.timeout_ms = timeout_ms  # type: ignore[attr-defined]
        return wrapper

    if func is not None:
        return decorate(func)
    return decorate
