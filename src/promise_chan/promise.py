"""PromiseChannel: write-once, broadcast-read, nil-safe resolution.

A promise channel owns one suspension channel. The single resolving scope
writes its Outcome into it and closes it; a None result is written as a
close with no item. The write never suspends, so it cannot interleave with
another writer on a cooperative scheduler. The outcome is then latched
into the promise and every reader, in any task or OS thread, observes the
same cached Outcome.

Example:
    ```python
    import anyio
    from promise_chan import resolve_with, take

    async def main():
        async with anyio.create_task_group() as tg:
            p = resolve_with(lambda: 6 / 2, task_group=tg)
            assert await take(p) == 3
            assert await p == 3  # cached, no second evaluation
    ```
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import aiologic
import anyio

from promise_chan.channels import MemoryChannel, SuspensionChannel
from promise_chan.errors import AlreadyResolved, Cancelled, ChannelClosedError, Timeout
from promise_chan.outcome import Failure, Outcome, Payload
from promise_chan.propagate import capture_async, from_item, unwrap

if TYPE_CHECKING:
    from anyio.abc import TaskGroup

__all__ = [
    'CancellationToken',
    'PromiseChannel',
    'resolve',
    'resolve_with',
]

_PROCESS_EXITS = (KeyboardInterrupt, SystemExit)


class CancellationToken:
    """Cancellation signal for one resolution scope.

    Wraps an anyio CancelScope: cancelling the token cancels every
    suspension point inside the body, which then unwinds cooperatively.
    Cancelling is idempotent; only the first call counts as a signal.
    """

    __slots__ = ('_reason', '_scope', '_signals')

    def __init__(self) -> None:
        self._scope = anyio.CancelScope()
        self._reason: str | None = None
        self._signals = 0

    @property
    def scope(self) -> anyio.CancelScope:
        """The cancel scope the body runs under. Can be entered once."""
        return self._scope

    @property
    def cancelled(self) -> bool:
        return self._signals > 0

    @property
    def reason(self) -> str | None:
        return self._reason

    @property
    def signal_count(self) -> int:
        """Number of times the token was signalled (0 or 1)."""
        return self._signals

    def cancel(self, reason: str | None = None) -> None:
        """Signal cancellation. Subsequent calls are no-ops.

        Args:
            reason: Optional reason, carried into the CancelledError
                the promise resolves with.
        """
        if self._signals:
            return
        self._signals = 1
        self._reason = reason
        self._scope.cancel()

    def raise_if_cancelled(self) -> None:
        """Raise CancelledError if the token was signalled.

        For bodies doing synchronous work between suspension points.
        """
        if self._signals:
            raise Cancelled(self._reason).to_exception()

    def __repr__(self) -> str:
        state = f'cancelled, reason={self._reason!r}' if self._signals else 'active'
        return f'CancellationToken({state})'


class PromiseChannel[T]:
    """Promise-like channel: exactly one write, any number of reads.

    States: pending, then resolved with Payload(value), NIL, or Failure(error).

    Attributes:
        _channel: The owned suspension channel carrying the single write.
        _outcome: Latched outcome once resolved.
        _event: aiologic event; awaitable from tasks and waitable from threads.
    """

    __slots__ = ('_channel', '_event', '_name', '_outcome', '_written')

    def __init__(self, *, name: str | None = None) -> None:
        self._channel: SuspensionChannel[Outcome[T]] = MemoryChannel(1)
        self._outcome: Outcome[T] | None = None
        self._event: aiologic.Event = aiologic.Event()
        self._written = False
        self._name = name

    @classmethod
    def resolved(cls, value: T, *, name: str | None = None) -> PromiseChannel[T]:
        """Create a promise already resolved with ``value``."""
        promise: PromiseChannel[T] = cls(name=name)
        promise.deliver(Payload(value))
        return promise

    @classmethod
    def rejected(cls, error: BaseException, *, name: str | None = None) -> PromiseChannel[Any]:
        """Create a promise already resolved with ``Failure(error)``."""
        promise: PromiseChannel[Any] = cls(name=name)
        promise.deliver(Failure(error))
        return promise

    @property
    def name(self) -> str | None:
        return self._name

    def is_resolved(self) -> bool:
        return self._event.is_set()

    def deliver(self, outcome: Outcome[T]) -> None:
        """Write the single outcome and close the channel.

        Never suspends. A nil payload closes the channel without an item.

        Raises:
            AlreadyResolvedError: If the promise was already written.
        """
        if self._written:
            raise AlreadyResolved(self._name).to_exception()
        self._written = True

        try:
            if not outcome.is_nil():
                self._channel.put_nowait(outcome)
            self._channel.close()
        except ChannelClosedError:
            raise AlreadyResolved(self._name).to_exception() from None

        self._latch(from_item(self._channel.take_nowait()))

    def _latch(self, outcome: Outcome[T]) -> None:
        self._outcome = outcome
        self._event.set()

    def poll(self) -> Outcome[T] | None:
        """Return the cached outcome, or None while pending. Never suspends."""
        return self._outcome

    async def outcome(self) -> Outcome[T]:
        """Suspend until resolved and return the cached outcome."""
        if self._outcome is None:
            await self._event
        return self._outcome  # type: ignore[return-value]

    def wait_blocking(self, timeout: float | None = None) -> Outcome[T]:
        """Block the calling OS thread until resolved.

        Must not be called from the event loop thread that resolves the
        promise; it would never wake up.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely.

        Raises:
            TimeoutError: If the promise is still pending after ``timeout``.
        """
        if self._outcome is None and not self._event.wait(timeout):
            raise Timeout(timeout or 0.0, operation=self._describe()).to_exception()
        return self._outcome  # type: ignore[return-value]

    def _describe(self) -> str:
        return f"promise '{self._name}'" if self._name else 'promise'

    def __await__(self) -> Any:
        """``await promise`` is an error-checked take."""
        return self._take().__await__()

    async def _take(self) -> T:
        return unwrap(await self.outcome())

    def __repr__(self) -> str:
        label = f' {self._name!r}' if self._name else ''
        if self._outcome is None:
            return f'PromiseChannel{label}(pending)'
        return f'PromiseChannel{label}({self._outcome!r})'


async def _resolve_into[T](
    promise: PromiseChannel[T],
    body: Callable[..., T] | Callable[..., Awaitable[T]],
    args: tuple[Any, ...],
    token: CancellationToken,
) -> None:
    """Run ``body`` under ``token`` and deliver its outcome exactly once.

    ``Exception`` subclasses are captured by :func:`capture_async`. Other
    ``BaseException`` subclasses (e.g. pytest's fail/skip outcomes) resolve
    the promise with ``Failure(e)`` too; only KeyboardInterrupt and
    SystemExit then keep propagating, as does scheduler cancellation.
    """
    outcome: Outcome[T] | None = None
    try:
        with token.scope:
            outcome = await capture_async(body, *args)
    except anyio.get_cancelled_exc_class():
        # cancelled from an enclosing scope: resolve, then keep unwinding
        if not promise.is_resolved():
            promise.deliver(Failure(Cancelled('enclosing scope cancelled').to_exception()))
        raise
    except _PROCESS_EXITS as e:
        promise.deliver(Failure(e))
        raise
    except BaseException as e:
        outcome = Failure(e)

    if outcome is None:
        outcome = Failure(Cancelled(token.reason).to_exception())
    promise.deliver(outcome)


def resolve_with[T](
    body: Callable[..., T] | Callable[..., Awaitable[T]],
    *args: Any,
    task_group: TaskGroup,
    token: CancellationToken | None = None,
    name: str | None = None,
) -> PromiseChannel[T]:
    """Start ``body`` in a failure-capturing scope and return its promise.

    The body runs as a task of ``task_group`` (the scheduler capability);
    this call returns immediately with the pending promise.

    - returns ``v``: resolves with Payload(v); None closes without a value.
    - raises ``e``: resolves with Failure(e), ``e`` kept as-is.
    - cancelled via ``token``: resolves with Failure(CancelledError).

    Args:
        body: Sync or async callable.
        *args: Positional arguments for body.
        task_group: anyio task group that runs the body.
        token: Cancellation token for the body. A fresh one if None.
        name: Optional label used in reprs and errors.

    Returns:
        The PromiseChannel receiving the body's outcome.
    """
    promise: PromiseChannel[T] = PromiseChannel(name=name)
    task_group.start_soon(
        _resolve_into,
        promise,
        body,
        args,
        token if token is not None else CancellationToken(),
        name=name or getattr(body, '__qualname__', None),
    )
    return promise


async def resolve[T](
    body: Callable[..., T] | Callable[..., Awaitable[T]],
    *args: Any,
    token: CancellationToken | None = None,
    name: str | None = None,
) -> PromiseChannel[T]:
    """Run ``body`` to completion in the current task and return its resolved promise."""
    promise: PromiseChannel[T] = PromiseChannel(name=name)
    await _resolve_into(promise, body, args, token if token is not None else CancellationToken())
    return promise
