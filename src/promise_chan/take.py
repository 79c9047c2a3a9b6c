"""Read operators: scheduling mode x outcome handling x maybe-a-channel.

| mode    | error-checked          | raw                  |
|---------|------------------------|----------------------|
| suspend | take / take_maybe      | take_raw / take_raw_maybe |
| block   | take_blocking / take_maybe_blocking | take_raw_blocking |

Error-checked operators raise the captured exception object itself, so an
``except`` around them sees the original type, message and ``__cause__``.
Raw operators hand back the payload or the exception object as a value.
``maybe`` operators return anything that is not a channel untouched,
without reaching a checkpoint.

Operators accept a :class:`~promise_chan.promise.PromiseChannel` (any
number of reads, all seeing the cached outcome) or a bare
:class:`~promise_chan.channels.SuspensionChannel` (each take consumes the
next item; a closed, drained channel reads as None).

Blocking operators are for OS threads. On a PromiseChannel they wait on a
thread-safe event. On a bare SuspensionChannel they call back into the
event loop with ``anyio.from_thread.run``, so the caller must be a worker
thread started by anyio (e.g. via ``anyio.to_thread.run_sync``).
"""

from __future__ import annotations

from typing import Any

import anyio
import anyio.from_thread

from promise_chan.channels import SuspensionChannel
from promise_chan.errors import Timeout
from promise_chan.foreign import ForeignPromise, adapt_foreign_promise, is_foreign_promise
from promise_chan.outcome import Outcome
from promise_chan.promise import PromiseChannel
from promise_chan.propagate import from_item, unwrap, unwrap_raw

__all__ = [
    'is_channel',
    'take',
    'take_blocking',
    'take_maybe',
    'take_maybe_blocking',
    'take_raw',
    'take_raw_blocking',
    'take_raw_maybe',
]

type Readable[T] = PromiseChannel[T] | SuspensionChannel[Any]


def is_channel(value: Any) -> bool:
    """Whether ``value`` is something the take operators read from."""
    return isinstance(value, (PromiseChannel, SuspensionChannel))


async def _read[T](source: Readable[T]) -> Outcome[T]:
    if isinstance(source, PromiseChannel):
        return await source.outcome()
    if isinstance(source, SuspensionChannel):
        return from_item(await source.take())
    msg = f'Expected a PromiseChannel or SuspensionChannel, got {type(source).__name__}'
    raise TypeError(msg)


def _read_blocking[T](source: Readable[T], timeout: float | None) -> Outcome[T]:
    if isinstance(source, PromiseChannel):
        return source.wait_blocking(timeout)
    if isinstance(source, SuspensionChannel):
        return from_item(anyio.from_thread.run(_take_with_timeout, source, timeout))
    msg = f'Expected a PromiseChannel or SuspensionChannel, got {type(source).__name__}'
    raise TypeError(msg)


async def _take_with_timeout(source: SuspensionChannel[Any], timeout: float | None) -> Any:
    if timeout is None:
        return await source.take()
    with anyio.move_on_after(timeout):
        return await source.take()
    raise Timeout(timeout, operation='channel take').to_exception()


# --- Suspending operators ---


async def take[T](source: Readable[T]) -> T:
    """Take-or-raise: suspend until resolved, return the payload or raise the failure.

    Raises:
        BaseException: The captured failure, same object as was raised.
        TypeError: If ``source`` is not a channel.

    Example:
        ```python
        try:
            value = await take(promise)
        except ZeroDivisionError:
            value = 'ERROR'
        ```
    """
    return unwrap(await _read(source))


async def take_raw[T](source: Readable[T] | ForeignPromise[T]) -> T | BaseException:
    """Take-raw: return the payload or the failure object, never raising it.

    Also accepts a foreign promise (future or awaitable), which is read
    through :func:`~promise_chan.foreign.adapt_foreign_promise`.
    """
    if is_foreign_promise(source):
        async with anyio.create_task_group() as tg:
            channel = adapt_foreign_promise(source, task_group=tg)  # type: ignore[arg-type]
            return unwrap_raw(from_item(await channel.take()))
    return unwrap_raw(await _read(source))  # type: ignore[arg-type]


async def take_maybe[T](value: Readable[T] | T) -> T:
    """Take-or-raise if ``value`` is a channel, else return it as-is."""
    if is_channel(value):
        return await take(value)  # type: ignore[arg-type]
    return value  # type: ignore[return-value]


async def take_raw_maybe[T](value: Readable[T] | T) -> T | BaseException:
    """Take-raw if ``value`` is a channel, else return it as-is."""
    if is_channel(value):
        return await take_raw(value)  # type: ignore[arg-type]
    return value  # type: ignore[return-value]


# --- Thread-blocking operators ---


def take_blocking[T](source: Readable[T], timeout: float | None = None) -> T:
    """Blocking take-or-raise for OS threads.

    Args:
        source: Channel to read.
        timeout: Seconds to wait, None to wait indefinitely.

    Raises:
        BaseException: The captured failure, same object as was raised.
        TimeoutError: From promise_chan.errors, if still pending after ``timeout``.
    """
    return unwrap(_read_blocking(source, timeout))


def take_raw_blocking[T](source: Readable[T], timeout: float | None = None) -> T | BaseException:
    """Blocking take-raw for OS threads."""
    return unwrap_raw(_read_blocking(source, timeout))


def take_maybe_blocking[T](value: Readable[T] | T, timeout: float | None = None) -> T:
    """Blocking take-or-raise if ``value`` is a channel, else return it as-is."""
    if is_channel(value):
        return take_blocking(value, timeout)  # type: ignore[arg-type]
    return value  # type: ignore[return-value]
