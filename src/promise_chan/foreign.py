"""Adapters from foreign single-resolution async values to suspension channels.

Foreign promises are values produced outside the channel model:
``asyncio.Future``, ``concurrent.futures.Future``, or any other awaitable
(coroutine objects included). The adapter settles one into an Outcome and
writes it into a one-slot channel with the same single-write discipline
as :class:`~promise_chan.promise.PromiseChannel`, so the read operators
treat both the same way.

Cancellation only stops the local wait. A ``concurrent.futures.Future``
keeps running in its executor; the worker thread waiting on it is abandoned.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
from typing import TYPE_CHECKING, Any

import anyio

from promise_chan.channels import MemoryChannel, SuspensionChannel
from promise_chan.errors import Cancelled
from promise_chan.outcome import Failure, Outcome, Payload
from promise_chan.promise import PromiseChannel

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from anyio.abc import TaskGroup

__all__ = [
    'ForeignPromise',
    'adapt_foreign_promise',
    'is_foreign_promise',
    'settle_foreign',
]

type ForeignPromise[T] = concurrent.futures.Future[T] | asyncio.Future[T] | Awaitable[T]


def is_foreign_promise(value: Any) -> bool:
    """Whether ``value`` is a foreign single-resolution async value.

    Promise channels are awaitable too, but they are native, not foreign.
    """
    if isinstance(value, (PromiseChannel, SuspensionChannel)):
        return False
    return isinstance(value, concurrent.futures.Future) or inspect.isawaitable(value)


async def settle_foreign[T](foreign: ForeignPromise[T]) -> Outcome[T]:
    """Wait for a foreign promise and tag its result.

    Returns:
        Payload(value) on success, Failure(error) on rejection.

    Raises:
        TypeError: If ``foreign`` is not a foreign promise.
    """
    if isinstance(foreign, concurrent.futures.Future):
        try:
            value = await anyio.to_thread.run_sync(foreign.result, abandon_on_cancel=True)
        except Exception as e:
            return Failure(e)
        return Payload(value)

    if isinstance(foreign, asyncio.Future):
        # wait without awaiting the future itself: cancelling this task must
        # not cancel the foreign future, and its own cancellation is a failure
        await asyncio.wait([foreign])
        if foreign.cancelled():
            return Failure(Cancelled('foreign future cancelled').to_exception())
        error = foreign.exception()
        if error is not None:
            return Failure(error)
        return Payload(foreign.result())

    if not inspect.isawaitable(foreign):
        msg = f'Expected a future or awaitable, got {type(foreign).__name__}'
        raise TypeError(msg)

    try:
        value = await foreign
    except Exception as e:
        return Failure(e)
    return Payload(value)


async def _pump[T](foreign: ForeignPromise[T], channel: MemoryChannel[Outcome[T]]) -> None:
    try:
        outcome = await settle_foreign(foreign)
    except anyio.get_cancelled_exc_class():
        channel.put_nowait(Failure(Cancelled('adapter cancelled').to_exception()))
        channel.close()
        raise

    if not outcome.is_nil():
        channel.put_nowait(outcome)
    channel.close()


def adapt_foreign_promise[T](
    foreign: ForeignPromise[T],
    *,
    task_group: TaskGroup,
) -> MemoryChannel[Outcome[T]]:
    """Adapt a foreign promise into a suspension channel.

    The returned channel receives exactly one write, then closes:
    Payload(value) on success (a None value closes without an item), or
    Failure(error) on rejection.

    Args:
        foreign: Future or awaitable to adapt.
        task_group: anyio task group that waits on the foreign promise.

    Returns:
        A one-slot MemoryChannel.

    Raises:
        TypeError: If ``foreign`` is not a foreign promise.

    Example:
        ```python
        async with anyio.create_task_group() as tg:
            ch = adapt_foreign_promise(loop.run_in_executor(None, compute), task_group=tg)
            value = await take(ch)
        ```
    """
    if not is_foreign_promise(foreign):
        msg = f'Expected a future or awaitable, got {type(foreign).__name__}'
        raise TypeError(msg)

    channel: MemoryChannel[Outcome[T]] = MemoryChannel(1)
    task_group.start_soon(_pump, foreign, channel)
    return channel
