"""In-process suspension channel built on anyio memory object streams."""

from __future__ import annotations

import math

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from promise_chan.errors import ChannelClosed

__all__ = ['MemoryChannel']


class MemoryChannel[T]:
    """Suspension channel wrapping one anyio memory object stream pair.

    Works under any anyio backend (asyncio or trio). Closing the channel
    closes the send side; the receive side is closed once a take observes
    the end of the stream, so a drained channel holds no open resources.

    Example:
        ```python
        ch = MemoryChannel[int](1)
        ch.put_nowait(42)
        ch.close()
        await ch.take()  # 42
        await ch.take()  # None
        ```
    """

    __slots__ = ('_capacity', '_closed', '_rx', '_tx')

    def __init__(self, capacity: float = 1) -> None:
        """Create a channel.

        Args:
            capacity: Buffer size. 0 makes put() a true rendezvous;
                math.inf makes the buffer unbounded.
        """
        tx, rx = anyio.create_memory_object_stream[T](max_buffer_size=capacity)
        self._tx: MemoryObjectSendStream[T] = tx
        self._rx: MemoryObjectReceiveStream[T] = rx
        self._capacity = capacity
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def capacity(self) -> float:
        return self._capacity

    @property
    def unbounded(self) -> bool:
        return math.isinf(self._capacity)

    async def put(self, value: T) -> None:
        """Put a value, suspending while the buffer is full.

        Raises:
            ChannelClosedError: If the channel was closed.
            anyio.get_cancelled_exc_class(): If cancelled while waiting.
        """
        try:
            await self._tx.send(value)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            raise ChannelClosed().to_exception() from None

    def put_nowait(self, value: T) -> None:
        """Put a value without suspending.

        Raises:
            ChannelClosedError: If the channel was closed.
            anyio.WouldBlock: If the buffer is full.
        """
        try:
            self._tx.send_nowait(value)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            raise ChannelClosed().to_exception() from None

    async def take(self) -> T | None:
        """Take the next value, suspending until one arrives or the channel closes."""
        try:
            return self._release_if_drained(await self._rx.receive())
        except anyio.EndOfStream:
            self._rx.close()
            return None
        except anyio.ClosedResourceError:
            return None

    def take_nowait(self) -> T | None:
        """Take the next value without suspending.

        Raises:
            anyio.WouldBlock: If the channel is open and empty.
        """
        try:
            return self._release_if_drained(self._rx.receive_nowait())
        except anyio.EndOfStream:
            self._rx.close()
            return None
        except anyio.ClosedResourceError:
            return None

    def _release_if_drained(self, item: T) -> T:
        if self._closed and self._rx.statistics().current_buffer_used == 0:
            self._rx.close()
        return item

    def close(self) -> None:
        """Close the send side. Idempotent."""
        self._closed = True
        self._tx.close()

    def __repr__(self) -> str:
        state = 'closed' if self._closed else 'open'
        return f'MemoryChannel(capacity={self._capacity}, {state})'
