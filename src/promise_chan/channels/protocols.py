"""SuspensionChannel protocol: the rendezvous primitive promise channels sit on.

Uses PEP 695 type parameter syntax (Python 3.12+). The protocol is
runtime-checkable so the read operators can tell a channel from a plain
value without inspecting the value itself.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, runtime_checkable

__all__ = ['SuspensionChannel']


@runtime_checkable
class SuspensionChannel[T](Protocol):
    """Protocol for a single-value-at-a-time FIFO rendezvous channel.

    A take on a channel that is closed and drained returns ``None``
    rather than raising: "closed without a value" is a normal outcome.
    """

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Whether close() has been called."""
        ...

    @abstractmethod
    async def put(self, value: T) -> None:
        """Put a value, suspending while the buffer is full.

        Raises:
            ChannelClosedError: If the channel was closed.
        """
        ...

    @abstractmethod
    def put_nowait(self, value: T) -> None:
        """Put a value without suspending.

        Raises:
            ChannelClosedError: If the channel was closed.
            anyio.WouldBlock: If the buffer is full.
        """
        ...

    @abstractmethod
    async def take(self) -> T | None:
        """Take the next value, suspending until one is available.

        Returns:
            The value, or None once the channel is closed and drained.
        """
        ...

    @abstractmethod
    def take_nowait(self) -> T | None:
        """Take the next value without suspending.

        Returns:
            The value, or None once the channel is closed and drained.

        Raises:
            anyio.WouldBlock: If the channel is open and empty.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the channel. Buffered values can still be taken."""
        ...
