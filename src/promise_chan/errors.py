"""Error types: dual struct+exception for Outcome data and raise-based code."""

from __future__ import annotations

import msgspec

__all__ = [
    'AlreadyResolved',
    'AlreadyResolvedError',
    'Cancelled',
    'CancelledError',
    'ChannelClosed',
    'ChannelClosedError',
    'DeadlineExceeded',
    'DeadlineExceededError',
    'Timeout',
    'TimeoutError',
]


# --- Channel Errors ---


class ChannelClosed(msgspec.Struct, frozen=True, gc=False):
    """Channel has been closed - struct variant."""

    reason: str | None = None

    def to_exception(self) -> ChannelClosedError:
        """Convert to exception for raise-based code."""
        return ChannelClosedError(self.reason)


class ChannelClosedError(Exception):
    """Channel has been closed - exception variant."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason or 'Channel closed')

    def to_struct(self) -> ChannelClosed:
        """Convert to struct for Outcome-based code."""
        return ChannelClosed(self.reason)


class AlreadyResolved(msgspec.Struct, frozen=True, gc=False):
    """Second write to a promise channel - struct variant."""

    name: str | None = None

    def to_exception(self) -> AlreadyResolvedError:
        """Convert to exception for raise-based code."""
        return AlreadyResolvedError(self.name)


class AlreadyResolvedError(AssertionError):
    """Second write to a promise channel - exception variant.

    A promise channel accepts exactly one write. Writing again is a
    programming error, so this derives from AssertionError rather than
    being reported as an ordinary failure.
    """

    def __init__(self, name: str | None = None) -> None:
        self.name = name
        msg = 'Promise channel already resolved'
        if name:
            msg = f"Promise channel '{name}' already resolved"
        super().__init__(msg)

    def to_struct(self) -> AlreadyResolved:
        """Convert to struct for Outcome-based code."""
        return AlreadyResolved(self.name)


# --- Timeout/Cancellation Errors ---


class Timeout(msgspec.Struct, frozen=True, gc=False):
    """Blocking read timed out - struct variant."""

    seconds: float
    operation: str | None = None

    def to_exception(self) -> TimeoutError:
        """Convert to exception for raise-based code."""
        return TimeoutError(self.seconds, self.operation)


class TimeoutError(Exception):  # noqa: A001 - intentionally shadows builtin
    """Blocking read timed out - exception variant."""

    def __init__(self, seconds: float, operation: str | None = None) -> None:
        self.seconds = seconds
        self.operation = operation
        msg = f'Timeout after {seconds}s'
        if operation:
            msg = f'{operation}: {msg}'
        super().__init__(msg)

    def to_struct(self) -> Timeout:
        """Convert to struct for Outcome-based code."""
        return Timeout(self.seconds, self.operation)


class DeadlineExceeded(msgspec.Struct, frozen=True, gc=False):
    """Async test exceeded its deadline - struct variant."""

    timeout_ms: int
    name: str | None = None

    def to_exception(self) -> DeadlineExceededError:
        """Convert to exception for raise-based code."""
        return DeadlineExceededError(self.timeout_ms, self.name)


class DeadlineExceededError(Exception):
    """Async test exceeded its deadline - exception variant."""

    def __init__(self, timeout_ms: int, name: str | None = None) -> None:
        self.timeout_ms = timeout_ms
        self.name = name
        msg = f'Async test timed out after {timeout_ms} ms'
        if name:
            msg = f"Async test '{name}' timed out after {timeout_ms} ms"
        super().__init__(msg)

    def to_struct(self) -> DeadlineExceeded:
        """Convert to struct for Outcome-based code."""
        return DeadlineExceeded(self.timeout_ms, self.name)


class Cancelled(msgspec.Struct, frozen=True, gc=False):
    """Resolution was cancelled - struct variant."""

    reason: str | None = None

    def to_exception(self) -> CancelledError:
        """Convert to exception for raise-based code."""
        return CancelledError(self.reason)


class CancelledError(Exception):
    """Resolution was cancelled - exception variant.

    Stored as a Failure when a body is cancelled, so readers never mistake
    a cancelled promise for one resolved with None.
    """

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason or 'Operation cancelled')

    def to_struct(self) -> Cancelled:
        """Convert to struct for Outcome-based code."""
        return Cancelled(self.reason)
