"""Outcome tagged union: Payload(value) | Failure(error).

The variant is chosen once, when a promise channel is written. Readers
never look at the shape of a value to decide whether it is a failure:
an exception instance wrapped in Payload is an ordinary payload.

Example:
    ```python
    from promise_chan.outcome import Failure, Payload

    match outcome:
        case Payload(value):
            print('got', value)
        case Failure(error):
            print('failed with', error)
    ```
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, NoReturn, TypeGuard

__all__ = [
    'NIL',
    'Failure',
    'Outcome',
    'Payload',
    'is_failure',
    'is_payload',
]


@dataclass(slots=True, frozen=True)
class Payload[T]:
    """Successful resolution carrying a value of type T (possibly None).

    Attributes:
        value: The resolved value.
    """

    value: T
    __match_args__ = ('value',)

    def is_payload(self) -> bool:
        """Return True, indicating a successful resolution."""
        return True

    def is_failure(self) -> bool:
        """Return False, indicating this is not a failure."""
        return False

    def is_nil(self) -> bool:
        """Return True if the resolved value is None.

        A nil payload is stored on the wire as a closed channel with no item.
        """
        return self.value is None

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def unwrap_raw(self) -> T:
        """Return the contained value."""
        return self.value

    def map[U](self, f: Callable[[T], U]) -> Payload[U]:
        """Transform the payload value.

        Args:
            f: Function applied to the value.

        Returns:
            A new Payload holding f(value).
        """
        return Payload(f(self.value))

    def __repr__(self) -> str:
        return f'Payload({self.value!r})'


@dataclass(slots=True, frozen=True)
class Failure:
    """Failed resolution carrying the raised exception object.

    The exception is stored as-is so that re-raising it at a read site keeps
    its identity, type, message, and ``__cause__`` chain. Its traceback is
    snapshotted on construction and restored on every raise, so repeated
    reads do not pile frames onto the shared exception object.

    Attributes:
        error: The exception raised inside the resolution scope.
    """

    error: BaseException
    _traceback: TracebackType | None = field(default=None, init=False, repr=False, compare=False)
    __match_args__ = ('error',)

    def __post_init__(self) -> None:
        object.__setattr__(self, '_traceback', self.error.__traceback__)

    def is_payload(self) -> bool:
        """Return False, indicating this is not a successful resolution."""
        return False

    def is_failure(self) -> bool:
        """Return True, indicating a failed resolution."""
        return True

    def is_nil(self) -> bool:
        """Return False; a failure is never nil."""
        return False

    def unwrap(self) -> NoReturn:
        """Raise the stored exception object.

        Raises:
            BaseException: The exact object that was captured.
        """
        raise self.error.with_traceback(self._traceback)

    def unwrap_raw(self) -> BaseException:
        """Return the stored exception object without raising it."""
        return self.error

    def map(self, f: Callable[[Any], Any]) -> Failure:
        """Return self unchanged; failures are not mapped."""
        return self

    def __repr__(self) -> str:
        return f'Failure({self.error!r})'


type Outcome[T] = Payload[T] | Failure

NIL: Payload[None] = Payload(None)
"""Outcome of a resolution that produced None (closed without a value)."""


def is_payload[T](outcome: Outcome[T]) -> TypeGuard[Payload[T]]:
    """Type guard for the Payload variant."""
    return isinstance(outcome, Payload)


def is_failure(outcome: Outcome[Any]) -> TypeGuard[Failure]:
    """Type guard for the Failure variant."""
    return isinstance(outcome, Failure)
