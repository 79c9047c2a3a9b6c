"""Propagation protocol: capture raised failures as data, re-raise at read sites.

A body's outcome is tagged once with :func:`capture` / :func:`capture_async`
and travels through channels as an :class:`~promise_chan.outcome.Outcome`.
Error-checked readers call :func:`unwrap`, which raises the captured
exception object itself, so a failure raised several resolution scopes deep
reaches the outermost ``except`` with its identity intact.

Only ``Exception`` subclasses are captured. Cancellation and other
``BaseException`` subclasses keep propagating.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar, overload

import wrapt

from promise_chan.outcome import NIL, Failure, Outcome, Payload

__all__ = [
    'capture',
    'capture_async',
    'captured',
    'captured_async',
    'from_item',
    'unwrap',
    'unwrap_raw',
]

P = ParamSpec('P')
T = TypeVar('T')


def capture[**P, T](fn: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> Outcome[T]:
    """Call ``fn`` and tag its result.

    Returns:
        Payload(result) on normal return, Failure(exc) if it raised.
    """
    try:
        return Payload(fn(*args, **kwargs))
    except Exception as e:
        return Failure(e)


async def capture_async(
    fn: Callable[..., T] | Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any,
) -> Outcome[T]:
    """Call a sync or async ``fn`` and tag its result.

    Sync callables run inline in the current task. If a sync callable returns
    an awaitable (e.g. a lambda wrapping a coroutine call), it is awaited too.

    Returns:
        Payload(result) on normal return, Failure(exc) if it raised.
    """
    try:
        result = fn(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return Payload(result)  # type: ignore[arg-type]
    except Exception as e:
        return Failure(e)


def from_item(item: Any) -> Outcome[Any]:
    """Map an item taken from a suspension channel to an Outcome.

    ``None`` means the channel was closed without a value and maps to NIL.
    Items written through the protocol are already Outcomes. Anything else was
    put on the channel untagged and is a payload, whatever its shape.
    """
    if item is None:
        return NIL
    if isinstance(item, (Payload, Failure)):
        return item
    return Payload(item)


def unwrap[T](outcome: Outcome[T]) -> T:
    """Return the payload or raise the captured failure (identity preserved)."""
    return outcome.unwrap()


def unwrap_raw[T](outcome: Outcome[T]) -> T | BaseException:
    """Return the payload, or the captured failure as a plain value."""
    if isinstance(outcome, Failure):
        return outcome.error
    return outcome.value


@overload
def captured[**P, T](
    func: Callable[P, T],
) -> Callable[P, Outcome[T]]: ...


@overload
def captured(
    func: None = None,
    *,
    exceptions: tuple[type[BaseException], ...] | None = None,
) -> Callable[[Callable[P, T]], Callable[P, Outcome[T]]]: ...


def captured[**P, T](
    func: Callable[P, T] | None = None,
    *,
    exceptions: tuple[type[BaseException], ...] | None = None,
) -> Any:
    """Decorator returning an Outcome instead of raising.

    Can be used with or without arguments:
        @captured
        def risky(): ...

        @captured(exceptions=(ValueError, KeyError))
        def specific(): ...

    Args:
        func: The function to wrap (when used without parentheses).
        exceptions: Exception types to capture. Defaults to (Exception,).

    Example:
        ```python
        @captured
        def divide(a: int, b: int) -> float:
            return a / b

        divide(6, 2)   # Payload(3.0)
        divide(6, 0)   # Failure(ZeroDivisionError('division by zero'))
        ```
    """
    catch = exceptions if exceptions is not None else (Exception,)

    @wrapt.decorator
    def wrapper(
        wrapped: Callable[P, T],
        instance: Any,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Outcome[T]:
        try:
            return Payload(wrapped(*args, **kwargs))
        except catch as e:
            return Failure(e)

    if func is not None:
        return wrapper(func)
    return wrapper


@overload
def captured_async[**P, T](
    func: Callable[P, Awaitable[T]],
) -> Callable[P, Awaitable[Outcome[T]]]: ...


@overload
def captured_async(
    func: None = None,
    *,
    exceptions: tuple[type[BaseException], ...] | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[Outcome[T]]]]: ...


def captured_async[**P, T](
    func: Callable[P, Awaitable[T]] | None = None,
    *,
    exceptions: tuple[type[BaseException], ...] | None = None,
) -> Any:
    """Async variant of :func:`captured`."""
    catch = exceptions if exceptions is not None else (Exception,)

    @wrapt.decorator
    async def wrapper(
        wrapped: Callable[P, Awaitable[T]],
        instance: Any,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Outcome[T]:
        try:
            return Payload(await wrapped(*args, **kwargs))
        except catch as e:
            return Failure(e)

    if func is not None:
        return wrapper(func)
    return wrapper
