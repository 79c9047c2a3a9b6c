"""Tests for adapting foreign futures and awaitables into suspension channels."""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading

import anyio
import pytest
from promise_chan import (
    CancelledError,
    Failure,
    MemoryChannel,
    Payload,
    PromiseChannel,
    adapt_foreign_promise,
    is_foreign_promise,
    settle_foreign,
    take,
    take_raw,
)

pytestmark = pytest.mark.anyio


class TestIsForeignPromise:
    """Tests for is_foreign_promise()."""

    async def test_asyncio_future(self) -> None:
        future = asyncio.get_running_loop().create_future()
        assert is_foreign_promise(future)
        future.cancel()

    async def test_concurrent_future(self) -> None:
        assert is_foreign_promise(concurrent.futures.Future())

    async def test_coroutine(self) -> None:
        coro = anyio.sleep(0)
        assert is_foreign_promise(coro)
        await coro

    async def test_native_channels_are_not_foreign(self) -> None:
        """Promise channels are awaitable, but they are not foreign."""
        assert not is_foreign_promise(PromiseChannel.resolved(1))
        assert not is_foreign_promise(MemoryChannel())

    async def test_plain_values(self) -> None:
        assert not is_foreign_promise(42)
        assert not is_foreign_promise(None)


class TestSettleForeign:
    """Tests for settle_foreign()."""

    async def test_asyncio_future_value(self) -> None:
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        asyncio.get_running_loop().call_later(0.01, future.set_result, 'ok')
        assert await settle_foreign(future) == Payload('ok')

    async def test_asyncio_future_rejection(self) -> None:
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        error = ValueError('rejected')
        future.set_exception(error)
        assert await settle_foreign(future) == Failure(error)

    async def test_asyncio_future_cancelled(self) -> None:
        """A foreign future cancelled by its owner settles as CancelledError."""
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        future.cancel()

        outcome = await settle_foreign(future)
        assert isinstance(outcome, Failure)
        assert isinstance(outcome.error, CancelledError)

    async def test_concurrent_future_value(self) -> None:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(lambda: 6 * 7)
            assert await settle_foreign(future) == Payload(42)

    async def test_concurrent_future_rejection(self) -> None:
        error = ZeroDivisionError('in executor')

        def fail() -> None:
            raise error

        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            outcome = await settle_foreign(pool.submit(fail))

        assert isinstance(outcome, Failure)
        assert outcome.error is error

    async def test_awaitable(self) -> None:
        async def compute() -> list[int]:
            return [1, 2]

        assert await settle_foreign(compute()) == Payload([1, 2])

    async def test_rejects_non_promise(self) -> None:
        with pytest.raises(TypeError, match='future or awaitable'):
            await settle_foreign(42)  # type: ignore[arg-type]


class TestAdaptForeignPromise:
    """Tests for adapt_foreign_promise()."""

    async def test_success(self) -> None:
        future: asyncio.Future[int] = asyncio.get_running_loop().create_future()

        async with anyio.create_task_group() as tg:
            ch = adapt_foreign_promise(future, task_group=tg)
            future.set_result(5)
            assert await take(ch) == 5

        assert ch.closed

    async def test_rejection_raised_by_take(self) -> None:
        error = LookupError('nope')

        async def fail() -> None:
            raise error

        async with anyio.create_task_group() as tg:
            ch = adapt_foreign_promise(fail(), task_group=tg)
            with pytest.raises(LookupError) as info:
                await take(ch)

        assert info.value is error

    async def test_rejection_returned_by_take_raw(self) -> None:
        error = LookupError('nope')
        future: asyncio.Future[int] = asyncio.get_running_loop().create_future()
        future.set_exception(error)

        async with anyio.create_task_group() as tg:
            ch = adapt_foreign_promise(future, task_group=tg)
            assert await take_raw(ch) is error

    async def test_none_result_closes_without_item(self) -> None:
        """A foreign promise resolving to None reads as nil."""

        async def nothing() -> None:
            return None

        async with anyio.create_task_group() as tg:
            ch = adapt_foreign_promise(nothing(), task_group=tg)
            assert await take(ch) is None

    async def test_single_write(self) -> None:
        """The adapted channel receives one outcome and then reads as drained."""
        async with anyio.create_task_group() as tg:
            ch = adapt_foreign_promise(asyncio.sleep(0, result='once'), task_group=tg)
            assert await take(ch) == 'once'
            assert await take(ch) is None

    async def test_executor_future(self) -> None:
        started = threading.Event()

        def work() -> str:
            started.set()
            return 'threaded'

        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            async with anyio.create_task_group() as tg:
                ch = adapt_foreign_promise(pool.submit(work), task_group=tg)
                assert await take(ch) == 'threaded'

        assert started.is_set()

    async def test_cancelled_adapter_writes_failure(self) -> None:
        """Cancelling the waiting task writes a CancelledError, never nil."""
        future: asyncio.Future[int] = asyncio.get_running_loop().create_future()

        async with anyio.create_task_group() as tg:
            ch = adapt_foreign_promise(future, task_group=tg)
            await anyio.sleep(0.01)
            tg.cancel_scope.cancel()

        assert not future.cancelled()
        assert isinstance(ch.take_nowait(), Failure)
        future.cancel()

    async def test_rejects_non_promise(self) -> None:
        async with anyio.create_task_group() as tg:
            with pytest.raises(TypeError, match='future or awaitable'):
                adapt_foreign_promise('not a future', task_group=tg)  # type: ignore[arg-type]
