from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine synchronously.

    Creates a new event loop if none is running. If a loop is already running
    (e.g. a test harness with ``asyncio_mode="auto"``), the coroutine runs in
    a fresh loop on a background thread and this thread blocks on the result.

    Raises:
        Any exception raised by *coro*.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(asyncio.run, coro)
        return future.result()


async def with_timeout(coro: Coroutine[Any, Any, T], seconds: float) -> T:
    """Run *coro* with a hard deadline.

    A build wait that hits the deadline is abandoned as a whole; there is no
    partially settled result.

    Raises:
        asyncio.TimeoutError: If *coro* does not complete within *seconds*.
    """
    return await asyncio.wait_for(coro, timeout=seconds)
