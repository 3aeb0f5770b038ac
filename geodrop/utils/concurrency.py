"""Bounded fan-out helpers for order-independent work."""

import asyncio
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")


async def run_blocking(func: Callable[..., T], *args: Any, timeout: Optional[float] = None, **kwargs: Any) -> T:
    """Run a blocking SDK call in a worker thread, bounded by ``timeout`` seconds."""
    return await asyncio.wait_for(asyncio.to_thread(func, *args, **kwargs), timeout)


async def gather_bounded(
    factories: Iterable[Callable[[], Awaitable[T]]],
    limit: int = 8,
    return_exceptions: bool = True,
) -> List[Any]:
    """
    Run coroutine factories concurrently, at most ``limit`` at a time.

    Results come back in input order. With ``return_exceptions`` each failed
    item yields its exception instead of cancelling the others.

    Args:
        factories: Zero-argument callables returning awaitables.
        limit: Maximum number of in-flight awaitables.
        return_exceptions: Collect exceptions as results.

    Returns:
        List of results (or exceptions) in input order.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _run(factory: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            return await factory()

    return await asyncio.gather(
        *(_run(factory) for factory in factories),
        return_exceptions=return_exceptions,
    )
