"""Helpers for joining concurrent engine tasks."""
import asyncio
import logging
from typing import Any, Awaitable, List


logger = logging.getLogger(__name__)


async def gather_strict(*awaitables: Awaitable[Any]) -> List[Any]:
    """Run awaitables concurrently and fail fast.

    Unlike ``asyncio.gather``, the first exception cancels every sibling
    still in flight (and waits for them to unwind) before it is re-raised.
    Results are returned in argument order.
    """
    tasks = [asyncio.ensure_future(awaitable) for awaitable in awaitables]
    if not tasks:
        return []
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        failed = [task for task in done if not task.cancelled() and task.exception() is not None]
        if failed:
            for task in pending:
                task.cancel()
            if pending:
                logger.debug(f"Cancelling {len(pending)} sibling task(s) after failure")
                await asyncio.gather(*pending, return_exceptions=True)
            raise failed[0].exception()
        return [task.result() for task in tasks]
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
