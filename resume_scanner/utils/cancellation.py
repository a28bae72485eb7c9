"""
Cooperative cancellation built on a shared asyncio.Event.

The same event is handed to every task of a batch; setting it once stops
all in-flight AI calls and retry waits.
"""
import asyncio
from typing import Awaitable, Optional, TypeVar

from resume_scanner.utils.exceptions import OperationCancelled

T = TypeVar("T")


def is_cancelled(cancel_event: Optional[asyncio.Event]) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def raise_if_cancelled(cancel_event: Optional[asyncio.Event], operation: str) -> None:
    if is_cancelled(cancel_event):
        raise OperationCancelled(f"{operation} cancelled", operation=operation)


async def run_unless_cancelled(aw: Awaitable[T], cancel_event: Optional[asyncio.Event], operation: str) -> T:
    """Await ``aw`` but give up as soon as ``cancel_event`` is set."""
    if is_cancelled(cancel_event) and asyncio.iscoroutine(aw):
        aw.close()
    raise_if_cancelled(cancel_event, operation)
    if cancel_event is None:
        return await aw

    work = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for fut in (work, waiter):
            if not fut.done():
                fut.cancel()

    # cancellation wins a tie
    if waiter in done:
        raise OperationCancelled(f"{operation} cancelled", operation=operation)
    return work.result()


async def sleep_unless_cancelled(delay: float, cancel_event: Optional[asyncio.Event], operation: str) -> None:
    raise_if_cancelled(cancel_event, operation)
    if delay <= 0:
        return
    if cancel_event is None:
        await asyncio.sleep(delay)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return
    raise OperationCancelled(f"{operation} cancelled", operation=operation)
