"""Bounded, cancellable polling."""

from typing import Awaitable, Callable, Generic, Optional, TypeVar

import asyncio
from dataclasses import dataclass
from enum import Enum

from stake_lend.workflow.interfaces import AsyncioClock, Clock

T = TypeVar("T")


class WaitStatus(str, Enum):
    READY = "ready"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class WaitOutcome(Generic[T]):
    status: WaitStatus
    value: Optional[T]  # Result of the last completed poll
    attempts: int
    elapsed: float


async def _sleep_or_cancel(clock: Clock, delay: float, cancel_event: Optional[asyncio.Event]) -> bool:
    """Sleep for ``delay`` seconds. Returns True if ``cancel_event`` fired first."""
    if cancel_event is None:
        await clock.sleep(delay)
        return False

    sleeper = asyncio.ensure_future(clock.sleep(delay))
    canceller = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({sleeper, canceller}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleeper, canceller):
            if not task.done():
                task.cancel()
    return cancel_event.is_set()


async def wait_for(
    poll: Callable[[], Awaitable[T]],
    is_ready: Callable[[T], bool],
    *,
    interval: float,
    timeout: float,
    clock: Optional[Clock] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> WaitOutcome[T]:
    """
    Poll until ``is_ready`` accepts a polled value, the timeout elapses or the cancel event fires.

    Polls at a fixed ``interval``. The last sleep is shortened so that one final poll happens at
    the deadline; a timed-out outcome therefore carries the value of that final poll. Exceptions
    raised by ``poll`` propagate to the caller.

    Args:
        poll: Async callable producing the next observation
        is_ready: Predicate deciding whether an observation ends the wait
        interval: Seconds between polls
        timeout: Seconds after the first poll before giving up
        clock: Time source, defaults to the event loop clock
        cancel_event: Optional cooperative cancellation token

    Returns:
        WaitOutcome: Tagged outcome with the last observed value
    """
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval}")

    clock = clock or AsyncioClock()
    started = clock.monotonic()
    deadline = started + timeout
    value: Optional[T] = None
    attempts = 0

    while True:
        if cancel_event is not None and cancel_event.is_set():
            return WaitOutcome(WaitStatus.CANCELLED, value, attempts, clock.monotonic() - started)

        value = await poll()
        attempts += 1
        if is_ready(value):
            return WaitOutcome(WaitStatus.READY, value, attempts, clock.monotonic() - started)

        remaining = deadline - clock.monotonic()
        if remaining <= 0:
            return WaitOutcome(WaitStatus.TIMED_OUT, value, attempts, clock.monotonic() - started)

        if await _sleep_or_cancel(clock, min(interval, remaining), cancel_event):
            return WaitOutcome(WaitStatus.CANCELLED, value, attempts, clock.monotonic() - started)
