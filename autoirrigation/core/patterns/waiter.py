from __future__ import annotations
import asyncio, time, logging
from typing import Awaitable, Callable

log = logging.getLogger("Waiter")

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


async def wait_for(predicate: Callable[[], bool], *,
                   timeout: float,
                   interval: float = 2.0,
                   clock: Clock = time.monotonic,
                   sleep: Sleep = asyncio.sleep,
                   label: str = "condition") -> bool:
    """Poll `predicate` every `interval` seconds until it holds or `timeout` elapses.

    The first check happens one interval after the call. The interval never
    grows and the wait cannot be cancelled early; it ends on success or at the
    deadline. Returns True on success, False on timeout.
    """
    deadline = clock() + timeout
    while True:
        remaining = deadline - clock()
        if remaining <= 0:
            log.warning(f"timed out after {timeout:.0f}s waiting for {label}")
            return False
        await sleep(min(interval, remaining))
        if clock() > deadline:
            log.warning(f"timed out after {timeout:.0f}s waiting for {label}")
            return False
        if predicate():
            log.info(f"{label} met")
            return True
        log.debug(f"still waiting for {label}")
