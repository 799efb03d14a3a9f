"""
Sequential runner for calls to rate-sensitive backends.

Tasks run one at a time in submission order with a fixed pause between
consecutive tasks. Nothing waits after the last task.
"""
import asyncio
from typing import Any, Awaitable, Callable


class TaskSequencer:
    """Throttled queue of size one."""

    def __init__(
        self,
        delay_seconds: float = 0.2,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.delay_seconds = max(0.0, delay_seconds)
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self.calls = 0

    async def run(self, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Await fn(*args, **kwargs) after the previous task and the delay."""
        async with self._lock:
            if self.calls and self.delay_seconds:
                await self._sleep(self.delay_seconds)
            self.calls += 1
            return await fn(*args, **kwargs)
