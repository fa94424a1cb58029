"""Detached tasks for best-effort side writes (audit, ledger, notifications). Failures are logged and counted, never raised."""

import asyncio
import logging
from typing import Any, Awaitable, Optional

logger = logging.getLogger(__name__)


class DetachedTaskRunner:
    """
    Starts coroutines off the response path. Holds a reference to each task
    until it finishes so it is not garbage-collected mid-flight.
    """

    def __init__(self, metrics_callback: Any = None, timeout_seconds: Optional[float] = None) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self._metrics = metrics_callback
        self._timeout = timeout_seconds

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, name: str, coro: Awaitable[Any]) -> asyncio.Task[Any]:
        """Schedule coro and return immediately. The caller never awaits the outcome."""
        task = asyncio.ensure_future(self._run(name, coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, name: str, coro: Awaitable[Any]) -> None:
        try:
            if self._timeout is not None:
                await asyncio.wait_for(coro, timeout=self._timeout)
            else:
                await coro
        except Exception as e:
            logger.error(
                "side_write_failed",
                extra={"task": name, "error": str(e), "error_type": type(e).__name__},
            )
            if self._metrics and hasattr(self._metrics, "increment"):
                self._metrics.increment("side_write_failed", 1, category=name)

    async def drain(self) -> None:
        """Wait for all outstanding tasks (shutdown, tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
