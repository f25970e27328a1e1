"""
In-process fire-and-forget dispatch for ingestion work.

Each unit of work runs as its own asyncio task inside an error boundary: a
failure is logged with its traceback and never reaches the request that
dispatched it. Work lives only in memory, so a restart loses whatever was
running.
"""

import asyncio
import logging
from typing import Coroutine, Optional, Set

from app.shared.correlation import CorrelationContext, get_correlation_id

logger = logging.getLogger("Memora.Ingestion.Dispatcher")


class TaskDispatcher:
    """
    Spawns background tasks with bounded concurrency.

    Limited tasks (transcription, indexing) share a semaphore of
    `max_concurrency` permits. Long-lived watchers are dispatched with
    `limited=False` so they cannot starve ingestion work.
    """

    def __init__(self, max_concurrency: int = 4):
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(
        self,
        name: str,
        coro: Coroutine,
        limited: bool = True,
        correlation_id: Optional[str] = None,
    ) -> asyncio.Task:
        """
        Schedule `coro` and return immediately.

        The task inherits the caller's correlation ID unless one is given.

        Raises:
            RuntimeError: the dispatcher is shutting down
        """
        if self._closed:
            coro.close()
            raise RuntimeError(f"Dispatcher is shut down, refusing task {name}")

        cid = correlation_id or get_correlation_id()
        task = asyncio.create_task(self._run(name, coro, limited, cid), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Dispatched {name} ({len(self._tasks)} pending)")
        return task

    async def _run(self, name: str, coro: Coroutine, limited: bool, correlation_id: Optional[str]) -> None:
        started = False
        with CorrelationContext(correlation_id):
            try:
                if limited:
                    async with self._semaphore:
                        started = True
                        await coro
                else:
                    started = True
                    await coro
            except asyncio.CancelledError:
                logger.warning(f"Task {name} cancelled")
                raise
            except Exception:
                logger.exception(f"Background task {name} failed")
            finally:
                if not started:
                    coro.close()

    async def drain(self) -> None:
        """Wait until no task is pending, including tasks spawned by other tasks."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self, grace: float = 30.0) -> None:
        """Stop accepting work, wait up to `grace` seconds, then cancel the rest."""
        self._closed = True
        try:
            await asyncio.wait_for(self.drain(), timeout=grace)
        except asyncio.TimeoutError:
            remaining = list(self._tasks)
            logger.warning(f"Cancelling {len(remaining)} ingestion task(s) still running after {grace}s")
            for task in remaining:
                task.cancel()
            await asyncio.gather(*remaining, return_exceptions=True)
