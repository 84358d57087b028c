"""In-process async job queue for work that must not delay the HTTP response."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from app.core.logging import get_logger

JobCallable = Callable[[], Awaitable[None]]

logger = get_logger(__name__)


class BackgroundQueue:
    """Fixed pool of worker tasks draining a FIFO of zero-arg coroutines.

    Jobs are fire-and-forget: a failing job is logged and the worker moves on.
    """

    def __init__(self, *, concurrency: int = 2) -> None:
        self.concurrency = max(1, int(concurrency))
        self._jobs: asyncio.Queue[tuple[str, JobCallable]] = asyncio.Queue()
        self._workers: list[asyncio.Task[None]] = []

    @property
    def started(self) -> bool:
        return bool(self._workers)

    @property
    def pending(self) -> int:
        return self._jobs.qsize()

    async def _run(self, idx: int) -> None:
        while True:
            name, job = await self._jobs.get()
            try:
                await job()
            except Exception as e:  # noqa: BLE001
                logger.error("Background job %s failed on worker %d: %s", name, idx, e)
            finally:
                self._jobs.task_done()

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._run(i), name=f"bg-worker-{i}")
            for i in range(self.concurrency)
        ]
        logger.info("Background queue started with %d workers", self.concurrency)

    def enqueue(self, fn: JobCallable, *, name: str = "job") -> None:
        self._jobs.put_nowait((name, fn))

    async def join(self) -> None:
        """Wait until every queued job has finished."""
        await self._jobs.join()

    async def stop(self) -> None:
        await self.join()
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()
