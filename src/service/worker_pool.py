# src/service/worker_pool.py — v1
"""Thread pool that keeps CPU-bound hashing off the event loop."""

from __future__ import annotations

import asyncio
import contextvars
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WorkerPool:
    """Run blocking callables on worker threads and await their results.

    A caller that stops awaiting does not interrupt the worker thread; the
    call runs to completion and its result is dropped.
    """

    def __init__(self, max_workers: int = 4, thread_name_prefix: str = "vismatch-worker") -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix,
        )
        self._closed = False

    @property
    def max_workers(self) -> int:
        return self._max_workers

    async def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Execute fn(*args, **kwargs) on a worker thread.

        The call runs in a copy of the caller's context, so log records
        emitted by fn carry the same request and project fields.
        """
        if self._closed:
            raise RuntimeError("worker pool is shut down")
        loop = asyncio.get_running_loop()
        ctx = contextvars.copy_context()
        return await loop.run_in_executor(
            self._executor, functools.partial(ctx.run, fn, *args, **kwargs)
        )

    def shutdown(self, wait: bool = True) -> None:
        if not self._closed:
            self._closed = True
            self._executor.shutdown(wait=wait)
            logger.debug("Worker pool shut down")

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()
