"""
core/workers.py -- Bounded worker pool for CPU-bound auth work.

bcrypt at cost 12 takes a few hundred milliseconds per call. Running it on the
event loop would stall every other in-flight request, and running it on the
shared default executor would let a burst of logins starve unrelated blocking
calls. CpuPool owns a dedicated ThreadPoolExecutor with a fixed number of
workers; bcrypt releases the GIL while hashing, so threads give real
parallelism here.

Usage:
    pool = CpuPool(max_workers=4)
    digest = await pool.run(hasher.hash, password)
    pool.close()
"""

from __future__ import annotations

import asyncio
import functools
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

T = TypeVar("T")


class CpuPool:
    def __init__(self, max_workers: int = 4) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="tasktrack-crypto")

    async def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run fn(*args, **kwargs) on the pool and await its result."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args, **kwargs))

    def close(self) -> None:
        self._executor.shutdown(wait=True)
