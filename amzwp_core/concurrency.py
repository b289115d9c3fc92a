"""
Bounded concurrency runner and run supersession.

``run_concurrent`` drains a shared queue with ``min(limit, len(items))``
workers. One item's failure is logged and counted; it never stops the other
workers and never propagates to the caller.

``AuditController`` hands out cancellation tokens so that starting a new
discovery/audit cancels the one still running.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

logger = logging.getLogger(__name__)


class CancelToken:
    """Cooperative cancellation flag for one run."""

    def __init__(self, run_id: int):
        self.run_id = run_id
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self):
        return f"CancelToken(run_id={self.run_id}, cancelled={self._cancelled})"


class AuditController:
    """Keeps a single active run; ``begin`` supersedes the previous one."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._current: Optional[CancelToken] = None

    def begin(self) -> CancelToken:
        if self._current is not None and not self._current.cancelled:
            logger.info(f"Cancelling superseded run #{self._current.run_id}")
            self._current.cancel()
        self._current = CancelToken(next(self._ids))
        return self._current

    def is_current(self, token: CancelToken) -> bool:
        return token is self._current and not token.cancelled

    def cancel(self):
        if self._current is not None:
            self._current.cancel()


@dataclass
class RunStats:
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0


async def run_concurrent(
    items: Iterable[Any],
    limit: int,
    task: Callable[[Any], Awaitable[Any]],
    token: Optional[CancelToken] = None,
) -> RunStats:
    """
    Run ``task`` once per item with at most ``limit`` tasks in flight.

    Args:
        items: Work items
        limit: Maximum simultaneous tasks
        task: Async callable applied to each item
        token: Optional cancellation token; workers stop pulling once it is cancelled

    Returns:
        RunStats with success/failure/skip counts
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")
    work = list(items)
    stats = RunStats(total=len(work))
    if not work:
        return stats

    queue: asyncio.Queue = asyncio.Queue()
    for item in work:
        queue.put_nowait(item)

    async def worker(worker_id: int):
        while True:
            if token is not None and token.cancelled:
                return
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                await task(item)
                stats.succeeded += 1
            except Exception as e:
                stats.failed += 1
                logger.warning(f"Worker {worker_id}: item {item!r} failed: {e}")

    workers = [asyncio.ensure_future(worker(i)) for i in range(min(limit, len(work)))]
    try:
        await asyncio.gather(*workers)
    finally:
        for w in workers:
            w.cancel()
    stats.skipped = queue.qsize()
    if stats.skipped:
        logger.info(f"Run cancelled with {stats.skipped} item(s) left unprocessed")
    return stats
