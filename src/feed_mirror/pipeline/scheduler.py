"""Bounded-concurrency batch scheduling."""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence, TypeVar

from feed_mirror.models import Outcome, ProcessResult, RunStats

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BatchScheduler:
    """Runs items through a worker in sequential batches.

    Within a batch at most `max_concurrency` workers are in flight; submitting
    the next item waits for a free slot. A batch completes before the next
    one starts. Worker exceptions are recorded as errors, never propagated.
    """

    def __init__(self, batch_size: int = 5, max_concurrency: int = 3):
        self.batch_size = max(1, batch_size)
        self.max_concurrency = max(1, max_concurrency)

    async def run(
        self, items: Sequence[T], worker: Callable[[T], Awaitable[ProcessResult]]
    ) -> RunStats:
        stats = RunStats()

        for start in range(0, len(items), self.batch_size):
            batch = items[start:start + self.batch_size]
            slots = asyncio.Semaphore(self.max_concurrency)
            tasks = []

            for item in batch:
                stats.processed += 1
                await slots.acquire()
                tasks.append(asyncio.create_task(self._run_one(item, worker, slots, stats)))

            await asyncio.gather(*tasks)
            logger.debug(f"Batch {start // self.batch_size + 1} done: {stats}")

        return stats

    async def _run_one(
        self,
        item: T,
        worker: Callable[[T], Awaitable[ProcessResult]],
        slots: asyncio.Semaphore,
        stats: RunStats,
    ) -> None:
        try:
            result = await worker(item)
        except Exception as e:
            logger.error(f"Unhandled error processing {item!r}: {e}")
            result = ProcessResult(Outcome.FAILED, error=str(e))
        finally:
            slots.release()
        stats.record(result)
