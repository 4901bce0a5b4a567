"""Bounded-concurrency worker pool for per-commit enrichment calls."""

import asyncio
from typing import Awaitable, Callable, Dict, Hashable, Iterable, List, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Hashable)
R = TypeVar("R")


class BoundedWorkerPool:
    """A fixed number of workers draining a shared work queue.

    Every call to :meth:`run` starts ``width`` workers (fewer if there are
    fewer items), waits for all of them, and only then returns. If any
    worker fails, the remaining workers are cancelled and the first error
    is re-raised; no partial results are returned.
    """

    def __init__(self, width: int = 100) -> None:
        """Initialize the pool.

        Args:
            width: Maximum number of handler calls in flight

        Raises:
            ValueError: If width is not positive
        """
        if width < 1:
            raise ValueError(f"Worker pool width must be positive, got {width}")
        self.width = width

    async def run(
        self,
        items: Iterable[T],
        handler: Callable[[T], Awaitable[R]],
    ) -> Dict[T, R]:
        """Run the handler over every item.

        Args:
            items: Work items, each used as the key of its result
            handler: Coroutine function called once per item

        Returns:
            Mapping of item -> handler result
        """
        queue: asyncio.Queue = asyncio.Queue()
        for item in items:
            queue.put_nowait(item)

        if queue.empty():
            return {}

        results: Dict[T, R] = {}

        async def worker() -> None:
            while True:
                try:
                    item = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                results[item] = await handler(item)

        workers = [asyncio.create_task(worker()) for _ in range(min(self.width, queue.qsize()))]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        return results

    async def run_batches(
        self,
        items: List[T],
        handler: Callable[[T], Awaitable[R]],
        batch_size: int,
    ) -> Dict[T, R]:
        """Run the handler over consecutive batches.

        Each batch is fully joined before the next one starts, and its
        results are merged only once the whole batch has succeeded.

        Args:
            items: Work items
            handler: Coroutine function called once per item
            batch_size: Items per batch

        Returns:
            Mapping of item -> handler result across all batches
        """
        results: Dict[T, R] = {}

        for i in range(0, len(items), batch_size):
            batch = items[i : i + batch_size]
            batch_results = await self.run(batch, handler)
            results.update(batch_results)
            logger.debug("batch_completed", batch_start=i, batch_size=len(batch), done=len(results))

        return results
