"""
Runs item fetches with a bounded number in flight.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Optional

from ytzip.models.media import FetchOutcome, FetchTask, PlaylistItem
from ytzip.utils.path import ordinal_width

from .item_fetcher import ItemFetcher

log = logging.getLogger(__name__)

OnComplete = Callable[[FetchOutcome], Awaitable[None]]


def build_tasks(items: Iterable[PlaylistItem]) -> list[FetchTask]:
    """Binds every item to its 1-based playlist position before anything runs."""
    items = list(items)
    width = ordinal_width(len(items))
    return [
        FetchTask(item=item, ordinal=index, pad_width=width)
        for index, item in enumerate(items, start=1)
    ]


class FetchScheduler:
    """
    Executes an ItemFetcher over many tasks, at most `limit` at a time.

    As soon as one fetch settles the next queued task starts. The completion
    callback runs while the finished task still holds its slot, so a slow
    consumer throttles how many new fetches begin.
    """

    def __init__(self, fetcher: ItemFetcher, limit: int):
        self.fetcher = fetcher
        self.limit = limit
        self.active = 0
        self.peak_active = 0

    def effective_limit(self, task_count: int) -> int:
        return max(1, min(self.limit, task_count))

    async def run(
        self, tasks: list[FetchTask], on_complete: Optional[OnComplete] = None
    ) -> list[FetchOutcome]:
        """Returns one outcome per task, in ordinal order."""
        if not tasks:
            return []

        limit = self.effective_limit(len(tasks))
        semaphore = asyncio.Semaphore(limit)
        log.debug(f"Scheduling {len(tasks)} fetches with concurrency {limit}.")

        async def run_one(task: FetchTask) -> FetchOutcome:
            async with semaphore:
                self.active += 1
                self.peak_active = max(self.peak_active, self.active)
                try:
                    outcome = await self.fetcher.fetch(task)
                finally:
                    self.active -= 1
                if on_complete:
                    await on_complete(outcome)
                return outcome

        return list(await asyncio.gather(*(run_one(task) for task in tasks)))
