# Entrius 2025

"""Concurrent execution of a per-item action with outcome tracking."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from repofleet.classes import Item, ItemKind, Outcome, Repository, ScanResult
from repofleet.constants import DEFAULT_CONCURRENCY
from repofleet.errors import RepoFleetError
from repofleet.fleet.cache import CacheStore
from repofleet.fleet.progress import NullProgressReporter, ProgressReporter
from repofleet.fleet.retry import BackoffSchedule, Sleep, retry_boolean

logger = logging.getLogger(__name__)


class ItemAction:
    """What a bulk command does to each matching item.

    Subclasses implement ``run`` and set the descriptive class attributes.
    ``run`` returns True on success; returning False or raising marks the
    item as failed.
    """

    name = 'list'  # approve
    past_tense = 'listed'  # approved
    active = 'listing'  # approving
    description = ''
    kind = ItemKind.PULL_REQUEST
    requires_filter = True
    invalidates_cache = False

    async def run(self, repository: Repository, item: Item) -> bool:
        raise NotImplementedError


@dataclass
class BatchOutcome:
    successful: List[Item] = field(default_factory=list)
    failed: List[Item] = field(default_factory=list)
    outcomes: List[Outcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    def record(self, outcome: Outcome) -> None:
        # single event loop: no await between the appends, so they land together
        self.outcomes.append(outcome)
        (self.successful if outcome.succeeded else self.failed).append(outcome.item)


class BatchProcessor:
    """Runs an ItemAction over scan results with at most ``concurrency`` actions in flight.

    With ``retries`` > 0 a failed attempt is retried on the backoff schedule;
    the final attempt alone decides whether the item is successful or failed.
    """

    def __init__(
        self,
        concurrency: int = DEFAULT_CONCURRENCY,
        retries: int = 0,
        schedule: Optional[BackoffSchedule] = None,
        cache: Optional[CacheStore] = None,
        delay: float = 0,
        reporter: Optional[ProgressReporter] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        if concurrency < 1:
            raise ValueError(f'concurrency must be at least 1 (got {concurrency})')
        if retries < 0:
            raise ValueError(f'retries cannot be negative (got {retries})')
        self.concurrency = concurrency
        self.retries = retries
        self.schedule = schedule or BackoffSchedule()
        self.cache = cache
        self.delay = delay
        self.reporter = reporter or NullProgressReporter()
        self._sleep = sleep

    async def _attempt(self, action: ItemAction, result: ScanResult) -> bool:
        if self.delay:
            await self._sleep(self.delay)
        return await action.run(result.repository, result.item)

    async def process(self, results: Sequence[ScanResult], action: ItemAction) -> BatchOutcome:
        """
        Apply ``action`` to every result.

        Returns:
            BatchOutcome; every input item appears exactly once in either
            ``successful`` or ``failed``
        """
        outcome = BatchOutcome()
        total = len(results)
        semaphore = asyncio.Semaphore(self.concurrency)
        noun = f'{action.kind.noun}s'
        self.reporter.start(f'[0/{total}] {action.active} {noun}')

        async def process_one(result: ScanResult) -> None:
            async with semaphore:
                succeeded, attempts, error = await retry_boolean(
                    lambda: self._attempt(action, result),
                    self.schedule if self.retries else None,
                    self.retries,
                    sleep=self._sleep,
                    context=f'{action.name} {result.item.url}',
                )
                if succeeded and action.invalidates_cache and self.cache is not None:
                    try:
                        await self.cache.invalidate(result.repository, action.kind)
                    except (OSError, RepoFleetError) as e:
                        logger.warning(f'Could not invalidate cache for {result.repository.key}: {e}')

                outcome.record(Outcome(result=result, succeeded=succeeded, attempts=attempts, error=error))
                self.reporter.update(f'[{outcome.processed}/{total}] {action.active} {noun}')

        await asyncio.gather(*(process_one(result) for result in results))
        return outcome
