# Entrius 2025

"""Concurrent listing of pull requests or issues across a repository fleet."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from repofleet.classes import Item, ItemKind, Repository, ScanResult
from repofleet.constants import DEFAULT_CONCURRENCY, FETCH_MAX_ATTEMPTS
from repofleet.errors import FatalError, PerRepositoryError
from repofleet.fleet.cache import CacheStore
from repofleet.fleet.progress import NullProgressReporter, ProgressReporter
from repofleet.fleet.retry import BackoffSchedule, Sleep, retry_exception

if TYPE_CHECKING:
    from repofleet.utils.github_api_tools import GitHubClient

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    """Everything a scan found, plus the repositories that could not be listed"""

    items: List[ScanResult] = field(default_factory=list)
    errors: Dict[str, PerRepositoryError] = field(default_factory=dict)
    scanned: int = 0
    total: int = 0


class Scanner:
    """Lists items of every repository with at most ``concurrency`` fetches in flight.

    A repository whose listing keeps failing is recorded in ``ScanReport.errors``
    and never aborts the scan of the others.
    """

    def __init__(
        self,
        client: 'GitHubClient',
        cache: Optional[CacheStore] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        schedule: Optional[BackoffSchedule] = None,
        attempts: int = FETCH_MAX_ATTEMPTS,
        use_cache: bool = True,
        delay: float = 0,
        state: str = 'open',
        reporter: Optional[ProgressReporter] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        if concurrency < 1:
            raise ValueError(f'concurrency must be at least 1 (got {concurrency})')
        self.client = client
        self.cache = cache
        self.concurrency = concurrency
        self.schedule = schedule or BackoffSchedule()
        self.attempts = attempts
        self.use_cache = use_cache and cache is not None
        self.delay = delay
        self.state = state
        self.reporter = reporter or NullProgressReporter()
        self._sleep = sleep

    async def _fetch_page(self, repository: Repository, kind: ItemKind, page: int):
        if self.delay:
            await self._sleep(self.delay)
        if kind is ItemKind.PULL_REQUEST:
            return await self.client.list_pull_requests(repository, self.state, page)
        return await self.client.list_issues(repository, self.state, page)

    async def fetch_items(self, repository: Repository, kind: ItemKind) -> List[Item]:
        """List all items of one repository, page by page, retrying transient failures per page."""
        items: List[Item] = []
        page = 1
        while True:
            result = await retry_exception(
                lambda: self._fetch_page(repository, kind, page),
                self.schedule,
                self.attempts,
                sleep=self._sleep,
                context=f'Listing {kind.noun}s of {repository.key} (page {page})',
            )
            items.extend(result.items)
            if not result.has_more:
                return items
            page += 1

    async def _items_for(self, repository: Repository, kind: ItemKind) -> List[Item]:
        if self.use_cache:
            entry = await self.cache.read(repository, kind)
            if entry is not None:
                logger.debug(f'{repository.key}: {len(entry.items)} {kind.noun}s from cache')
                return entry.items

        items = await self.fetch_items(repository, kind)
        if self.use_cache:
            await self.cache.write(repository, kind, items)
        return items

    async def scan(self, repositories: Sequence[Repository], kind: ItemKind) -> ScanReport:
        """
        List items of every repository.

        Args:
            repositories: Repositories to scan
            kind: Pull requests or issues

        Returns:
            ScanReport with the flattened items (repository discovery order is kept
            within a repository only) and per-repository errors
        """
        report = ScanReport(total=len(repositories))
        semaphore = asyncio.Semaphore(self.concurrency)
        self.reporter.start(f'[0/{report.total}] Scanning repos for {kind.noun}s')

        async def scan_one(repository: Repository) -> None:
            async with semaphore:
                try:
                    items = await self._items_for(repository, kind)
                except FatalError:
                    raise
                except Exception as e:
                    logger.error(f'Cannot list open {kind.noun}s of {repository.key}: {e}')
                    report.errors[repository.key] = PerRepositoryError(repository.key, e)
                else:
                    report.items.extend(ScanResult(repository, item) for item in items)
                report.scanned += 1
                self.reporter.update(f'[{report.scanned}/{report.total}] Scanning repos for {kind.noun}s')

        await asyncio.gather(*(scan_one(repository) for repository in repositories))
        return report
