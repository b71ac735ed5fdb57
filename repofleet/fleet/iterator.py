# Entrius 2025

"""
The fleet iterator: repositories -> scan -> filter -> batch.

A command hands over a FilterSpec and an ItemAction; concurrency, retries and
caching are handled here.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from repofleet.classes import Item, ItemKind, ScanResult
from repofleet.config import Config
from repofleet.constants import FETCH_MAX_ATTEMPTS
from repofleet.errors import PerRepositoryError
from repofleet.fleet.batch import BatchOutcome, BatchProcessor, ItemAction
from repofleet.fleet.cache import CacheStore
from repofleet.fleet.filters import FilterSpec, filter_results
from repofleet.fleet.progress import NullProgressReporter, ProgressReporter
from repofleet.fleet.repository_source import list_repositories
from repofleet.fleet.retry import BackoffSchedule, Sleep
from repofleet.fleet.scanner import Scanner

if TYPE_CHECKING:
    from repofleet.utils.github_api_tools import GitHubClient

logger = logging.getLogger(__name__)


@dataclass
class IteratorOptions:
    """Per-invocation knobs, mostly straight from CLI flags"""

    concurrency: Optional[int] = None  # falls back to the config value
    retry: bool = False
    retries: Optional[int] = None  # defaults to the length of the backoff schedule
    use_cache: bool = True
    delay: float = 0
    state: str = 'open'


@dataclass
class FleetReport:
    """End-of-run summary handed back to the command"""

    kind: ItemKind
    action: ItemAction
    repositories: int = 0
    scanned: int = 0
    matched: List[ScanResult] = field(default_factory=list)
    outcome: BatchOutcome = field(default_factory=BatchOutcome)
    repo_errors: Dict[str, PerRepositoryError] = field(default_factory=dict)

    @property
    def successful(self) -> List[Item]:
        return self.outcome.successful

    @property
    def failed(self) -> List[Item]:
        return self.outcome.failed

    @property
    def ok(self) -> bool:
        return not self.failed and not self.repo_errors

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


async def iterate_fleet(
    config: Config,
    client: 'GitHubClient',
    filter_spec: FilterSpec,
    action: ItemAction,
    options: Optional[IteratorOptions] = None,
    cache: Optional[CacheStore] = None,
    reporter: Optional[ProgressReporter] = None,
    sleep: Sleep = asyncio.sleep,
) -> FleetReport:
    """
    Scan the configured fleet for items matching ``filter_spec`` and apply ``action`` to each.

    Raises:
        ConfigError: missing criteria or repository sources, before any I/O
        FatalError: repository discovery failed or matched nothing, or the cache directory is unusable
    """
    options = options or IteratorOptions()
    reporter = reporter or NullProgressReporter()
    if action.requires_filter:
        filter_spec.require_criteria(action.name)

    concurrency = options.concurrency or config.concurrency
    schedule = BackoffSchedule.from_sequence(config.retry_strategy)
    retries = 0
    if options.retry:
        retries = options.retries if options.retries is not None else len(schedule.delays)
    if cache is None:
        cache = CacheStore(max_age=config.cache_max_age)

    repositories = await list_repositories(config, client, sleep=sleep)
    report = FleetReport(kind=action.kind, action=action, repositories=len(repositories))

    scanner = Scanner(
        client,
        cache=cache,
        concurrency=concurrency,
        schedule=schedule,
        attempts=FETCH_MAX_ATTEMPTS,
        use_cache=options.use_cache,
        delay=options.delay,
        state=options.state,
        reporter=reporter,
        sleep=sleep,
    )
    scan = await scanner.scan(repositories, action.kind)
    report.scanned = scan.scanned
    report.repo_errors = scan.errors

    report.matched = filter_results(scan.items, filter_spec)
    reporter.finish(
        f'[{scan.scanned}/{scan.total}] repositories scanned, '
        f'{len(report.matched)} matching {action.kind.noun}s found'
    )

    processor = BatchProcessor(
        concurrency=concurrency,
        retries=retries,
        schedule=schedule,
        cache=cache,
        delay=options.delay,
        reporter=reporter,
        sleep=sleep,
    )
    report.outcome = await processor.process(report.matched, action)
    reporter.finish(f'[{report.outcome.processed}/{len(report.matched)}] {action.kind.noun}s {action.past_tense}')

    logger.info(
        f'{action.name}: {len(report.successful)} succeeded, {len(report.failed)} failed, '
        f'{len(report.repo_errors)} repositories could not be scanned'
    )
    return report
