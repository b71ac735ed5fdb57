# Entrius 2025

"""Resolve the configured org selectors and search query into one repository list."""

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Awaitable, Dict, List, Tuple

from repofleet.classes import Repository
from repofleet.config import Config, RepoSelector
from repofleet.constants import FETCH_MAX_ATTEMPTS
from repofleet.errors import ConfigError, DiscoveryError, EmptyResultError, HttpError
from repofleet.fleet.retry import BackoffSchedule, Sleep, retry_exception
from repofleet.utils.logging import log_repository_sources

if TYPE_CHECKING:
    from repofleet.utils.github_api_tools import GitHubClient

logger = logging.getLogger(__name__)


async def _list_selector(
    client: 'GitHubClient', selector: RepoSelector, schedule: BackoffSchedule, sleep: Sleep
) -> List[Repository]:
    context = f'Listing repositories of {selector.describe()}'
    if selector.name:
        repository = await retry_exception(
            lambda: client.get_repository(selector.org, selector.name),
            schedule,
            FETCH_MAX_ATTEMPTS,
            sleep=sleep,
            context=context,
        )
        return [repository]

    name_regex = re.compile(selector.regex)
    repositories: List[Repository] = []
    page = 1
    while True:
        batch = await retry_exception(
            lambda: client.list_repositories_for_org(selector.org, page),
            schedule,
            FETCH_MAX_ATTEMPTS,
            sleep=sleep,
            context=f'{context} (page {page})',
        )
        if not batch:
            break
        repositories.extend(repo for repo in batch if name_regex.search(repo.name))
        page += 1
    return repositories


async def _list_search(client: 'GitHubClient', query: str, schedule: BackoffSchedule, sleep: Sleep) -> List[Repository]:
    repositories: List[Repository] = []
    page = 1
    while True:
        batch, has_more = await retry_exception(
            lambda: client.search_repositories(query, page),
            schedule,
            FETCH_MAX_ATTEMPTS,
            sleep=sleep,
            context=f'Searching repositories "{query}" (page {page})',
        )
        repositories.extend(batch)
        if not has_more:
            break
        page += 1
    return repositories


async def _discover(label: str, listing: Awaitable[List[Repository]]) -> List[Repository]:
    """Await one source listing; a request that still fails after its retries aborts the command."""
    try:
        return await listing
    except HttpError as e:
        logger.error(f'Cannot list repositories for {label}: {e}')
        raise DiscoveryError(f'Cannot list repositories for {label}: {e}') from e


def merge_repositories(sources: List[Tuple[str, List[Repository]]]) -> List[Repository]:
    """De-duplicate by ``owner/name`` (first occurrence wins) and drop archived repositories."""
    merged: Dict[str, Repository] = {}
    for _, repositories in sources:
        for repo in repositories:
            if repo.archived:
                continue
            merged.setdefault(repo.key.lower(), repo)
    return list(merged.values())


async def list_repositories(
    config: Config,
    client: 'GitHubClient',
    sleep: Sleep = asyncio.sleep,
) -> List[Repository]:
    """
    List every repository the configuration points at.

    Args:
        config: Loaded configuration (``repos`` selectors and/or ``repoSearch``)
        client: GitHub client

    Returns:
        Unique, non-archived repositories; org selectors in config order, then search results

    Raises:
        ConfigError: neither selectors nor a search query are configured
        DiscoveryError: a selector or the search query could not be listed
        EmptyResultError: nothing matched
    """
    if not config.has_repository_source:
        raise ConfigError(
            'No repositories configured. Add a repos list ({org, regex} or {org, name}) '
            'or a repoSearch query to the config file.'
        )

    for selector in config.repos:
        if selector.regex:
            try:
                re.compile(selector.regex)
            except re.error as e:
                raise ConfigError(f'Invalid repository regex for org {selector.org}: {e}')

    schedule = BackoffSchedule.from_sequence(config.retry_strategy)
    labels = [f'org {selector.describe()}' for selector in config.repos]
    selector_results = await asyncio.gather(
        *(
            _discover(label, _list_selector(client, selector, schedule, sleep))
            for label, selector in zip(labels, config.repos)
        )
    )
    sources = list(zip(labels, selector_results))
    if config.repo_search:
        label = f'search "{config.repo_search}"'
        sources.append((label, await _discover(label, _list_search(client, config.repo_search, schedule, sleep))))

    repositories = merge_repositories(sources)
    log_repository_sources([(label, len(repos)) for label, repos in sources], len(repositories), repositories)

    if not repositories:
        raise EmptyResultError('No repositories matched the configured organizations or search query.')
    return repositories
