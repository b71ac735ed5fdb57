#!/usr/bin/env python3
# The MIT License (MIT)
# Copyright © 2025 Entrius

"""
Shared fixtures: an in-memory GitHub client and builders for repositories,
pull requests and issues.
"""

import asyncio
from collections import defaultdict
from typing import Dict, List, Optional

import pytest

from repofleet.classes import Issue, PullRequest, Repository
from repofleet.config import Config, RepoSelector
from repofleet.errors import HttpError, http_error_for
from repofleet.fleet.cache import CacheStore
from repofleet.utils.github_api_tools import Page


class FakeGitHub:
    """In-memory stand-in for GitHubClient.

    - ``org_repos`` / ``search_results`` drive repository discovery
    - ``prs`` / ``issues`` are keyed by ``owner/name``
    - ``list_failures[key]`` is a list of statuses answered before the real listing;
      ``always_fail[key]`` answers that status forever
    - ``delays[key]`` makes listing that repository take that long, to observe concurrency
    - ``discovery_failures`` is a list of statuses answered by the next discovery calls
    """

    def __init__(self, per_page: int = 100):
        self.per_page = per_page
        self.org_repos: Dict[str, List[Repository]] = {}
        self.named_repos: Dict[str, Repository] = {}
        self.search_results: List[Repository] = []
        self.prs: Dict[str, List[PullRequest]] = defaultdict(list)
        self.issues: Dict[str, List[Issue]] = defaultdict(list)
        self.list_failures: Dict[str, List[int]] = {}
        self.always_fail: Dict[str, int] = {}
        self.delays: Dict[str, float] = {}
        self.branch_shas: Dict[str, str] = {}
        self.failing_mutations: Dict[str, int] = {}
        self.discovery_failures: List[int] = []

        self.list_calls: List[tuple] = []
        self.mutations: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    # -- discovery --------------------------------------------------------

    def _discovery_call(self):
        if self.discovery_failures:
            raise http_error_for(self.discovery_failures.pop(0), 'discovery failed')

    async def list_repositories_for_org(self, org: str, page: int) -> List[Repository]:
        self._discovery_call()
        repos = self.org_repos.get(org, [])
        start = (page - 1) * self.per_page
        return repos[start:start + self.per_page]

    async def get_repository(self, owner: str, name: str) -> Repository:
        self._discovery_call()
        key = f'{owner}/{name}'
        if key not in self.named_repos:
            raise http_error_for(404, 'Not Found')
        return self.named_repos[key]

    async def search_repositories(self, query: str, page: int):
        self._discovery_call()
        start = (page - 1) * self.per_page
        batch = self.search_results[start:start + self.per_page]
        return batch, start + self.per_page < len(self.search_results)

    # -- listing ----------------------------------------------------------

    async def _list(self, store, repository: Repository, page: int) -> Page:
        key = repository.key
        self.list_calls.append((key, page))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if key in self.delays:
                await asyncio.sleep(self.delays[key])
            if key in self.always_fail:
                raise http_error_for(self.always_fail[key], 'listing failed')
            pending = self.list_failures.get(key)
            if pending:
                raise http_error_for(pending.pop(0), 'listing failed')
            items = store[key]
            start = (page - 1) * self.per_page
            batch = items[start:start + self.per_page]
            return Page(items=batch, has_more=len(batch) >= self.per_page)
        finally:
            self.in_flight -= 1

    async def list_pull_requests(self, repository: Repository, state: str = 'open', page: int = 1) -> Page:
        return await self._list(self.prs, repository, page)

    async def list_issues(self, repository: Repository, state: str = 'open', page: int = 1) -> Page:
        return await self._list(self.issues, repository, page)

    # -- mutations --------------------------------------------------------

    def _mutate(self, name: str, *args):
        self.mutations.append((name,) + args)
        if name in self.failing_mutations:
            raise HttpError(self.failing_mutations[name], f'{name} refused')

    async def get_branch_sha(self, repository: Repository, branch: str) -> str:
        self._mutate('get_branch_sha', repository.key, branch)
        return self.branch_shas.get(f'{repository.key}:{branch}', 'base-sha')

    async def update_branch(self, repository: Repository, branch: str, from_branch: str):
        self._mutate('update_branch', repository.key, branch, from_branch)

    async def delete_branch(self, repository: Repository, branch: str):
        self._mutate('delete_branch', repository.key, branch)

    async def approve_pull_request(self, repository: Repository, pr: PullRequest):
        self._mutate('approve', repository.key, pr.number)

    async def merge_pull_request(self, repository: Repository, pr: PullRequest, merge_method: str = 'squash'):
        self._mutate('merge', repository.key, pr.number)

    async def close_pull_request(self, repository: Repository, pr: PullRequest):
        self._mutate('close', repository.key, pr.number)

    async def rename_pull_request(self, repository: Repository, pr: PullRequest, title: str):
        self._mutate('rename', repository.key, pr.number, title)

    async def tag_pull_request(self, repository: Repository, pr: PullRequest, labels: List[str]):
        self._mutate('tag', repository.key, pr.number, tuple(labels))

    async def untag_pull_request(self, repository: Repository, pr: PullRequest, label: str):
        self._mutate('untag', repository.key, pr.number, label)


def make_repo(name: str, owner: str = 'googleapis', archived: bool = False, base_branch: str = 'main') -> Repository:
    return Repository(
        owner=owner,
        name=name,
        base_branch=base_branch,
        clone_url=f'https://github.com/{owner}/{name}.git',
        archived=archived,
    )


def make_pr(
    number: int,
    title: str,
    repo: str = 'googleapis/foo',
    branch: str = 'feature',
    author: str = 'octocat',
    body: Optional[str] = None,
    labels: tuple = (),
    base_sha: str = 'base-sha',
    head_owner: Optional[str] = None,
) -> PullRequest:
    return PullRequest(
        number=number,
        title=title,
        url=f'https://github.com/{repo}/pull/{number}',
        author=author,
        body=body,
        head_ref=branch,
        base_sha=base_sha,
        head_owner=head_owner or repo.split('/')[0],
        labels=labels,
    )


def make_issue(number: int, title: str, repo: str = 'googleapis/foo', author: str = 'octocat', body: Optional[str] = None) -> Issue:
    return Issue(number=number, title=title, url=f'https://github.com/{repo}/issues/{number}', author=author, body=body)


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def repo_factory():
    return make_repo


@pytest.fixture
def pr_factory():
    return make_pr


@pytest.fixture
def issue_factory():
    return make_issue


@pytest.fixture
def recorded_sleeps():
    """Replacement for asyncio.sleep that records the requested delays and returns at once."""
    delays: List[float] = []

    async def sleep(seconds: float) -> None:
        delays.append(seconds)

    sleep.delays = delays
    return sleep


@pytest.fixture
def cache_store(tmp_path):
    return CacheStore(directory=tmp_path / 'cache', max_age=3600)


@pytest.fixture
def search_config():
    return Config(
        github_token='abc123',
        repo_search='org:googleapis language:typescript is:public archived:false',
        retry_strategy=(5.0, 10.0, 20.0),
    )


@pytest.fixture
def org_config():
    return Config(
        github_token='abc123',
        repos=(RepoSelector(org='googleapis', regex='^nodejs-'),),
        retry_strategy=(5.0, 10.0, 20.0),
    )
