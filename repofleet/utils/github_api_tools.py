# Entrius 2025
import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import quote

import aiohttp

from repofleet.classes import Issue, PullRequest, Repository
from repofleet.constants import (
    BASE_GITHUB_API_URL,
    GITHUB_PER_PAGE,
    GITHUB_REQUEST_TIMEOUT,
    USER_AGENT,
)
from repofleet.errors import TransientFetchError, http_error_for

logger = logging.getLogger(__name__)

# =============================================================================
# Rate Limit Configuration
# =============================================================================
RATE_LIMIT_BUFFER_SECONDS = 5  # Extra buffer time when waiting for rate limit reset
RATE_LIMIT_MIN_REMAINING = 10  # Minimum remaining requests before warning
RATE_LIMIT_MAX_WAIT_SECONDS = 900  # Maximum time to wait for rate limit reset (15 min)


@dataclass
class RateLimitInfo:
    """Represents GitHub API rate limit information extracted from response headers."""

    limit: int  # Maximum requests allowed per hour
    remaining: int  # Requests remaining in current window
    reset_timestamp: int  # Unix timestamp when the rate limit resets
    used: int  # Requests used in current window

    @property
    def is_exceeded(self) -> bool:
        """Check if rate limit has been exceeded."""
        return self.remaining == 0

    @property
    def seconds_until_reset(self) -> int:
        """Calculate seconds until rate limit resets."""
        current_time = int(time.time())
        return max(0, self.reset_timestamp - current_time)

    def __str__(self) -> str:
        return f"RateLimit(remaining={self.remaining}/{self.limit}, resets_in={self.seconds_until_reset}s)"


def parse_rate_limit_headers(headers: Mapping[str, str]) -> Optional[RateLimitInfo]:
    """
    Parse GitHub API rate limit information from response headers.

    Args:
        headers: Headers of the HTTP response from GitHub API

    Returns:
        RateLimitInfo object if headers are present, None otherwise
    """
    try:
        limit = int(headers.get('X-RateLimit-Limit', 0))
        remaining = int(headers.get('X-RateLimit-Remaining', 0))
        reset_timestamp = int(headers.get('X-RateLimit-Reset', 0))
        used = int(headers.get('X-RateLimit-Used', 0))

        if limit == 0 and reset_timestamp == 0:
            return None

        return RateLimitInfo(limit=limit, remaining=remaining, reset_timestamp=reset_timestamp, used=used)
    except (ValueError, TypeError) as e:
        logger.debug(f"Could not parse rate limit headers: {e}")
        return None


def rate_limit_wait_seconds(status: int, headers: Mapping[str, str], body: str) -> Optional[float]:
    """
    Work out how long GitHub wants us to back off, if the response is a rate limit answer.

    Args:
        status: HTTP status code of the response
        headers: Response headers
        body: Response body text

    Returns:
        Seconds to wait before retrying, or None if the response is not rate limited
    """
    if status not in (403, 429):
        return None

    retry_after = headers.get('Retry-After')
    if retry_after:
        try:
            return min(float(retry_after), RATE_LIMIT_MAX_WAIT_SECONDS)
        except ValueError:
            pass

    rate_limit_info = parse_rate_limit_headers(headers)
    if rate_limit_info and rate_limit_info.is_exceeded:
        return min(rate_limit_info.seconds_until_reset + RATE_LIMIT_BUFFER_SECONDS, RATE_LIMIT_MAX_WAIT_SECONDS)

    if 'rate limit' in body.lower():
        return 60
    return None


def check_preemptive_rate_limit(headers: Mapping[str, str]) -> None:
    """
    Check if we're approaching rate limit and log a warning.

    Args:
        headers: Headers of the HTTP response from GitHub API
    """
    rate_limit_info = parse_rate_limit_headers(headers)

    if rate_limit_info:
        if rate_limit_info.remaining <= RATE_LIMIT_MIN_REMAINING:
            logger.warning(
                f"Approaching GitHub API rate limit: {rate_limit_info.remaining} requests remaining, "
                f"resets in {rate_limit_info.seconds_until_reset}s"
            )
        elif rate_limit_info.remaining <= rate_limit_info.limit * 0.1:
            logger.info(f"GitHub API rate limit status: {rate_limit_info.remaining}/{rate_limit_info.limit} remaining")


def make_headers(token: Optional[str]) -> Dict[str, str]:
    """Build standard GitHub HTTP headers for a PAT.

    Args:
        token (str): Github pat, may be empty for anonymous access
    Returns:
        Dict[str, str]: Mapping of HTTP header names to values.
    """
    headers = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": USER_AGENT,
    }
    if token:
        headers["Authorization"] = f"token {token}"
    return headers


def _error_message(body: str) -> str:
    try:
        payload = json.loads(body)
    except ValueError:
        return body.strip()[:200]
    if isinstance(payload, dict):
        return str(payload.get('message', ''))
    return ''


@dataclass
class Page:
    """One page of a paged listing. ``has_more`` is False on the last (short) page."""

    items: List[Any]
    has_more: bool


class GitHubClient:
    """Thin async wrapper over the GitHub REST endpoints repo-fleet needs.

    Every call raises ``HttpError`` (or ``TransientFetchError`` for retryable
    statuses and connection failures) when GitHub does not answer with a
    success status. Retrying is left to the caller.

    Use as an async context manager, or pass an existing ``aiohttp.ClientSession``.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        base_url: str = BASE_GITHUB_API_URL,
        base_branch_override: Optional[str] = None,
        per_page: int = GITHUB_PER_PAGE,
        connection_limit: int = 0,
    ):
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.base_branch_override = base_branch_override
        self.per_page = per_page
        self._connection_limit = connection_limit
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> 'GitHubClient':
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers=make_headers(self.token),
                timeout=aiohttp.ClientTimeout(total=GITHUB_REQUEST_TIMEOUT),
                connector=aiohttp.TCPConnector(limit=self._connection_limit),
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if self._session is None:
            raise RuntimeError("GitHubClient used outside of 'async with'")

        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url} {params or ''}")
        try:
            async with self._session.request(method, url, params=params, json=payload) as response:
                body = await response.text()
                check_preemptive_rate_limit(response.headers)
                if response.status >= 400:
                    raise http_error_for(
                        response.status,
                        _error_message(body),
                        url,
                        rate_limit_wait_seconds(response.status, response.headers, body),
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientFetchError(0, f"{type(e).__name__}: {e}", url) from e

        if not body:
            return None
        return json.loads(body)

    @staticmethod
    def _repo_path(repository: Repository) -> str:
        return f"/repos/{repository.owner}/{repository.name}"

    # -------------------------------------------------------------------------
    # Repository discovery
    # -------------------------------------------------------------------------

    async def list_repositories_for_org(self, org: str, page: int) -> List[Repository]:
        """List one page of an organization's repositories. An empty page ends pagination."""
        data = await self._request(
            'GET', f"/orgs/{org}/repos", params={'type': 'all', 'page': page, 'per_page': self.per_page}
        )
        return [Repository.from_github_response(repo, self.base_branch_override) for repo in data or []]

    async def get_repository(self, owner: str, name: str) -> Repository:
        data = await self._request('GET', f"/repos/{owner}/{name}")
        return Repository.from_github_response(data, self.base_branch_override)

    async def search_repositories(self, query: str, page: int) -> Tuple[List[Repository], bool]:
        """Run a repository search query, returning one page of results and whether more remain."""
        data = await self._request(
            'GET', '/search/repositories', params={'q': query, 'page': page, 'per_page': self.per_page}
        )
        raw_items = (data or {}).get('items') or []
        total = (data or {}).get('total_count')
        if total is not None:
            has_more = page * self.per_page < total
        else:
            has_more = len(raw_items) >= self.per_page
        repositories = [Repository.from_github_response(repo, self.base_branch_override) for repo in raw_items]
        return repositories, has_more and bool(raw_items)

    # -------------------------------------------------------------------------
    # Item listing
    # -------------------------------------------------------------------------

    async def list_pull_requests(self, repository: Repository, state: str = 'open', page: int = 1) -> Page:
        data = await self._request(
            'GET',
            f"{self._repo_path(repository)}/pulls",
            params={'state': state, 'page': page, 'per_page': self.per_page},
        )
        raw_items = data or []
        return Page(
            items=[PullRequest.from_github_response(pr) for pr in raw_items],
            has_more=len(raw_items) >= self.per_page,
        )

    async def list_issues(self, repository: Repository, state: str = 'open', page: int = 1) -> Page:
        """List one page of issues. Pull requests returned by the issues endpoint are dropped."""
        data = await self._request(
            'GET',
            f"{self._repo_path(repository)}/issues",
            params={'state': state, 'page': page, 'per_page': self.per_page},
        )
        raw_items = data or []
        return Page(
            items=[Issue.from_github_response(issue) for issue in raw_items if 'pull_request' not in issue],
            # page length is judged before dropping pull requests
            has_more=len(raw_items) >= self.per_page,
        )

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------

    async def get_branch_sha(self, repository: Repository, branch: str) -> str:
        data = await self._request('GET', f"{self._repo_path(repository)}/git/ref/heads/{quote(branch, safe='/')}")
        return data['object']['sha']

    async def update_branch(self, repository: Repository, branch: str, from_branch: str) -> Any:
        """Merge ``from_branch`` into ``branch``."""
        return await self._request(
            'POST', f"{self._repo_path(repository)}/merges", payload={'base': branch, 'head': from_branch}
        )

    async def delete_branch(self, repository: Repository, branch: str) -> None:
        await self._request('DELETE', f"{self._repo_path(repository)}/git/refs/heads/{quote(branch, safe='/')}")

    # -------------------------------------------------------------------------
    # Pull request mutations
    # -------------------------------------------------------------------------

    async def approve_pull_request(self, repository: Repository, pr: PullRequest) -> Any:
        return await self._request(
            'POST', f"{self._repo_path(repository)}/pulls/{pr.number}/reviews", payload={'event': 'APPROVE'}
        )

    async def merge_pull_request(self, repository: Repository, pr: PullRequest, merge_method: str = 'squash') -> Any:
        return await self._request(
            'PUT', f"{self._repo_path(repository)}/pulls/{pr.number}/merge", payload={'merge_method': merge_method}
        )

    async def close_pull_request(self, repository: Repository, pr: PullRequest) -> Any:
        return await self._request(
            'PATCH', f"{self._repo_path(repository)}/pulls/{pr.number}", payload={'state': 'closed'}
        )

    async def rename_pull_request(self, repository: Repository, pr: PullRequest, title: str) -> Any:
        return await self._request('PATCH', f"{self._repo_path(repository)}/pulls/{pr.number}", payload={'title': title})

    async def tag_pull_request(self, repository: Repository, pr: PullRequest, labels: List[str]) -> Any:
        return await self._request(
            'POST', f"{self._repo_path(repository)}/issues/{pr.number}/labels", payload={'labels': list(labels)}
        )

    async def untag_pull_request(self, repository: Repository, pr: PullRequest, label: str) -> Any:
        return await self._request(
            'DELETE', f"{self._repo_path(repository)}/issues/{pr.number}/labels/{quote(label, safe='')}"
        )
