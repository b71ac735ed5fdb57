# The MIT License (MIT)
# Copyright © 2025 Entrius

"""
Per-item actions behind each bulk command.

Each action wraps the GitHub client calls for one command. Errors are logged
and reported as a failed item (False) so one bad pull request never stops the
batch.
"""

import logging
from typing import TYPE_CHECKING, List

from repofleet.classes import Issue, ItemKind, PullRequest, Repository
from repofleet.errors import HttpError
from repofleet.fleet.batch import ItemAction

if TYPE_CHECKING:
    from repofleet.utils.github_api_tools import GitHubClient

logger = logging.getLogger(__name__)


class GitHubAction(ItemAction):
    """ItemAction bound to a GitHub client"""

    def __init__(self, client: 'GitHubClient'):
        self.client = client


async def bring_up_to_date(client: 'GitHubClient', repository: Repository, pr: PullRequest) -> bool:
    """Merge the base branch into the PR branch when the PR was opened against an older base commit."""
    try:
        latest_sha = await client.get_branch_sha(repository, repository.base_branch)
    except HttpError as e:
        logger.warning(f'Cannot get sha of latest commit to {repository.base_branch} in {repository.key}, skipping: {e}')
        return False

    if latest_sha == pr.base_sha:
        return True

    try:
        await client.update_branch(repository, pr.head_ref, repository.base_branch)
    except HttpError as e:
        logger.warning(f'Cannot update branch for PR {pr.url}, skipping: {e}')
        return False
    logger.info(f'Updated {pr.head_ref} of {pr.url}; CI may take a while before it can merge')
    return True


class ListPullRequestsAction(ItemAction):
    name = 'list-prs'
    past_tense = 'listed'
    active = 'listing'
    description = 'Will list all open PRs matching the filters.'
    kind = ItemKind.PULL_REQUEST
    requires_filter = False

    async def run(self, repository: Repository, item: PullRequest) -> bool:
        return True


class ListIssuesAction(ItemAction):
    name = 'list-issues'
    past_tense = 'listed'
    active = 'listing'
    description = 'Will list all open issues matching the filters.'
    kind = ItemKind.ISSUE
    requires_filter = False

    async def run(self, repository: Repository, item: Issue) -> bool:
        return True


class ApproveAction(GitHubAction):
    name = 'approve'
    past_tense = 'approved'
    active = 'approving'
    description = 'Will approve all open PRs matching the filters.'

    async def run(self, repository: Repository, item: PullRequest) -> bool:
        try:
            await self.client.approve_pull_request(repository, item)
        except HttpError as e:
            logger.warning(f'Error trying to approve PR {item.url}: {e}')
            return False
        return True


class MergeAction(GitHubAction):
    name = 'merge'
    past_tense = 'merged'
    active = 'merging'
    description = 'Will update, squash-merge, and delete the branch of all open PRs matching the filters.'
    invalidates_cache = True

    async def run(self, repository: Repository, item: PullRequest) -> bool:
        if not await bring_up_to_date(self.client, repository, item):
            return False

        try:
            await self.client.merge_pull_request(repository, item)
        except HttpError as e:
            logger.warning(f'Error trying to merge PR {item.url}: {e}')
            return False

        if item.is_from_fork(repository):
            logger.debug(f'{item.url} comes from a fork, leaving its branch alone')
            return True
        try:
            await self.client.delete_branch(repository, item.head_ref)
        except HttpError as e:
            logger.warning(f'Error trying to delete branch {item.head_ref} of {repository.key}: {e}')
            return False
        return True


class RejectAction(GitHubAction):
    name = 'reject'
    past_tense = 'rejected'
    active = 'rejecting'
    description = 'Will close all open PRs matching the filters without merging.'
    invalidates_cache = True

    async def run(self, repository: Repository, item: PullRequest) -> bool:
        try:
            await self.client.close_pull_request(repository, item)
        except HttpError as e:
            logger.warning(f'Cannot close pull request {item.url}: {e}')
            return False
        return True


class RenameAction(GitHubAction):
    name = 'rename'
    past_tense = 'renamed'
    active = 'renaming'
    description = 'Will rename all open PRs matching the filters.'
    invalidates_cache = True

    def __init__(self, client: 'GitHubClient', title: str):
        super().__init__(client)
        self.title = title

    async def run(self, repository: Repository, item: PullRequest) -> bool:
        try:
            await self.client.rename_pull_request(repository, item, self.title)
        except HttpError as e:
            logger.warning(f'Error trying to rename PR {item.url}: {e}')
            return False
        return True


class TagAction(GitHubAction):
    name = 'tag'
    past_tense = 'tagged'
    active = 'tagging'
    description = 'Will apply label(s) to all open PRs matching the filters.'
    invalidates_cache = True

    def __init__(self, client: 'GitHubClient', labels: List[str]):
        super().__init__(client)
        self.labels = list(labels)

    async def run(self, repository: Repository, item: PullRequest) -> bool:
        try:
            await self.client.tag_pull_request(repository, item, self.labels)
        except HttpError as e:
            logger.warning(f'Error trying to tag PR {item.url}: {e}')
            return False
        return True


class UntagAction(GitHubAction):
    name = 'untag'
    past_tense = 'untagged'
    active = 'untagging'
    description = 'Will remove a label from all open PRs matching the filters.'
    invalidates_cache = True

    def __init__(self, client: 'GitHubClient', label: str):
        super().__init__(client)
        self.label = label

    async def run(self, repository: Repository, item: PullRequest) -> bool:
        try:
            await self.client.untag_pull_request(repository, item, self.label)
        except HttpError as e:
            logger.warning(f'Error trying to untag PR {item.url}: {e}')
            return False
        return True


class UpdateAction(GitHubAction):
    name = 'update'
    past_tense = 'updated'
    active = 'updating'
    description = 'Iterates over all PRs matching the filters, and updates them to the latest on the base branch.'

    async def run(self, repository: Repository, item: PullRequest) -> bool:
        return await bring_up_to_date(self.client, repository, item)
