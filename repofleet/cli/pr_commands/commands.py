# The MIT License (MIT)
# Copyright © 2025 Entrius

"""
Bulk pull request / issue commands.

Commands:
    repo list-prs       List open PRs matching the filters (alias: list)
    repo list-issues    List open issues matching the filters
    repo approve        Approve matching PRs
    repo merge          Update, squash-merge and delete the branch of matching PRs
    repo reject         Close matching PRs
    repo rename TITLE   Rename matching PRs
    repo tag LABEL...   Add labels to matching PRs
    repo untag LABEL    Remove a label from matching PRs
    repo update         Bring matching PRs up to date with their base branch
"""

import click

from .actions import (
    ApproveAction,
    ListIssuesAction,
    ListPullRequestsAction,
    MergeAction,
    RejectAction,
    RenameAction,
    TagAction,
    UntagAction,
    UpdateAction,
)
from .helpers import fleet_options, run_fleet_command


@click.command('list-prs')
@fleet_options
@click.pass_context
def list_prs(ctx, **flags):
    """List all open PRs matching the filters.

    \b
    Example:
        repo list-prs --title '^chore' --author renovate-bot
    """
    run_fleet_command(ctx, 'list-prs', lambda client: ListPullRequestsAction(), False, **flags)


@click.command('list-issues')
@fleet_options
@click.pass_context
def list_issues(ctx, **flags):
    """List all open issues matching the filters.

    \b
    Example:
        repo list-issues --body 'flaky' --author flaky-bot
    """
    run_fleet_command(ctx, 'list-issues', lambda client: ListIssuesAction(), False, **flags)


@click.command('approve')
@fleet_options
@click.pass_context
def approve(ctx, **flags):
    """Approve all open PRs matching the filters.

    \b
    Example:
        repo approve --title '^chore\\(deps\\)' --author renovate-bot
    """
    run_fleet_command(ctx, 'approve', ApproveAction, True, **flags)


@click.command('merge')
@fleet_options
@click.pass_context
def merge(ctx, **flags):
    """Update, squash-merge and delete the branch of all open PRs matching the filters."""
    run_fleet_command(ctx, 'merge', MergeAction, True, **flags)


@click.command('reject')
@fleet_options
@click.pass_context
def reject(ctx, **flags):
    """Close all open PRs matching the filters without merging."""
    run_fleet_command(ctx, 'reject', RejectAction, True, **flags)


@click.command('rename')
@click.argument('new_title', type=str)
@fleet_options
@click.pass_context
def rename(ctx, new_title: str, **flags):
    """Rename all open PRs matching the filters to NEW_TITLE.

    \b
    Example:
        repo rename --branch '^release-v' 'chore: release 2.0.0'
    """
    if not new_title.strip():
        raise click.BadParameter('New title cannot be empty', param_hint='NEW_TITLE')
    run_fleet_command(ctx, 'rename', lambda client: RenameAction(client, new_title), True, **flags)


@click.command('tag')
@click.argument('labels', nargs=-1, required=True)
@fleet_options
@click.pass_context
def tag(ctx, labels, **flags):
    """Apply LABELS to all open PRs matching the filters.

    \b
    Example:
        repo tag --title '^deps' automerge kokoro:run
    """
    run_fleet_command(ctx, 'tag', lambda client: TagAction(client, list(labels)), True, **flags)


@click.command('untag')
@click.argument('label_name', metavar='LABEL', type=str)
@fleet_options
@click.pass_context
def untag(ctx, label_name: str, **flags):
    """Remove LABEL from all open PRs matching the filters."""
    run_fleet_command(ctx, 'untag', lambda client: UntagAction(client, label_name), True, **flags)


@click.command('update')
@fleet_options
@click.pass_context
def update(ctx, **flags):
    """Merge the base branch into every open PR matching the filters that is behind it."""
    run_fleet_command(ctx, 'update', UpdateAction, True, **flags)
