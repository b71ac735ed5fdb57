# The MIT License (MIT)
# Copyright © 2025 Entrius

"""
CLI commands for bulk pull request and issue operations

Command structure:
    repo list-prs (alias: list)   List open PRs matching the filters
    repo list-issues              List open issues matching the filters
    repo approve                  Approve matching PRs
    repo merge                    Update, squash-merge and delete branch
    repo reject                   Close matching PRs
    repo rename TITLE             Rename matching PRs
    repo tag LABEL...             Add labels
    repo untag LABEL              Remove a label
    repo update                   Update PR branches from their base branch

Every command accepts --title/--branch/--body/--label/--author filters and
--concurrency/--retry/--nocache/--delay.
"""

from .commands import approve, list_issues, list_prs, merge, reject, rename, tag, untag, update

# Re-export helpers
from .helpers import (
    EXIT_FAILURES,
    EXIT_OK,
    EXIT_USAGE,
    console,
    make_client,
    print_error,
    print_report,
    print_success,
)


def register_commands(cli):
    """Register all bulk commands with the root CLI group."""
    for command in (list_prs, list_issues, approve, merge, reject, rename, tag, untag, update):
        cli.add_command(command)

    cli.add_alias('list-prs', 'list')


__all__ = [
    'register_commands',
    'approve',
    'list_issues',
    'list_prs',
    'merge',
    'reject',
    'rename',
    'tag',
    'untag',
    'update',
    # Helpers
    'console',
    'make_client',
    'print_error',
    'print_report',
    'print_success',
    'EXIT_OK',
    'EXIT_FAILURES',
    'EXIT_USAGE',
]
