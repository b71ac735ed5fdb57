# The MIT License (MIT)
# Copyright © 2025 Entrius

"""
repo-fleet CLI - bulk operations across a GitHub repository fleet

Usage:
    repo list-prs --title '^chore'      # List matching PRs
    repo approve --author renovate-bot  # Approve matching PRs
    repo merge --label automerge        # Merge matching PRs
    repo config                         # Show loaded configuration
"""

from .pr_commands import register_commands

__all__ = ['register_commands']
