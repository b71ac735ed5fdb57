# Entrius 2025

"""AND-combined item filters (title, branch, label, body regexes and author)."""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern

from repofleet.classes import Item, ItemKind, ScanResult
from repofleet.errors import ConfigError


def _compile(pattern: Optional[str], flag: str) -> Optional[Pattern]:
    if pattern is None or pattern == '':
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f'Invalid {flag} regex {pattern!r}: {e}')


@dataclass(frozen=True)
class FilterSpec:
    """Optional criteria; an unset criterion imposes no constraint"""

    title: Optional[Pattern] = None
    branch: Optional[Pattern] = None
    label: Optional[Pattern] = None
    body: Optional[Pattern] = None
    author: Optional[str] = None

    @classmethod
    def from_options(
        cls,
        title: Optional[str] = None,
        branch: Optional[str] = None,
        label: Optional[str] = None,
        body: Optional[str] = None,
        author: Optional[str] = None,
    ) -> 'FilterSpec':
        """Compile raw CLI strings. Raises ConfigError on a malformed regex."""
        return cls(
            title=_compile(title, '--title'),
            branch=_compile(branch, '--branch'),
            label=_compile(label, '--label'),
            body=_compile(body, '--body'),
            author=author or None,
        )

    @property
    def is_empty(self) -> bool:
        return all(criterion is None for criterion in (self.title, self.branch, self.label, self.body, self.author))

    def require_criteria(self, command: str) -> None:
        """Refuse to run a bulk command against every item of the fleet by accident."""
        if self.is_empty:
            raise ConfigError(
                f'Usage: repo {command} [--branch branch] [--title title] [--body body] '
                f'[--label label] [--author author]\n'
                'Either branch name, body, label, author, or title regex must be present.'
            )

    def matches(self, item: Item) -> bool:
        if self.title is not None and not self.title.search(item.title):
            return False
        if self.body is not None and (not item.body or not self.body.search(item.body)):
            return False
        if self.author is not None and item.author != self.author:
            return False

        # branch and label only exist on pull requests
        if self.branch is not None or self.label is not None:
            if item.kind is not ItemKind.PULL_REQUEST:
                return False
            if self.branch is not None and not self.branch.search(item.head_ref):
                return False
            if self.label is not None and not any(self.label.search(label) for label in item.labels):
                return False

        return True


def filter_results(results: Iterable[ScanResult], spec: FilterSpec) -> List[ScanResult]:
    """Keep the results whose item matches every criterion, in input order."""
    return [result for result in results if spec.matches(result.item)]
