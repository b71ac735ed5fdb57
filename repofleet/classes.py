from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class ItemKind(Enum):
    """Discriminant of the Item variant. The value doubles as the cache file suffix."""

    PULL_REQUEST = "prs"
    ISSUE = "issues"

    @property
    def noun(self) -> str:
        return "PR" if self is ItemKind.PULL_REQUEST else "issue"


@dataclass(frozen=True)
class Repository:
    """Repository handle, immutable for the lifetime of one command"""

    owner: str
    name: str
    base_branch: str = "main"
    clone_url: Optional[str] = None
    archived: bool = False

    @property
    def key(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_github_response(cls, data: Dict[str, Any], base_branch_override: Optional[str] = None) -> 'Repository':
        """Create Repository from a GitHub repos/search API object"""
        owner = (data.get('owner') or {}).get('login')
        name = data.get('name')
        if not owner or not name:
            # search results always carry full_name, older payloads may not carry owner
            owner, name = data['full_name'].split('/', 1)
        return cls(
            owner=owner,
            name=name,
            base_branch=base_branch_override or data.get('default_branch') or 'main',
            clone_url=data.get('clone_url'),
            archived=bool(data.get('archived', False)),
        )


@dataclass(frozen=True)
class PullRequest:
    """Snapshot of an open pull request at scan time"""

    number: int
    title: str
    url: str
    author: str
    body: Optional[str] = None
    head_ref: str = ""
    base_sha: str = ""
    head_owner: Optional[str] = None  # owner of the source repository, differs from base owner on forks
    labels: Tuple[str, ...] = ()
    kind: ItemKind = field(default=ItemKind.PULL_REQUEST, init=False)

    def is_from_fork(self, repository: Repository) -> bool:
        return self.head_owner is not None and self.head_owner != repository.owner

    @classmethod
    def from_github_response(cls, data: Dict[str, Any]) -> 'PullRequest':
        head = data.get('head') or {}
        head_repo = head.get('repo') or {}
        return cls(
            number=data.get('number', 0),
            title=data.get('title') or '',
            url=data.get('html_url') or '',
            author=(data.get('user') or {}).get('login') or '',
            body=data.get('body'),
            head_ref=head.get('ref') or '',
            base_sha=(data.get('base') or {}).get('sha') or '',
            head_owner=(head_repo.get('owner') or {}).get('login'),
            labels=tuple(label['name'] for label in data.get('labels') or [] if label.get('name')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'number': self.number,
            'title': self.title,
            'url': self.url,
            'author': self.author,
            'body': self.body,
            'head_ref': self.head_ref,
            'base_sha': self.base_sha,
            'head_owner': self.head_owner,
            'labels': list(self.labels),
        }


@dataclass(frozen=True)
class Issue:
    """Snapshot of an open issue at scan time"""

    number: int
    title: str
    url: str
    author: str
    body: Optional[str] = None
    kind: ItemKind = field(default=ItemKind.ISSUE, init=False)

    @classmethod
    def from_github_response(cls, data: Dict[str, Any]) -> 'Issue':
        return cls(
            number=data.get('number', 0),
            title=data.get('title') or '',
            url=data.get('html_url') or '',
            author=(data.get('user') or {}).get('login') or '',
            body=data.get('body'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'number': self.number,
            'title': self.title,
            'url': self.url,
            'author': self.author,
            'body': self.body,
        }


Item = Union[PullRequest, Issue]


def item_from_dict(data: Dict[str, Any]) -> Item:
    """Rebuild an Item from its ``to_dict`` form, dispatching on ``kind``."""
    kind = ItemKind(data['kind'])
    common = {
        'number': data['number'],
        'title': data['title'],
        'url': data['url'],
        'author': data['author'],
        'body': data.get('body'),
    }
    if kind is ItemKind.ISSUE:
        return Issue(**common)
    return PullRequest(
        **common,
        head_ref=data.get('head_ref') or '',
        base_sha=data.get('base_sha') or '',
        head_owner=data.get('head_owner'),
        labels=tuple(data.get('labels') or ()),
    )


@dataclass(frozen=True)
class ScanResult:
    """One item found while scanning, paired with the repository it lives in"""

    repository: Repository
    item: Item


@dataclass(frozen=True)
class Outcome:
    """Terminal result of processing one item"""

    result: ScanResult
    succeeded: bool
    attempts: int = 1
    error: Optional[str] = None

    @property
    def item(self) -> Item:
        return self.result.item
