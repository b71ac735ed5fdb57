# Entrius 2025

"""Disk-backed cache of scanned pull request / issue lists.

One JSON file per (repository, item kind) under the per-user temp directory,
holding ``{"issues": [...], "prs": [...]}``. The file mtime is the capture
time; entries at or past ``max_age`` are deleted on read and reported absent.
Every operation holds the store's lock for its whole duration.
"""

import asyncio
import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from repofleet.classes import Item, ItemKind, Repository, item_from_dict
from repofleet.constants import CACHE_DIRECTORY, DEFAULT_CACHE_MAX_AGE
from repofleet.errors import CacheIOError
from repofleet.utils.utils import safe_filename

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    items: List[Item]
    captured_at: float  # unix timestamp


class CacheStore:
    """TTL cache of item lists, constructed once per command and shared by reference."""

    def __init__(
        self,
        directory: Path = CACHE_DIRECTORY,
        max_age: float = DEFAULT_CACHE_MAX_AGE,
        clock: Callable[[], float] = time.time,
    ):
        self.directory = Path(directory)
        self.max_age = max_age
        self._clock = clock
        # TODO: swap for a per-key lock map if scans of large fleets show contention here
        self._lock = asyncio.Lock()

    def path_for(self, repository: Repository, kind: ItemKind) -> Path:
        return self.directory / (safe_filename(f'{repository.owner}-{repository.name}') + f'-{kind.value}')

    def _init_directory(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheIOError(f'Cannot create cache directory {self.directory}: {e}') from e

    # -------------------------------------------------------------------------
    # Blocking helpers, run in a worker thread while the lock is held
    # -------------------------------------------------------------------------

    def _read_sync(self, path: Path, kind: ItemKind) -> Optional[CacheEntry]:
        self._init_directory()
        try:
            if not path.exists():
                return None
            captured_at = path.stat().st_mtime
            if self._clock() - captured_at >= self.max_age:
                path.unlink()
                logger.debug(f'Cache entry {path.name} expired, deleted')
                return None
            with open(path, 'r') as f:
                data = json.load(f)
            items = [item_from_dict(raw) for raw in data.get(kind.value) or []]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.debug(f'Cache read failed for {path.name}, treating as miss: {e}')
            return None
        return CacheEntry(items=items, captured_at=captured_at)

    def _write_sync(self, path: Path, kind: ItemKind, items: Sequence[Item]) -> None:
        self._init_directory()
        data = {ItemKind.ISSUE.value: [], ItemKind.PULL_REQUEST.value: []}
        data[kind.value] = [item.to_dict() for item in items]
        tmp_path = path.with_name(path.name + '.tmp')
        try:
            with open(tmp_path, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.warning(f'Could not write cache entry {path.name}: {e}')

    def _invalidate_sync(self, path: Path) -> None:
        # no directory, nothing cached
        if not self.directory.is_dir():
            return
        try:
            path.unlink()
            logger.debug(f'Cache entry {path.name} invalidated')
        except FileNotFoundError:
            pass

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def read(self, repository: Repository, kind: ItemKind) -> Optional[CacheEntry]:
        """Return the fresh cached items for a repository, or None (absent, stale or unreadable)."""
        async with self._lock:
            return await asyncio.to_thread(self._read_sync, self.path_for(repository, kind), kind)

    async def write(self, repository: Repository, kind: ItemKind, items: Sequence[Item]) -> None:
        """Replace the cached items for a repository."""
        async with self._lock:
            await asyncio.to_thread(self._write_sync, self.path_for(repository, kind), kind, list(items))

    async def invalidate(self, repository: Repository, kind: ItemKind) -> None:
        """Delete the cached items for a repository, if any."""
        async with self._lock:
            await asyncio.to_thread(self._invalidate_sync, self.path_for(repository, kind))
