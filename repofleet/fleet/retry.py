# Entrius 2025

"""Backoff schedule and the two retry loops used by the scanner and batch processor."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, Tuple, TypeVar

from repofleet.constants import DEFAULT_RETRY_STRATEGY
from repofleet.errors import TransientFetchError

logger = logging.getLogger(__name__)

T = TypeVar('T')

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class BackoffSchedule:
    """Ordered waits (seconds) between attempts.

    Retry ``i`` (0-based) waits ``delays[i]``; once retries outrun the
    schedule the last delay is repeated.
    """

    delays: Tuple[float, ...] = DEFAULT_RETRY_STRATEGY

    def __post_init__(self):
        if not self.delays:
            raise ValueError('backoff schedule needs at least one delay')
        if any(delay <= 0 for delay in self.delays):
            raise ValueError(f'backoff delays must be positive (got {self.delays})')

    @classmethod
    def from_sequence(cls, delays: Sequence[float]) -> 'BackoffSchedule':
        return cls(tuple(float(delay) for delay in delays))

    def delay_for(self, retry_index: int) -> float:
        return self.delays[min(retry_index, len(self.delays) - 1)]


async def retry_exception(
    operation: Callable[[], Awaitable[T]],
    schedule: BackoffSchedule,
    attempts: int,
    sleep: Sleep = asyncio.sleep,
    context: str = '',
) -> T:
    """Await ``operation`` up to ``attempts`` times while it raises ``TransientFetchError``.

    Any other exception propagates immediately. The last transient error is
    re-raised once attempts are exhausted. A rate limit answer that asks for a
    longer wait than the schedule wins.
    """
    for attempt in range(attempts):
        try:
            return await operation()
        except TransientFetchError as e:
            if attempt >= attempts - 1:
                raise
            delay = schedule.delay_for(attempt)
            if e.retry_after:
                delay = max(delay, e.retry_after)
            logger.warning(f'{context} failed (attempt {attempt + 1}/{attempts}): {e}, retrying in {delay:g}s')
            await sleep(delay)
    raise RuntimeError('unreachable')


async def retry_boolean(
    operation: Callable[[], Awaitable[bool]],
    schedule: Optional[BackoffSchedule],
    retries: int,
    sleep: Sleep = asyncio.sleep,
    context: str = '',
) -> Tuple[bool, int, Optional[str]]:
    """Await ``operation`` until it reports success, at most ``retries + 1`` times.

    An exception counts as a failed attempt. Only the final attempt decides
    the result.

    Returns:
        (succeeded, attempts made, error text of the final attempt if it raised)
    """
    total = 1 + (retries if schedule is not None else 0)
    error: Optional[str] = None
    for attempt in range(total):
        error = None
        try:
            succeeded = bool(await operation())
        except Exception as e:
            logger.warning(f'{context} raised {type(e).__name__}: {e}')
            error = f'{type(e).__name__}: {e}'
            succeeded = False

        if succeeded:
            return True, attempt + 1, None
        if attempt < total - 1:
            delay = schedule.delay_for(attempt)
            logger.info(f'{context} failed (attempt {attempt + 1}/{total}), retrying in {delay:g}s')
            await sleep(delay)

    return False, total, error
