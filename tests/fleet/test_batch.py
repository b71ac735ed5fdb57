#!/usr/bin/env python3
# The MIT License (MIT)
# Copyright © 2025 Entrius

"""
Unit tests for the batch processor.
"""

import asyncio
from collections import Counter, defaultdict

import pytest

from repofleet.classes import ItemKind, ScanResult
from repofleet.fleet.batch import BatchProcessor, ItemAction
from repofleet.fleet.cache import CacheStore
from repofleet.fleet.retry import BackoffSchedule


class ScriptedAction(ItemAction):
    """Answers from a per-item script of results; an exception instance in the script is raised."""

    name = 'approve'
    past_tense = 'approved'
    active = 'approving'

    def __init__(self, script=None, default=True, delay=0):
        self.script = defaultdict(list, script or {})
        self.default = default
        self.delay = delay
        self.calls = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    async def run(self, repository, item):
        self.calls[item.number] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            answers = self.script[item.number]
            answer = answers.pop(0) if answers else self.default
            if isinstance(answer, Exception):
                raise answer
            return answer
        finally:
            self.in_flight -= 1


class InvalidatingAction(ScriptedAction):
    name = 'merge'
    invalidates_cache = True


@pytest.fixture
def results(repo_factory, pr_factory):
    repo = repo_factory('foo')
    return [ScanResult(repo, pr_factory(n, f'pr {n}')) for n in (1, 2, 3)]


class TestBatchOutcomes:
    @pytest.mark.asyncio
    async def test_all_succeed(self, results):
        outcome = await BatchProcessor().process(results, ScriptedAction())

        assert sorted(item.number for item in outcome.successful) == [1, 2, 3]
        assert outcome.failed == []
        assert outcome.processed == 3

    @pytest.mark.asyncio
    async def test_all_fail_without_retry(self, results):
        action = ScriptedAction(default=False)
        outcome = await BatchProcessor().process(results, action)

        assert sorted(item.number for item in outcome.failed) == [1, 2, 3]
        assert outcome.successful == []
        assert set(action.calls.values()) == {1}

    @pytest.mark.asyncio
    async def test_exception_counts_as_failure(self, results):
        action = ScriptedAction(script={2: [RuntimeError('boom')]})
        outcome = await BatchProcessor().process(results, action)

        assert [item.number for item in outcome.failed] == [2]
        failed = [o for o in outcome.outcomes if not o.succeeded][0]
        assert 'boom' in failed.error

    @pytest.mark.asyncio
    async def test_empty_input(self):
        outcome = await BatchProcessor().process([], ScriptedAction())
        assert outcome.processed == 0


class TestBatchRetry:
    @pytest.mark.asyncio
    async def test_fail_twice_then_succeed(self, results, recorded_sleeps):
        action = ScriptedAction(script={1: [False, False, True]})
        processor = BatchProcessor(retries=3, schedule=BackoffSchedule((5, 10, 20)), sleep=recorded_sleeps)

        outcome = await processor.process(results[:1], action)

        assert [item.number for item in outcome.successful] == [1]
        assert action.calls[1] == 3
        assert recorded_sleeps.delays == [5, 10]
        assert outcome.outcomes[0].attempts == 3

    @pytest.mark.asyncio
    async def test_exhausted_retries_report_item_once(self, results, recorded_sleeps):
        action = ScriptedAction(script={2: [False, RuntimeError('flaky'), False]}, default=False)
        processor = BatchProcessor(retries=2, schedule=BackoffSchedule((5,)), sleep=recorded_sleeps)

        outcome = await processor.process(results, action)

        assert len(outcome.failed) == 3
        assert [item.number for item in outcome.failed].count(2) == 1
        assert action.calls[2] == 3
        # the last delay repeats once the schedule runs out
        assert recorded_sleeps.delays == [5, 5] * 3

    @pytest.mark.asyncio
    async def test_every_item_lands_in_exactly_one_list(self, results, recorded_sleeps):
        action = ScriptedAction(script={1: [False, True], 2: [False, False, False], 3: [True]})
        processor = BatchProcessor(retries=2, schedule=BackoffSchedule((1,)), sleep=recorded_sleeps)

        outcome = await processor.process(results, action)

        successful = {item.number for item in outcome.successful}
        failed = {item.number for item in outcome.failed}
        assert successful == {1, 3}
        assert failed == {2}
        assert outcome.processed == 3

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            BatchProcessor(retries=-1)


class TestBatchConcurrency:
    @pytest.mark.asyncio
    async def test_in_flight_actions_never_exceed_limit(self, repo_factory, pr_factory):
        repo = repo_factory('foo')
        results = [ScanResult(repo, pr_factory(n, f'pr {n}')) for n in range(12)]
        action = ScriptedAction(delay=0.01)

        await BatchProcessor(concurrency=3).process(results, action)

        assert action.max_in_flight == 3


class TestBatchCacheInvalidation:
    @pytest.mark.asyncio
    async def test_successful_mutation_invalidates_repository_cache(self, results, cache_store):
        repo = results[0].repository
        await cache_store.write(repo, ItemKind.PULL_REQUEST, [r.item for r in results])

        await BatchProcessor(cache=cache_store).process(results[:1], InvalidatingAction())

        assert await cache_store.read(repo, ItemKind.PULL_REQUEST) is None

    @pytest.mark.asyncio
    async def test_failed_mutation_keeps_cache(self, results, cache_store):
        repo = results[0].repository
        await cache_store.write(repo, ItemKind.PULL_REQUEST, [r.item for r in results])

        await BatchProcessor(cache=cache_store).process(results[:1], InvalidatingAction(default=False))

        assert await cache_store.read(repo, ItemKind.PULL_REQUEST) is not None

    @pytest.mark.asyncio
    async def test_unusable_cache_directory_does_not_abort_batch(self, results, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('a file, not a directory')
        processor = BatchProcessor(concurrency=1, cache=CacheStore(directory=blocker / 'cache'))
        action = InvalidatingAction()

        outcome = await processor.process(results, action)

        assert sorted(item.number for item in outcome.successful) == [1, 2, 3]
        assert set(action.calls) == {1, 2, 3}

    @pytest.mark.asyncio
    async def test_invalidation_error_keeps_item_successful(self, results, tmp_path):
        class BrokenStore(CacheStore):
            async def invalidate(self, repository, kind):
                raise PermissionError('read-only cache')

        processor = BatchProcessor(cache=BrokenStore(directory=tmp_path / 'cache'))

        outcome = await processor.process(results, InvalidatingAction())

        assert outcome.failed == []
        assert outcome.processed == 3

    @pytest.mark.asyncio
    async def test_read_only_action_keeps_cache(self, results, cache_store):
        repo = results[0].repository
        await cache_store.write(repo, ItemKind.PULL_REQUEST, [r.item for r in results])

        await BatchProcessor(cache=cache_store).process(results, ScriptedAction())

        assert await cache_store.read(repo, ItemKind.PULL_REQUEST) is not None
