"""Tests for the batch runner."""

import asyncio

import pytest

from cloudglue_mcp.models.batch_item import BatchItem
from cloudglue_mcp.operations.batch import chunked, run_batch


class ConcurrencyProbe:
    """Operation that records how many calls are in flight."""

    def __init__(self, fail_on=()):
        self.in_flight = 0
        self.max_in_flight = 0
        self.started = []
        self.fail_on = set(fail_on)

    async def __call__(self, item):
        self.started.append(item)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # yield so the rest of the chunk can start
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            if item in self.fail_on:
                raise RuntimeError(f"item {item} failed")
            return item * 10
        finally:
            self.in_flight -= 1


class TestChunked:
    def test_chunks(self):
        assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        assert chunked([], 5) == []

    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            chunked([1], 0)


class TestRunBatch:
    @pytest.mark.asyncio
    async def test_twelve_items_batch_of_five(self):
        probe = ConcurrencyProbe()
        items = list(range(12))

        outcomes = await run_batch(items, probe, 5)

        assert [o.input for o in outcomes] == items
        assert [o.result for o in outcomes] == [i * 10 for i in items]
        assert probe.max_in_flight == 5

    @pytest.mark.asyncio
    async def test_next_chunk_waits_for_previous(self):
        order = []

        async def op(item):
            order.append(("start", item))
            await asyncio.sleep(0.01 if item == 0 else 0)
            order.append(("end", item))
            return item

        await run_batch([0, 1, 2], op, 2)

        # item 2 (second chunk) starts only after both items of the first chunk end
        assert order.index(("start", 2)) > order.index(("end", 0))
        assert order.index(("start", 2)) > order.index(("end", 1))

    @pytest.mark.asyncio
    async def test_failure_is_isolated(self):
        probe = ConcurrencyProbe(fail_on={3})

        outcomes = await run_batch([1, 2, 3, 4], probe, 2)

        assert [o.ok for o in outcomes] == [True, True, False, True]
        assert outcomes[2].error == "item 3 failed"
        assert outcomes[2].result is None
        assert outcomes[3].result == 40

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await run_batch([], ConcurrencyProbe(), 5) == []

    @pytest.mark.asyncio
    async def test_batch_larger_than_input(self):
        probe = ConcurrencyProbe()
        outcomes = await run_batch([1, 2], probe, 10)
        assert len(outcomes) == 2
        assert probe.max_in_flight == 2


class TestBatchItem:
    def test_ok_and_to_dict(self):
        done = BatchItem(input="u1", result={"file_id": "f"})
        failed = BatchItem(input="u2", error="nope")
        assert done.ok and not failed.ok
        assert done.to_dict(input_key="url") == {"url": "u1", "result": {"file_id": "f"}}
        assert failed.to_dict(input_key="url") == {"url": "u2", "result": None, "error": "nope"}
