"""Tests for shared async, retry and response parsing helpers."""

import asyncio
from types import SimpleNamespace

import pytest

from workflows.shared.async_utils import run_staggered
from workflows.shared.llm_utils import (
    extract_json_from_response,
    extract_response_content,
    strip_code_fences,
)
from workflows.shared.llm_utils.response_parsing import is_refusal
from workflows.shared.retry_utils import with_retry


class TestRunStaggered:
    async def test_results_in_input_order(self):
        async def worker(index, delay):
            await asyncio.sleep(delay)
            return index

        results = await run_staggered([0.03, 0.0, 0.01], worker, max_concurrent=3)

        assert results == [0, 1, 2]

    async def test_respects_concurrency_bound(self):
        active = 0
        peak = 0

        async def worker(index, item):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return item

        await run_staggered(list(range(10)), worker, max_concurrent=3)

        assert peak <= 3

    async def test_exceptions_returned_in_place(self):
        async def worker(index, item):
            if item == "bad":
                raise ValueError("bad item")
            return item

        results = await run_staggered(["ok", "bad", "ok"], worker)

        assert results[0] == "ok"
        assert isinstance(results[1], ValueError)
        assert results[2] == "ok"

    async def test_stagger_delays_later_items(self):
        loop = asyncio.get_running_loop()
        started = {}
        t0 = loop.time()

        async def worker(index, item):
            started[index] = loop.time() - t0

        await run_staggered([None, None, None], worker, max_concurrent=3, stagger=0.02)

        assert started[2] >= 0.04 - 0.005
        assert started[0] < 0.02


class TestWithRetry:
    async def test_succeeds_after_failures(self):
        calls = 0

        async def flaky():
            nonlocal calls
            calls += 1
            if calls < 3:
                raise ConnectionError("flaky")
            return "done"

        assert await with_retry(flaky, max_attempts=3, delay=0) == "done"
        assert calls == 3

    async def test_exhaustion_raises_runtime_error(self):
        async def broken():
            raise ConnectionError("down")

        with pytest.raises(RuntimeError) as exc_info:
            await with_retry(broken, max_attempts=2, delay=0)
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    async def test_unlisted_exceptions_propagate(self):
        calls = 0

        async def wrong():
            nonlocal calls
            calls += 1
            raise KeyError("x")

        with pytest.raises(KeyError):
            await with_retry(wrong, max_attempts=3, delay=0, retry_on=ConnectionError)
        assert calls == 1


class TestResponseParsing:
    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences("```\nplain\n```") == "plain"
        assert strip_code_fences("  bare  ") == "bare"

    def test_extract_json_default(self):
        assert extract_json_from_response("not json", default={}) == {}
        assert extract_json_from_response('```json\n{"k": "v"}\n```') == {"k": "v"}

    def test_extract_response_content_blocks(self):
        response = SimpleNamespace(
            content=[{"type": "text", "text": "1"}, {"type": "tool_use", "id": "x"}]
        )
        assert extract_response_content(response) == "1"

    def test_is_refusal(self):
        refused = SimpleNamespace(response_metadata={"stop_reason": "refusal"})
        normal = SimpleNamespace(response_metadata={"stop_reason": "end_turn"})
        assert is_refusal(refused)
        assert not is_refusal(normal)
        assert not is_refusal(SimpleNamespace())
