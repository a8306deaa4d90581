"""병렬 실행 유틸리티 테스트"""
import asyncio

import pytest

from app.utils.fanout import settle_all, split_settled


@pytest.mark.asyncio
async def test_results_keep_input_order_and_failures_do_not_abort():
    async def worker(n):
        await asyncio.sleep(0.01 * (5 - n))
        if n == 2:
            raise ValueError("dos")
        return n * 10

    settled = await settle_all(range(5), worker)

    assert [s.item for s in settled] == [0, 1, 2, 3, 4]
    assert [s.value for s in settled if s.ok] == [0, 10, 30, 40]
    succeeded, failed = split_settled(settled)
    assert len(succeeded) == 4
    assert [f.item for f in failed] == [2]
    assert isinstance(failed[0].error, ValueError)


@pytest.mark.asyncio
async def test_concurrency_limit_is_respected():
    running = 0
    peak = 0

    async def worker(n):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return n

    await settle_all(range(10), worker, concurrency=3)

    assert peak == 3


@pytest.mark.asyncio
async def test_empty_input():
    async def worker(n):
        return n

    assert await settle_all([], worker) == []
