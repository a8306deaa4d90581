"""
병렬 실행 유틸리티

여러 비동기 작업을 동시에 실행하고, 일부가 실패해도 모두 끝날 때까지 기다린 뒤
성공/실패를 입력 순서대로 돌려줍니다 (asyncio.gather(return_exceptions=True) 기반).
"""
import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class Settled(Generic[T, R]):
    """작업 하나의 결과 (value 또는 error 중 하나만 채워짐)"""
    item: T
    value: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    concurrency: Optional[int] = None
) -> List[Settled[T, R]]:
    """
    모든 항목에 worker를 실행하고 결과를 모읍니다.

    Args:
        items: 입력 항목
        worker: 항목 하나를 처리하는 코루틴 함수
        concurrency: 동시 실행 수 제한 (None이면 제한 없음)

    Returns:
        입력 순서와 같은 Settled 목록

    Note:
        CancelledError는 결과로 삼키지 않고 그대로 전파합니다.
    """
    items = list(items)
    semaphore = asyncio.Semaphore(concurrency) if concurrency else None

    async def _run(item: T) -> R:
        if semaphore is None:
            return await worker(item)
        async with semaphore:
            return await worker(item)

    outcomes = await asyncio.gather(*(_run(item) for item in items), return_exceptions=True)

    settled: List[Settled[T, R]] = []
    for item, outcome in zip(items, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            settled.append(Settled(item=item, error=outcome))
        else:
            settled.append(Settled(item=item, value=outcome))
    return settled


def split_settled(results: List[Settled[T, R]]) -> Tuple[List[Settled[T, R]], List[Settled[T, R]]]:
    """(성공 목록, 실패 목록)으로 분리"""
    return [r for r in results if r.ok], [r for r in results if not r.ok]
