"""
토큰 사용량/비용 집계

AI 분석 호출마다 입력/출력 토큰을 누적하고 예상 비용(EUR)을 계산합니다.
프로세스 메모리에만 보관합니다.
"""
import logging
import threading
from dataclasses import dataclass

from app.core.constants import (
    EUR_USD_RATE,
    GEMINI_INPUT_COST_PER_1M_TOKENS,
    GEMINI_OUTPUT_COST_PER_1M_TOKENS,
)

logger = logging.getLogger(__name__)


def calculate_cost_eur(prompt_tokens: int, completion_tokens: int) -> float:
    """토큰 수 → 예상 비용 (EUR)"""
    cost_usd = (
        prompt_tokens / 1_000_000 * GEMINI_INPUT_COST_PER_1M_TOKENS
        + completion_tokens / 1_000_000 * GEMINI_OUTPUT_COST_PER_1M_TOKENS
    )
    return cost_usd * EUR_USD_RATE


@dataclass
class TaximeterSnapshot:
    calls: int
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost_eur: float


class TokenTaximeter:
    """세션 누적 토큰/비용 계산기"""

    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        self.calls = 0
        self.prompt_tokens = 0
        self.completion_tokens = 0
        self.cost_eur = 0.0

    def record(self, prompt_tokens: int, completion_tokens: int) -> float:
        """
        호출 1건 기록

        Returns:
            이번 호출의 예상 비용 (EUR)
        """
        cost = calculate_cost_eur(prompt_tokens, completion_tokens)
        with self._lock:
            self.calls += 1
            self.prompt_tokens += prompt_tokens
            self.completion_tokens += completion_tokens
            self.cost_eur += cost
        logger.debug(
            f"💰 분석 토큰: 입력 {prompt_tokens}, 출력 {completion_tokens}, 비용 €{cost:.6f} "
            f"(누적 €{self.cost_eur:.6f})"
        )
        return cost

    def snapshot(self) -> TaximeterSnapshot:
        with self._lock:
            return TaximeterSnapshot(
                calls=self.calls,
                prompt_tokens=self.prompt_tokens,
                completion_tokens=self.completion_tokens,
                total_tokens=self.prompt_tokens + self.completion_tokens,
                cost_eur=round(self.cost_eur, 6),
            )


# 싱글톤 인스턴스
token_taximeter = TokenTaximeter()
