"""
요청 제한 (고정 윈도우)

정책(ThrottlePolicy)마다 RateLimiter 인스턴스를 하나씩 만들어 app.state에 보관합니다.
호출자 키(클라이언트 주소)별로 윈도우 시작 시각과 카운터를 메모리에 유지합니다.

- 핸들러 실행 전에 검사하므로 성공/실패 요청 모두 카운트
- 증가와 비교는 Lock 안에서 한 번에 처리
- 만료된 윈도우는 검사 시점에 정리 (별도 타이머 없음)
"""
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from starlette.requests import Request

from app.core.config import Settings

logger = logging.getLogger(__name__)

# 정책 이름
STRICT = "strict"
MODERATE = "moderate"
LENIENT = "lenient"

# 만료 윈도우 정리 주기 (검사 횟수 기준)
PRUNE_EVERY = 256


@dataclass(frozen=True)
class ThrottlePolicy:
    """요청 제한 정책"""
    name: str
    window_seconds: int
    max_requests: int
    message: str
    hint: Optional[str] = None
    retry_after_label: str = ""

    @property
    def window_ms(self) -> int:
        return self.window_seconds * 1000


@dataclass
class RateLimitDecision:
    """검사 결과"""
    policy: ThrottlePolicy
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int

    def headers(self) -> Dict[str, str]:
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.retry_after),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


@dataclass
class _Window:
    started_at: float
    count: int = 0


class RateLimiter:
    """
    고정 윈도우 요청 제한기

    Args:
        policy: 제한 정책
        clock: 현재 시각 함수 (테스트에서 교체)
    """

    def __init__(self, policy: ThrottlePolicy, clock: Callable[[], float] = time.monotonic):
        self.policy = policy
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._checks = 0

    def check(self, key: str) -> RateLimitDecision:
        """
        요청 1건을 카운트하고 허용 여부를 반환합니다.

        Args:
            key: 호출자 식별 키 (클라이언트 주소)
        """
        window_seconds = self.policy.window_seconds
        with self._lock:
            now = self._clock()
            self._checks += 1
            if self._checks % PRUNE_EVERY == 0:
                self._prune(now)

            window = self._windows.get(key)
            if window is None or now - window.started_at >= window_seconds:
                window = _Window(started_at=now)
                self._windows[key] = window

            window.count += 1
            count = window.count
            allowed = count <= self.policy.max_requests
            reset_at = window.started_at + window_seconds

        retry_after = max(1, math.ceil(reset_at - now))
        if not allowed:
            logger.warning(
                f"🚫 요청 제한 초과 [{self.policy.name}] key={key} "
                f"({count}/{self.policy.max_requests}, {retry_after}초 후 재시도)"
            )

        return RateLimitDecision(
            policy=self.policy,
            allowed=allowed,
            limit=self.policy.max_requests,
            remaining=max(0, self.policy.max_requests - count),
            reset_at=reset_at,
            retry_after=retry_after,
        )

    def _prune(self, now: float) -> None:
        expired = [
            key for key, window in self._windows.items()
            if now - window.started_at >= self.policy.window_seconds
        ]
        for key in expired:
            del self._windows[key]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    @property
    def tracked_keys(self) -> int:
        return len(self._windows)


def build_policies(settings: Settings) -> Dict[str, ThrottlePolicy]:
    """
    환경별 정책 생성

    | 정책     | 엔드포인트          | 윈도우 | production | 그 외 |
    | strict   | POST /ingest/all    | 1시간  | 5          | 100   |
    | moderate | POST /ingest/news   | 15분   | 30         | 1000  |
    | lenient  | GET  /ingest/status | 1분    | 60         | 60    |
    """
    production = settings.is_production
    strict_max = settings.RATE_LIMIT_INGEST_ALL_MAX or (5 if production else 100)
    moderate_max = settings.RATE_LIMIT_INGEST_CATEGORY_MAX or (30 if production else 1000)

    return {
        STRICT: ThrottlePolicy(
            name=STRICT,
            window_seconds=60 * 60,
            max_requests=strict_max,
            message="Demasiadas solicitudes de ingesta global. Inténtalo más tarde.",
            hint="La ingesta global está limitada para evitar costes excesivos. Usa /ingest/news para una categoría.",
            retry_after_label="1 hour",
        ),
        MODERATE: ThrottlePolicy(
            name=MODERATE,
            window_seconds=15 * 60,
            max_requests=moderate_max,
            message="Demasiadas solicitudes de ingesta. Inténtalo más tarde.",
            retry_after_label="15 minutes",
        ),
        LENIENT: ThrottlePolicy(
            name=LENIENT,
            window_seconds=60,
            max_requests=settings.RATE_LIMIT_STATUS_MAX,
            message="Demasiadas consultas de estado. Inténtalo más tarde.",
            retry_after_label="1 minute",
        ),
    }


def build_rate_limiters(settings: Settings) -> Dict[str, RateLimiter]:
    """정책별 RateLimiter 생성 (앱 시작 시 1회)"""
    return {name: RateLimiter(policy) for name, policy in build_policies(settings).items()}


def client_key(request: Request, trust_proxy: bool) -> str:
    """
    호출자 키 추출

    trust_proxy가 True일 때만 X-Forwarded-For의 첫 번째 주소를 사용하고,
    그 외에는 소켓 주소를 사용합니다.
    """
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop

    if request.client and request.client.host:
        return request.client.host
    return "unknown"
