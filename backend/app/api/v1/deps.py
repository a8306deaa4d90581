"""
의존성 주입 (Dependency Injection)

FastAPI의 Depends를 사용하여:
- 데이터베이스 세션 관리
- 서비스 인스턴스 제공 (테스트에서 dependency_overrides로 교체)
- 크론 시크릿 검증
- 정책별 요청 제한
"""
import secrets
from typing import AsyncGenerator, Callable, Optional

from fastapi import Header, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import RateLimitExceeded, UnauthorizedException
from app.db.session import AsyncSessionLocal
from app.services.analysis_scheduler import AnalysisScheduler, analysis_scheduler
from app.services.category_ingestor import CategoryIngestor, category_ingestor
from app.services.global_ingestor import GlobalIngestor, global_ingestor
from app.services.rate_limiter import RateLimitDecision, client_key
from app.services.search_waterfall import SearchWaterfall, search_waterfall


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    데이터베이스 세션 의존성

    요청마다 세션을 만들고, 정상 종료 시 commit, 예외 시 rollback 합니다.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_category_ingestor() -> CategoryIngestor:
    return category_ingestor


def get_global_ingestor() -> GlobalIngestor:
    return global_ingestor


def get_analysis_scheduler() -> AnalysisScheduler:
    return analysis_scheduler


def get_search_waterfall() -> SearchWaterfall:
    return search_waterfall


async def require_cron_secret(x_cron_secret: Optional[str] = Header(None)) -> None:
    """
    크론 시크릿 검증

    CRON_SECRET이 설정된 경우에만 X-Cron-Secret 헤더 일치 여부를 확인합니다.

    Raises:
        UnauthorizedException: 헤더가 없거나 일치하지 않음 (401)
    """
    expected = settings.CRON_SECRET
    if not expected:
        return
    if not x_cron_secret or not secrets.compare_digest(x_cron_secret, expected):
        raise UnauthorizedException("X-Cron-Secret 헤더가 올바르지 않습니다.")


def rate_limit(policy_name: str) -> Callable:
    """
    정책별 요청 제한 의존성 생성

    app.state.rate_limiters[policy_name] 의 RateLimiter로 검사합니다.
    허용되면 RateLimit-* 헤더를 응답에 붙이고, 초과하면 RateLimitExceeded (429).
    """

    async def _check_rate_limit(request: Request, response: Response) -> RateLimitDecision:
        limiter = request.app.state.rate_limiters[policy_name]
        decision = limiter.check(client_key(request, settings.TRUST_PROXY))
        if not decision.allowed:
            raise RateLimitExceeded(decision, decision.policy.message, hint=decision.policy.hint)
        for name, value in decision.headers().items():
            response.headers[name] = value
        return decision

    return _check_rate_limit
