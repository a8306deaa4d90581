"""
AI 분석 스케줄러

미분석 기사를 제한된 수만큼 골라 AI 분석을 실행합니다.

- 수집 시각이 오래된 기사부터 최대 limit개 (1~100)
- 동시 분석 수 제한 (ANALYSIS_CONCURRENCY, 기본 3)
- 호출별 타임아웃 (ANALYSIS_CALL_TIMEOUT) + 배치 전체 타임아웃 (ANALYSIS_BATCH_TIMEOUT)
  배치 타임아웃이 지나면 남은 작업은 취소되고 실패로 집계
- 기사 하나의 실패가 배치 전체를 중단시키지 않음
- 성공한 기사만 한 행 단위로 갱신 (기사마다 별도 세션)

진행 중 상태를 저장하지 않으므로, 배치가 동시에 두 번 실행되면
같은 기사가 중복 분석될 수 있습니다 (갱신은 analyzed_at IS NULL 조건으로 한 번만 반영).
"""
import asyncio
import logging
from typing import Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import DEFAULT_ANALYSIS_LIMIT, MAX_ANALYSIS_LIMIT, MIN_ANALYSIS_LIMIT
from app.core.exceptions import AnalysisTimeoutError, ExternalAPIException, ValidationException
from app.crud.article import article as article_crud
from app.db.session import AsyncSessionLocal
from app.models.article import Article
from app.schemas.analysis import (
    AnalysisFailure,
    AnalysisItemResult,
    AnalysisOutcome,
    AnalysisStats,
)
from app.services.ai_service import AIService
from app.services.analysis_normalizer import parse_analysis
from app.services.feed_fetcher import FeedFetcher, feed_fetcher
from app.services.token_taximeter import TokenTaximeter, token_taximeter

logger = logging.getLogger(__name__)

BATCH_TIMEOUT_REASON = "batch timeout"

# 저장된 성향 → 통계 구분
LEANING_SIDES: Dict[str, str] = {
    "progresista": "left",
    "conservadora": "right",
}


def validate_limit(limit: int) -> int:
    if not isinstance(limit, int) or not MIN_ANALYSIS_LIMIT <= limit <= MAX_ANALYSIS_LIMIT:
        raise ValidationException(
            f"limit은 {MIN_ANALYSIS_LIMIT}~{MAX_ANALYSIS_LIMIT} 사이여야 합니다: {limit}",
            code="INVALID_LIMIT",
        )
    return limit


def build_analysis_text(article: Article) -> str:
    parts = [article.title, article.description, article.content]
    return "\n\n".join(part for part in parts if part)


class AnalysisScheduler:
    """
    배치 분석기

    Args:
        session_factory: AsyncSession 팩토리
        ai_service: analyze_article(title, content, source)를 가진 객체 (없으면 첫 사용 시 AIService 생성)
        fetcher: 미리보기 이미지 보완용 수집기
        taximeter: 토큰/비용 집계기
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        ai_service: Optional[AIService] = None,
        fetcher: FeedFetcher = feed_fetcher,
        taximeter: TokenTaximeter = token_taximeter,
        concurrency: Optional[int] = None,
        call_timeout: Optional[float] = None,
        batch_timeout: Optional[float] = None
    ):
        self.session_factory = session_factory
        self._ai_service = ai_service
        self.fetcher = fetcher
        self.taximeter = taximeter
        self.concurrency = concurrency or settings.ANALYSIS_CONCURRENCY
        self.call_timeout = call_timeout or settings.ANALYSIS_CALL_TIMEOUT
        self.batch_timeout = batch_timeout or settings.ANALYSIS_BATCH_TIMEOUT

    @property
    def ai_service(self) -> AIService:
        if self._ai_service is None:
            try:
                self._ai_service = AIService()
            except ValueError as e:
                raise ExternalAPIException(str(e)) from e
        return self._ai_service

    async def analyze_batch(self, limit: int = DEFAULT_ANALYSIS_LIMIT) -> AnalysisOutcome:
        """
        미분석 기사 배치 분석

        Args:
            limit: 최대 분석 기사 수 (1~100)

        Returns:
            AnalysisOutcome (기사별 성공/실패)

        Raises:
            ValidationException: limit 범위 위반
            ExternalAPIException: AI 서비스 설정 누락
        """
        validate_limit(limit)
        ai_service = self.ai_service

        async with self.session_factory() as db:
            articles = await article_crud.find_unanalyzed(db, limit)

        outcome = AnalysisOutcome()
        if not articles:
            logger.info("📭 분석할 기사가 없습니다")
            return outcome

        logger.info(f"🧠 배치 분석 시작 - {len(articles)}건 (동시 {self.concurrency})")

        semaphore = asyncio.Semaphore(self.concurrency)
        tasks = {
            article.id: asyncio.create_task(self._analyze_one(article, ai_service, semaphore))
            for article in articles
        }

        _, pending = await asyncio.wait(tasks.values(), timeout=self.batch_timeout)
        if pending:
            logger.warning(f"⏱ 배치 타임아웃 ({self.batch_timeout}초) - 남은 {len(pending)}건 취소")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        failures: List[AnalysisFailure] = []
        for article in articles:
            task = tasks[article.id]
            outcome.processed += 1

            if task in pending or task.cancelled():
                reason = BATCH_TIMEOUT_REASON
            elif task.exception() is not None:
                error = task.exception()
                reason = f"{type(error).__name__}: {error}"
            else:
                outcome.successful += 1
                outcome.cost_eur += task.result()
                outcome.results.append(AnalysisItemResult(article_id=article.id, success=True))
                continue

            outcome.failed += 1
            failures.append(AnalysisFailure(article_id=article.id, reason=reason))
            outcome.results.append(AnalysisItemResult(article_id=article.id, success=False, error=reason))
            logger.warning(f"⚠️ 분석 실패 [{article.id}]: {reason}")

        outcome.failures = failures
        outcome.cost_eur = round(outcome.cost_eur, 6)

        logger.info(
            f"✅ 배치 분석 완료 - 처리 {outcome.processed}, 성공 {outcome.successful}, "
            f"실패 {outcome.failed}, 비용 €{outcome.cost_eur:.6f}"
        )
        return outcome

    async def _analyze_one(self, article: Article, ai_service: AIService, semaphore: asyncio.Semaphore) -> float:
        """기사 하나 분석 후 저장. 이번 호출 비용(EUR) 반환"""
        async with semaphore:
            try:
                response = await asyncio.wait_for(
                    ai_service.analyze_article(
                        title=article.title,
                        content=build_analysis_text(article),
                        source=article.source,
                    ),
                    timeout=self.call_timeout,
                )
            except asyncio.TimeoutError as e:
                raise AnalysisTimeoutError(f"AI 호출 타임아웃 ({self.call_timeout}초)") from e

            cost = self.taximeter.record(response.prompt_tokens, response.completion_tokens)
            payload = parse_analysis(response.raw)

            image = None
            if not article.url_to_image:
                image = (await self.fetcher.extract_page_metadata(article.url)).image

            document = payload.model_dump(by_alias=True)
            document["tokenUsage"] = {
                "promptTokens": response.prompt_tokens,
                "completionTokens": response.completion_tokens,
                "totalTokens": response.total_tokens,
                "costEur": round(cost, 6),
            }

            async with self.session_factory() as db:
                updated = await article_crud.update_analysis(
                    db,
                    article.id,
                    summary=payload.summary,
                    bias_score=payload.bias_score_normalized,
                    bias_leaning=payload.article_leaning,
                    analysis=document,
                    url_to_image=image,
                )
                await db.commit()

            if not updated:
                logger.info(f"ℹ️ 이미 분석된 기사 - 결과 반영 생략 [{article.id}]")
            return cost

    async def get_stats(self) -> AnalysisStats:
        """분석 진행 통계"""
        async with self.session_factory() as db:
            total = await article_crud.count(db)
            analyzed = await article_crud.count_analyzed(db)
            by_leaning = await article_crud.count_by_leaning(db)

        distribution = {"left": 0, "neutral": 0, "right": 0}
        for leaning, count in by_leaning.items():
            distribution[LEANING_SIDES.get(leaning, "neutral")] += count

        return AnalysisStats(
            total=total,
            analyzed=analyzed,
            pending=total - analyzed,
            percent_analyzed=round(analyzed / total * 100, 1) if total else 0.0,
            bias_distribution=distribution,
        )


# 싱글톤 인스턴스
analysis_scheduler = AnalysisScheduler()
