"""
단계별(waterfall) 검색 서비스

1단계: 저장된 기사에서 제목/요약문/AI 요약 부분 일치 검색 (결과는 Redis 캐시)
2단계: 검색어와 관련된 카테고리를 마감 시간 안에서 즉시 재수집한 뒤 다시 검색
대안:   결과가 없으면 외부 검색 링크 제안 (오류로 처리하지 않음)
"""
import asyncio
import logging
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import DEFAULT_PAGE_SIZE, DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT, MIN_QUERY_LENGTH
from app.core.exceptions import ValidationException
from app.crud.article import article as article_crud
from app.db.session import AsyncSessionLocal
from app.schemas.article import ArticleResponse
from app.schemas.search import SearchResult, Suggestion
from app.services.category_ingestor import CategoryIngestor, category_ingestor
from app.utils.cache import build_cache_key, get_from_cache, set_to_cache
from app.utils.fanout import settle_all
from app.utils.news import build_external_search_link, resolve_query_categories

logger = logging.getLogger(__name__)

FALLBACK_LEVEL = "fallback"


class SearchWaterfall:
    """
    단계별 검색기

    Args:
        session_factory: AsyncSession 팩토리
        ingestor: 2단계 재수집에 사용할 카테고리 수집기
        reingest_deadline: 2단계 전체 마감 시간 (초)
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        ingestor: CategoryIngestor = category_ingestor,
        reingest_deadline: Optional[float] = None,
        cache_ttl: Optional[int] = None
    ):
        self.session_factory = session_factory
        self.ingestor = ingestor
        self.reingest_deadline = reingest_deadline or settings.SEARCH_REINGEST_DEADLINE
        self.cache_ttl = cache_ttl or settings.SEARCH_CACHE_TTL

    async def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> SearchResult:
        """
        검색 실행

        Args:
            query: 검색어 (앞뒤 공백 제거 후 2자 이상)
            limit: 최대 결과 수 (1~50)

        Returns:
            SearchResult (level 1 / 2 / "fallback")

        Raises:
            ValidationException: 검색어 또는 limit이 잘못된 경우
        """
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            raise ValidationException(
                f"검색어는 {MIN_QUERY_LENGTH}자 이상이어야 합니다.", code="INVALID_QUERY"
            )
        if not 1 <= limit <= MAX_SEARCH_LIMIT:
            raise ValidationException(
                f"limit은 1~{MAX_SEARCH_LIMIT} 사이여야 합니다: {limit}", code="INVALID_LIMIT"
            )

        # ===== 1단계: 로컬 검색 =====
        cache_key = build_cache_key("search", query.lower(), limit)
        cached = await get_from_cache(cache_key)
        if cached:
            logger.debug(f"✅ 검색 캐시 히트: {query}")
            return SearchResult.model_validate(cached)

        articles = await self._local_search(query, limit)
        if articles:
            result = SearchResult(query=query, level=1, is_fresh=False, data=articles)
            await set_to_cache(cache_key, result.model_dump(mode="json", by_alias=True), ttl=self.cache_ttl)
            return result

        # ===== 2단계: 관련 카테고리 재수집 =====
        categories = resolve_query_categories(query)
        logger.info(f"🔎 로컬 결과 없음 - 재수집 시도: '{query}' → {categories}")
        await self._reingest(categories)

        articles = await self._local_search(query, limit)
        if articles:
            return SearchResult(query=query, level=2, is_fresh=True, data=articles)

        # ===== 대안: 외부 검색 제안 =====
        logger.info(f"📭 검색 결과 없음 - 외부 검색 제안: '{query}'")
        return SearchResult(
            query=query,
            level=FALLBACK_LEVEL,
            is_fresh=False,
            data=[],
            suggestion=Suggestion(
                message=f"No hemos encontrado noticias sobre «{query}» en nuestra base de datos.",
                action_text="Buscar en Google News",
                external_link=build_external_search_link(query),
            ),
        )

    async def _local_search(self, query: str, limit: int) -> List[ArticleResponse]:
        async with self.session_factory() as db:
            rows = await article_crud.search_by_text(db, query, limit)
            return [ArticleResponse.model_validate(row) for row in rows]

    async def _reingest(self, categories: List[str]) -> None:
        """마감 시간 안에서 카테고리 재수집 (마감 초과 시 진행 중인 수집 취소)"""
        try:
            settled = await asyncio.wait_for(
                settle_all(
                    categories,
                    lambda category: self.ingestor.ingest_category(category, DEFAULT_PAGE_SIZE),
                ),
                timeout=self.reingest_deadline,
            )
        except asyncio.TimeoutError:
            logger.warning(f"⏱ 재수집 마감 시간 초과 ({self.reingest_deadline}초): {categories}")
            return

        for outcome in settled:
            if not outcome.ok:
                logger.warning(f"⚠️ 재수집 실패 [{outcome.item}]: {outcome.error}")


# 싱글톤 인스턴스
search_waterfall = SearchWaterfall()
