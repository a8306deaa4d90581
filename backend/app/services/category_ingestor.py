"""
카테고리 수집 서비스

한 카테고리의 활성 소스를 모두 가져와서 합치고, 개수를 제한한 뒤
중복을 제거하고 신규 기사만 저장합니다.

처리 순서:
1. 카테고리/pageSize 검증
2. 활성 소스 조회 (실패 시 예외 전파 → 5xx)
   - 전용 소스가 없는 카테고리는 general 소스 사용
   - local은 도시 검색어로 Google News RSS 검색 피드를 수집
3. 소스별 피드 동시 수집 (개별 실패는 errors로 집계)
4. 발행일 내림차순 정렬 후 pageSize개로 자르기
5. 중복 분류 (저장소 조회 1회)
6. 신규 기사 일괄 저장
7. 수집 이력 기록 (실패해도 로그만 남김)
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import (
    DEFAULT_CATEGORY,
    DEFAULT_PAGE_SIZE,
    LOCAL_CATEGORY,
    MAX_PAGE_SIZE,
    MIN_PAGE_SIZE,
)
from app.core.exceptions import ValidationException
from app.crud.article import article as article_crud
from app.crud.ingest_metadata import ingest_metadata as ingest_metadata_crud
from app.crud.source import source as source_crud
from app.db.session import AsyncSessionLocal
from app.models.ingest_metadata import STATUS_ERROR, STATUS_PARTIAL, STATUS_SUCCESS
from app.schemas.article import RawItem
from app.schemas.ingest import IngestionResult
from app.services.deduplicator import partition
from app.services.feed_fetcher import FeedFetcher, FeedSource, QueryFeedSource, feed_fetcher
from app.utils.cache import build_cache_key, delete_cache_pattern
from app.utils.fanout import settle_all, split_settled
from app.utils.news import build_local_news_feed_url, normalize_category, utcnow

logger = logging.getLogger(__name__)


def validate_page_size(page_size: int) -> int:
    """pageSize 범위 검증 (1~100)"""
    if not isinstance(page_size, int) or not MIN_PAGE_SIZE <= page_size <= MAX_PAGE_SIZE:
        raise ValidationException(
            f"pageSize는 {MIN_PAGE_SIZE}~{MAX_PAGE_SIZE} 사이여야 합니다: {page_size}",
            code="INVALID_PAGE_SIZE",
        )
    return page_size


def resolve_category(category: Optional[str]) -> str:
    """카테고리 정규화 (알 수 없는 값이면 400)"""
    normalized = normalize_category(category or DEFAULT_CATEGORY)
    if normalized is None:
        raise ValidationException(f"알 수 없는 카테고리입니다: {category}", code="INVALID_CATEGORY")
    return normalized


class CategoryIngestor:
    """
    카테고리 수집기

    Args:
        session_factory: AsyncSession 팩토리 (동시 실행되는 작업마다 별도 세션 사용)
        fetcher: 피드 수집기
        source_concurrency: 소스 동시 수집 수
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        fetcher: FeedFetcher = feed_fetcher,
        source_concurrency: Optional[int] = None
    ):
        self.session_factory = session_factory
        self.fetcher = fetcher
        self.source_concurrency = source_concurrency or settings.SOURCE_FETCH_CONCURRENCY

    async def ingest_category(
        self,
        category: Optional[str],
        page_size: int = DEFAULT_PAGE_SIZE,
        query: Optional[str] = None
    ) -> IngestionResult:
        """
        카테고리 하나 수집

        Args:
            category: 카테고리 (영어 별칭 허용, None이면 general)
            page_size: 최대 처리 건수 (1~100)
            query: 도시 이름 (local 카테고리 전용)

        Returns:
            IngestionResult

        Raises:
            ValidationException: 카테고리/pageSize가 잘못되었거나 local에 검색어가 없는 경우
        """
        category = resolve_category(category)
        validate_page_size(page_size)
        sources = await self._resolve_sources(category, query)

        settled = await settle_all(sources, self.fetcher.fetch_feed, concurrency=self.source_concurrency)
        succeeded, failed = split_settled(settled)

        for failure in failed:
            logger.warning(
                f"⚠️ [{category}] 소스 수집 실패: {failure.item.name} - {failure.error}"
            )

        items: List[RawItem] = [item for ok in succeeded for item in ok.value]
        items.sort(key=lambda item: item.published_at, reverse=True)
        candidates = items[:page_size]

        new_count, duplicate_count = await self._store(category, candidates)

        result = IngestionResult(
            category=category,
            total_fetched=len(candidates),
            new_articles=new_count,
            duplicates=duplicate_count,
            errors=len(failed),
            timestamp=utcnow(),
        )

        await self._record_run(result, source_count=len(sources), failures=[str(f.error) for f in failed])

        if new_count:
            await delete_cache_pattern(build_cache_key("search", "*"))

        logger.info(
            f"✅ [{category}] 수집 완료 - 가져옴 {result.total_fetched}, "
            f"신규 {result.new_articles}, 중복 {result.duplicates}, 실패 소스 {result.errors}/{len(sources)}"
        )
        return result

    async def _resolve_sources(self, category: str, query: Optional[str]) -> List[FeedSource]:
        """
        수집 대상 소스 결정

        - local: 도시 검색어로 만든 Google News RSS 피드 하나
        - 그 외: 카테고리 활성 소스, 없으면 general 활성 소스
        """
        if category == LOCAL_CATEGORY:
            city = (query or "").strip()
            if not city:
                raise ValidationException(
                    "local 카테고리는 도시 검색어(query)가 필요합니다",
                    code="MISSING_QUERY",
                )
            return [QueryFeedSource(name="Google News", feed_url=build_local_news_feed_url(city))]

        async with self.session_factory() as db:
            sources = await source_crud.get_active_by_category(db, category)
            if not sources and category != DEFAULT_CATEGORY:
                logger.info(f"🔁 [{category}] 전용 소스 없음 - general 소스로 수집")
                sources = await source_crud.get_active_by_category(db, DEFAULT_CATEGORY)

        if not sources:
            logger.warning(f"⚠️ [{category}] 활성 소스가 없습니다")
        return sources

    async def _store(self, category: str, candidates: List[RawItem]) -> tuple:
        """중복 분류 후 신규 기사 저장. (신규 수, 중복 수) 반환"""
        if not candidates:
            return 0, 0

        async with self.session_factory() as db:
            split = await partition(db, candidates, category)
            rows = [self._to_row(item, category) for item in split.new]
            if not rows:
                return 0, len(split.duplicate)

            try:
                await article_crud.bulk_insert(db, rows)
                await db.commit()
                return len(rows), len(split.duplicate)
            except IntegrityError:
                # 조회 이후 다른 수집 작업이 같은 기사를 먼저 저장한 경우
                await db.rollback()
                logger.info(f"🔁 [{category}] 동시 저장 충돌 - 기사별 저장으로 재시도")

            inserted = 0
            for row in rows:
                try:
                    async with db.begin_nested():
                        await article_crud.bulk_insert(db, [row])
                    inserted += 1
                except IntegrityError:
                    continue
            await db.commit()
            return inserted, len(split.duplicate) + (len(rows) - inserted)

    @staticmethod
    def _to_row(item: RawItem, category: str) -> Dict[str, Any]:
        now = utcnow()
        return {
            "url": item.link,
            "title": item.title,
            "description": item.description or None,
            "content": item.content,
            "url_to_image": item.image_url,
            "source": item.source,
            "author": item.author,
            "category": category,
            "language": "es",
            "published_at": item.published_at,
            "fetched_at": now,
            "updated_at": now,
        }

    async def _record_run(self, result: IngestionResult, source_count: int, failures: List[str]) -> None:
        if source_count and result.errors >= source_count:
            status = STATUS_ERROR
        elif result.errors:
            status = STATUS_PARTIAL
        else:
            status = STATUS_SUCCESS

        try:
            async with self.session_factory() as db:
                await ingest_metadata_crud.record(
                    db,
                    source=f"rss-{result.category}",
                    articles_count=result.new_articles,
                    status=status,
                    error_message="; ".join(failures)[:1000] or None,
                )
                await db.commit()
        except Exception as e:
            logger.warning(f"⚠️ [{result.category}] 수집 이력 기록 실패 (무시): {e}")


# 싱글톤 인스턴스
category_ingestor = CategoryIngestor()
