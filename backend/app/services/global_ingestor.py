"""
전체 수집 서비스

모든 카테고리(local 제외)에 대해 카테고리 수집을 실행합니다.
- GLOBAL_BATCH_SIZE개씩 동시에 실행하고, 배치 사이에 GLOBAL_BATCH_DELAY초 대기
- 한 카테고리의 실패가 나머지 카테고리에 영향을 주지 않음
"""
import asyncio
import logging
from typing import Optional

from app.core.config import settings
from app.core.constants import DEFAULT_PAGE_SIZE, QUERY_ONLY_CATEGORIES, VALID_CATEGORIES
from app.schemas.ingest import GlobalIngestionResult, IngestionResult
from app.services.category_ingestor import CategoryIngestor, category_ingestor, validate_page_size
from app.utils.fanout import settle_all
from app.utils.news import utcnow

logger = logging.getLogger(__name__)


class GlobalIngestor:
    """
    전체 카테고리 수집기

    Args:
        ingestor: 카테고리 수집기
        batch_size: 동시에 수집할 카테고리 수
        batch_delay: 배치 사이 대기 시간 (초)
    """

    def __init__(
        self,
        ingestor: CategoryIngestor = category_ingestor,
        batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None
    ):
        self.ingestor = ingestor
        self.batch_size = batch_size or settings.GLOBAL_BATCH_SIZE
        self.batch_delay = settings.GLOBAL_BATCH_DELAY if batch_delay is None else batch_delay
        self.last_result: Optional[GlobalIngestionResult] = None

    @staticmethod
    def categories() -> list:
        return [c for c in VALID_CATEGORIES if c not in QUERY_ONLY_CATEGORIES]

    async def ingest_all(self, page_size: int = DEFAULT_PAGE_SIZE) -> GlobalIngestionResult:
        """
        모든 카테고리 수집

        Args:
            page_size: 카테고리당 최대 처리 건수 (1~100)

        Returns:
            GlobalIngestionResult (processed: 완료된 카테고리 수, errors: 예외로 끝난 카테고리 수)
        """
        validate_page_size(page_size)
        categories = self.categories()
        result = GlobalIngestionResult()

        logger.info(f"🌍 전체 수집 시작 - 카테고리 {len(categories)}개, 배치 크기 {self.batch_size}")

        for start in range(0, len(categories), self.batch_size):
            batch = categories[start:start + self.batch_size]
            settled = await settle_all(
                batch,
                lambda category: self.ingestor.ingest_category(category, page_size),
            )

            for outcome in settled:
                category = outcome.item
                if outcome.ok:
                    category_result = outcome.value
                    result.processed += 1
                else:
                    logger.error(f"❌ [{category}] 카테고리 수집 실패: {outcome.error}")
                    category_result = IngestionResult(category=category, errors=1, timestamp=utcnow())
                    result.errors += 1

                result.category_results[category] = category_result
                result.total_new_articles += category_result.new_articles
                result.total_duplicates += category_result.duplicates

            if start + self.batch_size < len(categories) and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        self.last_result = result
        logger.info(
            f"✅ 전체 수집 완료 - 완료 {result.processed}, 실패 {result.errors}, "
            f"신규 {result.total_new_articles}, 중복 {result.total_duplicates}"
        )
        return result


# 싱글톤 인스턴스
global_ingestor = GlobalIngestor()
