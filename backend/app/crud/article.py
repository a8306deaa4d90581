"""
기사 CRUD 작업

중복 확인, 일괄 저장, 미분석 기사 조회, 분석 결과 반영, 텍스트 검색을 담당합니다.
commit은 호출자(서비스/의존성)가 합니다.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from sqlalchemy import asc, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.article import Article
from app.utils.news import utcnow

# IN 절 하나에 넣을 최대 URL 수
URL_LOOKUP_CHUNK = 500

# LIKE 이스케이프 문자
LIKE_ESCAPE = "\\"


def escape_like(text: str) -> str:
    """LIKE 패턴 문자(%, _)와 이스케이프 문자를 리터럴로 변환"""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


class CRUDArticle(CRUDBase[Article]):
    """기사 CRUD 클래스"""

    async def find_existing_urls(
        self,
        db: AsyncSession,
        urls: Iterable[str],
        category: str
    ) -> Set[str]:
        """
        이미 저장된 URL 조회 (중복 체크용)

        한 카테고리 안에서 주어진 URL 중 이미 존재하는 것만 반환합니다.
        URL 수가 많으면 URL_LOOKUP_CHUNK 단위로 나눠서 조회합니다.

        Args:
            db: 데이터베이스 세션
            urls: 확인할 URL 목록
            category: 카테고리

        Returns:
            이미 존재하는 URL 집합
        """
        unique_urls = list(dict.fromkeys(urls))
        existing: Set[str] = set()

        for start in range(0, len(unique_urls), URL_LOOKUP_CHUNK):
            chunk = unique_urls[start:start + URL_LOOKUP_CHUNK]
            result = await db.execute(
                select(Article.url).where(
                    Article.category == category,
                    Article.url.in_(chunk),
                )
            )
            existing.update(result.scalars().all())

        return existing

    async def bulk_insert(self, db: AsyncSession, rows: Sequence[Dict[str, Any]]) -> List[Article]:
        """기사 일괄 저장 (flush까지만 수행)"""
        articles = [Article(**row) for row in rows]
        db.add_all(articles)
        await db.flush()
        return articles

    async def find_unanalyzed(self, db: AsyncSession, limit: int) -> List[Article]:
        """
        미분석 기사 조회

        analyzed_at이 NULL인 기사를 수집 시각이 오래된 순서로 반환합니다.
        """
        result = await db.execute(
            select(Article)
            .where(Article.analyzed_at.is_(None))
            .order_by(asc(Article.fetched_at), asc(Article.id))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def update_analysis(
        self,
        db: AsyncSession,
        article_id: str,
        *,
        summary: str,
        bias_score: float,
        bias_leaning: Optional[str],
        analysis: Dict[str, Any],
        url_to_image: Optional[str] = None,
        analyzed_at: Optional[datetime] = None
    ) -> int:
        """
        분석 결과를 한 행에 반영

        이미 분석된 기사는 건드리지 않습니다 (analyzed_at IS NULL 조건).

        Returns:
            변경된 행 수 (0 또는 1)
        """
        now = analyzed_at or utcnow()
        values: Dict[str, Any] = {
            "summary": summary,
            "bias_score": bias_score,
            "bias_leaning": bias_leaning,
            "analysis": analysis,
            "analyzed_at": now,
            "updated_at": now,
        }
        if url_to_image:
            values["url_to_image"] = url_to_image

        result = await db.execute(
            update(Article)
            .where(Article.id == article_id, Article.analyzed_at.is_(None))
            .values(**values)
        )
        return result.rowcount or 0

    async def search_by_text(self, db: AsyncSession, query: str, limit: int) -> List[Article]:
        """
        제목/요약문/AI 요약에서 대소문자 구분 없이 부분 일치 검색

        Returns:
            발행일 내림차순 기사 목록
        """
        pattern = f"%{escape_like(query.lower())}%"
        result = await db.execute(
            select(Article)
            .where(
                or_(
                    func.lower(Article.title).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(Article.description).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(Article.summary).like(pattern, escape=LIKE_ESCAPE),
                )
            )
            .order_by(desc(Article.published_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_latest(
        self,
        db: AsyncSession,
        *,
        limit: int = 20,
        offset: int = 0,
        category: Optional[str] = None
    ) -> List[Article]:
        """최신 기사 목록 (발행일 내림차순)"""
        query = select(Article)
        if category:
            query = query.where(Article.category == category)
        query = query.order_by(desc(Article.published_at)).limit(limit).offset(offset)

        result = await db.execute(query)
        return list(result.scalars().all())

    async def count_filtered(self, db: AsyncSession, *, category: Optional[str] = None) -> int:
        query = select(func.count(Article.id))
        if category:
            query = query.where(Article.category == category)
        result = await db.execute(query)
        return result.scalar() or 0

    async def count_analyzed(self, db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count(Article.id)).where(Article.analyzed_at.is_not(None))
        )
        return result.scalar() or 0

    async def count_by_leaning(self, db: AsyncSession) -> Dict[str, int]:
        """분석된 기사의 성향별 건수"""
        result = await db.execute(
            select(Article.bias_leaning, func.count(Article.id))
            .where(Article.analyzed_at.is_not(None))
            .group_by(Article.bias_leaning)
        )
        return {leaning or "indeterminada": count for leaning, count in result.all()}


# 싱글톤 인스턴스
article = CRUDArticle(Article)
