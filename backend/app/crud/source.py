"""
RSS 소스 CRUD 작업
"""
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.source import Source
from app.utils.news import source_name_from_url


class CRUDSource(CRUDBase[Source]):
    """RSS 소스 CRUD 클래스"""

    async def get_active_by_category(self, db: AsyncSession, category: str) -> List[Source]:
        """카테고리의 활성 소스 목록"""
        result = await db.execute(
            select(Source)
            .where(Source.category == category, Source.active.is_(True))
            .order_by(Source.id)
        )
        return list(result.scalars().all())

    async def seed_defaults(self, db: AsyncSession, feeds_by_category: Dict[str, List[str]]) -> int:
        """
        기본 소스 등록

        테이블이 비어 있을 때만 등록합니다.

        Returns:
            등록한 소스 수
        """
        if await self.count(db) > 0:
            return 0

        created = 0
        for category, feed_urls in feeds_by_category.items():
            for feed_url in feed_urls:
                db.add(Source(
                    name=source_name_from_url(feed_url),
                    feed_url=feed_url,
                    category=category,
                    active=True,
                ))
                created += 1
        await db.flush()
        return created


# 싱글톤 인스턴스
source = CRUDSource(Source)
