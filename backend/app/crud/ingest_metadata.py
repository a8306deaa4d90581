"""
수집 이력 CRUD 작업
"""
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.ingest_metadata import IngestMetadata


class CRUDIngestMetadata(CRUDBase[IngestMetadata]):
    """수집 이력 CRUD 클래스"""

    async def record(
        self,
        db: AsyncSession,
        *,
        source: str,
        articles_count: int,
        status: str,
        error_message: Optional[str] = None
    ) -> IngestMetadata:
        return await self.create(db, obj_in={
            "source": source,
            "articles_count": articles_count,
            "status": status,
            "error_message": error_message,
        })

    async def get_recent(self, db: AsyncSession, limit: int = 20) -> List[IngestMetadata]:
        result = await db.execute(
            select(IngestMetadata)
            .order_by(desc(IngestMetadata.last_fetch), desc(IngestMetadata.id))
            .limit(limit)
        )
        return list(result.scalars().all())


# 싱글톤 인스턴스
ingest_metadata = CRUDIngestMetadata(IngestMetadata)
