"""
CRUD 베이스 클래스

모델별 CRUD 클래스가 공통으로 사용하는 개수 조회/생성 메서드를 제공합니다.
"""
from typing import Generic, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """
    기본 CRUD

    Args:
        model: SQLAlchemy 모델 클래스
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def count(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(self.model))
        return result.scalar() or 0

    async def create(self, db: AsyncSession, *, obj_in: dict) -> ModelType:
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        await db.flush()
        return db_obj
