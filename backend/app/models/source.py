"""
RSS 소스 모델

테이블명: sources
카테고리별 수집 대상 피드 목록입니다. 파이프라인은 읽기만 합니다.
"""
from sqlalchemy import Boolean, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Source(Base):
    """RSS 소스 테이블"""
    __tablename__ = "sources"
    __table_args__ = (
        UniqueConstraint("feed_url", "category", name="uq_sources_feed_category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="매체 이름")

    feed_url: Mapped[str] = mapped_column(String(2048), nullable=False, comment="RSS 피드 URL")

    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True, comment="카테고리")

    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, comment="수집 여부")

    def __repr__(self):
        return f"<Source(name={self.name}, category={self.category})>"
