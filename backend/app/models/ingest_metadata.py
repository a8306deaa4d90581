"""
수집 이력 모델

테이블명: ingest_metadata
카테고리 수집 1회마다 한 행을 남깁니다 (/ingest/status 에서 조회).
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.utils.news import utcnow

# status 값
STATUS_SUCCESS = "success"
STATUS_PARTIAL = "partial_success"
STATUS_ERROR = "error"


class IngestMetadata(Base):
    """수집 이력 테이블"""
    __tablename__ = "ingest_metadata"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    source: Mapped[str] = mapped_column(String(100), nullable=False, index=True, comment="수집 대상 (카테고리 라벨)")

    last_fetch: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, comment="수집 시각")

    articles_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, comment="신규 저장 건수")

    status: Mapped[str] = mapped_column(String(20), nullable=False, comment="success / partial_success / error")

    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="오류 요약")
