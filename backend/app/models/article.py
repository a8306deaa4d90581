"""
기사 모델

테이블명: articles
RSS에서 수집한 기사와 AI 분석 결과를 저장합니다.
(url, category) 조합이 고유 식별자이며, 같은 URL이라도 카테고리가 다르면 별도 행입니다.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Float, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.utils.news import utcnow


def _new_article_id() -> str:
    return str(uuid.uuid4())


class Article(Base):
    """
    기사 테이블

    컬럼:
        - id: UUID 문자열 (PK)
        - url, title, description, content, url_to_image, source, author
        - category: 수집 카테고리 (스페인어)
        - published_at: 원문 발행일, fetched_at: 수집 시각
        - summary, bias_score, analysis, analyzed_at: AI 분석 결과 (분석 전에는 NULL)
    """
    __tablename__ = "articles"
    __table_args__ = (
        UniqueConstraint("url", "category", name="uq_articles_url_category"),
        Index("ix_articles_analyzed_fetched", "analyzed_at", "fetched_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_article_id,
        comment="PK (UUID)"
    )

    url: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
        index=True,
        comment="원문 링크"
    )

    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="제목"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="HTML 제거 후 300자 이내 요약문"
    )

    content: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="피드에 포함된 본문 (있을 때만)"
    )

    url_to_image: Mapped[Optional[str]] = mapped_column(
        String(2048),
        nullable=True,
        comment="대표 이미지"
    )

    source: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="매체 이름"
    )

    author: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="작성자"
    )

    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="카테고리"
    )

    language: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
        default="es",
        comment="언어 코드"
    )

    published_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        index=True,
        comment="발행일 (UTC)"
    )

    fetched_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        comment="수집 시각 (UTC)"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        comment="수정 시각 (UTC)"
    )

    summary: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="AI 요약"
    )

    bias_score: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="정규화된 편향 점수 (0~1)"
    )

    bias_leaning: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="기사 성향 (progresista/conservadora/extremista/neutral/indeterminada)"
    )

    analysis: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        comment="AI 분석 전체 결과"
    )

    analyzed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        index=True,
        comment="분석 완료 시각 (NULL이면 미분석)"
    )

    def __repr__(self):
        return f"<Article(id={self.id}, category={self.category}, url={self.url})>"
