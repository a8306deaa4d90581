"""
기사 관련 Pydantic 스키마

1. RawItem: 피드에서 파싱한 원본 항목 (저장 전)
2. PageMetadata: 기사 페이지 메타데이터 (미리보기 이미지 등)
3. ArticleResponse / ArticleListResponse: API 응답
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class RawItem(CamelModel):
    """피드에서 파싱한 기사 한 건"""
    title: str = Field(..., description="제목")
    link: str = Field(..., description="원문 링크")
    published_at: datetime = Field(..., description="발행일 (UTC)")
    description: str = Field("", description="HTML 제거된 요약문 (최대 300자)")
    content: Optional[str] = Field(None, description="피드 본문")
    image_url: Optional[str] = Field(None, description="피드에 포함된 이미지")
    author: Optional[str] = Field(None, description="작성자")
    source: str = Field(..., description="매체 이름")


class PageMetadata(CamelModel):
    """기사 페이지에서 추출한 메타데이터 (실패 시 모든 필드 None)"""
    image: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None


class ArticleResponse(CamelModel):
    """기사 응답"""
    id: str
    url: str
    title: str
    description: Optional[str] = None
    url_to_image: Optional[str] = None
    source: str
    author: Optional[str] = None
    category: str
    language: str = "es"
    published_at: datetime
    fetched_at: datetime
    summary: Optional[str] = None
    bias_score: Optional[float] = None
    analysis: Optional[Dict[str, Any]] = None
    analyzed_at: Optional[datetime] = None


class ArticleListResponse(CamelModel):
    """기사 목록 응답"""
    success: bool = True
    data: List[ArticleResponse] = Field(default_factory=list)
    total: int = 0
