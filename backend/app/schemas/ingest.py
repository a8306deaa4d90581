"""
수집 관련 Pydantic 스키마
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.core.constants import DEFAULT_PAGE_SIZE
from app.schemas.common import CamelModel


class IngestNewsRequest(CamelModel):
    """카테고리 수집 요청 (pageSize 범위 1~100은 서비스에서 검증, 위반 시 400)"""
    category: Optional[str] = Field(None, description="카테고리 (생략 시 general)")
    query: Optional[str] = Field(None, max_length=100, description="지역 뉴스 도시 검색어 (category=local일 때 필수)")
    page_size: int = Field(DEFAULT_PAGE_SIZE, description="최대 수집 건수 (1~100)")


class IngestAllRequest(CamelModel):
    """전체 수집 요청"""
    page_size: int = Field(DEFAULT_PAGE_SIZE, description="카테고리당 최대 수집 건수 (1~100)")


class IngestionResult(CamelModel):
    """카테고리 수집 결과"""
    category: str
    total_fetched: int = 0
    new_articles: int = 0
    duplicates: int = 0
    errors: int = 0
    timestamp: datetime


class GlobalIngestionResult(CamelModel):
    """전체 수집 결과"""
    processed: int = 0
    errors: int = 0
    total_new_articles: int = 0
    total_duplicates: int = 0
    category_results: Dict[str, IngestionResult] = Field(default_factory=dict)


class IngestMetadataResponse(CamelModel):
    """수집 이력 한 건"""
    source: str
    last_fetch: datetime
    articles_count: int
    status: str
    error_message: Optional[str] = None


class IngestStatusResponse(CamelModel):
    """수집 상태 응답"""
    success: bool = True
    last_global_run: Optional[GlobalIngestionResult] = None
    recent_runs: List[IngestMetadataResponse] = Field(default_factory=list)
    total_articles: int = 0


class IngestNewsResponse(CamelModel):
    success: bool = True
    message: str
    data: IngestionResult


class IngestAllResponse(CamelModel):
    success: bool = True
    message: str
    data: GlobalIngestionResult
