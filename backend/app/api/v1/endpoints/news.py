"""
뉴스 API 엔드포인트

- GET /news         : 최신 기사 목록 (카테고리 필터)
- GET /news/search  : 단계별 검색 (로컬 → 재수집 → 외부 검색 제안)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_db, get_search_waterfall
from app.core.constants import DEFAULT_SEARCH_LIMIT
from app.core.exceptions import ValidationException
from app.crud.article import article as article_crud
from app.schemas.article import ArticleListResponse, ArticleResponse
from app.schemas.search import SearchResult
from app.services.search_waterfall import SearchWaterfall
from app.utils.news import normalize_category

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=ArticleListResponse,
    status_code=status.HTTP_200_OK,
    summary="최신 기사 목록",
)
async def list_news(
    category: Optional[str] = Query(None, description="카테고리 (영어 별칭 허용)"),
    limit: int = Query(20, ge=1, le=100, description="최대 개수"),
    offset: int = Query(0, ge=0, description="시작 위치"),
    db: AsyncSession = Depends(get_db)
):
    """발행일 내림차순 기사 목록"""
    normalized = None
    if category:
        normalized = normalize_category(category)
        if normalized is None:
            raise ValidationException(f"알 수 없는 카테고리입니다: {category}", code="INVALID_CATEGORY")

    rows = await article_crud.get_latest(db, limit=limit, offset=offset, category=normalized)
    return ArticleListResponse(
        data=[ArticleResponse.model_validate(row) for row in rows],
        total=await article_crud.count_filtered(db, category=normalized),
    )


@router.get(
    "/search",
    response_model=SearchResult,
    status_code=status.HTTP_200_OK,
    summary="뉴스 검색",
    description="""
    1. 저장된 기사에서 검색 (level=1)
    2. 결과가 없으면 관련 카테고리를 즉시 재수집 후 다시 검색 (level=2, isFresh=true)
    3. 그래도 없으면 외부 검색 링크 제안 (level="fallback")
    """,
    responses={400: {"description": "검색어 2자 미만 또는 limit 범위 위반"}}
)
async def search_news(
    q: str = Query(..., description="검색어 (2자 이상)"),
    limit: int = Query(DEFAULT_SEARCH_LIMIT, description="최대 결과 수 (1~50)"),
    waterfall: SearchWaterfall = Depends(get_search_waterfall)
):
    """단계별 뉴스 검색"""
    return await waterfall.search(q, limit)
