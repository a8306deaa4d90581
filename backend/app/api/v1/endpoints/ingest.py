"""
수집 API 엔드포인트

- POST /ingest/news   : 카테고리 하나 수집 (moderate 제한)
- POST /ingest/all    : 전체 카테고리 수집 (strict 제한)
- GET  /ingest/status : 최근 수집 상태 (lenient 제한)

모든 엔드포인트는 CRON_SECRET이 설정되어 있으면 X-Cron-Secret 헤더가 필요합니다.
요청 제한 검사는 시크릿 검사보다 먼저 실행되므로 인증 실패 요청도 카운트됩니다.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import (
    get_category_ingestor,
    get_db,
    get_global_ingestor,
    rate_limit,
    require_cron_secret,
)
from app.crud.article import article as article_crud
from app.crud.ingest_metadata import ingest_metadata as ingest_metadata_crud
from app.schemas.ingest import (
    IngestAllRequest,
    IngestAllResponse,
    IngestMetadataResponse,
    IngestNewsRequest,
    IngestNewsResponse,
    IngestStatusResponse,
)
from app.services.category_ingestor import CategoryIngestor
from app.services.global_ingestor import GlobalIngestor
from app.services.rate_limiter import LENIENT, MODERATE, STRICT

logger = logging.getLogger(__name__)

router = APIRouter()

RECENT_RUNS_LIMIT = 20


@router.post(
    "/news",
    response_model=IngestNewsResponse,
    status_code=status.HTTP_200_OK,
    summary="카테고리 뉴스 수집",
    dependencies=[Depends(rate_limit(MODERATE)), Depends(require_cron_secret)],
    responses={
        400: {"description": "잘못된 카테고리, pageSize 또는 local 검색어 누락"},
        401: {"description": "크론 시크릿 불일치"},
        429: {"description": "요청 제한 초과"},
    }
)
async def ingest_news(
    body: Optional[IngestNewsRequest] = None,
    ingestor: CategoryIngestor = Depends(get_category_ingestor)
):
    """
    카테고리의 모든 활성 소스에서 기사를 수집하고 신규 기사만 저장합니다.

    category=local이면 query(도시 이름)로 Google News RSS 검색 피드를 수집합니다.
    """
    body = body or IngestNewsRequest()
    result = await ingestor.ingest_category(body.category, body.page_size, query=body.query)
    return IngestNewsResponse(
        message=f"{result.new_articles}건의 신규 기사를 저장했습니다 ({result.category})",
        data=result,
    )


@router.post(
    "/all",
    response_model=IngestAllResponse,
    status_code=status.HTTP_200_OK,
    summary="전체 카테고리 뉴스 수집",
    dependencies=[Depends(rate_limit(STRICT)), Depends(require_cron_secret)],
    responses={
        400: {"description": "잘못된 pageSize"},
        401: {"description": "크론 시크릿 불일치"},
        429: {"description": "요청 제한 초과"},
    }
)
async def ingest_all(
    body: Optional[IngestAllRequest] = None,
    ingestor: GlobalIngestor = Depends(get_global_ingestor)
):
    """
    local을 제외한 모든 카테고리를 수집합니다.

    카테고리 하나가 실패해도 나머지는 계속 진행하며,
    실패한 카테고리는 categoryResults에 errors >= 1로 표시됩니다.
    """
    body = body or IngestAllRequest()
    result = await ingestor.ingest_all(body.page_size)
    return IngestAllResponse(
        message=(
            f"{result.processed}개 카테고리 수집 완료, "
            f"신규 {result.total_new_articles}건 (실패 {result.errors}개)"
        ),
        data=result,
    )


@router.get(
    "/status",
    response_model=IngestStatusResponse,
    status_code=status.HTTP_200_OK,
    summary="수집 상태 조회",
    dependencies=[Depends(rate_limit(LENIENT)), Depends(require_cron_secret)],
)
async def ingest_status(
    db: AsyncSession = Depends(get_db),
    ingestor: GlobalIngestor = Depends(get_global_ingestor)
):
    """마지막 전체 수집 결과와 최근 카테고리 수집 이력을 반환합니다."""
    recent = await ingest_metadata_crud.get_recent(db, limit=RECENT_RUNS_LIMIT)
    return IngestStatusResponse(
        last_global_run=ingestor.last_result,
        recent_runs=[IngestMetadataResponse.model_validate(row) for row in recent],
        total_articles=await article_crud.count(db),
    )
