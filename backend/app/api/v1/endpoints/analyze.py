"""
AI 분석 API 엔드포인트

- POST /analyze/batch : 미분석 기사 배치 분석
- GET  /analyze/stats : 분석 진행 통계
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status

from app.api.v1.deps import get_analysis_scheduler
from app.schemas.analysis import AnalysisStatsResponse, AnalyzeBatchRequest, AnalyzeBatchResponse
from app.services.analysis_scheduler import AnalysisScheduler

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/batch",
    response_model=AnalyzeBatchResponse,
    status_code=status.HTTP_200_OK,
    summary="미분석 기사 배치 분석",
    description="""
    수집 시각이 오래된 미분석 기사부터 최대 limit개(1~100)를 분석합니다.

    - 기사별 실패는 응답의 failures / results에 포함되며 전체 요청은 200
    - 배치 전체 처리 시간은 ANALYSIS_BATCH_TIMEOUT(기본 170초) 이내
    """,
    responses={
        400: {"description": "limit 범위 위반"},
        503: {"description": "AI 서비스 설정 누락"},
    }
)
async def analyze_batch(
    body: Optional[AnalyzeBatchRequest] = None,
    scheduler: AnalysisScheduler = Depends(get_analysis_scheduler)
):
    """미분석 기사 배치 분석"""
    body = body or AnalyzeBatchRequest()
    outcome = await scheduler.analyze_batch(body.limit)
    return AnalyzeBatchResponse(
        message=f"{outcome.processed}건 처리: 성공 {outcome.successful}, 실패 {outcome.failed}",
        data=outcome,
    )


@router.get(
    "/stats",
    response_model=AnalysisStatsResponse,
    status_code=status.HTTP_200_OK,
    summary="분석 통계",
)
async def analysis_stats(scheduler: AnalysisScheduler = Depends(get_analysis_scheduler)):
    """전체/분석 완료/대기 기사 수와 성향 분포"""
    return AnalysisStatsResponse(data=await scheduler.get_stats())
