"""
API v1 라우터

기능별 엔드포인트 라우터를 하나로 모아 app/main.py에서 등록합니다.

새로운 API를 추가하려면:
1. app/api/v1/endpoints/ 폴더에 파일 생성 후 router = APIRouter() 정의
2. 이 파일에서 import하고 include_router로 등록
"""
from fastapi import APIRouter

from app.api.v1.endpoints import analyze, ingest, news

api_router = APIRouter()

# ============================================================
# 수집 API
# ============================================================
# - POST /api/v1/ingest/news   - 카테고리 수집
# - POST /api/v1/ingest/all    - 전체 수집
# - GET  /api/v1/ingest/status - 수집 상태
api_router.include_router(
    ingest.router,
    prefix="/ingest",
    tags=["📥 Ingest (수집)"]
)

# ============================================================
# AI 분석 API
# ============================================================
# - POST /api/v1/analyze/batch - 배치 분석
# - GET  /api/v1/analyze/stats - 분석 통계
api_router.include_router(
    analyze.router,
    prefix="/analyze",
    tags=["🧠 Analyze (분석)"]
)

# ============================================================
# 뉴스 조회/검색 API
# ============================================================
# - GET /api/v1/news        - 최신 기사 목록
# - GET /api/v1/news/search - 단계별 검색
api_router.include_router(
    news.router,
    prefix="/news",
    tags=["📰 News (뉴스)"]
)
