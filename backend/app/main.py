# ============================================================
#  FastAPI 애플리케이션 진입점
# ============================================================
"""
FastAPI 애플리케이션 메인 파일

뉴스 수집 / AI 편향 분석 / 단계별 검색 API 서버입니다.

구성:
- 요청 타임아웃 미들웨어 (분석/검색은 더 긴 타임아웃)
- GZip 압축, CORS
- 정책별 요청 제한기 (app.state.rate_limiters)
- Prometheus 메트릭 (/metrics)
"""
import asyncio
import logging
import sys
import time
import traceback

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, ORJSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.exceptions import RateLimitExceeded
from app.core.redis import close_redis_client, get_redis_client
from app.services.rate_limiter import build_rate_limiters

perf_logger = logging.getLogger("performance")
logger = logging.getLogger(__name__)


# FastAPI 앱 생성
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="스페인어 뉴스 수집, 중복 제거, AI 편향 분석 및 단계별 검색 API",
    docs_url="/docs",
    redoc_url="/redoc",
    default_response_class=ORJSONResponse,
)

# 정책별 요청 제한기 (프로세스 단위로 1회 생성)
app.state.rate_limiters = build_rate_limiters(settings)

# ============================================================
# GZip / CORS
# ============================================================
app.add_middleware(GZipMiddleware, minimum_size=500)

if settings.ALLOWED_ORIGINS:
    origins = [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )
else:
    # 개발 환경: 모든 출처 허용
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )


# ===== 성능 상수 =====
SLOW_REQUEST_THRESHOLD = 5.0  # 느린 요청 임계값 (초)
REQUEST_TIMEOUT = 60.0        # 기본 요청 타임아웃 (초)
LONG_REQUEST_TIMEOUT = 180.0  # 분석/수집 요청 타임아웃 (초)
SEARCH_REQUEST_TIMEOUT = 90.0


class PerformanceMiddleware(BaseHTTPMiddleware):
    """
    성능 모니터링 미들웨어

    - 요청 처리 시간 측정 (X-Response-Time 헤더)
    - 느린 요청 로깅
    - 경로별 요청 타임아웃 (초과 시 504)
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        path = request.url.path
        method = request.method

        if path in ["/metrics", "/health", "/docs", "/redoc", "/openapi.json"]:
            return await call_next(request)

        timeout = REQUEST_TIMEOUT
        if "/analyze" in path or "/ingest" in path:
            timeout = LONG_REQUEST_TIMEOUT
        elif "/news" in path:
            timeout = SEARCH_REQUEST_TIMEOUT

        try:
            response = await asyncio.wait_for(call_next(request), timeout=timeout)
        except asyncio.TimeoutError:
            duration = time.time() - start_time
            perf_logger.error(f"⏱ 요청 타임아웃: {method} {path} - {duration:.2f}초 (제한: {timeout}초)")
            return JSONResponse(
                status_code=504,
                content={
                    "detail": {
                        "code": "GATEWAY_TIMEOUT",
                        "message": f"요청 처리 시간이 초과되었습니다 ({timeout}초)"
                    }
                }
            )

        duration = time.time() - start_time
        if duration > SLOW_REQUEST_THRESHOLD:
            perf_logger.warning(f"🐢 느린 요청: {method} {path} - {duration:.2f}초")
        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


app.add_middleware(PerformanceMiddleware)

# ============================================================
#  Prometheus 메트릭 수집 설정
# ============================================================
instrumentator = Instrumentator(
    excluded_handlers=["/metrics", "/health", "/docs", "/redoc"],
)
instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


# ============================================================
# 예외 핸들러
# ============================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """HTTPException 핸들러 - {"detail": ...} 형식 유지"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    """요청 제한 초과 → 429"""
    decision = exc.decision
    content = {
        "success": False,
        "error": exc.message,
        "retryAfter": decision.policy.retry_after_label or f"{decision.retry_after} seconds",
        "details": {
            "limit": decision.limit,
            "windowMs": decision.policy.window_ms,
        },
    }
    if exc.hint:
        content["hint"] = exc.hint

    return JSONResponse(status_code=429, content=content, headers=decision.headers())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """전역 예외 핸들러 - 처리되지 않은 예외는 500"""
    if settings.DEBUG:
        logger.error(f"예외 발생: {exc}\n{traceback.format_exc()}")
    else:
        logger.error(f"예외 발생: {type(exc).__name__}: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": str(exc) if settings.DEBUG else "Internal server error"
            }
        }
    )


def configure_logging() -> None:
    """루트 로거 설정 (콘솔 + backend.log 파일)"""
    root_logger = logging.getLogger()
    log_format = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    if not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(log_format)
        root_logger.addHandler(console_handler)

    if not any(isinstance(h, logging.FileHandler) for h in root_logger.handlers):
        file_handler = logging.FileHandler("backend.log", encoding="utf-8")
        file_handler.setFormatter(log_format)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)


# ============================================================
# 시작 / 종료 이벤트
# ============================================================
@app.on_event("startup")
async def startup_event():
    """애플리케이션 시작 시 실행되는 이벤트"""
    from app.core.constants import DEFAULT_RSS_SOURCES
    from app.crud.source import source as source_crud
    from app.db.session import AsyncSessionLocal, create_all_tables

    configure_logging()
    logger.info(f"🚀 {settings.PROJECT_NAME} 시작 (환경: {settings.ENVIRONMENT})")

    if settings.AUTO_CREATE_TABLES:
        try:
            await create_all_tables()
            async with AsyncSessionLocal() as db:
                created = await source_crud.seed_defaults(db, DEFAULT_RSS_SOURCES)
                await db.commit()
            if created:
                logger.info(f"🌱 기본 RSS 소스 {created}개 등록")
        except Exception as e:
            logger.warning(f"⚠️ 테이블 생성/소스 등록 실패 (무시하고 계속 진행): {e}")

    try:
        await asyncio.wait_for(get_redis_client(), timeout=10.0)
    except asyncio.TimeoutError:
        logger.warning("⚠️ Redis 연결 초기화 타임아웃 (캐싱 기능 비활성화, 서버는 계속 시작)")

    if settings.SCHEDULER_ENABLED:
        from app.services.pipeline_scheduler import start_pipeline_scheduler
        await start_pipeline_scheduler()
        logger.info("⏰ 파이프라인 스케줄러가 시작되었습니다")


@app.on_event("shutdown")
async def shutdown_event():
    """애플리케이션 종료 시 실행되는 이벤트"""
    from app.services.pipeline_scheduler import stop_pipeline_scheduler

    await stop_pipeline_scheduler()
    await close_redis_client()


# ============================================================
# 라우터 등록
# ============================================================
from app.api.v1.router import api_router  # noqa: E402

app.include_router(api_router, prefix=settings.API_V1_STR)


# ============================================================
# 기본 엔드포인트
# ============================================================

@app.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "message": "Noticias Pipeline API",
        "version": settings.VERSION,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """헬스 체크 엔드포인트"""
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME
    }
