"""
파이프라인 스케줄러

SCHEDULER_ENABLED=true 일 때 앱 시작 시 백그라운드 태스크로 실행되어
주기적으로 전체 수집 → 배치 분석을 수행합니다.
"""
import asyncio
import logging
from typing import Optional

from app.core.config import settings
from app.services.analysis_scheduler import analysis_scheduler
from app.services.global_ingestor import global_ingestor

logger = logging.getLogger(__name__)

# 오류 발생 시 재시도 대기 (초)
ERROR_RETRY_DELAY = 300

_scheduler_task: Optional[asyncio.Task] = None


async def run_pipeline_once() -> None:
    """전체 수집 1회 + 배치 분석 1회"""
    ingest_result = await global_ingestor.ingest_all()
    logger.info(f"⏰ 정기 수집 완료 - 신규 {ingest_result.total_new_articles}건")

    if not settings.GEMINI_API_KEY:
        logger.info("⏰ GEMINI_API_KEY 미설정 - 정기 분석 건너뜀")
        return

    outcome = await analysis_scheduler.analyze_batch(settings.SCHEDULER_ANALYSIS_LIMIT)
    logger.info(f"⏰ 정기 분석 완료 - 성공 {outcome.successful}/{outcome.processed}")


async def run_pipeline_scheduler() -> None:
    """스케줄러 루프"""
    interval = settings.SCHEDULER_INGEST_INTERVAL
    logger.info(f"파이프라인 스케줄러 시작 (간격: {interval}초)")

    while True:
        try:
            await run_pipeline_once()
            await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("파이프라인 스케줄러 종료")
            raise
        except Exception as e:
            logger.error(f"스케줄러 오류: {e}", exc_info=True)
            await asyncio.sleep(ERROR_RETRY_DELAY)


async def start_pipeline_scheduler() -> None:
    """스케줄러를 백그라운드 태스크로 시작"""
    global _scheduler_task

    if _scheduler_task is not None and not _scheduler_task.done():
        return
    _scheduler_task = asyncio.create_task(run_pipeline_scheduler())


async def stop_pipeline_scheduler() -> None:
    global _scheduler_task

    if _scheduler_task is None:
        return
    _scheduler_task.cancel()
    try:
        await _scheduler_task
    except asyncio.CancelledError:
        pass
    _scheduler_task = None
