"""
Redis 클라이언트 관리

검색 결과 캐시용 Redis 클라이언트를 싱글톤으로 제공합니다.

- REDIS_URL이 비어 있으면 캐시 기능 전체 비활성화 (항상 None 반환)
- 연결 실패 시 일정 시간 동안 재연결하지 않음 (캐시 없이 계속 동작)
"""
import asyncio
import logging
import time
from typing import Optional

from redis import asyncio as aioredis
from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff

from app.core.config import settings

logger = logging.getLogger(__name__)

# ===== 연결 설정 (빠른 실패) =====
MAX_CONNECTIONS = 10
SOCKET_TIMEOUT = 1.0
CONNECT_TIMEOUT = 1.0
PING_INTERVAL = 300.0         # 주기적 ping 간격 (초)
REDIS_RETRY_INTERVAL = 60.0   # 실패 후 재연결 대기 (초)

_redis_client: Optional[Redis] = None
_last_ping_time: float = 0.0
_unavailable_since: Optional[float] = None


async def _discard_client() -> None:
    global _redis_client, _unavailable_since

    if _redis_client is not None:
        try:
            await _redis_client.close()
        except Exception as e:
            logger.debug(f"Redis 연결 정리 중 오류 (무시): {e}")
    _redis_client = None
    _unavailable_since = time.time()


async def get_redis_client(check_health: bool = False) -> Optional[Redis]:
    """
    Redis 클라이언트 반환

    Args:
        check_health: True이면 ping으로 연결 상태를 즉시 확인

    Returns:
        Redis 클라이언트, 비활성화/연결 실패 시 None
    """
    global _redis_client, _last_ping_time, _unavailable_since

    if not settings.REDIS_URL:
        return None

    now = time.time()

    if _unavailable_since is not None:
        if now - _unavailable_since < REDIS_RETRY_INTERVAL:
            return None
        _unavailable_since = None
        logger.info("🔄 Redis 재연결 시도...")

    if _redis_client is None:
        try:
            _redis_client = aioredis.Redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                max_connections=MAX_CONNECTIONS,
                retry_on_timeout=False,
                retry=Retry(ExponentialBackoff(cap=0.5, base=0.1), retries=0),
                socket_timeout=SOCKET_TIMEOUT,
                socket_connect_timeout=CONNECT_TIMEOUT,
            )
            await asyncio.wait_for(_redis_client.ping(), timeout=CONNECT_TIMEOUT)
            _last_ping_time = now
            logger.info("✅ Redis 연결 성공")
        except Exception as e:
            logger.warning(
                f"⚠️ Redis 연결 실패 - 캐시 없이 진행 ({REDIS_RETRY_INTERVAL:.0f}초 후 재시도): {type(e).__name__}"
            )
            await _discard_client()
            return None

    if check_health or now - _last_ping_time >= PING_INTERVAL:
        try:
            await asyncio.wait_for(_redis_client.ping(), timeout=SOCKET_TIMEOUT)
            _last_ping_time = now
        except Exception as e:
            logger.warning(f"⚠️ Redis 헬스 체크 실패: {type(e).__name__}")
            await _discard_client()
            return None

    return _redis_client


async def close_redis_client() -> None:
    """애플리케이션 종료 시 Redis 연결 종료"""
    global _redis_client

    if _redis_client is None:
        return
    try:
        await _redis_client.close()
        logger.info("✅ Redis 클라이언트 연결 종료")
    except Exception as e:
        logger.error(f"❌ Redis 연결 종료 실패: {e}")
    finally:
        _redis_client = None
