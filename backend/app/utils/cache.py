"""
캐시 유틸리티

Redis 캐시 조회/저장 헬퍼입니다.
Redis를 사용할 수 없으면 조회는 None, 저장은 False를 반환하고
예외를 호출자에게 전파하지 않습니다.
"""
import logging
from typing import Any, Optional

import orjson

from app.core.redis import get_redis_client

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "noticias"
DEFAULT_TTL = 300  # 5분


def build_cache_key(*parts: Any) -> str:
    """
    네임스페이스가 붙은 캐시 키 생성

    예: build_cache_key("search", "liga", 20) -> "noticias:search:liga:20"
    """
    return ":".join([CACHE_NAMESPACE] + [str(part) for part in parts])


async def get_from_cache(key: str) -> Optional[Any]:
    """캐시 조회 (없거나 실패하면 None)"""
    try:
        redis_client = await get_redis_client()
        if redis_client is None:
            return None

        cached_value = await redis_client.get(key)
        if cached_value is None:
            return None
        return orjson.loads(cached_value)
    except orjson.JSONDecodeError as e:
        logger.warning(f"⚠️ 캐시 JSON 디코딩 실패 (키: {key}): {e}")
        return None
    except Exception as e:
        logger.warning(f"⚠️ 캐시 조회 실패 (키: {key}): {e}")
        return None


async def set_to_cache(key: str, value: Any, ttl: int = DEFAULT_TTL) -> bool:
    """
    캐시 저장

    Args:
        key: 캐시 키
        value: JSON 직렬화 가능한 값 (datetime은 ISO 문자열로 변환)
        ttl: 유효 시간 (초)

    Returns:
        bool: 저장 성공 여부
    """
    try:
        redis_client = await get_redis_client()
        if redis_client is None:
            return False

        serialized = orjson.dumps(value, default=str).decode("utf-8")
        await redis_client.setex(key, ttl, serialized)
        logger.debug(f"✅ 캐시 저장 (키: {key}, TTL: {ttl}초)")
        return True
    except Exception as e:
        logger.warning(f"⚠️ 캐시 저장 실패 (키: {key}): {e}")
        return False


async def delete_cache_pattern(pattern: str) -> int:
    """패턴에 맞는 캐시 삭제 (새 기사 저장 후 검색 캐시 무효화용)"""
    try:
        redis_client = await get_redis_client()
        if redis_client is None:
            return 0

        keys = [key async for key in redis_client.scan_iter(match=pattern, count=100)]
        if not keys:
            return 0
        return await redis_client.delete(*keys)
    except Exception as e:
        logger.debug(f"⚠️ 패턴 캐시 삭제 실패 (패턴: {pattern}): {e}")
        return 0
