"""
중복 제거 서비스

후보 기사를 (url, category) 기준으로 new / duplicate로 분류합니다.
저장소 조회는 후보 전체에 대해 한 번만 수행하며, 아무것도 쓰지 않습니다.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Set

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.article import article as article_crud
from app.schemas.article import RawItem

logger = logging.getLogger(__name__)


@dataclass
class DedupPartition:
    new: List[RawItem] = field(default_factory=list)
    duplicate: List[RawItem] = field(default_factory=list)


async def partition(
    db: AsyncSession,
    candidates: Sequence[RawItem],
    category: str
) -> DedupPartition:
    """
    후보 기사를 신규/중복으로 분류

    - 저장소에 같은 (url, category)가 있으면 duplicate
    - 같은 배치 안에서 URL이 반복되면 첫 번째만 new, 나머지는 duplicate

    Args:
        db: 데이터베이스 세션
        candidates: 피드에서 가져온 후보 목록
        category: 카테고리

    Returns:
        DedupPartition
    """
    result = DedupPartition()
    if not candidates:
        return result

    existing = await article_crud.find_existing_urls(db, (item.link for item in candidates), category)
    seen: Set[str] = set(existing)

    for item in candidates:
        if item.link in seen:
            result.duplicate.append(item)
        else:
            seen.add(item.link)
            result.new.append(item)

    logger.debug(
        f"중복 분류 [{category}]: 신규 {len(result.new)}건, 중복 {len(result.duplicate)}건"
    )
    return result
