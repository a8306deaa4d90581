#!/usr/bin/env python3
"""
기본 RSS 소스 등록 스크립트

sources 테이블이 비어 있으면 카테고리별 기본 스페인어 매체 피드를 등록합니다.

사용법:
    python backend/scripts/seed_sources.py
"""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.constants import DEFAULT_RSS_SOURCES  # noqa: E402
from app.crud.source import source as source_crud  # noqa: E402
from app.db.session import AsyncSessionLocal, create_all_tables, engine  # noqa: E402


async def seed() -> int:
    await create_all_tables()
    async with AsyncSessionLocal() as db:
        created = await source_crud.seed_defaults(db, DEFAULT_RSS_SOURCES)
        await db.commit()
    await engine.dispose()
    return created


if __name__ == "__main__":
    created = asyncio.run(seed())
    if created:
        print(f" 기본 RSS 소스 {created}개 등록 완료")
    else:
        print(" sources 테이블에 이미 데이터가 있어 등록하지 않았습니다")
