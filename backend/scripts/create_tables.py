#!/usr/bin/env python3
"""
데이터베이스 테이블 생성 스크립트

SQLAlchemy 모델(articles, sources, ingest_metadata)을 기준으로 누락된 테이블을 생성합니다.

사용법:
    python backend/scripts/create_tables.py
"""
import asyncio
import sys
import traceback
from pathlib import Path

# backend 디렉터리를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import inspect  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.db.session import create_all_tables, engine  # noqa: E402


async def create_tables() -> bool:
    """데이터베이스 테이블 생성"""
    print("=" * 60)
    print(" 데이터베이스 테이블 생성 시작...")
    print(f" DB: {settings.DATABASE_URL.split('@')[-1]}")
    print("=" * 60)

    try:
        await create_all_tables()

        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

        print(f"\n 테이블 ({len(tables)}개):")
        for table in sorted(tables):
            print(f"   - {table}")
        print("=" * 60)
        return True
    except Exception as e:
        print(f" 테이블 생성 실패: {e}")
        traceback.print_exc()
        return False
    finally:
        await engine.dispose()


if __name__ == "__main__":
    success = asyncio.run(create_tables())
    sys.exit(0 if success else 1)
