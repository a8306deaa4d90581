"""
데이터베이스 세션 관리

비동기 SQLAlchemy 엔진과 세션 팩토리를 생성합니다.

- PostgreSQL(asyncpg): 연결 풀 + 서버 측 타임아웃 설정
- SQLite(aiosqlite): 로컬 개발/테스트용 (메모리 DB는 단일 연결 공유)
"""
import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings

# SQL 쿼리 INFO 로그 방지
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# ===== 연결 풀 설정 =====
POOL_SIZE = 5
MAX_OVERFLOW = 10
POOL_TIMEOUT = 20           # 연결 대기 (초)
POOL_RECYCLE = 900          # 15분마다 연결 재활용
STATEMENT_TIMEOUT = 30000   # ms
LOCK_TIMEOUT = 10000        # ms
COMMAND_TIMEOUT = 30        # asyncpg 명령 타임아웃 (초)


def is_memory_sqlite(database_url: str) -> bool:
    """sqlite+aiosqlite:// 또는 :memory: 이면 메모리 DB"""
    return database_url.rstrip("/").endswith(("sqlite+aiosqlite:", ":memory:"))


def build_engine(database_url: str) -> AsyncEngine:
    """
    DB URL에 맞는 비동기 엔진 생성

    Args:
        database_url: SQLAlchemy 비동기 URL (postgresql+asyncpg://, sqlite+aiosqlite://)

    Returns:
        AsyncEngine
    """
    if database_url.startswith("sqlite"):
        if is_memory_sqlite(database_url):
            return create_async_engine(
                database_url,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_async_engine(database_url, echo=False)

    return create_async_engine(
        database_url,
        echo=False,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,
        pool_recycle=POOL_RECYCLE,
        pool_pre_ping=True,
        connect_args={
            "server_settings": {
                "statement_timeout": str(STATEMENT_TIMEOUT),
                "lock_timeout": str(LOCK_TIMEOUT),
                "idle_in_transaction_session_timeout": "30000",
            },
            "command_timeout": COMMAND_TIMEOUT,
        },
    )


engine = build_engine(settings.DATABASE_URL)

logger.info(f"DB 엔진 생성 완료 - {engine.url.get_backend_name()}")

# 비동기 세션 팩토리
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def create_all_tables() -> None:
    """모델 기준으로 누락된 테이블 생성"""
    from app.db.base import Base
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
