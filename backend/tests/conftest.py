"""
테스트 공통 설정

app 모듈을 import하기 전에 환경 변수를 먼저 설정합니다.
- SQLite 메모리 DB, Redis 비활성화, 시작 시 테이블 생성/스케줄러 비활성화
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_URL"] = ""
os.environ["ENVIRONMENT"] = "test"
os.environ["CRON_SECRET"] = ""
os.environ["TRUST_PROXY"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"

from datetime import datetime, timedelta  # noqa: E402
from typing import Dict, List, Optional, Union  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.exceptions import FeedUnreachableError  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import build_engine  # noqa: E402
from app.models.article import Article  # noqa: E402
from app.models.source import Source  # noqa: E402
from app.schemas.article import PageMetadata, RawItem  # noqa: E402
from app.services.ai_service import AIAnalysisResponse  # noqa: E402

BASE_TIME = datetime(2026, 3, 1, 12, 0, 0)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """테스트마다 새 SQLite 파일 DB (세션마다 별도 연결)"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


def make_item(n: int, *, source: str = "El País", minutes_ago: Optional[int] = None, **overrides) -> RawItem:
    """테스트용 RawItem (n이 클수록 최신)"""
    published = BASE_TIME + timedelta(minutes=n) if minutes_ago is None else BASE_TIME - timedelta(minutes=minutes_ago)
    data = {
        "title": f"Noticia {n}",
        "link": f"https://example.es/noticia-{n}",
        "published_at": published,
        "description": f"Descripción de la noticia {n}",
        "source": source,
    }
    data.update(overrides)
    return RawItem(**data)


async def add_sources(session_factory, category: str, feed_urls: List[str]) -> List[Source]:
    async with session_factory() as session:
        sources = [Source(name=f"feed-{i}", feed_url=url, category=category, active=True) for i, url in enumerate(feed_urls)]
        session.add_all(sources)
        await session.commit()
        return sources


async def add_article(session_factory, n: int, *, category: str = "general", **overrides) -> Article:
    data = {
        "url": f"https://example.es/noticia-{n}",
        "title": f"Noticia {n}",
        "description": f"Descripción larga de la noticia número {n} con suficiente texto para el análisis.",
        "source": "El País",
        "category": category,
        "published_at": BASE_TIME + timedelta(minutes=n),
        "fetched_at": BASE_TIME + timedelta(minutes=n),
    }
    data.update(overrides)
    async with session_factory() as session:
        article = Article(**data)
        session.add(article)
        await session.commit()
        return article


class StubFetcher:
    """피드 URL별 결과(RawItem 목록 또는 예외)를 돌려주는 수집기"""

    def __init__(self, feeds: Optional[Dict[str, Union[List[RawItem], Exception]]] = None, image: Optional[str] = None):
        self.feeds = feeds or {}
        self.image = image
        self.fetched: List[str] = []
        self.metadata_requests: List[str] = []

    async def fetch_feed(self, source) -> List[RawItem]:
        self.fetched.append(source.feed_url)
        result = self.feeds.get(source.feed_url, [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def extract_page_metadata(self, url: str) -> PageMetadata:
        self.metadata_requests.append(url)
        return PageMetadata(image=self.image)


def unreachable(url: str) -> FeedUnreachableError:
    return FeedUnreachableError(url, "connection refused")


def valid_analysis(**overrides) -> dict:
    data = {
        "summary": "Resumen neutral de la noticia.",
        "biasRaw": -4,
        "articleLeaning": "progresista",
        "reliabilityScore": 80,
        "traceabilityScore": 70,
        "factualityStatus": "plausible_but_unverified",
        "sentiment": "neutral",
        "suggestedTopics": ["política"],
        "factCheck": {"claims": ["dato"], "verdict": "SupportedByArticle", "reasoning": "El artículo cita la fuente."},
    }
    data.update(overrides)
    return data


class StubAI:
    """
    기사 제목별 응답을 돌려주는 AI 서비스

    responses[title]가 예외면 raise, dict면 그 응답, 없으면 valid_analysis()
    """

    def __init__(self, responses: Optional[Dict[str, object]] = None, delay: float = 0.0):
        self.responses = responses or {}
        self.delay = delay
        self.calls: List[str] = []

    async def analyze_article(self, title: str, content: str, source: str) -> AIAnalysisResponse:
        import asyncio

        self.calls.append(title)
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses.get(title, valid_analysis())
        if isinstance(response, Exception):
            raise response
        return AIAnalysisResponse(raw=response, prompt_tokens=1000, completion_tokens=200)


@pytest.fixture
def stub_fetcher():
    return StubFetcher()
