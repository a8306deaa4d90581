"""카테고리 수집 테스트"""
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import func, select

from app.core.constants import DEFAULT_RSS_SOURCES
from app.core.exceptions import ValidationException
from app.models.article import Article
from app.models.ingest_metadata import IngestMetadata
from app.services.category_ingestor import CategoryIngestor
from app.services.global_ingestor import GlobalIngestor
from app.utils.news import build_local_news_feed_url
from conftest import StubFetcher, add_sources, make_item, unreachable

FEED_A = "https://feeds.example.es/a.xml"
FEED_B = "https://feeds.example.es/b.xml"
FEED_C = "https://feeds.example.es/c.xml"


async def count_articles(session_factory, category=None) -> int:
    async with session_factory() as session:
        query = select(func.count(Article.id))
        if category:
            query = query.where(Article.category == category)
        return (await session.execute(query)).scalar()


@pytest.mark.asyncio
async def test_ingest_stores_new_articles(session_factory):
    await add_sources(session_factory, "deportes", [FEED_A, FEED_B])
    fetcher = StubFetcher({
        FEED_A: [make_item(1), make_item(2)],
        FEED_B: [make_item(3)],
    })
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=fetcher)

    result = await ingestor.ingest_category("deportes", 20)

    assert result.category == "deportes"
    assert result.total_fetched == 3
    assert result.new_articles == 3
    assert result.duplicates == 0
    assert result.errors == 0
    assert await count_articles(session_factory, "deportes") == 3


@pytest.mark.asyncio
async def test_second_run_with_same_feed_is_idempotent(session_factory):
    await add_sources(session_factory, "general", [FEED_A])
    fetcher = StubFetcher({FEED_A: [make_item(n) for n in range(5)]})
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=fetcher)

    first = await ingestor.ingest_category("general", 20)
    second = await ingestor.ingest_category("general", 20)

    assert first.new_articles == 5
    assert second.new_articles == 0
    assert second.duplicates == 5
    assert await count_articles(session_factory) == 5


@pytest.mark.asyncio
async def test_all_sources_failing_reports_errors_without_raising(session_factory):
    await add_sources(session_factory, "economia", [FEED_A, FEED_B, FEED_C])
    fetcher = StubFetcher({url: unreachable(url) for url in (FEED_A, FEED_B, FEED_C)})
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=fetcher)

    result = await ingestor.ingest_category("economia", 20)

    assert result.errors == 3
    assert result.new_articles == 0
    assert result.total_fetched == 0


@pytest.mark.asyncio
async def test_failing_source_does_not_block_others(session_factory):
    await add_sources(session_factory, "politica", [FEED_A, FEED_B])
    fetcher = StubFetcher({FEED_A: unreachable(FEED_A), FEED_B: [make_item(1), make_item(2)]})
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=fetcher)

    result = await ingestor.ingest_category("politica", 20)

    assert result.errors == 1
    assert result.new_articles == 2
    assert sorted(fetcher.fetched) == sorted([FEED_A, FEED_B])


@pytest.mark.asyncio
async def test_page_size_keeps_newest_items(session_factory):
    await add_sources(session_factory, "general", [FEED_A, FEED_B])
    fetcher = StubFetcher({
        FEED_A: [make_item(1), make_item(4)],
        FEED_B: [make_item(2), make_item(3), make_item(5)],
    })
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=fetcher)

    result = await ingestor.ingest_category("general", 3)

    assert result.total_fetched == 3
    async with session_factory() as session:
        urls = set((await session.execute(select(Article.url))).scalars().all())
    assert urls == {f"https://example.es/noticia-{n}" for n in (3, 4, 5)}


@pytest.mark.asyncio
async def test_english_alias_maps_to_spanish_category(session_factory):
    await add_sources(session_factory, "deportes", [FEED_A])
    fetcher = StubFetcher({FEED_A: [make_item(1)]})
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=fetcher)

    result = await ingestor.ingest_category("sports", 10)

    assert result.category == "deportes"
    assert await count_articles(session_factory, "deportes") == 1


@pytest.mark.asyncio
async def test_missing_category_defaults_to_general(session_factory):
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=StubFetcher())

    result = await ingestor.ingest_category(None, 10)

    assert result.category == "general"
    assert result.total_fetched == 0


@pytest.mark.asyncio
async def test_unknown_category_is_rejected(session_factory):
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=StubFetcher())

    with pytest.raises(ValidationException) as exc_info:
        await ingestor.ingest_category("astrologia", 10)

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("page_size", [0, 101])
async def test_page_size_out_of_range_is_rejected(session_factory, page_size):
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=StubFetcher())

    with pytest.raises(ValidationException):
        await ingestor.ingest_category("general", page_size)


@pytest.mark.asyncio
async def test_run_is_recorded_in_ingest_metadata(session_factory):
    await add_sources(session_factory, "cultura", [FEED_A, FEED_B])
    fetcher = StubFetcher({FEED_A: unreachable(FEED_A), FEED_B: [make_item(1)]})
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=fetcher)

    await ingestor.ingest_category("cultura", 10)

    async with session_factory() as session:
        rows = (await session.execute(select(IngestMetadata))).scalars().all()
    assert len(rows) == 1
    assert rows[0].source == "rss-cultura"
    assert rows[0].status == "partial_success"
    assert rows[0].articles_count == 1
    assert FEED_A in rows[0].error_message


@pytest.mark.asyncio
async def test_rows_carry_feed_fields(session_factory):
    await add_sources(session_factory, "tecnologia", [FEED_A])
    item = make_item(1, image_url="https://img.example.es/1.jpg", author="Ana", content="Cuerpo")
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=StubFetcher({FEED_A: [item]}))

    await ingestor.ingest_category("tecnologia", 10)

    async with session_factory() as session:
        stored = (await session.execute(select(Article))).scalar_one()
    assert stored.url_to_image == "https://img.example.es/1.jpg"
    assert stored.author == "Ana"
    assert stored.content == "Cuerpo"
    assert stored.analyzed_at is None
    assert stored.language == "es"


@pytest.mark.asyncio
async def test_category_without_sources_uses_general_feeds(session_factory):
    await add_sources(session_factory, "general", [FEED_A])
    fetcher = StubFetcher({FEED_A: [make_item(1), make_item(2)]})
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=fetcher)

    result = await ingestor.ingest_category("salud", 10)

    assert fetcher.fetched == [FEED_A]
    assert result.category == "salud"
    assert result.new_articles == 2
    assert await count_articles(session_factory, "salud") == 2


@pytest.mark.asyncio
async def test_local_ingests_city_search_feed(session_factory):
    await add_sources(session_factory, "general", [FEED_A])
    local_url = build_local_news_feed_url("Valencia")
    fetcher = StubFetcher({local_url: [make_item(1, title="Fallas en Valencia")]})
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=fetcher)

    result = await ingestor.ingest_category("local", 10, query="  Valencia ")

    assert fetcher.fetched == [local_url]
    assert result.category == "local"
    assert result.new_articles == 1
    assert await count_articles(session_factory, "local") == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("query", [None, "", "   "])
async def test_local_without_city_is_rejected(session_factory, query):
    fetcher = StubFetcher()
    ingestor = CategoryIngestor(session_factory=session_factory, fetcher=fetcher)

    with pytest.raises(ValidationException) as exc_info:
        await ingestor.ingest_category("local", 10, query=query)

    assert exc_info.value.detail["code"] == "MISSING_QUERY"
    assert fetcher.fetched == []


def test_local_feed_url_is_spanish_google_news_search():
    url = urlparse(build_local_news_feed_url("Valencia"))
    params = parse_qs(url.query)

    assert url.netloc == "news.google.com"
    assert url.path == "/rss/search"
    assert params["q"] == ["noticias locales Valencia"]
    assert params["ceid"] == ["ES:es"]


def test_every_batch_category_has_default_feeds():
    for category in GlobalIngestor.categories():
        assert DEFAULT_RSS_SOURCES.get(category), category
