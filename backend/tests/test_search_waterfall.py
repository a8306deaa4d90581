"""단계별 검색 테스트"""
import asyncio
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from app.core.exceptions import ValidationException
from app.services.search_waterfall import FALLBACK_LEVEL, SearchWaterfall
from conftest import add_article


class ReingestStub:
    """재수집 시 on_ingest 콜백을 실행하는 카테고리 수집기"""

    def __init__(self, on_ingest=None, delay: float = 0.0):
        self.on_ingest = on_ingest
        self.delay = delay
        self.categories = []

    async def ingest_category(self, category, page_size):
        self.categories.append(category)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.on_ingest:
            await self.on_ingest(category)


def make_waterfall(session_factory, ingestor=None, deadline=2.0) -> SearchWaterfall:
    return SearchWaterfall(
        session_factory=session_factory,
        ingestor=ingestor or ReingestStub(),
        reingest_deadline=deadline,
    )


@pytest.mark.asyncio
async def test_local_hit_returns_level_one(session_factory):
    await add_article(session_factory, 1, title="El Real Madrid gana la Liga")
    await add_article(session_factory, 2, title="Subida de la bolsa")
    ingestor = ReingestStub()

    result = await make_waterfall(session_factory, ingestor).search("real madrid")

    assert result.level == 1
    assert result.is_fresh is False
    assert [a.title for a in result.data] == ["El Real Madrid gana la Liga"]
    assert result.suggestion is None
    assert ingestor.categories == []


@pytest.mark.asyncio
async def test_summary_is_searched_too(session_factory):
    await add_article(session_factory, 1, title="Titular", summary="Debate sobre vivienda en el Congreso")

    result = await make_waterfall(session_factory).search("VIVIENDA")

    assert result.level == 1
    assert len(result.data) == 1


@pytest.mark.asyncio
async def test_results_are_newest_first_and_limited(session_factory):
    for n in range(5):
        await add_article(session_factory, n, title=f"Elecciones {n}")

    result = await make_waterfall(session_factory).search("elecciones", limit=3)

    assert [a.title for a in result.data] == ["Elecciones 4", "Elecciones 3", "Elecciones 2"]


@pytest.mark.asyncio
async def test_reingest_hit_returns_level_two(session_factory):
    async def store_article(category):
        await add_article(session_factory, 10, category=category, title="Final de la liga de baloncesto")

    ingestor = ReingestStub(on_ingest=store_article)

    result = await make_waterfall(session_factory, ingestor).search("baloncesto")

    assert ingestor.categories == ["deportes"]
    assert result.level == 2
    assert result.is_fresh is True
    assert result.data[0].category == "deportes"


@pytest.mark.asyncio
async def test_no_results_suggests_external_search(session_factory):
    result = await make_waterfall(session_factory).search("zzzz inexistente")

    assert result.success is True
    assert result.level == FALLBACK_LEVEL
    assert result.data == []
    assert result.suggestion.action_text == "Buscar en Google News"
    link = urlparse(result.suggestion.external_link)
    assert link.netloc == "news.google.com"
    params = parse_qs(link.query)
    assert params["q"] == ["zzzz inexistente"]
    assert params["hl"] == ["es"]
    assert params["gl"] == ["ES"]
    assert params["ceid"] == ["ES:es"]


@pytest.mark.asyncio
async def test_unmatched_query_reingests_general(session_factory):
    ingestor = ReingestStub()

    await make_waterfall(session_factory, ingestor).search("algo raro")

    assert ingestor.categories == ["general"]


@pytest.mark.asyncio
async def test_reingest_past_deadline_falls_back(session_factory):
    ingestor = ReingestStub(delay=1.0)

    result = await make_waterfall(session_factory, ingestor, deadline=0.05).search("fútbol")

    assert result.level == FALLBACK_LEVEL


@pytest.mark.asyncio
async def test_reingest_failure_falls_back(session_factory):
    async def explode(category):
        raise RuntimeError("feeds caídos")

    result = await make_waterfall(session_factory, ReingestStub(on_ingest=explode)).search("tenis")

    assert result.level == FALLBACK_LEVEL


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", " ", "a", "  b  "])
async def test_short_query_is_rejected(session_factory, query):
    with pytest.raises(ValidationException) as exc_info:
        await make_waterfall(session_factory).search(query)

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, 51])
async def test_limit_out_of_range_is_rejected(session_factory, limit):
    with pytest.raises(ValidationException):
        await make_waterfall(session_factory).search("liga", limit=limit)


@pytest.mark.asyncio
async def test_cached_result_skips_database(session_factory):
    cached = {"success": True, "query": "liga", "level": 1, "isFresh": False, "data": []}
    waterfall = make_waterfall(session_factory)

    with patch("app.services.search_waterfall.get_from_cache", AsyncMock(return_value=cached)), \
            patch.object(waterfall, "_local_search", AsyncMock()) as local_search:
        result = await waterfall.search("Liga")

    local_search.assert_not_awaited()
    assert result.level == 1
    assert result.query == "liga"


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["s_bida", "100%", "%%", "__"])
async def test_like_wildcards_are_matched_literally(session_factory, query):
    await add_article(session_factory, 1, title="Subida del 100 euros en la luz", description="Factura")

    result = await make_waterfall(session_factory).search(query)

    assert result.level == FALLBACK_LEVEL
    assert result.data == []


@pytest.mark.asyncio
async def test_percent_in_title_is_found(session_factory):
    await add_article(session_factory, 1, title="El IPC sube un 3,2% en marzo")
    await add_article(session_factory, 2, title="El IPC sube un 3,25 en abril")

    result = await make_waterfall(session_factory).search("3,2%")

    assert result.level == 1
    assert [a.title for a in result.data] == ["El IPC sube un 3,2% en marzo"]
