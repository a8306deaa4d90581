"""피드 수집기 테스트 (httpx.MockTransport)"""
import asyncio
from datetime import datetime
from types import SimpleNamespace

import httpx
import pytest

from app.core.exceptions import FeedUnreachableError
from app.services.feed_fetcher import FeedFetcher

FEED_URL = "https://feeds.example.es/portada.xml"

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Portada</title>
    <item>
      <title>El Congreso aprueba los presupuestos</title>
      <link>https://example.es/presupuestos</link>
      <pubDate>Sun, 01 Mar 2026 10:00:00 +0100</pubDate>
      <description><![CDATA[<p>La votación salió adelante <b>por la mínima</b>.</p>]]></description>
      <content:encoded><![CDATA[<p>Texto completo del artículo.</p>]]></content:encoded>
      <enclosure url="https://img.example.es/congreso.jpg" type="image/jpeg" length="1000"/>
      <author>redaccion@example.es (Redacción)</author>
    </item>
    <item>
      <title>Nueva misión espacial</title>
      <link>https://example.es/espacio</link>
      <pubDate>Sun, 01 Mar 2026 08:00:00 GMT</pubDate>
      <description>Lanzamiento previsto.</description>
      <media:content url="https://img.example.es/cohete.jpg" medium="image"/>
    </item>
    <item>
      <title>Galería</title>
      <link>https://example.es/galeria</link>
      <pubDate>Sat, 28 Feb 2026 20:00:00 GMT</pubDate>
      <description><![CDATA[<img src="https://img.example.es/galeria.png"/> Fotos del día]]></description>
    </item>
    <item>
      <title>Sin enlace</title>
      <description>Se descarta</description>
    </item>
  </channel>
</rss>
"""


def make_fetcher(handler) -> FeedFetcher:
    return FeedFetcher(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def source(url=FEED_URL, name="El Diario"):
    return SimpleNamespace(name=name, feed_url=url)


@pytest.mark.asyncio
async def test_rss_items_are_parsed():
    fetcher = make_fetcher(lambda request: httpx.Response(200, content=RSS.encode("utf-8")))

    items = await fetcher.fetch_feed(source())

    assert [item.link for item in items] == [
        "https://example.es/presupuestos",
        "https://example.es/espacio",
        "https://example.es/galeria",
    ]
    first = items[0]
    assert first.title == "El Congreso aprueba los presupuestos"
    assert first.description.startswith("La votación salió adelante")
    assert "<" not in first.description
    assert first.content == "Texto completo del artículo."
    assert first.published_at == datetime(2026, 3, 1, 9, 0, 0)
    assert first.image_url == "https://img.example.es/congreso.jpg"
    assert first.source == "El Diario"


@pytest.mark.asyncio
async def test_image_fallbacks():
    fetcher = make_fetcher(lambda request: httpx.Response(200, content=RSS.encode("utf-8")))

    items = await fetcher.fetch_feed(source())

    assert items[1].image_url == "https://img.example.es/cohete.jpg"
    assert items[2].image_url == "https://img.example.es/galeria.png"
    assert "<img" not in items[2].description


@pytest.mark.asyncio
async def test_http_error_raises_feed_unreachable():
    fetcher = make_fetcher(lambda request: httpx.Response(500))

    with pytest.raises(FeedUnreachableError) as exc_info:
        await fetcher.fetch_feed(source())

    assert exc_info.value.url == FEED_URL
    assert "HTTP 500" in str(exc_info.value)


@pytest.mark.asyncio
async def test_connection_error_raises_feed_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FeedUnreachableError):
        await make_fetcher(handler).fetch_feed(source())


@pytest.mark.asyncio
async def test_timeout_raises_feed_unreachable():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(FeedUnreachableError) as exc_info:
        await make_fetcher(handler).fetch_feed(source())

    assert "timeout" in str(exc_info.value)


@pytest.mark.asyncio
async def test_unparseable_body_raises_feed_unreachable():
    fetcher = make_fetcher(lambda request: httpx.Response(200, content=b"esto no es un feed <<< &&"))

    with pytest.raises(FeedUnreachableError):
        await fetcher.fetch_feed(source())


@pytest.mark.asyncio
async def test_page_metadata_prefers_og_image():
    html = """<html><head>
        <meta name="twitter:image" content="https://img.example.es/tw.jpg">
        <meta property="og:image" content="https://img.example.es/og.jpg">
        <meta property="og:title" content="Titular OG">
        <title>Titular HTML</title>
    </head><body></body></html>"""
    fetcher = make_fetcher(lambda request: httpx.Response(200, text=html))

    metadata = await fetcher.extract_page_metadata("https://example.es/articulo")

    assert metadata.image == "https://img.example.es/og.jpg"
    assert metadata.title == "Titular OG"


@pytest.mark.asyncio
async def test_page_metadata_falls_back_to_twitter_image():
    html = '<html><head><meta name="twitter:image" content="https://img.example.es/tw.jpg"></head></html>'
    fetcher = make_fetcher(lambda request: httpx.Response(200, text=html))

    metadata = await fetcher.extract_page_metadata("https://example.es/articulo")

    assert metadata.image == "https://img.example.es/tw.jpg"


@pytest.mark.asyncio
async def test_protocol_relative_and_relative_images_become_absolute():
    protocol_relative = '<meta property="og:image" content="//cdn.example.es/a.jpg">'
    relative = '<meta property="og:image" content="/img/b.jpg">'

    first = await make_fetcher(lambda request: httpx.Response(200, text=protocol_relative)) \
        .extract_page_metadata("https://example.es/articulo")
    second = await make_fetcher(lambda request: httpx.Response(200, text=relative)) \
        .extract_page_metadata("https://example.es/seccion/articulo")

    assert first.image == "https://cdn.example.es/a.jpg"
    assert second.image == "https://example.es/img/b.jpg"


@pytest.mark.asyncio
async def test_page_metadata_failure_returns_empty():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    metadata = await make_fetcher(handler).extract_page_metadata("https://example.es/articulo")

    assert metadata.image is None
    assert metadata.title is None


@pytest.mark.asyncio
async def test_page_metadata_rejects_non_http_url():
    def handler(request):
        raise AssertionError("요청이 나가면 안 됨")

    metadata = await make_fetcher(handler).extract_page_metadata("ftp://example.es/archivo")

    assert metadata.image is None


def redirect_chain(hops: int):
    """/r/0 → /r/1 → ... → /r/{hops} (마지막만 og:image가 있는 HTML)"""
    html = '<meta property="og:image" content="https://img.example.es/final.jpg">'

    def handler(request):
        step = int(request.url.path.rsplit("/", 1)[-1])
        if step < hops:
            return httpx.Response(302, headers={"Location": f"https://example.es/r/{step + 1}"})
        return httpx.Response(200, text=html)

    return handler


@pytest.mark.asyncio
async def test_redirects_within_limit_are_followed():
    metadata = await make_fetcher(redirect_chain(3)).extract_page_metadata("https://example.es/r/0")

    assert metadata.image == "https://img.example.es/final.jpg"


@pytest.mark.asyncio
async def test_too_many_redirects_on_injected_client_gives_empty_metadata():
    metadata = await make_fetcher(redirect_chain(8)).extract_page_metadata("https://example.es/r/0")

    assert metadata.image is None


@pytest.mark.asyncio
async def test_slow_feed_hits_hard_deadline():
    async def handler(request):
        await asyncio.sleep(1.0)
        return httpx.Response(200, content=RSS.encode("utf-8"))

    fetcher = make_fetcher(handler)
    fetcher.feed_deadline = 0.05

    with pytest.raises(FeedUnreachableError) as exc_info:
        await fetcher.fetch_feed(source())

    assert "timeout" in str(exc_info.value)


LONG_FIELDS_RSS = f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Portada</title>
    <item>
      <title>Firma muy larga</title>
      <link>https://example.es/firma</link>
      <pubDate>Sun, 01 Mar 2026 10:00:00 GMT</pubDate>
      <author>{"Redacción " * 40}</author>
    </item>
    <item>
      <title>Enlace enorme</title>
      <link>https://example.es/{"a" * 2100}</link>
      <pubDate>Sun, 01 Mar 2026 09:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""


@pytest.mark.asyncio
async def test_oversized_fields_fit_article_columns():
    fetcher = make_fetcher(lambda request: httpx.Response(200, content=LONG_FIELDS_RSS.encode("utf-8")))

    items = await fetcher.fetch_feed(source())

    assert [item.link for item in items] == ["https://example.es/firma"]
    assert items[0].author.startswith("Redacción")
    assert len(items[0].author) <= 255
