"""
RSS 피드 점검 스크립트

기본 RSS 소스를 실제로 호출해서 파싱 결과를 출력합니다 (DB 저장 없음).

사용 방법:
    cd backend && python -m scripts.test_feeds
    cd backend && python -m scripts.test_feeds deportes
"""
import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace

backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from app.core.constants import DEFAULT_RSS_SOURCES  # noqa: E402
from app.services.feed_fetcher import feed_fetcher  # noqa: E402
from app.utils.fanout import settle_all  # noqa: E402
from app.utils.news import source_name_from_url  # noqa: E402


async def check_category(category: str) -> None:
    print("\n" + "=" * 60)
    print(f"[RSS] {category}")
    print("=" * 60)

    sources = [
        SimpleNamespace(name=source_name_from_url(url), feed_url=url)
        for url in DEFAULT_RSS_SOURCES.get(category, [])
    ]
    results = await settle_all(sources, feed_fetcher.fetch_feed, concurrency=5)

    for result in results:
        if result.ok:
            latest = result.value[0].title if result.value else "-"
            print(f"[OK]   {result.item.name:<18} {len(result.value):>3}건 | {latest[:60]}")
        else:
            print(f"[FAIL] {result.item.name:<18} {result.error}")


async def main(categories):
    for category in categories:
        await check_category(category)


if __name__ == "__main__":
    selected = sys.argv[1:] or list(DEFAULT_RSS_SOURCES.keys())
    asyncio.run(main(selected))
