"""
피드 수집 서비스

1. fetch_feed: RSS/Atom 피드 하나를 가져와 RawItem 목록으로 변환
   - 네트워크 오류/타임아웃/HTTP 오류/파싱 불가 → FeedUnreachableError
   - 재시도하지 않음 (호출자가 소스 단위로 실패를 집계)
2. extract_page_metadata: 기사 페이지의 미리보기 이미지 등 추출
   - 어떤 실패도 예외로 올리지 않고 빈 PageMetadata 반환
"""
import asyncio
import logging
import time
from datetime import datetime
from typing import Any, List, NamedTuple, Optional, Protocol
from urllib.parse import urljoin, urlparse

import feedparser
import httpx
from bs4 import BeautifulSoup

from app.core.config import settings
from app.core.exceptions import FeedUnreachableError
from app.schemas.article import PageMetadata, RawItem
from app.utils.news import clean_html_text, source_name_from_url, utcnow

logger = logging.getLogger(__name__)

# ===== HTTP 설정 =====
HTTP_CONNECT_TIMEOUT = 5.0
FEED_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; NoticiasBot/1.0; +https://news.google.com)",
    "Accept": "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8",
    "Accept-Language": "es-ES,es;q=0.9,en;q=0.7",
}
METADATA_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; NoticiasBot/1.0; +https://news.google.com)",
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
}

# 컬럼 길이 (models.Article)
MAX_URL_LENGTH = 2048
MAX_TITLE_LENGTH = 500
MAX_AUTHOR_LENGTH = 255

# 메타 태그 우선순위
IMAGE_META_KEYS = ("og:image", "og:image:secure_url", "twitter:image", "twitter:image:src")
TITLE_META_KEYS = ("og:title", "twitter:title")
DESCRIPTION_META_KEYS = ("og:description", "twitter:description", "description")


class FeedSource(Protocol):
    """fetch_feed가 필요로 하는 소스 속성 (models.Source 호환)"""
    name: str
    feed_url: str


class QueryFeedSource(NamedTuple):
    """DB에 없는 검색 피드 (지역 뉴스)"""
    name: str
    feed_url: str


class FeedFetcher:
    """
    RSS 피드 / 기사 메타데이터 수집기

    Args:
        client: 재사용할 httpx.AsyncClient (없으면 호출마다 생성, 리다이렉트 상한은 항상 적용)
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        if client is not None:
            client.max_redirects = settings.MAX_REDIRECTS
        self._client = client
        # 요청 전체(연결~본문 수신) 상한
        self.feed_deadline = settings.FEED_FETCH_TIMEOUT
        self.metadata_deadline = settings.METADATA_FETCH_TIMEOUT
        self.feed_timeout = httpx.Timeout(settings.FEED_FETCH_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT)
        self.metadata_timeout = httpx.Timeout(settings.METADATA_FETCH_TIMEOUT)

    async def _get(self, url: str, *, headers: dict, timeout: httpx.Timeout) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, headers=headers, timeout=timeout, follow_redirects=True)

        async with httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            max_redirects=settings.MAX_REDIRECTS,
        ) as client:
            return await client.get(url, headers=headers)

    async def fetch_feed(self, source: FeedSource) -> List[RawItem]:
        """
        피드 하나를 가져와 파싱합니다.

        Args:
            source: name, feed_url 속성을 가진 소스

        Returns:
            RawItem 목록 (링크가 없는 항목은 제외)

        Raises:
            FeedUnreachableError: 네트워크/HTTP/파싱 실패
        """
        url = source.feed_url
        started = time.time()

        try:
            response = await asyncio.wait_for(
                self._get(url, headers=FEED_HEADERS, timeout=self.feed_timeout),
                timeout=self.feed_deadline,
            )
            response.raise_for_status()
        except asyncio.TimeoutError as e:
            raise FeedUnreachableError(url, f"timeout: {self.feed_deadline}초 초과") from e
        except httpx.TimeoutException as e:
            raise FeedUnreachableError(url, f"timeout: {type(e).__name__}") from e
        except httpx.HTTPStatusError as e:
            raise FeedUnreachableError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FeedUnreachableError(url, f"{type(e).__name__}: {e}") from e

        parsed = feedparser.parse(response.content)
        if parsed.bozo and not parsed.entries:
            reason = getattr(parsed, "bozo_exception", None) or "unparseable feed"
            raise FeedUnreachableError(url, f"parse error: {reason}")

        items: List[RawItem] = []
        for entry in parsed.entries:
            item = self._parse_entry(entry, source)
            if item is not None:
                items.append(item)

        logger.info(
            f"📥 피드 수집 완료: {source.name} - {len(items)}건 ({time.time() - started:.2f}초)"
        )
        return items

    def _parse_entry(self, entry: Any, source: FeedSource) -> Optional[RawItem]:
        link = (entry.get("link") or "").strip()
        if not link:
            return None
        if len(link) > MAX_URL_LENGTH:
            logger.warning(f"⚠️ 링크가 너무 길어 제외: {source.name} - {link[:80]}...")
            return None

        title = clean_html_text(entry.get("title"), max_length=MAX_TITLE_LENGTH) or link[:MAX_TITLE_LENGTH]
        raw_description = entry.get("summary") or entry.get("description") or ""

        content = None
        if entry.get("content"):
            content = clean_html_text(entry.content[0].get("value"), max_length=None) or None

        image_url = self._extract_entry_image(entry, raw_description)
        if image_url and len(image_url) > MAX_URL_LENGTH:
            image_url = None

        return RawItem(
            title=title,
            link=link,
            published_at=self._parse_published(entry),
            description=clean_html_text(raw_description),
            content=content,
            image_url=image_url,
            author=clean_html_text(entry.get("author"), max_length=MAX_AUTHOR_LENGTH) or None,
            source=source.name or source_name_from_url(source.feed_url),
        )

    @staticmethod
    def _parse_published(entry: Any) -> datetime:
        # feedparser가 UTC struct_time으로 변환해 둠
        parsed_time = entry.get("published_parsed") or entry.get("updated_parsed")
        if parsed_time:
            try:
                return datetime(*parsed_time[:6])
            except (TypeError, ValueError):
                pass
        return utcnow()

    @staticmethod
    def _extract_entry_image(entry: Any, raw_description: str) -> Optional[str]:
        """enclosure(image/*) → media:content → media:thumbnail → 본문 첫 <img>"""
        for enclosure in entry.get("enclosures", []) or []:
            if (enclosure.get("type") or "").startswith("image/") and enclosure.get("href"):
                return enclosure["href"]

        for media in entry.get("media_content", []) or []:
            media_type = media.get("type") or media.get("medium") or ""
            if media.get("url") and ("image" in media_type or not media_type):
                return media["url"]

        for thumbnail in entry.get("media_thumbnail", []) or []:
            if thumbnail.get("url"):
                return thumbnail["url"]

        if raw_description and "<img" in raw_description:
            img = BeautifulSoup(raw_description, "html.parser").find("img")
            if img and img.get("src"):
                return img["src"]

        return None

    async def extract_page_metadata(self, url: str) -> PageMetadata:
        """
        기사 페이지 메타데이터 추출 (미리보기 이미지 우선)

        이미지 우선순위: og:image → og:image:secure_url → twitter:image → 없음
        상대 경로/프로토콜 생략 URL은 절대 URL로 변환합니다.

        Returns:
            PageMetadata (실패 시 모든 필드 None)
        """
        parsed_url = urlparse(url or "")
        if parsed_url.scheme not in ("http", "https") or not parsed_url.netloc:
            logger.warning(f"⚠️ 메타데이터 추출 건너뜀 - 잘못된 URL: {url}")
            return PageMetadata()

        try:
            response = await asyncio.wait_for(
                self._get(url, headers=METADATA_HEADERS, timeout=self.metadata_timeout),
                timeout=self.metadata_deadline,
            )
            response.raise_for_status()
            soup = BeautifulSoup(response.text, "html.parser")
        except Exception as e:
            logger.warning(f"⚠️ 메타데이터 추출 실패 ({url}): {type(e).__name__}")
            return PageMetadata()

        base_url = str(response.url)
        image = self._find_meta(soup, IMAGE_META_KEYS)

        title = self._find_meta(soup, TITLE_META_KEYS)
        if not title and soup.title and soup.title.string:
            title = soup.title.string.strip()

        if image:
            image = self._absolute_url(image, base_url)
            if len(image) > MAX_URL_LENGTH:
                image = None

        return PageMetadata(
            image=image,
            title=title,
            description=self._find_meta(soup, DESCRIPTION_META_KEYS),
        )

    @staticmethod
    def _find_meta(soup: BeautifulSoup, keys: tuple) -> Optional[str]:
        for key in keys:
            tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
            if tag and tag.get("content"):
                return tag["content"].strip()
        return None

    @staticmethod
    def _absolute_url(value: str, base_url: str) -> str:
        if value.startswith("//"):
            return f"https:{value}"
        return urljoin(base_url, value)


# 싱글톤 인스턴스
feed_fetcher = FeedFetcher()
