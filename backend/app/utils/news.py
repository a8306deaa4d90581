"""
뉴스 관련 유틸리티 함수
"""
import re
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urlencode

from bs4 import BeautifulSoup

from app.core.constants import (
    CATEGORY_ALIASES,
    DEFAULT_CATEGORY,
    DESCRIPTION_MAX_LENGTH,
    GOOGLE_NEWS_RSS_SEARCH_URL,
    GOOGLE_NEWS_SEARCH_URL,
    QUERY_CATEGORY_KEYWORDS,
    SOURCE_NAME_PATTERNS,
    VALID_CATEGORIES,
)

_WHITESPACE_RE = re.compile(r"\s+")


def utcnow() -> datetime:
    """현재 UTC 시각 (DB 저장용 naive datetime)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def clean_html_text(text: Optional[str], max_length: Optional[int] = DESCRIPTION_MAX_LENGTH) -> str:
    """
    HTML 태그를 제거하고 공백을 정리합니다.

    Args:
        text: HTML이 섞인 문자열
        max_length: 최대 길이 (초과 시 "..."로 잘라냄, None이면 자르지 않음)

    Returns:
        정리된 텍스트 (입력이 비어 있으면 빈 문자열)
    """
    if not text:
        return ""

    plain = BeautifulSoup(text, "html.parser").get_text(" ", strip=True)
    plain = _WHITESPACE_RE.sub(" ", plain).strip()

    if max_length is not None and len(plain) > max_length:
        plain = plain[: max_length - 3].rstrip() + "..."
    return plain


def normalize_category(category: Optional[str]) -> Optional[str]:
    """
    카테고리를 스페인어 표준값으로 변환

    영어 카테고리(business, sports 등)는 대응하는 스페인어 값으로 매핑합니다.
    알 수 없는 값이면 None을 반환합니다.
    """
    if not category:
        return None

    value = category.strip().lower()
    value = CATEGORY_ALIASES.get(value, value)
    if value in VALID_CATEGORIES:
        return value
    return None


def resolve_query_categories(query: str) -> List[str]:
    """
    검색어와 관련된 카테고리 추정

    키워드가 단어 단위로 포함된 카테고리를 모두 반환하며,
    매칭이 없으면 general 하나를 반환합니다.

    예: "resultados de la liga" -> ["deportes"]
    """
    lowered = query.lower()
    matched = []
    for category, keywords in QUERY_CATEGORY_KEYWORDS.items():
        for keyword in keywords:
            if re.search(rf"(?<!\w){re.escape(keyword)}(?!\w)", lowered):
                matched.append(category)
                break
    return matched or [DEFAULT_CATEGORY]


def source_name_from_url(url: str) -> str:
    """피드 URL로 매체 이름 추정 (모르면 'Unknown')"""
    for pattern, name in SOURCE_NAME_PATTERNS:
        if pattern in url:
            return name
    return "Unknown"


def _google_news_params(query: str) -> dict:
    return {"q": query, "hl": "es", "gl": "ES", "ceid": "ES:es"}


def build_external_search_link(query: str) -> str:
    """Google News 스페인어 검색 링크 생성"""
    params = urlencode(_google_news_params(query))
    return f"{GOOGLE_NEWS_SEARCH_URL}?{params}"


def build_local_news_feed_url(city: str) -> str:
    """
    지역 뉴스용 Google News 스페인어 RSS 검색 피드 URL 생성

    예: "Valencia" -> https://news.google.com/rss/search?q=noticias+locales+Valencia&hl=es&gl=ES&ceid=ES%3Aes
    """
    params = urlencode(_google_news_params(f"noticias locales {city.strip()}"))
    return f"{GOOGLE_NEWS_RSS_SEARCH_URL}?{params}"
