"""
검색 관련 Pydantic 스키마

level:
- 1: 로컬 저장소에서 바로 찾음
- 2: 관련 카테고리를 즉시 재수집한 뒤 찾음 (isFresh=true)
- "fallback": 결과 없음, 외부 검색 링크 제안
"""
from typing import List, Literal, Optional, Union

from pydantic import Field

from app.schemas.article import ArticleResponse
from app.schemas.common import CamelModel


class Suggestion(CamelModel):
    """결과가 없을 때의 안내"""
    message: str
    action_text: str
    external_link: str


class SearchResult(CamelModel):
    """검색 응답"""
    success: bool = True
    query: str
    level: Union[Literal[1, 2], Literal["fallback"]]
    is_fresh: bool = False
    data: List[ArticleResponse] = Field(default_factory=list)
    suggestion: Optional[Suggestion] = None
