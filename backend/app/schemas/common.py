"""
공통 스키마 설정

API 본문은 camelCase 키를 사용합니다 (예: pageSize, newArticles).
파이썬 코드에서는 snake_case 필드명으로 접근하고, 입력은 두 형식 모두 허용합니다.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
