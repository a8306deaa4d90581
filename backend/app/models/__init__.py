"""
모든 모델을 한 곳에서 import

Base.metadata.create_all 이 모든 테이블을 인식하도록 합니다.
"""
from app.models.article import Article
from app.models.source import Source
from app.models.ingest_metadata import IngestMetadata

__all__ = [
    "Article",
    "Source",
    "IngestMetadata",
]
