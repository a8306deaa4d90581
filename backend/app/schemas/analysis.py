"""
AI 분석 관련 Pydantic 스키마

AnalysisPayload는 정규화(normalize)를 거친 AI 응답을 엄격하게 검증합니다.
허용 목록에 없는 값(예: 임의의 verdict 문자열)은 ValidationError가 됩니다.
구버전 값 변환은 app.services.analysis_normalizer 에서만 처리합니다.
"""
from typing import Dict, List, Literal, Optional

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.constants import DEFAULT_ANALYSIS_LIMIT
from app.schemas.common import CamelModel

FactCheckVerdict = Literal[
    "SupportedByArticle",
    "NotSupportedByArticle",
    "InsufficientEvidenceInArticle",
]
ArticleLeaning = Literal["progresista", "conservadora", "extremista", "neutral", "indeterminada"]
FactualityStatus = Literal["no_determinable", "plausible_but_unverified"]
Sentiment = Literal["positive", "negative", "neutral"]


class StrictCamelModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class FactCheck(StrictCamelModel):
    claims: List[str] = Field(default_factory=list)
    verdict: FactCheckVerdict
    reasoning: str = ""


class BiasAnalysis(StrictCamelModel):
    bias_type: Optional[str] = None
    explanation: Optional[str] = None


class AnalysisPayload(StrictCamelModel):
    """검증된 AI 분석 결과"""
    internal_reasoning: Optional[str] = None
    summary: str = Field(..., min_length=1)
    category: Optional[str] = None
    bias_raw: float = Field(..., ge=-10, le=10)
    bias_score_normalized: float = Field(..., ge=0, le=1)
    reliability_score: Optional[float] = Field(None, ge=0, le=100)
    traceability_score: Optional[float] = Field(None, ge=0, le=100)
    factuality_status: FactualityStatus = "no_determinable"
    evidence_needed: List[str] = Field(default_factory=list)
    should_escalate: bool = False
    analysis: Optional[BiasAnalysis] = None
    suggested_topics: List[str] = Field(default_factory=list, max_length=3)
    bias_indicators: List[str] = Field(default_factory=list)
    clickbait_score: Optional[float] = Field(None, ge=0, le=100)
    sentiment: Optional[Sentiment] = None
    fact_check: Optional[FactCheck] = None
    article_leaning: ArticleLeaning = "indeterminada"


class AnalyzeBatchRequest(CamelModel):
    """배치 분석 요청 (limit 범위 1~100은 서비스에서 검증, 위반 시 400)"""
    limit: int = Field(DEFAULT_ANALYSIS_LIMIT, description="분석할 최대 기사 수 (1~100)")


class AnalysisFailure(CamelModel):
    article_id: str
    reason: str


class AnalysisItemResult(CamelModel):
    article_id: str
    success: bool
    error: Optional[str] = None


class AnalysisOutcome(CamelModel):
    """배치 분석 결과"""
    processed: int = 0
    successful: int = 0
    failed: int = 0
    failures: List[AnalysisFailure] = Field(default_factory=list)
    results: List[AnalysisItemResult] = Field(default_factory=list)
    cost_eur: float = 0.0


class AnalysisStats(CamelModel):
    """분석 통계"""
    total: int
    analyzed: int
    pending: int
    percent_analyzed: float
    bias_distribution: Dict[str, int]


class AnalyzeBatchResponse(CamelModel):
    success: bool = True
    message: str
    data: AnalysisOutcome


class AnalysisStatsResponse(CamelModel):
    success: bool = True
    data: AnalysisStats
