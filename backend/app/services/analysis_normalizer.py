"""
AI 분석 응답 정규화/검증

2단계로 처리합니다.
1. normalize(raw): 구버전 키/값을 현재 형식으로 변환 (등록된 매핑을 순서대로 적용)
2. validate(normalized): AnalysisPayload로 엄격하게 검증

구버전 매핑은 @legacy_mapping 으로 등록하며, 검증 스키마는 건드리지 않습니다.
"""
import copy
import logging
from typing import Any, Callable, Dict, List

from pydantic import ValidationError

from app.core.exceptions import MalformedResponseError
from app.schemas.analysis import AnalysisPayload

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 220
MAX_TOPICS = 3

LEGACY_VERDICTS: Dict[str, str] = {
    "Verified": "SupportedByArticle",
    "False": "NotSupportedByArticle",
    "Mixed": "InsufficientEvidenceInArticle",
    "Unproven": "InsufficientEvidenceInArticle",
}

LEGACY_LEANINGS: Dict[str, str] = {
    "otra": "indeterminada",
}

CURRENT_VERDICTS = ("SupportedByArticle", "NotSupportedByArticle", "InsufficientEvidenceInArticle")
SENTIMENTS = ("positive", "negative", "neutral")

# 대소문자 무시 verdict 조회표 (현재 값 + 구버전 값)
_VERDICT_LOOKUP: Dict[str, str] = {
    **{verdict.lower(): verdict for verdict in CURRENT_VERDICTS},
    **{legacy.lower(): current for legacy, current in LEGACY_VERDICTS.items()},
}

Mapping = Callable[[Dict[str, Any]], None]
LEGACY_MAPPINGS: List[Mapping] = []


def legacy_mapping(func: Mapping) -> Mapping:
    """정규화 매핑 등록 (등록 순서대로 실행)"""
    LEGACY_MAPPINGS.append(func)
    return func


def _pop_alias(data: Dict[str, Any], target: str, *aliases: str) -> None:
    if data.get(target) is not None:
        return
    for alias in aliases:
        if data.get(alias) is not None:
            data[target] = data.pop(alias)
            return


def _truncate(text: Any) -> Any:
    if isinstance(text, str) and len(text) > MAX_COMMENT_LENGTH:
        return text[: MAX_COMMENT_LENGTH - 3].rstrip() + "..."
    return text


@legacy_mapping
def _rename_legacy_keys(data: Dict[str, Any]) -> None:
    _pop_alias(data, "articleLeaning", "article_leaning", "biasLeaning", "bias_leaning")
    _pop_alias(data, "suggestedTopics", "suggested_topics", "mainTopics", "main_topics")
    _pop_alias(data, "factCheck", "fact_check")
    _pop_alias(data, "biasRaw", "bias_raw", "biasScore", "bias_score")
    _pop_alias(data, "biasScoreNormalized", "bias_score_normalized")


@legacy_mapping
def _map_legacy_verdict(data: Dict[str, Any]) -> None:
    fact_check = data.get("factCheck")
    if isinstance(fact_check, dict):
        verdict = fact_check.get("verdict")
        if isinstance(verdict, str):
            verdict = verdict.strip()
            fact_check["verdict"] = _VERDICT_LOOKUP.get(verdict.lower(), verdict)
        if "reasoning" in fact_check:
            fact_check["reasoning"] = _truncate(fact_check["reasoning"])


@legacy_mapping
def _map_legacy_leaning(data: Dict[str, Any]) -> None:
    leaning = data.get("articleLeaning")
    if isinstance(leaning, str):
        leaning = leaning.strip().lower()
        data["articleLeaning"] = LEGACY_LEANINGS.get(leaning, leaning)


@legacy_mapping
def _default_bias_raw(data: Dict[str, Any]) -> None:
    # biasRaw/biasScore 모두 없으면 중립(0)
    if data.get("biasRaw") is None:
        data["biasRaw"] = 0


@legacy_mapping
def _map_legacy_sentiment(data: Dict[str, Any]) -> None:
    """대소문자/공백 정리, 알 수 없는 값은 neutral"""
    sentiment = data.get("sentiment")
    if sentiment is None:
        return
    value = str(sentiment).strip().lower()
    data["sentiment"] = value if value in SENTIMENTS else "neutral"


@legacy_mapping
def _derive_normalized_bias(data: Dict[str, Any]) -> None:
    bias_raw = data.get("biasRaw")
    if data.get("biasScoreNormalized") is None and isinstance(bias_raw, (int, float)) and not isinstance(bias_raw, bool):
        data["biasScoreNormalized"] = round(min(abs(bias_raw), 10) / 10, 4)


@legacy_mapping
def _tidy_text(data: Dict[str, Any]) -> None:
    if isinstance(data.get("summary"), str):
        data["summary"] = data["summary"].strip()

    analysis = data.get("analysis")
    if isinstance(analysis, dict) and "explanation" in analysis:
        analysis["explanation"] = _truncate(analysis["explanation"])

    topics = data.get("suggestedTopics")
    if isinstance(topics, list):
        data["suggestedTopics"] = topics[:MAX_TOPICS]


def normalize(raw: Any) -> Dict[str, Any]:
    """
    구버전 응답을 현재 형식으로 변환 (입력은 변경하지 않음)

    Raises:
        MalformedResponseError: 응답이 JSON 객체가 아닌 경우
    """
    if not isinstance(raw, dict):
        raise MalformedResponseError(f"분석 응답이 객체가 아닙니다: {type(raw).__name__}", raw=raw)

    data = copy.deepcopy(raw)
    for mapping in LEGACY_MAPPINGS:
        mapping(data)
    return data


def validate(normalized: Dict[str, Any]) -> AnalysisPayload:
    """
    정규화된 응답 검증

    Raises:
        MalformedResponseError: 필수 필드 누락 또는 허용되지 않는 값
    """
    try:
        return AnalysisPayload.model_validate(normalized)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise MalformedResponseError(f"분석 응답 검증 실패: {fields}", raw=normalized) from e


def parse_analysis(raw: Any) -> AnalysisPayload:
    """normalize → validate"""
    return validate(normalize(raw))
