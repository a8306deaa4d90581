"""AI 분석 응답 정규화/검증 테스트"""
import pytest

from app.core.exceptions import MalformedResponseError
from app.services.ai_service import extract_json
from app.services.analysis_normalizer import normalize, parse_analysis, validate
from conftest import valid_analysis


def test_valid_response_passes():
    payload = parse_analysis(valid_analysis())

    assert payload.summary == "Resumen neutral de la noticia."
    assert payload.bias_raw == -4
    assert payload.bias_score_normalized == 0.4
    assert payload.article_leaning == "progresista"
    assert payload.fact_check.verdict == "SupportedByArticle"


def test_legacy_verdict_is_mapped():
    raw = valid_analysis(factCheck={"claims": [], "verdict": "Verified", "reasoning": "ok"})

    payload = parse_analysis(raw)

    assert payload.fact_check.verdict == "SupportedByArticle"


@pytest.mark.parametrize("legacy, current", [
    ("False", "NotSupportedByArticle"),
    ("Mixed", "InsufficientEvidenceInArticle"),
    ("Unproven", "InsufficientEvidenceInArticle"),
])
def test_other_legacy_verdicts(legacy, current):
    raw = valid_analysis(factCheck={"verdict": legacy})

    assert parse_analysis(raw).fact_check.verdict == current


def test_arbitrary_verdict_is_rejected():
    raw = valid_analysis(factCheck={"claims": [], "verdict": "Probablemente cierto"})

    with pytest.raises(MalformedResponseError) as exc_info:
        parse_analysis(raw)

    assert "factCheck" in str(exc_info.value) or "fact_check" in str(exc_info.value)


def test_legacy_leaning_otra_becomes_indeterminada():
    payload = parse_analysis(valid_analysis(articleLeaning="otra"))

    assert payload.article_leaning == "indeterminada"


def test_unknown_leaning_is_rejected():
    with pytest.raises(MalformedResponseError):
        parse_analysis(valid_analysis(articleLeaning="centrista radical"))


def test_legacy_bias_score_key_is_renamed():
    raw = valid_analysis()
    del raw["biasRaw"]
    raw["biasScore"] = 6

    normalized = normalize(raw)
    payload = validate(normalized)

    assert "biasScore" not in normalized
    assert payload.bias_raw == 6
    assert payload.bias_score_normalized == 0.6


def test_missing_bias_defaults_to_neutral():
    raw = valid_analysis()
    del raw["biasRaw"]

    payload = parse_analysis(raw)

    assert payload.bias_raw == 0
    assert payload.bias_score_normalized == 0


@pytest.mark.parametrize("raw_sentiment, expected", [
    ("Positive", "positive"),
    (" NEGATIVE ", "negative"),
    ("mixed", "neutral"),
])
def test_sentiment_is_case_folded(raw_sentiment, expected):
    assert parse_analysis(valid_analysis(sentiment=raw_sentiment)).sentiment == expected


def test_verdict_case_and_whitespace_are_tolerated():
    raw = valid_analysis(factCheck={"verdict": " supportedbyarticle "}, articleLeaning=" Conservadora")

    payload = parse_analysis(raw)

    assert payload.fact_check.verdict == "SupportedByArticle"
    assert payload.article_leaning == "conservadora"


def test_normalize_does_not_mutate_input():
    raw = valid_analysis(factCheck={"verdict": "Verified"})

    normalize(raw)

    assert raw["factCheck"]["verdict"] == "Verified"


def test_missing_summary_fails():
    raw = valid_analysis()
    del raw["summary"]

    with pytest.raises(MalformedResponseError):
        parse_analysis(raw)


def test_bias_out_of_range_fails():
    with pytest.raises(MalformedResponseError):
        parse_analysis(valid_analysis(biasRaw=14))


@pytest.mark.parametrize("raw", [None, "texto", ["lista"], 42])
def test_non_object_response_fails(raw):
    with pytest.raises(MalformedResponseError):
        parse_analysis(raw)


def test_topics_are_trimmed_to_three():
    payload = parse_analysis(valid_analysis(suggestedTopics=["a", "b", "c", "d", "e"]))

    assert payload.suggested_topics == ["a", "b", "c"]


def test_long_explanation_is_truncated():
    raw = valid_analysis(analysis={"biasType": "encuadre", "explanation": "x" * 500})

    payload = parse_analysis(raw)

    assert len(payload.analysis.explanation) <= 220
    assert payload.analysis.explanation.endswith("...")


def test_extract_json_strips_code_fence():
    text = 'Aquí está:\n```json\n{"summary": "Hola", "biasRaw": 0}\n```'

    assert extract_json(text) == {"summary": "Hola", "biasRaw": 0}


def test_extract_json_without_object_fails():
    with pytest.raises(MalformedResponseError):
        extract_json("no hay json aquí")
