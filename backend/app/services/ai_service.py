"""
AI 서비스

Gemini REST API로 기사 편향/요약 분석을 요청합니다.
응답 JSON은 그대로 반환하며, 정규화/검증은 analysis_normalizer에서 합니다.
"""
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
import orjson

from app.core.config import settings
from app.core.exceptions import ExternalAPIException, MalformedResponseError

logger = logging.getLogger(__name__)

# ===== 요청 설정 =====
HTTP_TIMEOUT = 40.0
HTTP_CONNECT_TIMEOUT = 5.0
ANALYSIS_TEMPERATURE = 0.2
ANALYSIS_MAX_TOKENS = 2048
MIN_CONTENT_LENGTH = 50
ANALYSIS_HEAD_CHARS = 3000
ANALYSIS_TAIL_CHARS = 2000

# 기사 본문에 섞인 프롬프트 주입 문구 무력화
PROMPT_INJECTION_PATTERNS = [
    re.compile(r"ignore\s+(all\s+)?previous\s+instructions?", re.I),
    re.compile(r"disregard\s+(all\s+)?previous\s+instructions?", re.I),
    re.compile(r"follow\s+these\s+new\s+instructions", re.I),
    re.compile(r"system\s+prompt", re.I),
    re.compile(r"developer\s+message", re.I),
]

_CODE_FENCE_RE = re.compile(r"```(?:json)?", re.I)
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

ANALYSIS_PROMPT = """Eres un analista de medios. Analiza la noticia y responde SOLO con un objeto JSON válido.

Campos obligatorios:
- "summary": resumen neutral en español (máximo 60 palabras)
- "biasRaw": número entre -10 (izquierda) y 10 (derecha), 0 = neutral
- "articleLeaning": "progresista" | "conservadora" | "extremista" | "neutral" | "indeterminada"
- "reliabilityScore": 0-100, "traceabilityScore": 0-100, "clickbaitScore": 0-100
- "factualityStatus": "no_determinable" | "plausible_but_unverified"
- "sentiment": "positive" | "negative" | "neutral"
- "suggestedTopics": máximo 3 temas
- "biasIndicators": lista de frases o recursos que indican sesgo
- "analysis": {{"biasType": "...", "explanation": "máximo 220 caracteres"}}
- "factCheck": {{"claims": [...], "verdict": "SupportedByArticle" | "NotSupportedByArticle" | "InsufficientEvidenceInArticle", "reasoning": "..."}}

Fuente: {source}
Título: {title}
Contenido:
{content}
"""


@dataclass
class AIAnalysisResponse:
    """Gemini 응답 (JSON 파싱 결과 + 토큰 사용량)"""
    raw: Any
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


def sanitize_input(text: Optional[str]) -> str:
    if not text:
        return ""
    for pattern in PROMPT_INJECTION_PATTERNS:
        text = pattern.sub("[filtered]", text)
    return text


def select_content(content: str) -> str:
    """긴 본문은 앞/뒤 일부만 사용 (토큰 절약)"""
    if len(content) <= ANALYSIS_HEAD_CHARS + ANALYSIS_TAIL_CHARS:
        return content
    return f"{content[:ANALYSIS_HEAD_CHARS]}\n[...]\n{content[-ANALYSIS_TAIL_CHARS:]}"


def extract_json(text: str) -> Any:
    """
    모델 출력에서 JSON 객체 추출

    ```json 코드 블록이나 앞뒤 설명 문장이 붙어 있어도 첫 '{' ~ 마지막 '}' 구간을 파싱합니다.

    Raises:
        MalformedResponseError: JSON 객체를 찾지 못하거나 파싱 실패
    """
    cleaned = _CODE_FENCE_RE.sub("", text or "").strip()
    match = _JSON_OBJECT_RE.search(cleaned)
    if not match:
        raise MalformedResponseError("AI 응답에서 JSON 객체를 찾을 수 없습니다.", raw=text)
    try:
        return orjson.loads(match.group(0))
    except orjson.JSONDecodeError as e:
        raise MalformedResponseError(f"AI 응답 JSON 파싱 실패: {e}", raw=text) from e


class AIService:
    """
    AI 서비스 클래스

    Args:
        api_key: Gemini API 키 (없으면 settings.GEMINI_API_KEY)
        client: 재사용할 httpx.AsyncClient (테스트에서 MockTransport 주입용)

    Raises:
        ValueError: API 키가 설정되지 않은 경우
    """

    def __init__(self, api_key: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key or settings.GEMINI_API_KEY
        self.base_url = settings.GEMINI_BASE_URL
        self.model = settings.GEMINI_MODEL
        self._client = client

        if not self.api_key:
            raise ValueError("GEMINI_API_KEY가 설정되지 않았습니다. .env 파일에 GEMINI_API_KEY를 추가하세요.")

    def build_prompt(self, title: str, content: str, source: str) -> str:
        return ANALYSIS_PROMPT.format(
            source=sanitize_input(source),
            title=sanitize_input(title),
            content=select_content(sanitize_input(content)),
        )

    async def analyze_article(self, title: str, content: str, source: str) -> AIAnalysisResponse:
        """
        기사 분석 요청

        Args:
            title: 제목
            content: 분석할 텍스트 (제목 + 요약문 + 본문)
            source: 매체 이름

        Returns:
            AIAnalysisResponse (raw는 정규화 전 JSON)

        Raises:
            ExternalAPIException: API 호출 실패
            MalformedResponseError: 응답에서 JSON을 추출할 수 없음
        """
        if not content or len(content.strip()) < MIN_CONTENT_LENGTH:
            raise ExternalAPIException("분석하기에 내용이 너무 짧습니다.")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        body: Dict[str, Any] = {
            "contents": [{"parts": [{"text": self.build_prompt(title, content, source)}]}],
            "generationConfig": {
                "temperature": ANALYSIS_TEMPERATURE,
                "maxOutputTokens": ANALYSIS_MAX_TOKENS,
                "responseMimeType": "application/json",
            },
        }

        started = time.time()
        data = await self._post(url, body)
        duration = time.time() - started

        text = self._extract_text(data)
        usage = data.get("usageMetadata") or {}
        response = AIAnalysisResponse(
            raw=extract_json(text),
            prompt_tokens=int(usage.get("promptTokenCount") or 0),
            completion_tokens=int(usage.get("candidatesTokenCount") or 0),
        )
        logger.info(
            f"[AI_SERVICE] 분석 완료 - {duration:.2f}초, 토큰 {response.total_tokens}"
        )
        return response

    async def _post(self, url: str, body: Dict[str, Any]) -> Dict[str, Any]:
        timeout = httpx.Timeout(HTTP_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT)
        params = {"key": self.api_key}

        try:
            if self._client is not None:
                response = await self._client.post(url, params=params, json=body, timeout=timeout)
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(url, params=params, json=body)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code == 429:
                raise ExternalAPIException("Gemini API 할당량 초과 (429)") from e
            if status_code in (401, 403):
                raise ExternalAPIException("Gemini API 접근 권한이 없습니다. API 키를 확인하세요.") from e
            if status_code == 404:
                raise ExternalAPIException(f"Gemini 모델을 찾을 수 없습니다: {self.model}") from e
            raise ExternalAPIException(f"Gemini API 호출 실패 ({status_code}): {e.response.text[:200]}") from e
        except httpx.HTTPError as e:
            logger.error(f"[AI_SERVICE] 네트워크 오류: {type(e).__name__}: {e}")
            raise ExternalAPIException(f"Gemini API 네트워크 오류: {type(e).__name__}") from e
        except ValueError as e:
            raise MalformedResponseError(f"Gemini 응답이 JSON이 아닙니다: {e}") from e

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback") or {}
            raise MalformedResponseError(f"AI 응답에 후보가 없습니다: {feedback.get('blockReason', 'unknown')}", raw=data)

        candidate = candidates[0]
        if candidate.get("finishReason") == "MAX_TOKENS":
            logger.warning("[AI_SERVICE] 응답이 최대 토큰에서 잘렸습니다")

        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text.strip():
            raise MalformedResponseError("AI 응답에서 텍스트를 추출할 수 없습니다.", raw=data)
        return text
