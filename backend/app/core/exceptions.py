"""
커스텀 예외

1. HTTP 예외 (HTTPException 상속)
   - 응답 본문: {"detail": {"code": ..., "message": ...}}
   - 엔드포인트/의존성에서 raise하면 main.py의 핸들러가 그대로 응답

2. 파이프라인 예외 (Exception 상속)
   - 서비스 계층 내부에서 발생하며, 항목 단위로 잡혀서 집계됨
   - 설정/저장소 오류처럼 잡히지 않은 예외는 전역 핸들러에서 500 처리
"""
from typing import Any, Optional

from fastapi import HTTPException, status


# ============================================================
# HTTP 예외
# ============================================================

class ValidationException(HTTPException):
    """잘못된 입력 (400)"""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": code, "message": message},
        )


class UnauthorizedException(HTTPException):
    """인증 실패 (401)"""

    def __init__(self, message: str = "인증이 필요합니다."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "UNAUTHORIZED", "message": message},
        )


class ExternalAPIException(HTTPException):
    """외부 API 호출 실패 (503)"""

    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "EXTERNAL_API_ERROR", "message": message},
        )


# ============================================================
# 파이프라인 예외
# ============================================================

class TransientFetchError(Exception):
    """일시적인 네트워크 오류 (재시도 가능)"""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


class FeedUnreachableError(TransientFetchError):
    """피드를 가져오거나 파싱할 수 없음"""


class MalformedResponseError(Exception):
    """AI 응답이 스키마를 만족하지 않음"""

    def __init__(self, message: str, raw: Optional[Any] = None):
        self.raw = raw
        super().__init__(message)


class AnalysisTimeoutError(Exception):
    """AI 분석 호출 타임아웃"""


class RateLimitExceeded(Exception):
    """
    요청 제한 초과

    main.py의 전용 핸들러가 429 응답으로 변환합니다.
    decision은 app.services.rate_limiter.RateLimitDecision 입니다.
    """

    def __init__(self, decision: Any, message: str, hint: Optional[str] = None):
        self.decision = decision
        self.message = message
        self.hint = hint
        super().__init__(message)
