"""
애플리케이션 설정

환경 변수(.env 포함)에서 설정을 읽어 `settings` 싱글톤으로 제공합니다.
모든 설정은 대문자 필드로 접근합니다 (예: settings.DATABASE_URL).

환경 구분:
- production: 엄격한 요청 제한 (전체 수집 1시간 5회)
- development / test: 완화된 요청 제한 (전체 수집 1시간 100회)
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경 변수 기반 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===== 기본 정보 =====
    PROJECT_NAME: str = "Noticias Pipeline API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # ===== 저장소 =====
    DATABASE_URL: str = "sqlite+aiosqlite:///./noticias.db"
    # 빈 문자열이면 Redis 캐시 비활성화
    REDIS_URL: str = ""

    # ===== HTTP =====
    ALLOWED_ORIGINS: str = ""
    # True일 때만 X-Forwarded-For 첫 번째 hop을 클라이언트 주소로 사용
    TRUST_PROXY: bool = False
    # 설정되어 있으면 수집 엔드포인트에 X-Cron-Secret 헤더 필요
    CRON_SECRET: Optional[str] = None

    # ===== 외부 AI =====
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"

    # ===== 피드 수집 =====
    FEED_FETCH_TIMEOUT: float = 10.0
    METADATA_FETCH_TIMEOUT: float = 2.0
    MAX_REDIRECTS: int = 3
    SOURCE_FETCH_CONCURRENCY: int = 5
    GLOBAL_BATCH_SIZE: int = 3
    GLOBAL_BATCH_DELAY: float = 2.0

    # ===== AI 분석 =====
    ANALYSIS_CONCURRENCY: int = 3
    ANALYSIS_CALL_TIMEOUT: float = 45.0
    # 호출자 타임아웃(약 180초)보다 짧아야 함
    ANALYSIS_BATCH_TIMEOUT: float = 170.0

    # ===== 검색 =====
    SEARCH_REINGEST_DEADLINE: float = 8.0
    SEARCH_CACHE_TTL: int = 120

    # ===== 요청 제한 (None이면 환경별 기본값) =====
    RATE_LIMIT_INGEST_ALL_MAX: Optional[int] = None
    RATE_LIMIT_INGEST_CATEGORY_MAX: Optional[int] = None
    RATE_LIMIT_STATUS_MAX: int = 60

    # ===== 백그라운드 스케줄러 =====
    SCHEDULER_ENABLED: bool = False
    SCHEDULER_INGEST_INTERVAL: int = 3600
    SCHEDULER_ANALYSIS_LIMIT: int = 10

    # ===== 시작 시 초기화 =====
    AUTO_CREATE_TABLES: bool = True

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
