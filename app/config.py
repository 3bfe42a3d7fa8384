# app/config.py
from datetime import datetime
from typing import List, Optional

from pydantic_settings import BaseSettings
from pydantic import field_validator

class Settings(BaseSettings):
    """환경변수 설정"""

    # API 기본 설정
    app_name: str = "Porra Mundial API"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./porra.db"

    # 공식 결과 입력용 관리자 토큰 (비어 있으면 공식 결과 입력 불가)
    admin_token: str = ""

    # 대회 포맷 파일 (없으면 기본 2026 포맷 사용)
    tournament_file: Optional[str] = None

    # 이 시각 이후 참가자 예측 수정 불가
    predictions_lock_at: Optional[datetime] = None

    # 로깅
    log_dir: str = "logs"
    log_level: str = "INFO"

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator('admin_token')
    def validate_admin_token(cls, v):
        if v and len(v) < 16:
            raise ValueError('ADMIN_TOKEN은 최소 16자 이상이어야 합니다')
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False

# 싱글톤 인스턴스
settings = Settings()
