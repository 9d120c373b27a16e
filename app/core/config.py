# app/core/config.py

from enum import Enum
from typing import Any, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import os

# 프로젝트의 루트 디렉토리 경로를 계산합니다.
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Google Drive 재개 가능 업로드의 청크 크기는 256 KiB의 배수여야 합니다.
DRIVE_CHUNK_UNIT = 256 * 1024


class DuplicateFolderPolicy(str, Enum):
    """
    같은 부모 아래 동일한 이름의 폴더가 여러 개 존재할 때의 처리 정책입니다.
    """
    IGNORE = "ignore"   # 첫 번째 결과를 조용히 사용
    FLAG = "flag"       # 경고 로그 + 정리 작업에서 보고
    MERGE = "merge"     # 정리 작업에서 중복 폴더의 파일을 첫 번째 폴더로 이동


class Settings(BaseSettings):
    """
    애플리케이션의 모든 설정을 정의하는 Pydantic BaseSettings 모델입니다.
    환경 변수 및 .env 파일에서 값을 자동으로 로드합니다.
    """

    # --- Pydantic Settings 설정 ---
    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, '.env'),  # 프로젝트 루트의 .env 파일을 명시적으로 지정
        env_file_encoding='utf-8',
        extra='ignore',                      # .env 파일에 정의되었지만 모델에 없는 변수는 무시
        case_sensitive=True                  # 환경 변수 이름 대소문자 구분
    )

    # --- 애플리케이션 기본 설정 ---
    APP_NAME: str = "Seminar Hub API"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Seminar management backend with Google Drive evidence uploads"
    APP_ENV: str = Field("development", description="Application environment (e.g., development, production, testing)")
    DEBUG_MODE: bool = Field(False, description="Enable debug mode for detailed logging and error messages")

    # --- 데이터베이스 설정 ---
    DATABASE_URL: SecretStr = Field(..., description="Async database connection URL (postgresql+asyncpg://...)")

    # --- JWT (JSON Web Token) 설정 ---
    SECRET_KEY: SecretStr = Field(..., description="Secret key for JWT token signing. Keep this highly secure!")
    ALGORITHM: str = Field("HS256", description="Algorithm used for JWT signing (e.g., HS256)")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30, description="Access token expiration time in minutes")

    # --- ARQ (Redis) 설정 ---
    REDIS_HOST: str = Field("localhost", description="Redis host for the ARQ worker")
    REDIS_PORT: int = Field(6379, description="Redis port for the ARQ worker")

    # --- Google Drive 연동 설정 ---
    GOOGLE_SERVICE_ACCOUNT_KEY: Optional[SecretStr] = Field(
        None, description="Service account key JSON (raw or base64 encoded)"
    )
    GOOGLE_DRIVE_ACCESS_TOKEN: Optional[SecretStr] = Field(
        None, description="Static OAuth bearer token (alternative to a service account)"
    )
    GOOGLE_DRIVE_FOLDER_ID: Optional[str] = Field(
        None, description="Root folder (or shared drive folder) that holds all seminar folders"
    )
    DRIVE_HTTP_TIMEOUT: float = Field(60.0, description="Transport timeout for Drive API calls, in seconds")
    DRIVE_RESUMABLE_THRESHOLD: int = Field(
        5 * 1024 * 1024, description="Payloads larger than this use the resumable upload protocol"
    )
    DRIVE_CHUNK_SIZE: int = Field(
        8 * 1024 * 1024, description="Chunk size for resumable uploads (multiple of 256 KiB)"
    )
    DRIVE_FOLDER_LOCK_ENABLED: bool = Field(
        True, description="Serialize find-or-create per (parent, name) within this process"
    )
    DRIVE_DUPLICATE_FOLDER_POLICY: DuplicateFolderPolicy = Field(
        DuplicateFolderPolicy.FLAG, description="How duplicate-named evidence folders are handled"
    )

    # --- 증빙자료 설정 ---
    EVIDENCE_TIMEZONE: str = Field("Asia/Seoul", description="Timezone used to stamp evidence folder dates")
    UPLOAD_MAX_FILE_SIZE: int = Field(10 * 1024 * 1024, description="Maximum size of a single uploaded file, in bytes")
    UPLOAD_ALLOWED_MIME_TYPES: List[str] = Field(
        default=[
            "image/jpeg",
            "image/png",
            "image/gif",
            "image/webp",
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/vnd.ms-powerpoint",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "application/vnd.ms-excel",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "text/plain",
        ],
        description="MIME types accepted for evidence uploads",
    )

    # --- 알림 설정 ---
    NOTIFICATION_WEBHOOK_URL: Optional[str] = Field(None, description="Webhook that receives seminar notifications")

    @field_validator("DRIVE_CHUNK_SIZE")
    @classmethod
    def _check_chunk_size(cls, value: int) -> int:
        if value <= 0 or value % DRIVE_CHUNK_UNIT != 0:
            raise ValueError(f"DRIVE_CHUNK_SIZE must be a positive multiple of {DRIVE_CHUNK_UNIT}")
        return value

    @field_validator("EVIDENCE_TIMEZONE")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def drive_configured(self) -> bool:
        """루트 폴더와 인증 정보가 모두 설정되어 있는지 여부"""
        has_credentials = self.GOOGLE_SERVICE_ACCOUNT_KEY is not None or self.GOOGLE_DRIVE_ACCESS_TOKEN is not None
        return bool(self.GOOGLE_DRIVE_FOLDER_ID) and has_credentials

    def model_post_init(self, __context: Any) -> None:  # noqa: ANN001
        # 빈 문자열로 지정된 폴더 ID는 미설정으로 취급합니다.
        if self.GOOGLE_DRIVE_FOLDER_ID is not None and not self.GOOGLE_DRIVE_FOLDER_ID.strip():
            self.GOOGLE_DRIVE_FOLDER_ID = None


settings = Settings()
