# app/core/dependencies.py

"""
FastAPI 애플리케이션의 의존성 주입(Dependency Injection)을 정의하는 모듈입니다.

- 현재 인증된 사용자 정보 획득 (security.py에서 재노출).
- Google Drive 연동 객체, 업로드 정책, 작업 큐(ARQ) 획득.
"""

from typing import Optional

from arq.connections import ArqRedis
from fastapi import Request
from pydantic import BaseModel

from app.core.config import settings
from app.services.drive import DriveIntegration

# flake8: noqa
from app.core.security import (
    create_access_token,
    get_password_hash,
    verify_password,
    oauth2_scheme,
    get_current_user_from_token,
    get_optional_current_user,
    get_current_active_user,
    get_current_admin_user,
)


# --- 외부 연동 의존성 ---
def get_drive(request: Request) -> Optional[DriveIntegration]:
    """
    lifespan에서 만들어 둔 Drive 연동 객체를 반환합니다. 설정되지 않았으면 None.
    엔드포인트마다 미설정 시 응답(500/503)이 다르므로 여기서는 예외를 던지지 않습니다.
    """
    return getattr(request.app.state, "drive", None)


def get_task_queue(request: Request) -> Optional[ArqRedis]:
    return getattr(request.app.state, "redis", None)


class UploadPolicy(BaseModel):
    """파일별 검증 기준 (크기 상한, 허용 MIME 타입)"""
    max_file_size: int
    allowed_mime_types: frozenset

    def allows(self, mime_type: Optional[str]) -> bool:
        return mime_type in self.allowed_mime_types


def get_upload_policy() -> UploadPolicy:
    return UploadPolicy(
        max_file_size=settings.UPLOAD_MAX_FILE_SIZE,
        allowed_mime_types=frozenset(settings.UPLOAD_ALLOWED_MIME_TYPES),
    )
