# app/core/exceptions.py

"""
증빙자료 워크플로우(Google Drive 연동)의 오류 분류 체계를 정의하는 모듈입니다.

- 모든 오류는 `SeminarHubError`를 상속하며 HTTP 상태 코드를 함께 가집니다.
- Drive 클라이언트는 전송 계층 오류(httpx)를 이 분류로 변환하여 던지므로,
  상위 코드(서비스, 라우터)는 전송 계층의 오류 형태를 알 필요가 없습니다.
- `seminar_hub_error_handler`가 FastAPI 응답 형태
  `{"success": false, "error": ..., "details": ...}`로 변환합니다.
"""

import logging
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SeminarHubError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "서버 오류가 발생했습니다."

    def __init__(self, message: Optional[str] = None, *, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_payload(self) -> dict:
        payload = {"success": False, "error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ConfigMissing(SeminarHubError):
    """필수 인증 정보나 루트 폴더 ID가 설정되지 않음 (재시도하지 않음)"""
    default_message = "Google Drive configuration is missing"


class IntegrationNotConfigured(ConfigMissing):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Google Drive 연동이 설정되지 않았습니다. 관리자에게 문의하세요."


class AuthRequired(SeminarHubError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class PermissionDenied(SeminarHubError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Permission denied"


class NotFound(SeminarHubError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Seminar not found"


class ValidationError(SeminarHubError):
    """
    입력 검증 실패. 일괄 업로드에서는 던지지 않고 파일별 실패 결과로 기록됩니다.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "잘못된 요청입니다."


class StorageUnavailable(SeminarHubError):
    """원격 저장소에 연결할 수 없거나 인증 정보가 유효하지 않음"""
    default_message = "Google Drive를 사용할 수 없습니다."


class UploadFailed(SeminarHubError):
    """원격 저장소가 업로드 요청에 2xx 이외의 응답을 반환함"""
    default_message = "업로드에 실패했습니다."

    def __init__(self, reason: Optional[str] = None, *, details: Optional[str] = None):
        super().__init__(reason, details=details)
        self.reason = self.message


async def seminar_hub_error_handler(request: Request, exc: SeminarHubError) -> JSONResponse:
    """
    SeminarHubError 계열 예외를 공통 JSON 응답으로 변환합니다.
    """
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())
