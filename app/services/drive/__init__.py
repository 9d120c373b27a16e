# app/services/drive/__init__.py

"""
Google Drive 연동 패키지입니다.

- `auth.py`: Bearer 토큰 공급자 (정적 토큰 / 서비스 계정).
- `client.py`: Drive REST API 클라이언트 (오류를 공통 분류로 변환).
- `folders.py`: 폴더 find-or-create, 중복 폴더 정리.
- `uploads.py`: 단일/재개 가능 업로드 전략과 업로더.

`build_drive_integration`은 설정에서 한 번만 호출되어 (FastAPI lifespan, ARQ 워커 시작 시)
`DriveIntegration`을 만들고, 이후 의존성 주입으로 전달됩니다.
"""

import logging
from typing import Optional

from app.core.config import Settings
from .auth import ServiceAccountTokenProvider, StaticTokenProvider, TokenProvider, load_service_account_info
from .client import DriveClient
from .folders import FolderLockRegistry, FolderResolver
from .models import DriveItem, UploadedFileRef, file_view_link, folder_view_link
from .uploads import FileUploader

logger = logging.getLogger(__name__)

__all__ = [
    "DriveClient",
    "DriveIntegration",
    "DriveItem",
    "FileUploader",
    "FolderResolver",
    "UploadedFileRef",
    "build_drive_integration",
    "file_view_link",
    "folder_view_link",
]


class DriveIntegration:
    """루트 폴더 ID와 클라이언트, 폴더 해석기, 업로더를 묶은 객체"""

    def __init__(
        self,
        client: DriveClient,
        root_folder_id: str,
        *,
        resolver: FolderResolver,
        uploader: FileUploader,
    ):
        self.client = client
        self.root_folder_id = root_folder_id
        self.resolver = resolver
        self.uploader = uploader

    @classmethod
    def from_client(cls, client: DriveClient, root_folder_id: str, settings: Settings) -> "DriveIntegration":
        locks = FolderLockRegistry() if settings.DRIVE_FOLDER_LOCK_ENABLED else None
        resolver = FolderResolver(client, locks=locks, duplicate_policy=settings.DRIVE_DUPLICATE_FOLDER_POLICY)
        uploader = FileUploader(
            client,
            resumable_threshold=settings.DRIVE_RESUMABLE_THRESHOLD,
            chunk_size=settings.DRIVE_CHUNK_SIZE,
        )
        return cls(client, root_folder_id, resolver=resolver, uploader=uploader)

    async def aclose(self) -> None:
        await self.client.aclose()


def build_token_provider(settings: Settings) -> TokenProvider:
    if settings.GOOGLE_SERVICE_ACCOUNT_KEY is not None:
        info = load_service_account_info(settings.GOOGLE_SERVICE_ACCOUNT_KEY.get_secret_value())
        logger.info("Using Google service account: %s", info["client_email"])
        return ServiceAccountTokenProvider(info)
    return StaticTokenProvider(settings.GOOGLE_DRIVE_ACCESS_TOKEN.get_secret_value())


def build_drive_integration(settings: Settings) -> Optional[DriveIntegration]:
    """
    설정으로부터 Drive 연동 객체를 만듭니다. 설정이 없으면 None을 반환합니다.
    서비스 계정 키가 잘못된 경우 ConfigMissing을 발생시킵니다.
    """
    if not settings.drive_configured:
        logger.warning("Google Drive is not configured (GOOGLE_DRIVE_FOLDER_ID / credentials missing)")
        return None
    client = DriveClient(build_token_provider(settings), timeout=settings.DRIVE_HTTP_TIMEOUT)
    return DriveIntegration.from_client(client, settings.GOOGLE_DRIVE_FOLDER_ID, settings)
