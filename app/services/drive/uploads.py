# app/services/drive/uploads.py

"""
해결된 폴더에 파일 하나를 쓰는 업로더입니다.

업로드 방식은 하나의 인터페이스(`UploadStrategy`)에 두 가지 구현이 있으며, 크기로 선택합니다.
- `SingleShotUpload`: multipart 요청 한 번 (작은 파일)
- `ResumableUpload`: 세션 생성 → 범위 지정 PUT 반복 (큰 파일)
두 방식 모두 결과는 같습니다: 요청한 이름과 MIME 타입을 가진 파일이 폴더 아래에 생성됩니다.
"""

import logging
from typing import Protocol

from app.core.config import DRIVE_CHUNK_UNIT
from app.core.exceptions import UploadFailed
from .client import DriveClient
from .models import DriveItem, UploadedFileRef, file_view_link

logger = logging.getLogger(__name__)


class UploadStrategy(Protocol):
    name: str

    async def upload(
        self, client: DriveClient, folder_id: str, file_name: str, content: bytes, mime_type: str
    ) -> DriveItem:
        ...


class SingleShotUpload:
    name = "multipart"

    async def upload(self, client, folder_id, file_name, content, mime_type):
        return await client.create_file(folder_id, file_name, content, mime_type)


class ResumableUpload:
    name = "resumable"

    def __init__(self, chunk_size: int):
        if chunk_size <= 0 or chunk_size % DRIVE_CHUNK_UNIT != 0:
            raise ValueError(f"chunk_size must be a positive multiple of {DRIVE_CHUNK_UNIT}")
        self.chunk_size = chunk_size

    async def upload(self, client, folder_id, file_name, content, mime_type):
        total = len(content)
        session_url = await client.start_resumable_session(folder_id, file_name, mime_type, total)

        offset = 0
        restarted = False
        while offset < total:
            chunk = content[offset:offset + self.chunk_size]
            next_offset, item = await client.upload_chunk(session_url, chunk, offset, total, mime_type)
            if item is not None:
                return item
            if next_offset == 0 and offset > 0 and not restarted:
                # 세션이 받은 바이트를 잃음: 처음부터 한 번만 다시 보냅니다.
                logger.warning("Drive resumable upload of '%s' lost progress at byte %d; restarting", file_name, offset)
                restarted = True
                offset = 0
                continue
            if next_offset <= offset:
                raise UploadFailed("Drive resumable upload made no progress", details=f"stalled at byte {offset}")
            offset = next_offset
        raise UploadFailed("Drive resumable upload finished without a file id")


class FileUploader:
    def __init__(self, client: DriveClient, *, resumable_threshold: int, chunk_size: int):
        self._client = client
        self._threshold = resumable_threshold
        self._single = SingleShotUpload()
        self._resumable = ResumableUpload(chunk_size)

    def strategy_for(self, size: int) -> UploadStrategy:
        return self._resumable if size > self._threshold else self._single

    async def upload(self, folder_id: str, file_name: str, content: bytes, mime_type: str) -> UploadedFileRef:
        strategy = self.strategy_for(len(content))
        logger.info("Uploading file: %s to folder: %s (%s, %d bytes)", file_name, folder_id, strategy.name, len(content))

        item = await strategy.upload(self._client, folder_id, file_name, content, mime_type)
        if not item.id:
            raise UploadFailed("Failed to upload file: no id in response")

        logger.info("Uploaded file: %s (ID: %s)", file_name, item.id)
        return UploadedFileRef(
            remote_id=item.id,
            display_name=item.name or file_name,
            shareable_link=item.web_view_link or file_view_link(item.id),
        )
