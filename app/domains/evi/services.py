# app/domains/evi/services.py

"""
세미나 증빙자료(evidence) 업로드의 비즈니스 로직을 담당하는 모듈입니다.

- `EvidenceFolder`: 날짜별 증빙자료 폴더 조회/생성과 파일 목록.
- `upload_batch`: 여러 파일을 하나의 폴더에 업로드하고 파일별 결과를 모읍니다.
  한 파일의 실패가 나머지 파일의 처리를 막지 않으며, 결과는 입력 순서대로 하나씩 기록됩니다.
  단, 업로드할 폴더 자체를 확보하지 못하면 일괄 작업 전체가 실패합니다.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from app.core.dependencies import UploadPolicy
from app.core.exceptions import SeminarHubError, ValidationError
from app.domains.sem import models as sem_models
from app.services.drive import DriveIntegration, FileUploader, FolderResolver
from app.services.drive import file_view_link, folder_view_link
from app.utils.naming import Timestamp, derive_file_base_name, derive_folder_name, file_extension, sanitize_title
from .schemas import (
    BatchUploadResult,
    CandidateFile,
    EvidenceFile,
    EvidenceFolder,
    EvidenceUpload,
    FileOutcome,
)

logger = logging.getLogger(__name__)

FILE_TOO_LARGE = "파일 크기가 너무 큽니다. (최대 {limit_mb}MB)"
INVALID_FILE_TYPE = "지원하지 않는 파일 형식입니다."
EMPTY_FILE = "빈 파일은 업로드할 수 없습니다."
UPLOAD_FAILED = "업로드에 실패했습니다."


def now_millis() -> int:
    return int(time.time() * 1000)


# =============================================================================
# 1. 파일 검증
# =============================================================================
def summarize(succeeded: int, failed: int) -> str:
    return f"{succeeded}개 파일이 Google Drive에 업로드되었습니다. ({failed}개 실패)"


def validate_candidate(candidate: CandidateFile, policy: UploadPolicy) -> Optional[str]:
    """검증 실패 사유를 반환합니다. 통과하면 None."""
    if candidate.size == 0:
        return EMPTY_FILE
    if candidate.size > policy.max_file_size:
        return FILE_TOO_LARGE.format(limit_mb=policy.max_file_size // (1024 * 1024))
    if not policy.allows(candidate.mime_type):
        return INVALID_FILE_TYPE
    return None


def ensure_valid(candidate: CandidateFile, policy: UploadPolicy) -> None:
    """단일 업로드용: 검증 실패 시 ValidationError(400)를 발생시킵니다."""
    reason = validate_candidate(candidate, policy)
    if reason:
        raise ValidationError(reason, details=candidate.file_name)


# =============================================================================
# 2. 일괄 업로드
# =============================================================================
class FolderContext:
    """
    일괄 업로드의 대상 폴더.
    이미 알고 있는 폴더 ID가 있으면 그대로 쓰고, 없으면 첫 유효 파일에서 한 번만 조회/생성합니다.
    """

    def __init__(
        self,
        resolver: FolderResolver,
        parent_id: str,
        folder_name: str,
        *,
        folder_id: Optional[str] = None,
    ):
        self._resolver = resolver
        self.parent_id = parent_id
        self.folder_name = folder_name
        self._folder_id = folder_id

    @property
    def resolved_id(self) -> Optional[str]:
        return self._folder_id

    async def resolve(self) -> str:
        if self._folder_id is None:
            self._folder_id = await self._resolver.resolve(self.parent_id, self.folder_name)
        return self._folder_id


async def upload_batch(
    context: FolderContext,
    files: List[CandidateFile],
    *,
    uploader: FileUploader,
    policy: UploadPolicy,
    name_for: Callable[[CandidateFile], str],
) -> BatchUploadResult:
    outcomes: List[FileOutcome] = []
    for candidate in files:
        reason = validate_candidate(candidate, policy)
        if reason:
            logger.info("Rejected '%s' (%s, %d bytes): %s", candidate.file_name, candidate.mime_type, candidate.size, reason)
            outcomes.append(FileOutcome.failed(candidate.file_name, reason))
            continue

        folder_id = await context.resolve()
        remote_name = name_for(candidate)
        try:
            ref = await uploader.upload(folder_id, remote_name, candidate.content, candidate.mime_type)
        except SeminarHubError as e:
            logger.error(
                "Google Drive upload error for '%s' (folder %s '%s'): %s",
                candidate.file_name, folder_id, context.folder_name, e.message,
            )
            outcomes.append(FileOutcome.failed(candidate.file_name, e.message or UPLOAD_FAILED))
            continue
        outcomes.append(FileOutcome.uploaded(ref))

    succeeded = sum(1 for o in outcomes if o.success)
    failed = len(outcomes) - succeeded
    return BatchUploadResult(
        folder_id=context.resolved_id,
        results=outcomes,
        succeeded=succeeded,
        failed=failed,
        message=summarize(succeeded, failed),
    )


def proof_material_namer(title: str, when: Timestamp, zone: str) -> Callable[[CandidateFile], str]:
    """증빙자료 파일 이름 `{정리된 제목}_{YYYYMMDD}_{밀리초}.{확장자}`"""
    base = derive_file_base_name(title, when, zone)

    def name_for(candidate: CandidateFile) -> str:
        return f"{base}_{now_millis()}.{file_extension(candidate.file_name)}"

    return name_for


async def upload_proof_materials(
    drive: DriveIntegration,
    seminar: sem_models.Seminar,
    files: List[CandidateFile],
    *,
    policy: UploadPolicy,
    zone: str,
) -> BatchUploadResult:
    """
    세미나의 증빙자료를 일괄 업로드합니다.
    세미나 생성 시 만든 폴더가 있으면 그곳에, 없으면 `{제목}_{시작일}` 폴더에 올립니다.
    """
    when = seminar.start_date or datetime.now(timezone.utc)
    context = FolderContext(
        drive.resolver,
        drive.root_folder_id,
        derive_folder_name(seminar.title, when, zone),
        folder_id=seminar.google_drive_folder_id,
    )
    try:
        result = await upload_batch(
            context,
            files,
            uploader=drive.uploader,
            policy=policy,
            name_for=proof_material_namer(seminar.title, when, zone),
        )
    except SeminarHubError as e:
        logger.error(
            "Proof material upload for seminar %d '%s' failed resolving folder '%s': %s",
            seminar.id, seminar.title, context.folder_name, e.message,
        )
        raise
    logger.info("Seminar %d proof materials: %s", seminar.id, result.message)
    return result


# =============================================================================
# 3. 날짜별 증빙자료 폴더
# =============================================================================
async def list_evidence_files(drive: DriveIntegration, folder_id: str) -> List[EvidenceFile]:
    items = await drive.client.list_children(folder_id)
    return [EvidenceFile(id=i.id, name=i.name, link=i.web_view_link or file_view_link(i.id)) for i in items]


async def open_evidence_folder(
    drive: DriveIntegration, seminar: sem_models.Seminar, when: Timestamp, zone: str
) -> EvidenceFolder:
    """`{제목}_{날짜}` 폴더를 조회(없으면 생성)하고 파일 목록과 함께 반환합니다."""
    folder_name = derive_folder_name(seminar.title, when, zone)
    try:
        folder_id = await drive.resolver.resolve(drive.root_folder_id, folder_name)
        files = await list_evidence_files(drive, folder_id)
    except SeminarHubError as e:
        logger.error("Evidence folder '%s' for seminar %d failed: %s", folder_name, seminar.id, e.message)
        raise
    return EvidenceFolder(
        seminar_id=seminar.id,
        seminar_title=seminar.title,
        folder_name=folder_name,
        folder_id=folder_id,
        google_drive_link=folder_view_link(folder_id),
        files=files,
        file_count=len(files),
    )


async def upload_evidence_file(
    drive: DriveIntegration,
    seminar: sem_models.Seminar,
    candidate: CandidateFile,
    *,
    policy: UploadPolicy,
    zone: str,
) -> EvidenceUpload:
    """
    파일 하나를 세미나 시작일(없으면 오늘) 폴더에 업로드하고 갱신된 파일 목록을 반환합니다.
    파일 이름은 `{정리된 제목}_{밀리초}_{원본 파일명}`입니다.
    """
    ensure_valid(candidate, policy)
    when = seminar.start_date or datetime.now(timezone.utc)
    folder_name = derive_folder_name(seminar.title, when, zone)
    remote_name = f"{sanitize_title(seminar.title)}_{now_millis()}_{candidate.file_name}"
    try:
        folder_id = await drive.resolver.resolve(drive.root_folder_id, folder_name)
        ref = await drive.uploader.upload(folder_id, remote_name, candidate.content, candidate.mime_type)
        files = await list_evidence_files(drive, folder_id)
    except SeminarHubError as e:
        logger.error(
            "Evidence upload '%s' for seminar %d '%s' (folder '%s') failed: %s",
            candidate.file_name, seminar.id, seminar.title, folder_name, e.message,
        )
        raise
    return EvidenceUpload(
        file_id=ref.remote_id,
        file_link=ref.shareable_link,
        folder_id=folder_id,
        files=files,
        file_count=len(files),
    )
