# app/domains/evi/routers.py

"""
세미나 증빙자료 API 엔드포인트를 정의하는 모듈입니다.
세미나 라우터와 같은 `/sem` prefix 아래에 등록됩니다.

오류는 `app.core.exceptions`의 분류로 발생시키며, 공통 예외 처리기가
`{"success": false, "error": ..., "details": ...}` 형태로 응답합니다.
"""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.database import get_session
from app.core import dependencies as deps
from app.core.exceptions import AuthRequired, ConfigMissing, IntegrationNotConfigured, NotFound, PermissionDenied
from app.core.exceptions import ValidationError
from app.domains.sem import crud as sem_crud
from app.domains.sem import models as sem_models
from app.domains.usr import models as usr_models
from app.services.drive import DriveIntegration

from . import schemas as evi_schemas
from . import services as evi_services

router = APIRouter(
    tags=["Seminar Evidence (세미나 증빙자료)"],
    responses={404: {"description": "Not found"}},
)


async def get_managed_seminar(
    seminar_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: Optional[usr_models.User] = Depends(deps.get_optional_current_user),
) -> sem_models.Seminar:
    """로그인한 세미나 개설자 또는 관리자일 때 세미나를 반환합니다."""
    if current_user is None:
        raise AuthRequired()
    seminar = await sem_crud.seminar.get(db, seminar_id)
    if seminar is None:
        raise NotFound()
    if seminar.owner_id != current_user.id and not current_user.is_admin:
        raise PermissionDenied("Permission denied. Only the seminar owner or an admin can manage evidence")
    return seminar


def require_drive(drive: Optional[DriveIntegration]) -> DriveIntegration:
    if drive is None or not drive.root_folder_id:
        raise ConfigMissing()
    return drive


async def read_candidate(upload: UploadFile, policy: deps.UploadPolicy) -> evi_schemas.CandidateFile:
    """
    업로드 파일을 후보 파일로 읽습니다.
    요청에 표시된 크기가 상한을 넘으면 본문을 읽지 않고 크기만 기록합니다 (검증 단계에서 거부됨).
    """
    file_name = upload.filename or "upload"
    mime_type = upload.content_type or "application/octet-stream"
    if upload.size is not None and upload.size > policy.max_file_size:
        return evi_schemas.CandidateFile(file_name=file_name, mime_type=mime_type, declared_size=upload.size)
    content = await upload.read()
    return evi_schemas.CandidateFile(file_name=file_name, mime_type=mime_type, content=content)


# =============================================================================
# 1. 날짜별 증빙자료 폴더
# =============================================================================
@router.get(
    "/seminars/{seminar_id}/evidence",
    response_model=evi_schemas.EvidenceFolderResponse,
    summary="오늘 날짜의 증빙자료 폴더 조회",
)
async def read_evidence_folder(
    seminar: sem_models.Seminar = Depends(get_managed_seminar),
    drive: Optional[DriveIntegration] = Depends(deps.get_drive),
):
    """조회 시점의 날짜 기준 폴더 (활동일별 증빙 구분)를 조회하며, 없으면 만듭니다."""
    folder = await evi_services.open_evidence_folder(
        require_drive(drive), seminar, datetime.now(timezone.utc), settings.EVIDENCE_TIMEZONE
    )
    return evi_schemas.EvidenceFolderResponse(data=folder)


@router.post(
    "/seminars/{seminar_id}/evidence",
    response_model=evi_schemas.EvidenceFolderResponse,
    summary="오늘 날짜의 증빙자료 폴더 생성/조회",
)
async def create_evidence_folder(
    seminar: sem_models.Seminar = Depends(get_managed_seminar),
    drive: Optional[DriveIntegration] = Depends(deps.get_drive),
):
    folder = await evi_services.open_evidence_folder(
        require_drive(drive), seminar, datetime.now(timezone.utc), settings.EVIDENCE_TIMEZONE
    )
    return evi_schemas.EvidenceFolderResponse(message="증빙자료 폴더가 생성/조회되었습니다", data=folder)


@router.post(
    "/seminars/{seminar_id}/evidence/upload",
    response_model=evi_schemas.EvidenceUploadResponse,
    summary="증빙자료 파일 업로드 (단일)",
)
async def upload_evidence(
    file: Optional[UploadFile] = File(None),
    seminar: sem_models.Seminar = Depends(get_managed_seminar),
    drive: Optional[DriveIntegration] = Depends(deps.get_drive),
    policy: deps.UploadPolicy = Depends(deps.get_upload_policy),
):
    drive = require_drive(drive)
    if file is None:
        raise ValidationError("No file provided")
    candidate = await read_candidate(file, policy)
    uploaded = await evi_services.upload_evidence_file(
        drive, seminar, candidate, policy=policy, zone=settings.EVIDENCE_TIMEZONE
    )
    return evi_schemas.EvidenceUploadResponse(data=uploaded)


# =============================================================================
# 2. 증빙자료 일괄 업로드
# =============================================================================
@router.post(
    "/seminars/{seminar_id}/proof-materials",
    response_model=evi_schemas.ProofMaterialsResponse,
    summary="증빙자료 일괄 업로드",
)
async def upload_proof_materials(
    files: Optional[List[UploadFile]] = File(None),
    seminar: sem_models.Seminar = Depends(get_managed_seminar),
    drive: Optional[DriveIntegration] = Depends(deps.get_drive),
    policy: deps.UploadPolicy = Depends(deps.get_upload_policy),
):
    """
    여러 파일을 한 번에 업로드합니다. 파일별 결과를 입력 순서대로 반환하며,
    일부 파일이 실패해도 나머지 파일은 업로드됩니다.
    """
    if drive is None:
        raise IntegrationNotConfigured()
    if not files:
        raise ValidationError("업로드할 파일을 선택해주세요.")

    candidates = [await read_candidate(f, policy) for f in files]
    result = await evi_services.upload_proof_materials(
        drive, seminar, candidates, policy=policy, zone=settings.EVIDENCE_TIMEZONE
    )
    return evi_schemas.ProofMaterialsResponse(
        message=result.message,
        succeeded=result.succeeded,
        failed=result.failed,
        results=result.results,
    )
