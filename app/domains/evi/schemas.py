# app/domains/evi/schemas.py

"""
'evi' 도메인 (세미나 증빙자료)의 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import List, Optional

from pydantic import BaseModel

from app.services.drive import UploadedFileRef


# =============================================================================
# 1. 업로드 대상 / 파일별 결과
# =============================================================================
class CandidateFile(BaseModel):
    """요청에서 받은 업로드 후보 파일 하나"""
    file_name: str
    mime_type: Optional[str] = None
    content: bytes = b""
    # 본문을 읽지 않고 거부한 경우 요청에 표시된 크기
    declared_size: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.content) if self.declared_size is None else self.declared_size


class FileOutcome(BaseModel):
    file_name: str
    success: bool
    file_id: Optional[str] = None
    web_view_link: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def uploaded(cls, ref: UploadedFileRef) -> "FileOutcome":
        return cls(file_name=ref.display_name, success=True, file_id=ref.remote_id, web_view_link=ref.shareable_link)

    @classmethod
    def failed(cls, file_name: str, error: str) -> "FileOutcome":
        return cls(file_name=file_name, success=False, error=error)


class BatchUploadResult(BaseModel):
    """일괄 업로드 결과 (저장하지 않음)"""
    folder_id: Optional[str] = None
    results: List[FileOutcome]
    succeeded: int
    failed: int
    message: str


# =============================================================================
# 2. 증빙자료 폴더 / 단일 업로드 응답
# =============================================================================
class EvidenceFile(BaseModel):
    id: str
    name: str
    link: str


class EvidenceFolder(BaseModel):
    seminar_id: int
    seminar_title: str
    folder_name: str
    folder_id: str
    google_drive_link: str
    files: List[EvidenceFile]
    file_count: int


class EvidenceUpload(BaseModel):
    file_id: str
    file_link: str
    folder_id: str
    files: List[EvidenceFile]
    file_count: int


class EvidenceFolderResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: EvidenceFolder


class EvidenceUploadResponse(BaseModel):
    success: bool = True
    data: EvidenceUpload


class ProofMaterialsResponse(BaseModel):
    success: bool = True
    message: str
    succeeded: int
    failed: int
    results: List[FileOutcome]
