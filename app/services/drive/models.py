# app/services/drive/models.py

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


def file_view_link(file_id: str) -> str:
    return f"https://drive.google.com/file/d/{file_id}/view"


def folder_view_link(folder_id: str) -> str:
    return f"https://drive.google.com/drive/folders/{folder_id}"


class DriveItem(BaseModel):
    """Drive API `files` 리소스 중 이 서비스가 사용하는 필드만 담은 모델"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = ""
    name: str = ""
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    web_view_link: Optional[str] = Field(default=None, alias="webViewLink")

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE


class UploadedFileRef(BaseModel):
    """업로드 성공 시 반환되는 원격 파일 참조 (생성 후 변경되지 않음)"""
    model_config = ConfigDict(frozen=True)

    remote_id: str
    display_name: str
    shareable_link: str
