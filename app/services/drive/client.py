# app/services/drive/client.py

"""
Google Drive REST API(v3)에 대한 얇은 비동기 클라이언트입니다.

- 모든 호출은 공유 드라이브 주소 지정(`supportsAllDrives`, `includeItemsFromAllDrives`)을 포함합니다.
- 전송 오류(httpx), 2xx 이외의 응답, 해석할 수 없는 응답 본문은 이 모듈 경계에서
  `StorageUnavailable` / `UploadFailed`로 변환됩니다.
- 인스턴스는 프로세스 시작 시 한 번 만들어 주입합니다 (요청마다 재생성하지 않음).
"""

import json
import logging
import uuid
from typing import Dict, List, Optional, Tuple, Type

import httpx

from app.core.exceptions import SeminarHubError, StorageUnavailable, UploadFailed
from .auth import TokenProvider
from .models import FOLDER_MIME_TYPE, DriveItem

logger = logging.getLogger(__name__)

DRIVE_API_URL = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3"
ITEM_FIELDS = "id, name, mimeType, webViewLink"
PAGE_SIZE = 100

# 재개 가능 업로드에서 "계속 보내라"는 의미의 상태 코드
RESUME_INCOMPLETE = 308

_SHARED_DRIVE_PARAMS = {"supportsAllDrives": "true"}


def escape_query_value(value: str) -> str:
    """Drive 검색 쿼리(q)의 문자열 리터럴 이스케이프"""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def extract_error_message(response: httpx.Response) -> str:
    """
    Drive 오류 응답에서 사람이 읽을 수 있는 메시지를 꺼냅니다.
    JSON `error.message` → 응답 본문 → 상태 코드 순으로 사용합니다.
    """
    fallback = f"{response.status_code} {response.reason_phrase}".strip()
    body = response.text
    try:
        payload = json.loads(body) if body else {}
    except ValueError:
        return f"{fallback} - {body}" if body else fallback
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(error, str) and error:
        return error
    return body or fallback


def parse_received_range(header: str) -> int:
    """
    308 응답의 `Range: bytes=0-N` 헤더에서 서버가 받은 다음 오프셋(N + 1)을 반환합니다.
    형식이 맞지 않으면 ValueError.
    """
    unit, _, span = header.partition("=")
    start, _, last = span.partition("-")
    if unit.strip() != "bytes" or start.strip() != "0":
        raise ValueError(f"unexpected Range header: {header!r}")
    return int(last) + 1


class DriveClient:
    def __init__(
        self,
        token_provider: TokenProvider,
        *,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
        api_url: str = DRIVE_API_URL,
        upload_url: str = DRIVE_UPLOAD_URL,
    ):
        self._tokens = token_provider
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self._api_url = api_url.rstrip("/")
        self._upload_url = upload_url.rstrip("/")

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        *,
        error_cls: Type[SeminarHubError] = StorageUnavailable,
        context: str,
        accept: Tuple[int, ...] = (),
        headers: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> httpx.Response:
        token = await self._tokens.get_token(self._http)
        request_headers = {"Authorization": f"Bearer {token}", **(headers or {})}
        try:
            response = await self._http.request(method, url, headers=request_headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Drive request failed (%s): %s", context, e)
            raise StorageUnavailable(f"Google Drive에 연결할 수 없습니다: {context}", details=str(e)) from e

        if response.is_success or response.status_code in accept:
            return response

        message = extract_error_message(response)
        logger.error("Drive API error (%s): HTTP %d %s", context, response.status_code, message)
        raise error_cls(message, details=f"{context}: HTTP {response.status_code}")

    @staticmethod
    def _json(response: httpx.Response, error_cls: Type[SeminarHubError], context: str) -> dict:
        """성공 응답 본문을 JSON 객체로 읽습니다. 프록시 HTML 페이지 등은 `error_cls`로 변환합니다."""
        try:
            payload = response.json()
        except ValueError as e:
            content_type = response.headers.get("Content-Type", "")
            logger.error("Drive returned a non-JSON body (%s): HTTP %d %s", context, response.status_code, content_type)
            raise error_cls(
                "Google Drive에서 잘못된 응답을 받았습니다.",
                details=f"{context}: HTTP {response.status_code} {content_type}".strip(),
            ) from e
        if not isinstance(payload, dict):
            logger.error("Drive returned an unexpected JSON body (%s): %r", context, payload)
            raise error_cls("Google Drive에서 잘못된 응답을 받았습니다.", details=f"{context}: not a JSON object")
        return payload

    def _item(self, response: httpx.Response, error_cls: Type[SeminarHubError], context: str) -> DriveItem:
        payload = self._json(response, error_cls, context)
        try:
            return DriveItem.model_validate(payload)
        except ValueError as e:
            logger.error("Drive returned an unexpected file resource (%s): %s", context, e)
            raise error_cls("Google Drive에서 잘못된 응답을 받았습니다.", details=f"{context}: {e}") from e

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------
    async def list_children(
        self,
        parent_id: str,
        *,
        name: Optional[str] = None,
        folders_only: bool = False,
        order_by: Optional[str] = "createdTime",
    ) -> List[DriveItem]:
        """
        휴지통에 있지 않은 `parent_id`의 직계 자식 목록을 반환합니다.
        `name`이 주어지면 이름이 정확히 일치하는 항목만, `folders_only`면 폴더만 조회합니다.
        """
        clauses = [f"'{escape_query_value(parent_id)}' in parents"]
        if name is not None:
            clauses.append(f"name = '{escape_query_value(name)}'")
        if folders_only:
            clauses.append(f"mimeType = '{FOLDER_MIME_TYPE}'")
        clauses.append("trashed = false")

        params = {
            "q": " and ".join(clauses),
            "spaces": "drive",
            "fields": f"nextPageToken, files({ITEM_FIELDS})",
            "pageSize": str(PAGE_SIZE),
            "includeItemsFromAllDrives": "true",
            **_SHARED_DRIVE_PARAMS,
        }
        if order_by:
            params["orderBy"] = order_by

        items: List[DriveItem] = []
        page_token: Optional[str] = None
        context = f"list children of {parent_id}"
        while True:
            if page_token:
                params["pageToken"] = page_token
            response = await self._request("GET", f"{self._api_url}/files", params=params, context=context)
            payload = self._json(response, StorageUnavailable, context)
            try:
                items.extend(DriveItem.model_validate(f) for f in payload.get("files", []))
            except ValueError as e:
                raise StorageUnavailable("Google Drive에서 잘못된 응답을 받았습니다.", details=f"{context}: {e}") from e
            page_token = payload.get("nextPageToken")
            if not page_token:
                return items

    # -------------------------------------------------------------------------
    # 생성 / 이동
    # -------------------------------------------------------------------------
    async def create_folder(self, parent_id: str, name: str) -> DriveItem:
        response = await self._request(
            "POST",
            f"{self._api_url}/files",
            params={"fields": ITEM_FIELDS, **_SHARED_DRIVE_PARAMS},
            json={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
            context=f"create folder '{name}'",
        )
        folder = self._item(response, StorageUnavailable, f"create folder '{name}'")
        if not folder.id:
            raise StorageUnavailable("Failed to create folder", details=f"no id returned for '{name}'")
        return folder

    async def move_file(self, file_id: str, *, add_parent: str, remove_parent: str) -> DriveItem:
        response = await self._request(
            "PATCH",
            f"{self._api_url}/files/{file_id}",
            params={
                "addParents": add_parent,
                "removeParents": remove_parent,
                "fields": ITEM_FIELDS,
                **_SHARED_DRIVE_PARAMS,
            },
            json={},
            context=f"move file {file_id}",
        )
        return self._item(response, StorageUnavailable, f"move file {file_id}")

    # -------------------------------------------------------------------------
    # 업로드
    # -------------------------------------------------------------------------
    async def create_file(self, parent_id: str, name: str, content: bytes, mime_type: str) -> DriveItem:
        """메타데이터와 본문을 multipart/related 요청 하나로 보내는 단일 업로드"""
        context = f"upload '{name}'"
        boundary = f"seminarhub-{uuid.uuid4().hex}"
        metadata = json.dumps({"name": name, "parents": [parent_id]}, ensure_ascii=False)
        body = b"".join([
            f"--{boundary}\r\n".encode(),
            b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
            metadata.encode("utf-8"),
            f"\r\n--{boundary}\r\n".encode(),
            f"Content-Type: {mime_type}\r\n\r\n".encode(),
            content,
            f"\r\n--{boundary}--\r\n".encode(),
        ])
        response = await self._request(
            "POST",
            f"{self._upload_url}/files",
            params={"uploadType": "multipart", "fields": ITEM_FIELDS, **_SHARED_DRIVE_PARAMS},
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
            content=body,
            error_cls=UploadFailed,
            context=context,
        )
        return self._item(response, UploadFailed, context)

    async def start_resumable_session(self, parent_id: str, name: str, mime_type: str, size: int) -> str:
        """재개 가능 업로드 세션을 열고 세션 URL(Location 헤더)을 반환합니다."""
        response = await self._request(
            "POST",
            f"{self._upload_url}/files",
            params={"uploadType": "resumable", "fields": ITEM_FIELDS, **_SHARED_DRIVE_PARAMS},
            headers={
                "Content-Type": "application/json; charset=UTF-8",
                "X-Upload-Content-Type": mime_type,
                "X-Upload-Content-Length": str(size),
            },
            json={"name": name, "parents": [parent_id]},
            error_cls=UploadFailed,
            context=f"start resumable upload '{name}'",
        )
        location = response.headers.get("Location")
        if not location:
            raise UploadFailed("Drive resumable upload: no Location header")
        return location

    async def upload_chunk(
        self, session_url: str, chunk: bytes, offset: int, total: int, mime_type: str
    ) -> Tuple[int, Optional[DriveItem]]:
        """
        세션 URL로 `offset`부터의 청크를 보냅니다.
        완료되면 (total, 파일), 아직 남았으면 (서버가 받은 다음 오프셋, None)을 반환합니다.
        """
        end = offset + len(chunk) - 1
        context = f"upload bytes {offset}-{end}/{total}"
        response = await self._request(
            "PUT",
            session_url,
            headers={
                "Content-Length": str(len(chunk)),
                "Content-Range": f"bytes {offset}-{end}/{total}",
                "Content-Type": mime_type,
            },
            content=chunk,
            accept=(RESUME_INCOMPLETE,),
            error_cls=UploadFailed,
            context=context,
        )
        if response.status_code == RESUME_INCOMPLETE:
            received = response.headers.get("Range")
            if not received:
                # 서버가 아직 아무 바이트도 받지 않음
                return 0, None
            try:
                return parse_received_range(received), None
            except ValueError as e:
                logger.error("Drive returned a malformed Range header (%s): %r", context, received)
                raise UploadFailed("Google Drive에서 잘못된 응답을 받았습니다.", details=f"{context}: {e}") from e
        return total, self._item(response, UploadFailed, context)
