# tests/services/test_uploads.py

"""
업로드 전략(단일/재개 가능)과 FileUploader에 대한 단위 테스트 모듈입니다.
"""

import pytest

from app.core.config import DRIVE_CHUNK_UNIT
from app.core.exceptions import StorageUnavailable, UploadFailed
from app.services.drive import FileUploader, file_view_link
from app.services.drive.uploads import ResumableUpload

from tests.conftest import ROOT_FOLDER_ID


@pytest.fixture
def uploader(drive) -> FileUploader:
    """1 KiB를 넘으면 재개 가능 업로드(청크 256 KiB)를 사용하는 업로더"""
    return FileUploader(drive.client, resumable_threshold=1024, chunk_size=DRIVE_CHUNK_UNIT)


def test_strategy_selected_by_size(uploader):
    assert uploader.strategy_for(0).name == "multipart"
    assert uploader.strategy_for(1024).name == "multipart"
    assert uploader.strategy_for(1025).name == "resumable"


@pytest.mark.parametrize("chunk_size", [0, -DRIVE_CHUNK_UNIT, 1000, DRIVE_CHUNK_UNIT + 1])
def test_resumable_chunk_size_must_be_aligned(chunk_size):
    with pytest.raises(ValueError):
        ResumableUpload(chunk_size)


@pytest.mark.asyncio
async def test_small_file_uses_single_request(uploader, fake_drive):
    ref = await uploader.upload(ROOT_FOLDER_ID, "출석부.txt", b"hello", "text/plain")

    [upload] = fake_drive.uploads
    assert upload["strategy"] == "multipart"
    assert upload["name"] == "출석부.txt"
    assert upload["parent"] == ROOT_FOLDER_ID
    assert upload["mime_type"] == "text/plain"
    assert upload["content"] == b"hello"
    assert ref.remote_id == upload["id"]
    assert ref.display_name == "출석부.txt"
    assert ref.shareable_link.startswith(f"https://drive.google.com/file/d/{ref.remote_id}/")


@pytest.mark.asyncio
async def test_large_file_uses_resumable_chunks(uploader, fake_drive):
    content = bytes(range(256)) * (DRIVE_CHUNK_UNIT * 2 // 256) + b"tail"

    ref = await uploader.upload(ROOT_FOLDER_ID, "recording.pdf", content, "application/pdf")

    [upload] = fake_drive.uploads
    assert upload["strategy"] == "resumable"
    assert upload["content"] == content
    assert upload["name"] == "recording.pdf"
    assert upload["mime_type"] == "application/pdf"
    assert fake_drive.session_puts() == [3]
    assert ref.remote_id == upload["id"]


@pytest.mark.asyncio
async def test_both_strategies_produce_same_logical_file(drive, fake_drive):
    content = b"x" * 4096
    single = FileUploader(drive.client, resumable_threshold=10 * 1024, chunk_size=DRIVE_CHUNK_UNIT)
    resumable = FileUploader(drive.client, resumable_threshold=10, chunk_size=DRIVE_CHUNK_UNIT)

    await single.upload(ROOT_FOLDER_ID, "same.txt", content, "text/plain")
    await resumable.upload(ROOT_FOLDER_ID, "same.txt", content, "text/plain")

    first, second = fake_drive.uploads
    assert (first["strategy"], second["strategy"]) == ("multipart", "resumable")
    for key in ("name", "parent", "mime_type", "content"):
        assert first[key] == second[key]


@pytest.mark.asyncio
async def test_link_falls_back_to_file_view_link(uploader, fake_drive):
    fake_drive.omit_links = True
    ref = await uploader.upload(ROOT_FOLDER_ID, "a.txt", b"hi", "text/plain")
    assert ref.shareable_link == file_view_link(ref.remote_id)


@pytest.mark.asyncio
async def test_remote_rejection_raises_upload_failed(uploader, fake_drive):
    fake_drive.fail_uploads_at = {1}
    fake_drive.upload_error = (400, "Invalid MIME type provided for the uploaded content.")

    with pytest.raises(UploadFailed) as exc_info:
        await uploader.upload(ROOT_FOLDER_ID, "a.txt", b"hi", "text/plain")

    assert exc_info.value.reason == "Invalid MIME type provided for the uploaded content."
    assert fake_drive.uploads == []


@pytest.mark.asyncio
async def test_resumable_session_rejection_raises_upload_failed(uploader, fake_drive):
    fake_drive.fail_uploads_at = {1}
    with pytest.raises(UploadFailed):
        await uploader.upload(ROOT_FOLDER_ID, "big.bin", b"x" * 2048, "application/octet-stream")


@pytest.mark.asyncio
async def test_stalled_resumable_upload_fails(uploader, fake_drive):
    fake_drive.stall_resumable = True
    with pytest.raises(UploadFailed) as exc_info:
        await uploader.upload(ROOT_FOLDER_ID, "big.bin", b"x" * 2048, "application/octet-stream")
    assert "no progress" in exc_info.value.reason


@pytest.mark.asyncio
async def test_unreachable_remote_raises_storage_unavailable(uploader, fake_drive):
    fake_drive.unreachable = True
    with pytest.raises(StorageUnavailable):
        await uploader.upload(ROOT_FOLDER_ID, "a.txt", b"hi", "text/plain")


@pytest.mark.asyncio
async def test_resumable_upload_restarts_once_when_progress_is_lost(uploader, fake_drive):
    content = bytes(range(256)) * (DRIVE_CHUNK_UNIT * 2 // 256) + b"tail"
    fake_drive.lose_resumable_progress_once = True

    ref = await uploader.upload(ROOT_FOLDER_ID, "recording.pdf", content, "application/pdf")

    [upload] = fake_drive.uploads
    assert upload["content"] == content
    assert ref.remote_id == upload["id"]
    # 0 → 256K(유실) → 0 → 256K → 512K
    assert fake_drive.session_puts() == [5]


@pytest.mark.asyncio
async def test_malformed_range_header_raises_upload_failed(uploader, fake_drive):
    fake_drive.malformed_range = True

    with pytest.raises(UploadFailed) as exc_info:
        await uploader.upload(ROOT_FOLDER_ID, "big.bin", b"x" * 2048, "application/octet-stream")

    assert "bytes=garbage" in exc_info.value.details


@pytest.mark.asyncio
async def test_non_json_upload_response_raises_upload_failed(uploader, fake_drive):
    fake_drive.html_uploads_at = {1}

    with pytest.raises(UploadFailed) as exc_info:
        await uploader.upload(ROOT_FOLDER_ID, "a.txt", b"hi", "text/plain")

    assert exc_info.value.reason == "Google Drive에서 잘못된 응답을 받았습니다."
    assert "text/html" in exc_info.value.details
