# tests/services/test_batch_upload.py

"""
일괄 업로드 코디네이터(app.domains.evi.services.upload_batch)에 대한 단위 테스트 모듈입니다.
"""

import re
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from app.core.dependencies import UploadPolicy
from app.core.exceptions import StorageUnavailable
from app.domains.evi import services as evi_services
from app.domains.evi.schemas import CandidateFile
from app.domains.evi.services import FolderContext, proof_material_namer, upload_batch

from tests.conftest import ROOT_FOLDER_ID

FOLDER_NAME = "Algorithms 101_20240305"
WHEN = datetime(2024, 3, 5, 10, 0, tzinfo=ZoneInfo("Asia/Seoul"))


@pytest.fixture
def policy() -> UploadPolicy:
    return UploadPolicy(max_file_size=1024, allowed_mime_types=frozenset({"image/png", "application/pdf"}))


@pytest.fixture
def context(drive) -> FolderContext:
    return FolderContext(drive.resolver, ROOT_FOLDER_ID, FOLDER_NAME)


def candidate(name: str, mime_type: str = "image/png", size: int = 10) -> CandidateFile:
    return CandidateFile(file_name=name, mime_type=mime_type, content=b"x" * size)


def keep_name(c: CandidateFile) -> str:
    return c.file_name


@pytest.mark.asyncio
async def test_disallowed_type_in_the_middle(drive, fake_drive, context, policy):
    files = [
        candidate("slide.png"),
        candidate("setup.exe", mime_type="application/x-msdownload"),
        candidate("handout.pdf", mime_type="application/pdf"),
    ]

    result = await upload_batch(context, files, uploader=drive.uploader, policy=policy, name_for=keep_name)

    assert (result.succeeded, result.failed) == (2, 1)
    assert result.message == "2개 파일이 Google Drive에 업로드되었습니다. (1개 실패)"
    assert [o.success for o in result.results] == [True, False, True]
    assert result.results[1].file_name == "setup.exe"
    assert result.results[1].error == evi_services.INVALID_FILE_TYPE

    # 1번과 3번 파일은 같은 폴더에 업로드됩니다.
    parents = {u["parent"] for u in fake_drive.uploads}
    assert parents == {result.folder_id}
    assert fake_drive.folder_creates == 1
    assert fake_drive.items[result.folder_id]["name"] == FOLDER_NAME


@pytest.mark.asyncio
async def test_oversized_file_never_reaches_uploader(drive, fake_drive, context, policy):
    files = [candidate("huge-scan.png", size=policy.max_file_size + 1), candidate("ok.png")]

    result = await upload_batch(context, files, uploader=drive.uploader, policy=policy, name_for=keep_name)

    assert [u["name"] for u in fake_drive.uploads] == ["ok.png"]
    rejected = result.results[0]
    assert rejected.success is False
    assert rejected.file_name == "huge-scan.png"
    assert rejected.error == evi_services.FILE_TOO_LARGE.format(limit_mb=0)


@pytest.mark.asyncio
async def test_one_outcome_per_file_in_input_order(drive, fake_drive, context, policy):
    fake_drive.fail_uploads_at = {2}
    files = [
        candidate("1.png"),
        candidate("2.txt", mime_type="text/plain"),
        candidate("3.png"),
        candidate("4.png"),
        candidate("5.png", size=0),
        candidate("6.pdf", mime_type="application/pdf"),
    ]

    result = await upload_batch(context, files, uploader=drive.uploader, policy=policy, name_for=keep_name)

    assert [o.file_name for o in result.results] == ["1.png", "2.txt", "3.png", "4.png", "5.png", "6.pdf"]
    assert [o.success for o in result.results] == [True, False, False, True, False, True]
    assert result.results[2].error == "The user's Drive storage quota has been exceeded."
    assert result.results[4].error == evi_services.EMPTY_FILE
    assert (result.succeeded, result.failed) == (3, 3)


@pytest.mark.asyncio
async def test_non_json_response_fails_only_that_file(drive, fake_drive, context, policy):
    fake_drive.html_uploads_at = {1}
    files = [candidate("1.png"), candidate("2.png"), candidate("3.pdf", mime_type="application/pdf")]

    result = await upload_batch(context, files, uploader=drive.uploader, policy=policy, name_for=keep_name)

    assert [o.success for o in result.results] == [False, True, True]
    assert result.results[0].file_name == "1.png"
    assert result.results[0].error == "Google Drive에서 잘못된 응답을 받았습니다."
    assert (result.succeeded, result.failed) == (2, 1)
    assert [u["name"] for u in fake_drive.uploads] == ["2.png", "3.pdf"]


@pytest.mark.asyncio
async def test_successful_outcome_carries_remote_reference(drive, fake_drive, context, policy):
    result = await upload_batch(
        context, [candidate("slide.png")], uploader=drive.uploader, policy=policy, name_for=lambda c: "renamed.png"
    )

    [outcome] = result.results
    [upload] = fake_drive.uploads
    assert outcome.file_id == upload["id"]
    assert outcome.file_name == "renamed.png"
    assert outcome.web_view_link
    assert outcome.error is None


@pytest.mark.asyncio
async def test_folder_resolved_once_per_batch(drive, fake_drive, context, policy):
    files = [candidate(f"{i}.png") for i in range(4)]

    await upload_batch(context, files, uploader=drive.uploader, policy=policy, name_for=keep_name)

    assert fake_drive.folder_creates == 1
    assert fake_drive.list_calls == 1


@pytest.mark.asyncio
async def test_known_folder_skips_resolution(drive, fake_drive, policy):
    folder_id = fake_drive.add_folder(ROOT_FOLDER_ID, "Algorithms_101")
    context = FolderContext(drive.resolver, ROOT_FOLDER_ID, FOLDER_NAME, folder_id=folder_id)

    result = await upload_batch(context, [candidate("a.png")], uploader=drive.uploader, policy=policy, name_for=keep_name)

    assert result.folder_id == folder_id
    assert fake_drive.list_calls == 0
    assert fake_drive.uploads[0]["parent"] == folder_id


@pytest.mark.asyncio
async def test_all_invalid_files_do_not_touch_remote(drive, fake_drive, context, policy):
    files = [candidate("a.txt", mime_type="text/plain"), candidate("b.png", size=0)]

    result = await upload_batch(context, files, uploader=drive.uploader, policy=policy, name_for=keep_name)

    assert result.folder_id is None
    assert (result.succeeded, result.failed) == (0, 2)
    assert result.message == "0개 파일이 Google Drive에 업로드되었습니다. (2개 실패)"
    assert fake_drive.list_calls == 0


@pytest.mark.asyncio
async def test_folder_resolution_failure_fails_whole_batch(drive, fake_drive, context, policy):
    fake_drive.fail_folder_create = (500, "Internal Error")

    with pytest.raises(StorageUnavailable):
        await upload_batch(
            context, [candidate("a.png"), candidate("b.png")], uploader=drive.uploader, policy=policy, name_for=keep_name
        )
    assert fake_drive.uploads == []


def test_proof_material_names(monkeypatch):
    stamps = iter([1709600000000, 1709600000001])
    monkeypatch.setattr(evi_services, "now_millis", lambda: next(stamps))
    name_for = proof_material_namer("Algorithms 101", WHEN, "Asia/Seoul")

    assert name_for(candidate("slide.PNG")) == "Algorithms_101_20240305_1709600000000.PNG"
    assert name_for(candidate("noext")) == "Algorithms_101_20240305_1709600000001.bin"


def test_proof_material_name_format():
    name_for = proof_material_namer("Algorithms 101", WHEN, "Asia/Seoul")
    name = name_for(candidate("slide.png"))
    assert re.fullmatch(r"Algorithms_101_20240305_\d{13}\.png", name)
