# tests/services/test_naming.py

"""
증빙자료 폴더/파일 이름 규칙(app.utils.naming)에 대한 단위 테스트 모듈입니다.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from app.utils.naming import (
    MAX_SANITIZED_LENGTH,
    PLACEHOLDER_NAME,
    coerce_timestamp,
    derive_file_base_name,
    derive_folder_name,
    file_extension,
    format_day,
    sanitize_title,
)

SEOUL = ZoneInfo("Asia/Seoul")
ILLEGAL = set('/\\?%*:|"<>')


def test_folder_name_for_local_day():
    assert derive_folder_name("Algorithms 101", datetime(2024, 3, 5, 9, 30, tzinfo=SEOUL)) == "Algorithms 101_20240305"


def test_folder_name_uses_local_calendar_not_utc():
    """UTC로는 3월 4일이지만 서울 시간으로는 3월 5일인 시각"""
    moment = datetime(2024, 3, 4, 16, 0, tzinfo=timezone.utc)

    assert derive_folder_name("Algorithms 101", moment, "Asia/Seoul") == "Algorithms 101_20240305"
    assert derive_folder_name("Algorithms 101", moment, "UTC") == "Algorithms 101_20240304"


def test_folder_name_is_deterministic():
    moment = datetime(2024, 12, 31, 23, 59, tzinfo=SEOUL)
    names = {derive_folder_name("Data Science: 입문", moment, "Asia/Seoul") for _ in range(5)}
    assert names == {"Data Science: 입문_20241231"}


def test_folder_name_keeps_raw_title():
    """폴더 조회용 이름은 제목을 정리하지 않고 그대로 사용합니다."""
    assert derive_folder_name("A/B Testing", "2024-01-01T12:00:00+09:00") == "A/B Testing_20240101"


@pytest.mark.parametrize("value, expected", [
    (datetime(2024, 3, 4, 16, 0), "20240305"),               # naive → UTC로 간주
    (date(2024, 3, 5), "20240305"),                          # 달력 날짜는 그대로
    (1709600400, "20240305"),                                # epoch 초 (UTC 01:00)
    ("2024-03-05", "20240305"),
    ("2024-03-04T16:00:00Z", "20240305"),
    ("2024-03-05T23:30:00+09:00", "20240305"),
    ("2024-01-09T00:00:00+09:00", "20240109"),              # 0으로 채운 월/일
])
def test_format_day_inputs(value, expected):
    assert format_day(value, "Asia/Seoul") == expected


@pytest.mark.parametrize("value", [date(2024, 3, 5), "2024-03-05"])
@pytest.mark.parametrize("zone", ["America/New_York", "Asia/Seoul", "Pacific/Kiritimati", "Pacific/Pago_Pago"])
def test_calendar_date_keeps_its_day_in_any_zone(value, zone):
    assert derive_folder_name("Algorithms 101", value, zone) == "Algorithms 101_20240305"


def test_moment_west_of_utc_uses_local_day():
    """UTC 3월 5일 03:00은 뉴욕에서는 아직 3월 4일입니다."""
    moment = datetime(2024, 3, 5, 3, 0, tzinfo=timezone.utc)
    assert format_day(moment, "America/New_York") == "20240304"


def test_epoch_seconds_are_accepted():
    assert coerce_timestamp(1709600400) == datetime(2024, 3, 5, 1, 0, tzinfo=timezone.utc)
    assert coerce_timestamp(1709600400.5).microsecond == 500000


def test_unparsable_date_falls_back_to_now():
    fixed = datetime(2030, 6, 1, 3, 0, tzinfo=timezone.utc)
    assert coerce_timestamp("not-a-date", now=fixed) == fixed
    assert coerce_timestamp(None, now=fixed) == fixed
    assert coerce_timestamp(True, now=fixed) == fixed
    assert coerce_timestamp(10 ** 20, now=fixed) == fixed


def test_unparsable_date_still_produces_a_name():
    name = derive_folder_name("Seminar", "garbage")
    assert name.startswith("Seminar_")
    assert len(name.split("_")[-1]) == 8


def test_sanitize_title_strips_illegal_characters():
    assert sanitize_title('Intro: A/B "testing" <2024>?') == "Intro_AB_testing_2024"


def test_sanitize_title_collapses_whitespace():
    assert sanitize_title("  Deep    Learning  Study ") == "Deep_Learning_Study"


@pytest.mark.parametrize("title", [
    "정상 제목",
    'wh*at|is"this',
    "50% off: <sale>",
    "back\\slash / forward",
    "tab\tnew\nline",
])
def test_sanitized_title_only_contains_safe_characters(title):
    result = sanitize_title(title)
    assert result
    assert not (set(result) & ILLEGAL)
    assert " " not in result
    assert all(ord(c) >= 0x20 for c in result)


@pytest.mark.parametrize("title", ["", "   ", "???", None, '<>:"/\\|?*'])
def test_sanitize_title_placeholder_for_empty_result(title):
    assert sanitize_title(title) == PLACEHOLDER_NAME


def test_sanitize_title_truncates():
    assert len(sanitize_title("x" * 250)) == MAX_SANITIZED_LENGTH
    assert sanitize_title("abcdef", max_length=3) == "abc"


def test_file_base_name_sanitizes_title():
    when = datetime(2024, 3, 5, 10, 0, tzinfo=SEOUL)
    assert derive_file_base_name("Algorithms 101", when) == "Algorithms_101_20240305"


@pytest.mark.parametrize("file_name, expected", [
    ("report.pdf", "pdf"),
    ("archive.tar.gz", "gz"),
    ("photo.JPG", "JPG"),
    ("README", "bin"),
    ("trailing.", "bin"),
    (None, "bin"),
])
def test_file_extension(file_name, expected):
    assert file_extension(file_name) == expected
