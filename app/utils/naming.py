# app/utils/naming.py

"""
증빙자료 폴더/파일 이름을 만드는 순수 함수 모음입니다.

폴더 이름은 `{세미나명}_{YYYYMMDD}` 형식이며, 같은 (제목, 날짜, 시간대)에 대해
항상 같은 문자열을 반환해야 합니다. 이 이름이 Drive 폴더 중복 방지의 키이기 때문입니다.
날짜는 UTC가 아니라 지정된 시간대(기본: Asia/Seoul)의 달력 기준으로 계산합니다.
"""

import re
from datetime import date, datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Seoul"
MAX_SANITIZED_LENGTH = 100
PLACEHOLDER_NAME = "seminar"

# Drive 이름에 쓸 수 없는 문자와 제어 문자
_ILLEGAL_CHARS = re.compile(r'[/\\?%*:|"<>\x00-\x1f\x7f]')
_WHITESPACE_RUN = re.compile(r"\s+")

Timestamp = Union[datetime, date, str, int, float, None]


def coerce_timestamp(value: Timestamp, *, now: Optional[datetime] = None) -> datetime:
    """
    다양한 형태의 날짜 입력을 timezone-aware datetime으로 변환합니다.

    - `datetime`: tzinfo가 없으면 UTC로 간주합니다.
    - `date`: 해당 날짜의 UTC 자정으로 간주합니다.
    - `int` / `float`: Unix epoch 초로 간주합니다.
    - `str`: ISO 8601 형식으로 파싱합니다 (`Z` 접미사 허용).
    - 파싱할 수 없거나 None이면 현재 시각을 사용합니다 (조용히 대체).
    """
    fallback = now or datetime.now(timezone.utc)
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, timezone.utc)
        except (OverflowError, OSError, ValueError):
            return fallback
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return fallback
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def civil_date(value: Timestamp) -> Optional[date]:
    """시각 없이 달력 날짜만 담은 입력(`date`, `"2024-03-05"`)이면 그 날짜를, 아니면 None을 반환합니다."""
    if isinstance(value, datetime):
        return None
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def format_day(value: Timestamp, zone: str = DEFAULT_TIMEZONE) -> str:
    """
    지정된 시간대의 달력 날짜를 `YYYYMMDD` 문자열로 반환합니다.
    이미 달력 날짜인 입력은 시간대와 관계없이 그 날짜를 그대로 사용합니다.
    """
    day = civil_date(value)
    if day is None:
        day = coerce_timestamp(value).astimezone(ZoneInfo(zone)).date()
    return f"{day.year:04d}{day.month:02d}{day.day:02d}"


def sanitize_title(title: Optional[str], max_length: int = MAX_SANITIZED_LENGTH) -> str:
    """
    Drive 파일 이름에 안전한 형태로 제목을 정리합니다.
    금지 문자 제거 → 공백 묶음을 `_` 하나로 → 길이 제한 → 비어 있으면 대체 이름.
    """
    cleaned = _ILLEGAL_CHARS.sub("", title or "").strip()
    cleaned = _WHITESPACE_RUN.sub("_", cleaned)
    cleaned = cleaned[:max_length]
    return cleaned or PLACEHOLDER_NAME


def derive_folder_name(title: str, when: Timestamp, zone: str = DEFAULT_TIMEZONE) -> str:
    """
    증빙자료 폴더 이름 `{title}_{YYYYMMDD}`를 반환합니다. 제목은 그대로 사용합니다.

    >>> derive_folder_name("Algorithms 101", "2024-03-05T00:00:00+09:00")
    'Algorithms 101_20240305'
    """
    return f"{title}_{format_day(when, zone)}"


def derive_file_base_name(title: str, when: Timestamp, zone: str = DEFAULT_TIMEZONE) -> str:
    """업로드 파일 이름용으로 제목을 정리한 `{sanitized}_{YYYYMMDD}`를 반환합니다."""
    return f"{sanitize_title(title)}_{format_day(when, zone)}"


def file_extension(file_name: Optional[str], default: str = "bin") -> str:
    """원본 파일명의 확장자(점 제외)를 반환합니다. 없으면 `default`."""
    if not file_name or "." not in file_name:
        return default
    ext = file_name.rsplit(".", 1)[-1]
    return ext or default
