"""
시간 유틸리티

내부 저장은 UTC ISO 문자열 원칙을 따르기 위한 헬퍼 함수
"""

from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """datetime을 UTC로 변환

    Args:
        dt: datetime 객체 (naive면 UTC로 간주)

    Returns:
        UTC 타임존의 datetime
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(value: datetime | date | None) -> str | None:
    """저장용 ISO 문자열 변환

    datetime은 UTC로 정규화, date는 그대로 ISO 날짜 문자열.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_utc(value).isoformat()
    return value.isoformat()


def parse_iso(value: str | None) -> datetime | None:
    """저장된 ISO 문자열 → UTC datetime

    SQLite datetime('now') 형식("YYYY-MM-DD HH:MM:SS")도 허용.
    """
    if not value:
        return None
    return to_utc(datetime.fromisoformat(value))
