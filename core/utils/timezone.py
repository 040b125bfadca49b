"""
타임존 유틸리티

내부 저장: UTC ISO-8601 문자열 (마이크로초 고정 폭 → 문자열 정렬 = 시간 정렬)
"""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def utc_timestamp(dt: datetime | None = None) -> str:
    """DB 저장용 UTC 타임스탬프 문자열

    Args:
        dt: datetime 객체 (None이면 현재 시각, naive면 UTC로 간주)

    Returns:
        '2024-01-01T09:30:00.000000+00:00' 형식 문자열

    Example:
        >>> utc_timestamp(datetime(2024, 1, 1, tzinfo=timezone.utc))
        '2024-01-01T00:00:00.000000+00:00'
    """
    if dt is None:
        dt = now_utc()
    elif dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    """DB 타임스탬프 문자열을 UTC datetime으로 변환

    SQLite datetime('now') 형식('2024-01-01 00:00:00')도 허용.
    """
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
