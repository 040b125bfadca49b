"""
거래일자 변환 유틸리티

외부 경계: dd/mm/yyyy (일/월/년)
내부 저장: yyyy-mm-dd (ISO, 문자열 정렬 = 날짜 정렬)

모호하거나 잘못된 입력은 추측하지 않고 거부.
"""

import re
from datetime import date

from core.errors import ValidationError

# d/m/yyyy 또는 dd/mm/yyyy (연도는 반드시 4자리)
_DISPLAY_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

# yyyy-mm-dd (ISO는 모호하지 않으므로 허용)
_ISO_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_date(value: date | str | None, field: str = "date") -> date:
    """경계 날짜 입력을 date로 변환

    Args:
        value: date 객체, 'dd/mm/yyyy' 또는 'yyyy-mm-dd' 문자열
        field: 오류 메시지에 사용할 필드 이름

    Returns:
        date 객체

    Raises:
        ValidationError: 값이 없거나 형식/날짜가 잘못된 경우

    Example:
        >>> parse_date("15/02/2024")
        datetime.date(2024, 2, 15)
    """
    message = try_parse_date(value, field)
    if isinstance(message, str):
        raise ValidationError(message)
    return message


def try_parse_date(value: date | str | None, field: str = "date") -> date | str:
    """parse_date의 비예외 버전

    검증기가 여러 오류를 모아서 보고할 때 사용.

    Returns:
        성공 시 date, 실패 시 오류 메시지
    """
    if isinstance(value, date):
        return value

    if value is None or not isinstance(value, str) or not value.strip():
        return f"Transaction {field} is required" if field == "date" else f"{field} is required"

    text = value.strip()

    match = _DISPLAY_PATTERN.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
    else:
        match = _ISO_PATTERN.match(text)
        if not match:
            return f"Invalid {field} format '{text}'. Use dd/mm/yyyy"
        year, month, day = (int(part) for part in match.groups())

    try:
        return date(year, month, day)
    except ValueError:
        return f"Invalid {field} '{text}': no such calendar day"


def to_db_date(value: date) -> str:
    """DB 저장 형식 (yyyy-mm-dd)"""
    return value.isoformat()


def from_db_date(value: str) -> date:
    """DB 저장 형식을 date로 변환"""
    return date.fromisoformat(value)


def format_display_date(value: date) -> str:
    """경계 표시 형식 (dd/mm/yyyy)

    Example:
        >>> format_display_date(date(2024, 2, 15))
        '15/02/2024'
    """
    return value.strftime("%d/%m/%Y")


def parse_period(
    start: date | str | None,
    end: date | str | None,
) -> tuple[date, date]:
    """기간 [start, end] 변환 및 검증

    Raises:
        ValidationError: 날짜 형식 오류 또는 start > end
    """
    errors: list[str] = []
    start_result = try_parse_date(start, "start date")
    end_result = try_parse_date(end, "end date")

    if isinstance(start_result, str):
        errors.append(start_result)
    if isinstance(end_result, str):
        errors.append(end_result)
    if errors or not isinstance(start_result, date) or not isinstance(end_result, date):
        raise ValidationError(errors)

    if start_result > end_result:
        raise ValidationError(
            f"Start date {format_display_date(start_result)} is after "
            f"end date {format_display_date(end_result)}"
        )
    return start_result, end_result
