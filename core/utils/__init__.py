"""
유틸리티 패키지

거래일자 변환, 타임존 처리 등 공통 유틸리티
"""

from core.utils.dates import (
    format_display_date,
    from_db_date,
    parse_date,
    parse_period,
    to_db_date,
    try_parse_date,
)
from core.utils.timezone import (
    now_utc,
    parse_timestamp,
    utc_timestamp,
)

__all__ = [
    "format_display_date",
    "from_db_date",
    "parse_date",
    "parse_period",
    "to_db_date",
    "try_parse_date",
    "now_utc",
    "parse_timestamp",
    "utc_timestamp",
]
