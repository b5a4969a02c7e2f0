"""
유틸리티 패키지

금액 변환, 시간 처리 등 공통 유틸리티
"""

from core.utils.money import (
    from_minor,
    to_decimal,
    to_minor,
    validate_amount,
)
from core.utils.timezone import (
    now_utc,
    parse_iso,
    to_iso,
    to_utc,
)

__all__ = [
    "from_minor",
    "to_decimal",
    "to_minor",
    "validate_amount",
    "now_utc",
    "parse_iso",
    "to_iso",
    "to_utc",
]
