"""
유틸리티 패키지

타임존 처리 등 공통 유틸리티
"""

from core.utils.timezone import (
    KST,
    DEFAULT_CLOCK,
    ClinicClock,
    to_anchored_instant,
    format_local_date,
    to_db_ts,
    from_db_ts,
)

__all__ = [
    "KST",
    "DEFAULT_CLOCK",
    "ClinicClock",
    "to_anchored_instant",
    "format_local_date",
    "to_db_ts",
    "from_db_ts",
]
