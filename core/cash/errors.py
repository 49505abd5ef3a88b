"""
시재 기록 예외

- CashLedgerError: 기본 클래스
- ClosedPeriodError: 마감된 날짜의 시재 기록 변경 시도
- PersistenceError: 저장소(DB) 오류
"""

from datetime import datetime

from core.utils.timezone import format_local_date


class CashLedgerError(Exception):
    """시재 기록 처리 오류"""

    pass


class ClosedPeriodError(CashLedgerError):
    """마감된 날짜의 시재 기록은 수정/삭제할 수 없음

    Attributes:
        date: 문제가 된 시재 기록의 날짜 (UTC)
        local_date: 현지 날짜 문자열 (YYYY-MM-DD)
    """

    def __init__(self, date: datetime, local_date: str | None = None):
        self.date = date
        self.local_date = local_date or format_local_date(date)
        super().__init__(
            f"마감된 날짜({self.local_date})의 시재 기록은 수정할 수 없습니다."
        )


class PersistenceError(CashLedgerError):
    """시재 기록 저장소 오류

    Attributes:
        cause: 원인 예외 (있으면)
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)
