"""
Closed Period Guard

마감된 날짜의 시재 기록 변경 차단.

마감 여부 조회 자체가 실패하면 "마감되지 않음"으로 간주한다 (fail-open).
조회 장애로 일상 업무 입력이 막히지 않도록 하기 위함이며,
이 경우 WARNING 로그를 남긴다.
"""

import logging
from datetime import datetime

from core.cash.errors import ClosedPeriodError
from core.cash.models import CashRecord
from core.cash.store import CashRecordStore
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock, DateInput

logger = logging.getLogger(__name__)


class ClosedPeriodGuard:
    """마감 기간 가드

    Args:
        store: 시재 기록 저장소
        clock: 병원 시계 (현지 날짜 구간 계산용)

    사용 예시:
    ```python
    guard = ClosedPeriodGuard(store)
    await guard.ensure_open(record)  # 마감된 날짜면 ClosedPeriodError
    ```
    """

    def __init__(self, store: CashRecordStore, clock: ClinicClock = DEFAULT_CLOCK):
        self.store = store
        self.clock = clock

    async def is_closed(self, date: DateInput) -> bool:
        """date가 속한 현지 날짜가 마감되었는지 확인

        해당 날짜에 closed 기록이 하나라도 있으면 마감된 것으로 본다.
        조회 오류 시 False (fail-open).
        """
        try:
            start, end = self.clock.day_window(date)
            return await self.store.has_closed_in_range(start, end)
        except Exception as e:
            logger.warning(f"마감 여부 확인 실패, 마감되지 않은 것으로 처리: {e}")
            return False

    async def ensure_open(self, record: CashRecord) -> None:
        """시재 기록을 변경/삭제할 수 있는지 확인

        Raises:
            ClosedPeriodError: 기록 자체가 마감되었거나 해당 날짜가 마감된 경우
        """
        if record.closed or await self.is_closed(record.date):
            raise ClosedPeriodError(record.date, self.clock.local_date(record.date))

    async def ensure_date_open(self, date: datetime) -> None:
        """새 기록을 추가할 날짜가 마감되지 않았는지 확인

        Raises:
            ClosedPeriodError: 해당 날짜가 마감된 경우
        """
        if await self.is_closed(date):
            raise ClosedPeriodError(date, self.clock.local_date(date))
