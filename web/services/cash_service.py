"""
시재 서비스

시재 기록 일자별 조회, 통장입금 입력, 마감, 전일 시재 계산.

수입/지출 기록은 내원 정보와 지출에서 파생되므로 여기서 직접 만들거나
고칠 수 없다. 직접 관리하는 것은 통장입금뿐이다.
"""

import logging

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cash.guard import ClosedPeriodGuard
from core.cash.models import CashRecord
from core.cash.store import CashRecordStore
from core.constants import Defaults
from core.types import CashRecordType
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock, DateInput

logger = logging.getLogger(__name__)

# 직접 입력/수정/삭제 가능한 시재 기록 유형
MANUAL_RECORD_TYPES = frozenset({CashRecordType.BANK_DEPOSIT})


class CashService:
    """시재 서비스

    Args:
        db: SQLite 어댑터
        clock: 병원 시계
    """

    def __init__(self, db: SQLiteAdapter, clock: ClinicClock = DEFAULT_CLOCK):
        self.db = db
        self.clock = clock
        self.store = CashRecordStore(db, clock)
        self.guard = ClosedPeriodGuard(self.store, clock)

    async def list_day(self, date: DateInput) -> list[CashRecord]:
        """현지 날짜 하루의 시재 기록 (날짜 순)"""
        start, end = self.clock.day_window(date)
        return await self.store.find_in_range(start, end)

    async def add_record(
        self,
        date: DateInput,
        kind: CashRecordType,
        amount: int,
        description: str | None = None,
    ) -> CashRecord:
        """시재 기록 직접 추가 (통장입금만 허용)

        Raises:
            ValueError: 통장입금이 아닌 경우
            ClosedPeriodError: 마감된 날짜인 경우
        """
        if kind not in MANUAL_RECORD_TYPES:
            raise ValueError(
                "수입과 지출은 내원정보와 지출내역에서 관리됩니다. "
                "통장입금만 직접 추가할 수 있습니다."
            )

        day_start = self.clock.day_start(date)
        await self.guard.ensure_date_open(day_start)

        record = await self.store.insert(
            CashRecord(
                date=day_start,
                kind=kind,
                amount=amount,
                description=description or Defaults.BANK_DEPOSIT_DESCRIPTION,
            )
        )
        logger.info(
            f"통장입금 기록 추가: {amount} ({self.clock.local_date(day_start)})",
            extra={"record_id": record.record_id},
        )
        return record

    async def _get_manual_record(self, record_id: str) -> CashRecord | None:
        record = await self.store.get(record_id)
        if record is None:
            return None
        if record.kind not in MANUAL_RECORD_TYPES:
            raise PermissionError(
                f"{record.kind.value} 기록은 {'내원정보' if record.kind == CashRecordType.INCOME else '지출내역'}"
                f"에서 관리됩니다."
            )
        await self.guard.ensure_open(record)
        return record

    async def update_record(
        self,
        record_id: str,
        amount: int | None = None,
        description: str | None = None,
    ) -> CashRecord | None:
        """통장입금 기록 수정

        Returns:
            수정된 기록. 대상이 없으면 None

        Raises:
            PermissionError: 통장입금이 아닌 기록
            ClosedPeriodError: 마감된 기록 또는 날짜
        """
        record = await self._get_manual_record(record_id)
        if record is None:
            return None

        changes: dict[str, int | str] = {}
        if amount is not None:
            changes["amount"] = amount
        if description is not None:
            changes["description"] = description
        if changes:
            await self.store.update(record_id, changes)
            logger.info(f"통장입금 기록 수정: {record_id} {sorted(changes)}")

        return await self.store.get(record_id)

    async def delete_record(self, record_id: str) -> bool:
        """통장입금 기록 삭제

        Returns:
            삭제되었으면 True, 대상이 없으면 False

        Raises:
            PermissionError: 통장입금이 아닌 기록
            ClosedPeriodError: 마감된 기록 또는 날짜
        """
        record = await self._get_manual_record(record_id)
        if record is None:
            return False

        deleted = await self.store.delete(record_id)
        logger.info(f"통장입금 기록 삭제: {record_id}")
        return deleted

    async def close_day(self, date: DateInput, closing_amount: int) -> int:
        """현지 날짜 하루 마감

        해당 날짜의 모든 기록에 closed, closing_amount, closed_at을 기록한다.

        Returns:
            마감된 기록 수
        """
        start, end = self.clock.day_window(date)
        count = await self.store.close_range(start, end, closing_amount, self.clock.now())
        logger.info(
            f"시재 마감: {self.clock.local_date(start)} 마감금액 {closing_amount} ({count}건)"
        )
        return count

    async def previous_balance(self, date: DateInput) -> int:
        """date 전일의 시재

        전일이 마감되었으면 그 마감금액.
        아니면 전일 이전 마지막 마감금액에 그 다음 날부터 전일까지의
        수입을 더하고 지출/통장입금을 뺀 금액.
        """
        previous_day = self.clock.add_days(date, -1)
        prev_start, prev_end = self.clock.day_window(previous_day)

        closed_records = await self.store.find_in_range(prev_start, prev_end, closed=True)
        if closed_records:
            return closed_records[-1].closing_amount or 0

        last_closing = await self.store.find_last_closed_before(prev_start)
        if last_closing is None:
            balance = 0
            records = await self.store.find_in_range(self.clock.to_instant("1970-01-01"), prev_end)
        else:
            balance = last_closing.closing_amount or 0
            after_closing = self.clock.to_instant(self.clock.add_days(last_closing.date, 1))
            records = await self.store.find_in_range(after_closing, prev_end)

        for record in records:
            balance += record.signed_amount
        return balance
