"""
ClosedPeriodGuard 테스트
"""

import logging
from datetime import datetime, timezone

import pytest

from core.cash.errors import ClosedPeriodError, PersistenceError
from core.cash.guard import ClosedPeriodGuard
from core.cash.models import CashRecord
from core.cash.store import CashRecordStore
from core.types import CashRecordType
from core.utils.timezone import ClinicClock

MAR_5 = datetime(2024, 3, 4, 15, 0, tzinfo=timezone.utc)
MAR_6 = datetime(2024, 3, 5, 15, 0, tzinfo=timezone.utc)


class FailingStore(CashRecordStore):
    """마감 여부 조회가 항상 실패하는 저장소"""

    async def has_closed_in_range(self, start: datetime, end: datetime) -> bool:
        raise PersistenceError("DB 연결 실패")


async def close_day(store: CashRecordStore, clock: ClinicClock, day: str) -> None:
    start, end = clock.day_window(day)
    await store.close_range(start, end, 10000, clock.now())


class TestIsClosed:
    """is_closed 테스트"""

    @pytest.mark.asyncio
    async def test_open_day(self, cash_store: CashRecordStore, clock: ClinicClock) -> None:
        guard = ClosedPeriodGuard(cash_store, clock)

        assert await guard.is_closed("2024-03-05") is False

    @pytest.mark.asyncio
    async def test_closed_day(self, cash_store: CashRecordStore, clock: ClinicClock) -> None:
        """해당 날짜에 마감 기록이 하나라도 있으면 마감"""
        await cash_store.insert(CashRecord(date=MAR_5, kind=CashRecordType.INCOME, amount=1000))
        await close_day(cash_store, clock, "2024-03-05")
        guard = ClosedPeriodGuard(cash_store, clock)

        assert await guard.is_closed("2024-03-05") is True
        assert await guard.is_closed(MAR_5) is True
        assert await guard.is_closed("2024-03-06") is False

    @pytest.mark.asyncio
    async def test_any_instant_in_day(self, cash_store: CashRecordStore, clock: ClinicClock) -> None:
        """같은 현지 날짜의 다른 시각도 마감"""
        await cash_store.insert(CashRecord(date=MAR_5, kind=CashRecordType.INCOME, amount=1000))
        await close_day(cash_store, clock, "2024-03-05")
        guard = ClosedPeriodGuard(cash_store, clock)

        assert await guard.is_closed("2024-03-05T23:30:00+09:00") is True

    @pytest.mark.asyncio
    async def test_fail_open(self, db, clock: ClinicClock, caplog) -> None:
        """조회 실패 시 마감되지 않은 것으로 처리하고 경고"""
        guard = ClosedPeriodGuard(FailingStore(db, clock), clock)

        with caplog.at_level(logging.WARNING):
            closed = await guard.is_closed("2024-03-05")

        assert closed is False
        assert "마감 여부 확인 실패" in caplog.text


class TestEnsureOpen:
    """ensure_open / ensure_date_open 테스트"""

    @pytest.mark.asyncio
    async def test_open_record(self, cash_store: CashRecordStore, clock: ClinicClock) -> None:
        record = await cash_store.insert(
            CashRecord(date=MAR_5, kind=CashRecordType.INCOME, amount=1000)
        )
        guard = ClosedPeriodGuard(cash_store, clock)

        await guard.ensure_open(record)

    @pytest.mark.asyncio
    async def test_closed_day_raises(self, cash_store: CashRecordStore, clock: ClinicClock) -> None:
        record = await cash_store.insert(
            CashRecord(date=MAR_5, kind=CashRecordType.INCOME, amount=1000)
        )
        await close_day(cash_store, clock, "2024-03-05")
        guard = ClosedPeriodGuard(cash_store, clock)

        with pytest.raises(ClosedPeriodError) as exc_info:
            await guard.ensure_open(record)

        assert exc_info.value.local_date == "2024-03-05"
        assert "2024-03-05" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_closed_flag_raises_even_if_lookup_fails(
        self, db, clock: ClinicClock
    ) -> None:
        """기록 자체가 마감 상태면 조회 없이 거부"""
        guard = ClosedPeriodGuard(FailingStore(db, clock), clock)
        record = CashRecord(date=MAR_5, kind=CashRecordType.INCOME, amount=1000, closed=True)

        with pytest.raises(ClosedPeriodError):
            await guard.ensure_open(record)

    @pytest.mark.asyncio
    async def test_ensure_date_open(self, cash_store: CashRecordStore, clock: ClinicClock) -> None:
        await cash_store.insert(CashRecord(date=MAR_5, kind=CashRecordType.INCOME, amount=1000))
        await close_day(cash_store, clock, "2024-03-05")
        guard = ClosedPeriodGuard(cash_store, clock)

        with pytest.raises(ClosedPeriodError):
            await guard.ensure_date_open(MAR_5)
        await guard.ensure_date_open(MAR_6)
