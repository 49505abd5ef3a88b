"""
CashService 테스트

통장입금 관리, 마감, 전일 시재 계산
"""

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cash.errors import ClosedPeriodError
from core.types import CashRecordType
from core.utils.timezone import ClinicClock
from web.services.cash_service import CashService
from web.services.expense_service import ExpenseService
from web.services.transaction_service import TransactionService


@pytest.fixture
def service(db: SQLiteAdapter, clock: ClinicClock) -> CashService:
    return CashService(db, clock)


async def cash_visit(db: SQLiteAdapter, clock: ClinicClock, date: str, amount: int) -> dict:
    record, _ = await TransactionService(db, clock).create_transaction({
        "date": date,
        "patient_name": "환자",
        "payment_method": "현금",
        "payment_amount": amount,
    })
    return record


async def cash_expense(db: SQLiteAdapter, clock: ClinicClock, date: str, amount: int) -> dict:
    created, _ = await ExpenseService(db, clock).create_expense({
        "date": date,
        "description": "지출",
        "amount": amount,
        "method": "현금",
    })
    return created


class TestBankDeposit:
    """통장입금 직접 관리"""

    @pytest.mark.asyncio
    async def test_add_deposit(self, service: CashService, clock: ClinicClock) -> None:
        record = await service.add_record(
            "2024-03-05T18:00:00+09:00", CashRecordType.BANK_DEPOSIT, 50000
        )

        assert record.date == clock.to_instant("2024-03-05")
        assert record.description == "통장입금"
        assert [r.record_id for r in await service.list_day("2024-03-05")] == [record.record_id]

    @pytest.mark.asyncio
    async def test_income_cannot_be_added(self, service: CashService) -> None:
        with pytest.raises(ValueError):
            await service.add_record("2024-03-05", CashRecordType.INCOME, 1000)

    @pytest.mark.asyncio
    async def test_deposit_into_closed_day(
        self, service: CashService, db: SQLiteAdapter, clock: ClinicClock
    ) -> None:
        await cash_visit(db, clock, "2024-03-05", 10000)
        await service.close_day("2024-03-05", 10000)

        with pytest.raises(ClosedPeriodError):
            await service.add_record("2024-03-05", CashRecordType.BANK_DEPOSIT, 1000)

    @pytest.mark.asyncio
    async def test_update_and_delete_deposit(self, service: CashService) -> None:
        record = await service.add_record("2024-03-05", CashRecordType.BANK_DEPOSIT, 50000)

        updated = await service.update_record(record.record_id, amount=60000, description="주간 입금")
        deleted = await service.delete_record(record.record_id)

        assert updated.amount == 60000
        assert updated.description == "주간 입금"
        assert deleted is True
        assert await service.list_day("2024-03-05") == []

    @pytest.mark.asyncio
    async def test_derived_records_are_read_only(
        self, service: CashService, db: SQLiteAdapter, clock: ClinicClock
    ) -> None:
        """수입 기록은 직접 수정/삭제 불가"""
        await cash_visit(db, clock, "2024-03-05", 10000)
        income = (await service.list_day("2024-03-05"))[0]

        with pytest.raises(PermissionError):
            await service.update_record(income.record_id, amount=1)
        with pytest.raises(PermissionError):
            await service.delete_record(income.record_id)

    @pytest.mark.asyncio
    async def test_closed_deposit_cannot_change(self, service: CashService) -> None:
        record = await service.add_record("2024-03-05", CashRecordType.BANK_DEPOSIT, 50000)
        await service.close_day("2024-03-05", 0)

        with pytest.raises(ClosedPeriodError):
            await service.delete_record(record.record_id)

    @pytest.mark.asyncio
    async def test_missing_record(self, service: CashService) -> None:
        assert await service.update_record("missing", amount=1) is None
        assert await service.delete_record("missing") is False


class TestClosing:
    """마감과 전일 시재"""

    @pytest.mark.asyncio
    async def test_close_day(
        self, service: CashService, db: SQLiteAdapter, clock: ClinicClock
    ) -> None:
        await cash_visit(db, clock, "2024-03-05", 10000)
        await cash_expense(db, clock, "2024-03-05", 3000)
        await cash_visit(db, clock, "2024-03-06", 5000)

        count = await service.close_day("2024-03-05", 7000)

        day = await service.list_day("2024-03-05")
        assert count == 2
        assert all(r.closed and r.closing_amount == 7000 for r in day)
        assert not any(r.closed for r in await service.list_day("2024-03-06"))

    @pytest.mark.asyncio
    async def test_close_empty_day(self, service: CashService) -> None:
        assert await service.close_day("2024-03-05", 0) == 0

    @pytest.mark.asyncio
    async def test_previous_balance_without_closing(
        self, service: CashService, db: SQLiteAdapter, clock: ClinicClock
    ) -> None:
        """마감 이력이 없으면 처음부터 합산"""
        await cash_visit(db, clock, "2024-03-01", 10000)
        await cash_expense(db, clock, "2024-03-02", 3000)
        await service.add_record("2024-03-03", CashRecordType.BANK_DEPOSIT, 2000)
        await cash_visit(db, clock, "2024-03-05", 99999)

        assert await service.previous_balance("2024-03-05") == 5000

    @pytest.mark.asyncio
    async def test_previous_balance_uses_previous_closing(
        self, service: CashService, db: SQLiteAdapter, clock: ClinicClock
    ) -> None:
        """전일이 마감되었으면 그 마감금액"""
        await cash_visit(db, clock, "2024-03-04", 10000)
        await service.close_day("2024-03-04", 8000)

        assert await service.previous_balance("2024-03-05") == 8000

    @pytest.mark.asyncio
    async def test_previous_balance_from_last_closing(
        self, service: CashService, db: SQLiteAdapter, clock: ClinicClock
    ) -> None:
        """마지막 마감금액 + 그 다음 날부터 전일까지의 증감"""
        await cash_visit(db, clock, "2024-03-01", 10000)
        await service.close_day("2024-03-01", 10000)
        await cash_visit(db, clock, "2024-03-02", 4000)
        await cash_expense(db, clock, "2024-03-03", 1500)

        assert await service.previous_balance("2024-03-04") == 12500
