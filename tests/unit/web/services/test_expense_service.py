"""
ExpenseService 테스트
"""

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cash.errors import ClosedPeriodError
from core.cash.store import CashRecordStore
from core.types import CashRecordType
from core.utils.timezone import ClinicClock
from web.services.cash_service import CashService
from web.services.expense_service import ExpenseService


@pytest.fixture
def service(db: SQLiteAdapter, clock: ClinicClock) -> ExpenseService:
    return ExpenseService(db, clock)


def expense(**overrides) -> dict:
    data = {
        "date": "2024-03-05",
        "description": "소모품 구입",
        "amount": 12000,
        "method": "현금",
        "vendor": "덴탈몰",
    }
    data.update(overrides)
    return data


class TestExpenseCash:
    """지출 ↔ 시재 기록"""

    @pytest.mark.asyncio
    async def test_cash_expense_creates_record(
        self, service: ExpenseService, cash_store: CashRecordStore
    ) -> None:
        created, outcome = await service.create_expense(expense())

        cash = await cash_store.find_by_source(created["expense_id"], CashRecordType.EXPENSE)
        assert outcome.ok
        assert cash.amount == 12000
        assert cash.description == "소모품 구입"

    @pytest.mark.asyncio
    async def test_method_change_removes_record(
        self, service: ExpenseService, cash_store: CashRecordStore
    ) -> None:
        created, _ = await service.create_expense(expense())

        await service.update_expense(created["expense_id"], {"method": "카드"})

        assert await cash_store.find_all_by_source(created["expense_id"]) == []

    @pytest.mark.asyncio
    async def test_delete_removes_record(
        self, service: ExpenseService, cash_store: CashRecordStore
    ) -> None:
        created, _ = await service.create_expense(expense())

        assert await service.delete_expense(created["expense_id"]) is True
        assert await service.get_expense(created["expense_id"]) is None
        assert await cash_store.find_all_by_source(created["expense_id"]) == []

    @pytest.mark.asyncio
    async def test_delete_on_closed_day_aborts(
        self,
        service: ExpenseService,
        cash_store: CashRecordStore,
        db: SQLiteAdapter,
        clock: ClinicClock,
    ) -> None:
        """마감된 날짜의 현금 지출은 삭제되지 않음"""
        created, _ = await service.create_expense(expense())
        await CashService(db, clock).close_day("2024-03-05", 0)

        with pytest.raises(ClosedPeriodError):
            await service.delete_expense(created["expense_id"])

        assert await service.get_expense(created["expense_id"]) is not None
        assert len(await cash_store.find_all_by_source(created["expense_id"])) == 1

    @pytest.mark.asyncio
    async def test_delete_missing(self, service: ExpenseService) -> None:
        assert await service.delete_expense("missing") is False


class TestListExpenses:
    """지출 목록"""

    @pytest.mark.asyncio
    async def test_single_day_is_not_paged(self, service: ExpenseService) -> None:
        for _ in range(12):
            await service.create_expense(expense(method="카드"))

        result = await service.list_expenses(date_start="2024-03-05", date_end="2024-03-05")

        assert len(result["expenses"]) == 12
        assert result["pagination"]["total_pages"] == 1

    @pytest.mark.asyncio
    async def test_paged(self, service: ExpenseService) -> None:
        for _ in range(12):
            await service.create_expense(expense(method="카드"))

        result = await service.list_expenses(page=2, limit=10)

        assert len(result["expenses"]) == 2
        assert result["pagination"] == {"total": 12, "page": 2, "limit": 10, "total_pages": 2}
