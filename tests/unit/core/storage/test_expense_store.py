"""
ExpenseStore / ConsultationStore 테스트
"""

from datetime import datetime, timezone

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.storage.consultation_store import ConsultationStore
from core.storage.expense_store import ExpenseStore
from core.utils.timezone import ClinicClock


@pytest.fixture
def expenses(db: SQLiteAdapter, clock: ClinicClock) -> ExpenseStore:
    return ExpenseStore(db, clock)


@pytest.fixture
def consultations(db: SQLiteAdapter, clock: ClinicClock) -> ConsultationStore:
    return ConsultationStore(db, clock)


def expense_data(**overrides) -> dict:
    data = {
        "date": "2024-03-05",
        "description": "소모품",
        "amount": 10000,
        "method": "현금",
    }
    data.update(overrides)
    return data


class TestExpenseStore:
    """지출 저장소"""

    @pytest.mark.asyncio
    async def test_create_defaults(self, expenses: ExpenseStore) -> None:
        expense = await expenses.create(expense_data())

        loaded = await expenses.get(expense["expense_id"])

        assert loaded["created_by"] == "web:user"
        assert loaded["has_receipt"] is False
        assert loaded["date"] == datetime(2024, 3, 4, 15, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_update(self, expenses: ExpenseStore) -> None:
        expense = await expenses.create(expense_data())

        updated = await expenses.update(expense["expense_id"], {"amount": 20000, "vendor": "덴탈몰"})

        assert updated["amount"] == 20000
        assert (await expenses.get(expense["expense_id"]))["vendor"] == "덴탈몰"

    @pytest.mark.asyncio
    async def test_update_unknown_field(self, expenses: ExpenseStore) -> None:
        expense = await expenses.create(expense_data())

        with pytest.raises(ValueError):
            await expenses.update(expense["expense_id"], {"created_by": "someone"})

    @pytest.mark.asyncio
    async def test_find_filters(self, expenses: ExpenseStore) -> None:
        """날짜/결제수단/거래처 필터"""
        await expenses.create(expense_data(date="2024-03-04", vendor="Dental Mall"))
        await expenses.create(expense_data(date="2024-03-05", method="카드", vendor="dental mall"))
        await expenses.create(expense_data(date="2024-03-06", vendor="약국"))

        in_range, total = await expenses.find(date_start="2024-03-04", date_end="2024-03-05")
        cash_only, _ = await expenses.find(method="현금")
        by_vendor, _ = await expenses.find(vendor="DENTAL")

        assert total == 2
        assert in_range[0]["date"] > in_range[1]["date"]
        assert len(cash_only) == 2
        assert len(by_vendor) == 2

    @pytest.mark.asyncio
    async def test_vendor_filter_treats_wildcards_literally(self, expenses: ExpenseStore) -> None:
        """거래처 검색어의 % _ 는 문자 그대로 비교"""
        await expenses.create(expense_data(vendor="100% 치과재료"))
        await expenses.create(expense_data(vendor="1000 치과재료"))
        await expenses.create(expense_data(vendor="a_b 상사"))
        await expenses.create(expense_data(vendor="axb 상사"))

        percent, _ = await expenses.find(vendor="100%")
        underscore, _ = await expenses.find(vendor="a_b")

        assert [e["vendor"] for e in percent] == ["100% 치과재료"]
        assert [e["vendor"] for e in underscore] == ["a_b 상사"]

    @pytest.mark.asyncio
    async def test_find_paging(self, expenses: ExpenseStore) -> None:
        for day in range(1, 6):
            await expenses.create(expense_data(date=f"2024-03-0{day}"))

        first, total = await expenses.find(page=1, limit=2)
        last, _ = await expenses.find(page=3, limit=2)
        everything, _ = await expenses.find(limit=None)

        assert total == 5
        assert len(first) == 2
        assert len(last) == 1
        assert len(everything) == 5


class TestConsultationStore:
    """상담 내역 저장소"""

    @pytest.mark.asyncio
    async def test_create_and_find(self, consultations: ConsultationStore) -> None:
        await consultations.create({"date": "2024-03-05", "chart_number": "C-100", "patient_name": "김철수"})
        await consultations.create({"date": "2024-03-06", "chart_number": "C-200", "patient_name": "이영희"})

        by_name = await consultations.find(query="영희")
        by_chart = await consultations.find(query="c-100")
        by_date = await consultations.find(date_start="2024-03-06", date_end="2024-03-06")

        assert [c["patient_name"] for c in by_name] == ["이영희"]
        assert [c["patient_name"] for c in by_chart] == ["김철수"]
        assert len(by_date) == 1

    @pytest.mark.asyncio
    async def test_toggle_agreed(self, consultations: ConsultationStore, clock: ClinicClock) -> None:
        """동의 → 확정일 오늘, 미동의 → 확정일 비움"""
        created = await consultations.create({"date": "2024-03-01", "amount": 500000})

        agreed = await consultations.toggle_agreed(created["consultation_id"])
        reverted = await consultations.toggle_agreed(created["consultation_id"])

        assert agreed["agreed"] is True
        assert agreed["confirmed_date"] == clock.to_instant("2024-03-05")
        assert reverted["agreed"] is False
        assert reverted["confirmed_date"] is None

    @pytest.mark.asyncio
    async def test_toggle_agreed_with_date(self, consultations: ConsultationStore, clock: ClinicClock) -> None:
        created = await consultations.create({"date": "2024-03-01"})

        agreed = await consultations.toggle_agreed(created["consultation_id"], "2024-03-02")

        assert agreed["confirmed_date"] == clock.to_instant("2024-03-02")
        assert await consultations.find(agreed=True) == [agreed]

    @pytest.mark.asyncio
    async def test_missing(self, consultations: ConsultationStore) -> None:
        assert await consultations.toggle_agreed("missing") is None
        assert await consultations.update("missing", {"notes": "x"}) is None
        assert await consultations.delete("missing") is False
