"""
결제 표현 정규화 테스트
"""

from datetime import datetime, timezone

from core.cash.payments import (
    FLAT_PAYMENT_ID,
    FlatPayment,
    ItemizedPayments,
    cash_lines,
    expense_description,
    payment_lines,
    payment_representation,
    transaction_description,
)
from core.utils.timezone import ClinicClock

# 2024-03-05 00:00 KST
MAR_5 = datetime(2024, 3, 4, 15, 0, tzinfo=timezone.utc)
MAR_6 = datetime(2024, 3, 5, 15, 0, tzinfo=timezone.utc)


class TestPaymentRepresentation:
    """payment_representation 테스트"""

    def test_flat_when_no_items(self) -> None:
        record = {"date": "2024-03-05", "payment_method": "현금", "payment_amount": 30000}

        assert isinstance(payment_representation(record), FlatPayment)

    def test_flat_when_items_empty(self) -> None:
        """빈 payments[]는 단일 결제로 처리"""
        record = {
            "date": "2024-03-05",
            "payments": [],
            "payment_method": "카드",
            "payment_amount": 10000,
        }

        assert isinstance(payment_representation(record), FlatPayment)

    def test_itemized_wins(self) -> None:
        """payments[]가 있으면 단일 결제 필드는 무시"""
        record = {
            "date": "2024-03-05",
            "payment_method": "현금",
            "payment_amount": 99999,
            "payments": [{"payment_id": "p1", "method": "카드", "amount": 10000}],
        }

        lines = payment_lines(record)

        assert isinstance(payment_representation(record), ItemizedPayments)
        assert [line.payment_id for line in lines] == ["p1"]
        assert cash_lines(record) == {}


class TestFlatPayment:
    def test_to_lines(self, clock: ClinicClock) -> None:
        """현지 날짜 00:00으로 정규화"""
        lines = FlatPayment("현금", 30000, "2024-03-05T18:30:00+09:00").to_lines(clock)

        assert len(lines) == 1
        assert lines[0].payment_id == FLAT_PAYMENT_ID
        assert lines[0].amount == 30000
        assert lines[0].date == MAR_5
        assert lines[0].is_cash is True

    def test_missing_amount(self, clock: ClinicClock) -> None:
        lines = FlatPayment("현금", None, "2024-03-05").to_lines(clock)  # type: ignore[arg-type]

        assert lines[0].amount == 0
        assert lines[0].is_cash is False


class TestItemizedPayments:
    def test_item_date_overrides_record_date(self, clock: ClinicClock) -> None:
        """항목별 날짜가 있으면 해당 날짜 사용"""
        payments = ItemizedPayments(
            items=(
                {"payment_id": "a", "method": "현금", "amount": 10000},
                {"payment_id": "b", "method": "현금", "amount": 5000, "date": "2024-03-06"},
            ),
            record_date="2024-03-05",
        )

        lines = payments.to_lines(clock)

        assert lines[0].date == MAR_5
        assert lines[1].date == MAR_6

    def test_missing_payment_id_uses_position(self, clock: ClinicClock) -> None:
        payments = ItemizedPayments(
            items=({"method": "현금", "amount": 1000}, {"method": "카드", "amount": 2000}),
            record_date="2024-03-05",
        )

        assert [line.payment_id for line in payments.to_lines(clock)] == [
            "line-0",
            "line-1",
        ]

    def test_duplicate_payment_id_uses_position(self, clock: ClinicClock) -> None:
        """같은 payment_id가 반복되면 뒤 항목은 위치로 식별"""
        record = {
            "date": "2024-03-05",
            "payments": [
                {"payment_id": "p1", "method": "현금", "amount": 10000},
                {"payment_id": "p1", "method": "현금", "amount": 20000},
            ],
        }

        lines = cash_lines(record, clock)

        assert list(lines) == ["p1", "line-1"]
        assert sum(line.amount for line in lines.values()) == 30000


class TestCashLines:
    """cash_lines 테스트"""

    def test_only_cash_with_positive_amount(self, clock: ClinicClock) -> None:
        record = {
            "date": "2024-03-05",
            "payments": [
                {"payment_id": "cash", "method": "현금", "amount": 10000},
                {"payment_id": "card", "method": "카드", "amount": 20000},
                {"payment_id": "zero", "method": "현금", "amount": 0},
                {"payment_id": "transfer", "method": "계좌이체", "amount": 5000},
            ],
        }

        lines = cash_lines(record, clock)

        assert list(lines) == ["cash"]

    def test_none_record(self) -> None:
        assert cash_lines(None) == {}
        assert payment_lines(None) == []


class TestDescriptions:
    def test_transaction_description(self) -> None:
        assert transaction_description({"patient_name": "김철수"}) == "김철수 현금결제"

    def test_transaction_description_without_name(self) -> None:
        assert transaction_description({"patient_name": ""}) == "환자 현금결제"
        assert transaction_description({}) == "환자 현금결제"

    def test_expense_description(self) -> None:
        assert expense_description({"description": "소모품"}) == "소모품"
        assert expense_description({"description": None}) == "현금 지출"
