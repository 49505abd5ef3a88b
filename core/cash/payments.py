"""
결제 표현 정규화

내원 정보의 결제는 두 가지 형태로 저장될 수 있다.

- FlatPayment: 레거시 단일 결제 (payment_method + payment_amount)
- ItemizedPayments: 결제 항목 배열 (payments[])

어느 쪽이든 PaymentLine 리스트로 정규화해서 시재 기록 동기화에 사용한다.
payments[]가 비어 있지 않으면 항목 배열이 우선한다.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from core.constants import Defaults
from core.types import is_cash
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock, DateInput

# 단일 결제의 payment_id (지출도 동일)
FLAT_PAYMENT_ID = ""


@dataclass(frozen=True)
class PaymentLine:
    """정규화된 결제 한 건

    Attributes:
        payment_id: 원천 레코드 안에서의 결제 식별자 (단일 결제는 "")
        method: 결제 수단 (현금/카드/계좌이체)
        amount: 결제 금액
        date: 시재 인식 날짜 (현지 00:00의 UTC 시각)
    """

    payment_id: str
    method: str | None
    amount: int
    date: datetime

    @property
    def is_cash(self) -> bool:
        """시재 기록 대상 여부 (현금이면서 금액 > 0)"""
        return is_cash(self.method) and self.amount > 0


@dataclass(frozen=True)
class FlatPayment:
    """레거시 단일 결제"""

    method: str | None
    amount: int
    date: DateInput

    def to_lines(self, clock: ClinicClock = DEFAULT_CLOCK) -> list[PaymentLine]:
        return [
            PaymentLine(
                payment_id=FLAT_PAYMENT_ID,
                method=self.method,
                amount=int(self.amount or 0),
                date=clock.day_start(self.date),
            )
        ]


@dataclass(frozen=True)
class ItemizedPayments:
    """결제 항목 배열

    각 항목의 date가 없으면 record_date를 사용한다.
    payment_id가 없거나 앞 항목과 겹치는 항목은 배열 내 위치로 식별한다.
    """

    items: tuple[Mapping[str, Any], ...]
    record_date: DateInput

    def to_lines(self, clock: ClinicClock = DEFAULT_CLOCK) -> list[PaymentLine]:
        lines = []
        seen: set[str] = set()
        for index, item in enumerate(self.items):
            payment_id = str(item.get("payment_id") or "")
            if not payment_id or payment_id in seen:
                payment_id = f"line-{index}"
            seen.add(payment_id)
            lines.append(
                PaymentLine(
                    payment_id=payment_id,
                    method=item.get("method"),
                    amount=int(item.get("amount") or 0),
                    date=clock.day_start(item.get("date") or self.record_date),
                )
            )
        return lines


PaymentRepresentation = FlatPayment | ItemizedPayments


def payment_representation(record: Mapping[str, Any]) -> PaymentRepresentation:
    """내원 정보 문서에서 결제 표현 추출"""
    items = record.get("payments") or []
    if items:
        return ItemizedPayments(items=tuple(items), record_date=record["date"])
    return FlatPayment(
        method=record.get("payment_method"),
        amount=record.get("payment_amount") or 0,
        date=record["date"],
    )


def payment_lines(
    record: Mapping[str, Any] | None,
    clock: ClinicClock = DEFAULT_CLOCK,
) -> list[PaymentLine]:
    """내원 정보 문서를 PaymentLine 리스트로 정규화 (None이면 빈 리스트)"""
    if record is None:
        return []
    return payment_representation(record).to_lines(clock)


def cash_lines(
    record: Mapping[str, Any] | None,
    clock: ClinicClock = DEFAULT_CLOCK,
) -> dict[str, PaymentLine]:
    """현금 결제 항목만 payment_id 기준으로 반환 (입력 순서 유지)"""
    return {
        line.payment_id: line
        for line in payment_lines(record, clock)
        if line.is_cash
    }


def transaction_description(record: Mapping[str, Any]) -> str:
    """내원 정보의 시재 기록 설명 ("{환자명} 현금결제")"""
    patient_name = record.get("patient_name") or Defaults.PATIENT_NAME
    return f"{patient_name} 현금결제"


def expense_description(record: Mapping[str, Any]) -> str:
    """지출의 시재 기록 설명 (없으면 기본 문구)"""
    return record.get("description") or Defaults.CASH_EXPENSE_DESCRIPTION
