"""
시재(현금) 관리

내원 정보/지출의 현금 결제를 시재 기록으로 유지하고,
마감된 날짜의 기록 변경을 차단한다.
"""

from core.cash.errors import CashLedgerError, ClosedPeriodError, PersistenceError
from core.cash.models import CashRecord
from core.cash.payments import (
    FLAT_PAYMENT_ID,
    FlatPayment,
    ItemizedPayments,
    PaymentLine,
    cash_lines,
    payment_lines,
    payment_representation,
)
from core.cash.store import CashRecordStore
from core.cash.guard import ClosedPeriodGuard
from core.cash.reconciler import (
    CashReconciler,
    LedgerOperation,
    ReconciliationFailure,
    ReconciliationOutcome,
)

__all__ = [
    "CashLedgerError",
    "ClosedPeriodError",
    "PersistenceError",
    "CashRecord",
    "FLAT_PAYMENT_ID",
    "FlatPayment",
    "ItemizedPayments",
    "PaymentLine",
    "cash_lines",
    "payment_lines",
    "payment_representation",
    "CashRecordStore",
    "ClosedPeriodGuard",
    "CashReconciler",
    "LedgerOperation",
    "ReconciliationFailure",
    "ReconciliationOutcome",
]
