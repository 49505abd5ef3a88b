"""
스토리지 모듈

내원 정보, 지출, 상담 내역 저장소 제공
(시재 기록 저장소는 core.cash.store)
"""

from core.storage.transaction_store import TransactionStore
from core.storage.expense_store import ExpenseStore
from core.storage.consultation_store import ConsultationStore

__all__ = [
    "TransactionStore",
    "ExpenseStore",
    "ConsultationStore",
]
