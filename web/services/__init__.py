"""
Web 서비스 패키지

비즈니스 로직 처리
"""

from web.services.transaction_service import TransactionService
from web.services.expense_service import ExpenseService
from web.services.cash_service import CashService
from web.services.consultation_service import ConsultationService

__all__ = [
    "TransactionService",
    "ExpenseService",
    "CashService",
    "ConsultationService",
]
