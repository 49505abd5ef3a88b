"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    PaymentItemRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
    ExpenseCreateRequest,
    ExpenseUpdateRequest,
    CashRecordCreateRequest,
    CashRecordUpdateRequest,
    CashCloseRequest,
    ConsultationCreateRequest,
    ConsultationUpdateRequest,
    ToggleAgreedRequest,
)
from web.models.responses import (
    HealthResponse,
    CashRecordResponse,
    MutationResponse,
    PaginationResponse,
    ExpenseListResponse,
    ConsultationListResponse,
    CashCloseResponse,
    PreviousBalanceResponse,
)

__all__ = [
    # Requests
    "PaymentItemRequest",
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    "ExpenseCreateRequest",
    "ExpenseUpdateRequest",
    "CashRecordCreateRequest",
    "CashRecordUpdateRequest",
    "CashCloseRequest",
    "ConsultationCreateRequest",
    "ConsultationUpdateRequest",
    "ToggleAgreedRequest",
    # Responses
    "HealthResponse",
    "CashRecordResponse",
    "MutationResponse",
    "PaginationResponse",
    "ExpenseListResponse",
    "ConsultationListResponse",
    "CashCloseResponse",
    "PreviousBalanceResponse",
]
