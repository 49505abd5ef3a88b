"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증

날짜 필드는 "YYYY-MM-DD"(병원 현지 날짜) 또는 ISO 8601 시각 문자열.
형식이 잘못된 날짜는 여기서 거부되어 저장소/시재 동기화까지 가지 않는다.
"""

from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from core.types import CashRecordType, PaymentMethod
from core.utils.timezone import to_anchored_instant


def _check_date(value: str) -> str:
    try:
        to_anchored_instant(value)
    except ValueError as e:
        raise ValueError(f"날짜 형식이 올바르지 않습니다: {value}") from e
    return value


# 현지 날짜 문자열 (검증됨)
DateStr = Annotated[str, AfterValidator(_check_date)]


class PaymentItemRequest(BaseModel):
    """결제 항목 (분할 결제)"""

    payment_id: str | None = Field(default=None, description="결제 ID (수정 시 기존 값 유지)")
    method: PaymentMethod = Field(..., description="결제 방법 (현금/카드/계좌이체)")
    amount: int = Field(..., ge=0, description="결제 금액")
    date: DateStr | None = Field(default=None, description="결제일 (없으면 내원일)")
    card_company: str | None = Field(default=None, description="카드사")
    cash_receipt: bool = Field(default=False, description="현금영수증 발행 여부")


class TransactionCreateRequest(BaseModel):
    """내원 정보 생성 요청

    payments를 주면 payment_method/payment_amount 대신 결제 항목 배열이 사용된다.
    """

    date: DateStr = Field(..., description="내원일 (YYYY-MM-DD)")
    chart_number: str | None = Field(default=None, description="차트번호")
    patient_name: str | None = Field(default=None, description="환자명")
    doctor: str | None = Field(default=None, description="담당 의사")
    treatment_type: str | None = Field(default=None, description="진료 내용")
    visit_path: str | None = Field(default=None, description="내원 경로")
    is_new: bool = Field(default=False, description="신환 여부")
    is_consultation: bool = Field(default=False, description="상담 여부")
    notes: str | None = Field(default=None, description="메모")
    payment_method: PaymentMethod | None = Field(default=None, description="결제 방법")
    payment_amount: int = Field(default=0, ge=0, description="결제 금액")
    card_company: str | None = Field(default=None, description="카드사")
    cash_receipt: bool = Field(default=False, description="현금영수증 발행 여부")
    payments: list[PaymentItemRequest] | None = Field(default=None, description="결제 항목")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "date": "2024-03-01",
                    "chart_number": "10023",
                    "patient_name": "홍길동",
                    "doctor": "김원장",
                    "treatment_type": "스케일링",
                    "payment_method": "현금",
                    "payment_amount": 30000,
                },
            ]
        }
    }


class TransactionUpdateRequest(BaseModel):
    """내원 정보 수정 요청 (보낸 필드만 변경)"""

    date: DateStr | None = Field(default=None, description="내원일 (YYYY-MM-DD)")
    chart_number: str | None = Field(default=None, description="차트번호")
    patient_name: str | None = Field(default=None, description="환자명")
    doctor: str | None = Field(default=None, description="담당 의사")
    treatment_type: str | None = Field(default=None, description="진료 내용")
    visit_path: str | None = Field(default=None, description="내원 경로")
    is_new: bool | None = Field(default=None, description="신환 여부")
    is_consultation: bool | None = Field(default=None, description="상담 여부")
    notes: str | None = Field(default=None, description="메모")
    payment_method: PaymentMethod | None = Field(default=None, description="결제 방법")
    payment_amount: int | None = Field(default=None, ge=0, description="결제 금액")
    card_company: str | None = Field(default=None, description="카드사")
    cash_receipt: bool | None = Field(default=None, description="현금영수증 발행 여부")
    payments: list[PaymentItemRequest] | None = Field(default=None, description="결제 항목")


class ExpenseCreateRequest(BaseModel):
    """지출 생성 요청"""

    date: DateStr = Field(..., description="지출일 (YYYY-MM-DD)")
    description: str = Field(..., min_length=1, description="내용")
    amount: int = Field(..., ge=0, description="금액")
    method: PaymentMethod = Field(..., description="결제 방법")
    has_receipt: bool = Field(default=False, description="영수증 여부")
    vendor: str | None = Field(default=None, description="거래처")
    account: str | None = Field(default=None, description="계정 과목")
    notes: str | None = Field(default=None, description="메모")


class ExpenseUpdateRequest(BaseModel):
    """지출 수정 요청 (보낸 필드만 변경)"""

    date: DateStr | None = Field(default=None, description="지출일 (YYYY-MM-DD)")
    description: str | None = Field(default=None, min_length=1, description="내용")
    amount: int | None = Field(default=None, ge=0, description="금액")
    method: PaymentMethod | None = Field(default=None, description="결제 방법")
    has_receipt: bool | None = Field(default=None, description="영수증 여부")
    vendor: str | None = Field(default=None, description="거래처")
    account: str | None = Field(default=None, description="계정 과목")
    notes: str | None = Field(default=None, description="메모")


class CashRecordCreateRequest(BaseModel):
    """시재 기록 직접 추가 요청 (통장입금만 허용)"""

    date: DateStr = Field(..., description="날짜 (YYYY-MM-DD)")
    kind: CashRecordType = Field(default=CashRecordType.BANK_DEPOSIT, description="유형")
    amount: int = Field(..., gt=0, description="금액")
    description: str | None = Field(default=None, description="설명 (없으면 '통장입금')")


class CashRecordUpdateRequest(BaseModel):
    """통장입금 기록 수정 요청"""

    amount: int | None = Field(default=None, gt=0, description="금액")
    description: str | None = Field(default=None, description="설명")


class CashCloseRequest(BaseModel):
    """시재 마감 요청"""

    date: DateStr = Field(..., description="마감할 날짜 (YYYY-MM-DD)")
    closing_amount: int = Field(..., description="마감 금액 (실제 시재)")


class ConsultationCreateRequest(BaseModel):
    """상담 내역 생성 요청"""

    date: DateStr = Field(..., description="상담일 (YYYY-MM-DD)")
    chart_number: str | None = Field(default=None, description="차트번호")
    patient_name: str | None = Field(default=None, description="환자명")
    doctor: str | None = Field(default=None, description="상담 의사")
    staff: str | None = Field(default=None, description="상담 직원")
    amount: int = Field(default=0, ge=0, description="상담 금액")
    agreed: bool = Field(default=False, description="동의 여부")
    confirmed_date: DateStr | None = Field(default=None, description="확정일")
    notes: str | None = Field(default=None, description="메모")


class ConsultationUpdateRequest(BaseModel):
    """상담 내역 수정 요청 (보낸 필드만 변경)"""

    date: DateStr | None = Field(default=None, description="상담일 (YYYY-MM-DD)")
    chart_number: str | None = Field(default=None, description="차트번호")
    patient_name: str | None = Field(default=None, description="환자명")
    doctor: str | None = Field(default=None, description="상담 의사")
    staff: str | None = Field(default=None, description="상담 직원")
    amount: int | None = Field(default=None, ge=0, description="상담 금액")
    agreed: bool | None = Field(default=None, description="동의 여부")
    confirmed_date: DateStr | None = Field(default=None, description="확정일")
    notes: str | None = Field(default=None, description="메모")


class ToggleAgreedRequest(BaseModel):
    """동의 여부 토글 요청"""

    confirmed_date: DateStr | None = Field(default=None, description="확정일 (없으면 오늘)")
