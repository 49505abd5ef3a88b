"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    mode: str = Field(..., description="실행 모드 (production/test)")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")
    today: str = Field(..., description="병원 현지 기준 오늘 (YYYY-MM-DD)")


class CashRecordResponse(BaseModel):
    """시재 기록 응답"""

    record_id: str = Field(..., description="시재 기록 ID")
    date: str = Field(..., description="날짜 (UTC ISO)")
    local_date: str = Field(..., description="현지 날짜 (YYYY-MM-DD)")
    kind: str = Field(..., description="유형 (수입/지출/통장입금)")
    amount: int = Field(..., description="금액")
    description: str = Field(..., description="설명")
    source_type: str | None = Field(default=None, description="원천 레코드 종류")
    source_id: str | None = Field(default=None, description="원천 레코드 ID")
    payment_id: str = Field(default="", description="원천 레코드 내 결제 ID")
    completed: bool = Field(default=False, description="처리 완료 여부")
    completed_at: str | None = Field(default=None, description="처리 완료 시각")
    group_id: str | None = Field(default=None, description="그룹 ID")
    grouped: bool = Field(default=False, description="그룹 여부")
    closed: bool = Field(default=False, description="마감 여부")
    closing_amount: int | None = Field(default=None, description="마감 금액")
    closed_at: str | None = Field(default=None, description="마감 시각")
    created_at: str | None = Field(default=None, description="생성 시각")
    updated_at: str | None = Field(default=None, description="수정 시각")


class MutationResponse(BaseModel):
    """생성/수정/삭제 응답

    원천 레코드 저장은 성공했지만 시재 기록 동기화가 실패한 경우
    cash_warnings에 사유가 담긴다.
    """

    success: bool = Field(default=True, description="처리 성공 여부")
    message: str | None = Field(default=None, description="메시지")
    data: dict[str, Any] | None = Field(default=None, description="처리된 레코드")
    cash_warnings: list[str] = Field(default_factory=list, description="시재 기록 동기화 경고")


class PaginationResponse(BaseModel):
    """페이지 정보"""

    total: int = Field(..., description="전체 건수")
    page: int = Field(..., description="현재 페이지")
    limit: int = Field(..., description="페이지 크기")
    total_pages: int = Field(..., description="전체 페이지 수")


class ExpenseListResponse(BaseModel):
    """지출 목록 응답"""

    expenses: list[dict[str, Any]] = Field(..., description="지출 목록")
    pagination: PaginationResponse = Field(..., description="페이지 정보")


class ConsultationListResponse(BaseModel):
    """상담 내역 목록 응답"""

    consultations: list[dict[str, Any]] = Field(..., description="상담 내역 목록")
    pagination: PaginationResponse = Field(..., description="페이지 정보")


class CashCloseResponse(BaseModel):
    """시재 마감 응답"""

    message: str = Field(..., description="메시지")
    date: str = Field(..., description="마감한 날짜 (YYYY-MM-DD)")
    closing_amount: int = Field(..., description="마감 금액")
    closed_count: int = Field(..., description="마감된 기록 수")


class PreviousBalanceResponse(BaseModel):
    """전일 시재 응답"""

    date: str = Field(..., description="조회 기준 날짜 (YYYY-MM-DD)")
    closing_amount: int = Field(..., description="전일 시재")
