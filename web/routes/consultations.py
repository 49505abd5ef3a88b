"""
상담 내역 API 라우터

상담 내역 CRUD 및 동의 여부 토글.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.utils.timezone import ClinicClock
from web.dependencies import get_clock, get_db, get_db_write
from web.models.requests import (
    ConsultationCreateRequest,
    ConsultationUpdateRequest,
    DateStr,
    ToggleAgreedRequest,
)
from web.models.responses import ConsultationListResponse, MutationResponse
from web.services.consultation_service import ConsultationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/consultations", tags=["Consultations"])

NOT_FOUND = "상담 내역을 찾을 수 없습니다."


@router.get("", response_model=ConsultationListResponse)
async def list_consultations(
    date_start: DateStr | None = Query(default=None, alias="dateStart", description="시작 날짜"),
    date_end: DateStr | None = Query(default=None, alias="dateEnd", description="끝 날짜"),
    query: str | None = Query(default=None, description="차트번호/환자명 검색"),
    agreed: bool | None = Query(default=None, description="동의 여부"),
    page: int = Query(default=1, ge=1, description="페이지"),
    limit: int = Query(default=20, ge=1, le=1000, description="페이지 크기"),
    db: SQLiteAdapter = Depends(get_db),
    clock: ClinicClock = Depends(get_clock),
) -> ConsultationListResponse:
    """상담 내역 목록"""
    service = ConsultationService(db, clock)

    result = await service.list_consultations(date_start, date_end, query, agreed, page, limit)
    return ConsultationListResponse(**result)


@router.get("/{consultation_id}", response_model=MutationResponse)
async def get_consultation(
    consultation_id: str = Path(..., description="상담 내역 ID"),
    db: SQLiteAdapter = Depends(get_db),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """상담 내역 단건 조회"""
    service = ConsultationService(db, clock)

    consultation = await service.get_consultation(consultation_id)
    if consultation is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return MutationResponse(data=consultation)


@router.post("", response_model=MutationResponse, status_code=201)
async def create_consultation(
    request: ConsultationCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """상담 내역 생성"""
    service = ConsultationService(db, clock)

    consultation = await service.create_consultation(request.model_dump(mode="json"))
    return MutationResponse(message="상담 내역이 저장되었습니다.", data=consultation)


@router.put("/{consultation_id}", response_model=MutationResponse)
async def update_consultation(
    request: ConsultationUpdateRequest,
    consultation_id: str = Path(..., description="상담 내역 ID"),
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """상담 내역 수정 (보낸 필드만 변경)"""
    service = ConsultationService(db, clock)

    changes = request.model_dump(mode="json", exclude_unset=True)
    if changes.get("date") is None:
        changes.pop("date", None)

    try:
        consultation = await service.update_consultation(consultation_id, changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if consultation is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return MutationResponse(message="상담 내역이 수정되었습니다.", data=consultation)


@router.patch("/{consultation_id}/toggle-agreed", response_model=MutationResponse)
async def toggle_agreed(
    consultation_id: str = Path(..., description="상담 내역 ID"),
    request: ToggleAgreedRequest | None = None,
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """동의 여부 토글

    동의로 바뀌면 확정일을 기록하고, 미동의로 바뀌면 확정일을 비운다.
    """
    service = ConsultationService(db, clock)

    consultation = await service.toggle_agreed(
        consultation_id,
        request.confirmed_date if request else None,
    )
    if consultation is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return MutationResponse(data=consultation)


@router.delete("/{consultation_id}", response_model=MutationResponse)
async def delete_consultation(
    consultation_id: str = Path(..., description="상담 내역 ID"),
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """상담 내역 삭제"""
    service = ConsultationService(db, clock)

    deleted = await service.delete_consultation(consultation_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return MutationResponse(message="상담 내역이 삭제되었습니다.")
