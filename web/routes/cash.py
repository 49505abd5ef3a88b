"""
시재 API 라우터

GET    /api/cash?date=YYYY-MM-DD           - 하루 시재 기록
POST   /api/cash                           - 통장입금 추가
PUT    /api/cash/{id}                      - 통장입금 수정
DELETE /api/cash/{id}                      - 통장입금 삭제
POST   /api/cash/close                     - 하루 마감
GET    /api/cash/previous?date=YYYY-MM-DD  - 전일 시재
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cash.errors import CashLedgerError
from core.utils.timezone import ClinicClock
from web.dependencies import get_clock, get_db, get_db_write
from web.models.requests import (
    CashCloseRequest,
    CashRecordCreateRequest,
    CashRecordUpdateRequest,
    DateStr,
)
from web.models.responses import (
    CashCloseResponse,
    CashRecordResponse,
    MutationResponse,
    PreviousBalanceResponse,
)
from web.services.cash_service import CashService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cash", tags=["Cash"])


@router.get("", response_model=list[CashRecordResponse])
async def list_cash_records(
    date: DateStr = Query(..., description="조회할 날짜 (YYYY-MM-DD)"),
    db: SQLiteAdapter = Depends(get_db),
    clock: ClinicClock = Depends(get_clock),
) -> list[CashRecordResponse]:
    """현지 날짜 하루의 시재 기록 (날짜 순)"""
    service = CashService(db, clock)

    records = await service.list_day(date)
    return [CashRecordResponse(**record.to_dict(clock)) for record in records]


@router.get("/previous", response_model=PreviousBalanceResponse)
async def get_previous_balance(
    date: DateStr = Query(..., description="기준 날짜 (YYYY-MM-DD)"),
    db: SQLiteAdapter = Depends(get_db),
    clock: ClinicClock = Depends(get_clock),
) -> PreviousBalanceResponse:
    """전일 시재 조회"""
    service = CashService(db, clock)

    balance = await service.previous_balance(date)
    return PreviousBalanceResponse(date=clock.local_date(clock.to_instant(date)), closing_amount=balance)


@router.post("", response_model=CashRecordResponse, status_code=201)
async def add_cash_record(
    request: CashRecordCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> CashRecordResponse:
    """시재 기록 직접 추가 (통장입금만 허용)"""
    service = CashService(db, clock)

    try:
        record = await service.add_record(
            date=request.date,
            kind=request.kind,
            amount=request.amount,
            description=request.description,
        )
    except (ValueError, CashLedgerError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return CashRecordResponse(**record.to_dict(clock))


@router.post("/close", response_model=CashCloseResponse)
async def close_day(
    request: CashCloseRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> CashCloseResponse:
    """시재 마감"""
    service = CashService(db, clock)

    try:
        count = await service.close_day(request.date, request.closing_amount)
    except CashLedgerError as e:
        logger.error(f"Failed to close cash day {request.date}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return CashCloseResponse(
        message="시재가 마감되었습니다.",
        date=clock.local_date(clock.to_instant(request.date)),
        closing_amount=request.closing_amount,
        closed_count=count,
    )


@router.put("/{record_id}", response_model=CashRecordResponse)
async def update_cash_record(
    request: CashRecordUpdateRequest,
    record_id: str = Path(..., description="시재 기록 ID"),
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> CashRecordResponse:
    """통장입금 기록 수정"""
    service = CashService(db, clock)

    try:
        record = await service.update_record(
            record_id,
            amount=request.amount,
            description=request.description,
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except CashLedgerError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if record is None:
        raise HTTPException(status_code=404, detail="기록을 찾을 수 없습니다.")
    return CashRecordResponse(**record.to_dict(clock))


@router.delete("/{record_id}", response_model=MutationResponse)
async def delete_cash_record(
    record_id: str = Path(..., description="시재 기록 ID"),
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """통장입금 기록 삭제"""
    service = CashService(db, clock)

    try:
        deleted = await service.delete_record(record_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except CashLedgerError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not deleted:
        raise HTTPException(status_code=404, detail="기록을 찾을 수 없습니다.")
    return MutationResponse(message="기록이 삭제되었습니다.")
