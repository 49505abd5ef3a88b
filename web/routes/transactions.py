"""
내원 정보 API 라우터

GET    /api/transactions?date=YYYY-MM-DD  - 하루 내원 정보
GET    /api/transactions/{id}             - 단건 조회
POST   /api/transactions                  - 생성 (+ 시재 기록 동기화)
PUT    /api/transactions/{id}             - 수정 (+ 시재 기록 동기화)
DELETE /api/transactions/{id}             - 삭제 (+ 시재 기록 동기화)

시재 기록 동기화 실패는 요청을 실패시키지 않고 cash_warnings로 전달된다.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.utils.timezone import ClinicClock
from web.dependencies import get_clock, get_db, get_db_write
from web.models.requests import DateStr, TransactionCreateRequest, TransactionUpdateRequest
from web.models.responses import MutationResponse
from web.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.get("")
async def list_transactions(
    date: DateStr = Query(..., description="조회할 날짜 (YYYY-MM-DD)"),
    db: SQLiteAdapter = Depends(get_db),
    clock: ClinicClock = Depends(get_clock),
) -> list[dict[str, Any]]:
    """현지 날짜 하루의 내원 정보"""
    service = TransactionService(db, clock)
    return await service.list_by_date(date)


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: str = Path(..., description="내원 정보 ID"),
    db: SQLiteAdapter = Depends(get_db),
    clock: ClinicClock = Depends(get_clock),
) -> dict[str, Any]:
    """내원 정보 단건 조회"""
    service = TransactionService(db, clock)

    record = await service.get_transaction(transaction_id)
    if record is None:
        raise HTTPException(status_code=404, detail="내원 정보를 찾을 수 없습니다.")
    return record


@router.post("", response_model=MutationResponse, status_code=201)
async def create_transaction(
    request: TransactionCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """내원 정보 생성"""
    service = TransactionService(db, clock)

    try:
        record, outcome = await service.create_transaction(
            request.model_dump(mode="json", exclude_none=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create transaction: {e}")
        raise HTTPException(status_code=500, detail="내원 정보 저장 중 오류가 발생했습니다.")

    return MutationResponse(
        message="내원 정보가 저장되었습니다.",
        data=record,
        cash_warnings=outcome.warnings(),
    )


@router.put("/{transaction_id}", response_model=MutationResponse)
async def update_transaction(
    request: TransactionUpdateRequest,
    transaction_id: str = Path(..., description="내원 정보 ID"),
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """내원 정보 수정 (보낸 필드만 변경)"""
    service = TransactionService(db, clock)

    try:
        result = await service.update_transaction(
            transaction_id,
            request.model_dump(mode="json", exclude_unset=True, exclude_none=True),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update transaction {transaction_id}: {e}")
        raise HTTPException(status_code=500, detail="내원 정보 수정 중 오류가 발생했습니다.")

    if result is None:
        raise HTTPException(status_code=404, detail="내원 정보를 찾을 수 없습니다.")

    record, outcome = result
    return MutationResponse(
        message="내원 정보가 수정되었습니다.",
        data=record,
        cash_warnings=outcome.warnings(),
    )


@router.delete("/{transaction_id}", response_model=MutationResponse)
async def delete_transaction(
    transaction_id: str = Path(..., description="내원 정보 ID"),
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """내원 정보 삭제"""
    service = TransactionService(db, clock)

    try:
        outcome = await service.delete_transaction(transaction_id)
    except Exception as e:
        logger.error(f"Failed to delete transaction {transaction_id}: {e}")
        raise HTTPException(status_code=500, detail="내원 정보 삭제 중 오류가 발생했습니다.")

    if outcome is None:
        raise HTTPException(status_code=404, detail="내원 정보를 찾을 수 없습니다.")

    return MutationResponse(
        message="내원 정보가 삭제되었습니다.",
        cash_warnings=outcome.warnings(),
    )
