"""
지출 API 라우터

지출 CRUD. 현금 지출은 시재 기록과 동기화된다.
삭제는 시재 기록 정리가 실패하면(마감된 날짜 등) 400으로 거부된다.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cash.errors import CashLedgerError
from core.constants import Defaults
from core.types import PaymentMethod
from core.utils.timezone import ClinicClock
from web.dependencies import get_clock, get_db, get_db_write
from web.models.requests import DateStr, ExpenseCreateRequest, ExpenseUpdateRequest
from web.models.responses import ExpenseListResponse, MutationResponse
from web.services.expense_service import ExpenseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/expenses", tags=["Expenses"])


@router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    date_start: DateStr | None = Query(default=None, alias="dateStart", description="시작 날짜"),
    date_end: DateStr | None = Query(default=None, alias="dateEnd", description="끝 날짜"),
    method: PaymentMethod | None = Query(default=None, description="결제 방법"),
    vendor: str | None = Query(default=None, description="거래처 (부분 일치)"),
    page: int = Query(default=1, ge=1, description="페이지"),
    limit: int = Query(default=Defaults.PAGE_LIMIT, ge=1, le=1000, description="페이지 크기"),
    db: SQLiteAdapter = Depends(get_db),
    clock: ClinicClock = Depends(get_clock),
) -> ExpenseListResponse:
    """지출 목록 조회

    시작일과 끝 날짜가 같으면 그 날의 지출을 페이지 없이 모두 반환한다.
    """
    service = ExpenseService(db, clock)

    result = await service.list_expenses(
        date_start=date_start,
        date_end=date_end,
        method=method.value if method else None,
        vendor=vendor,
        page=page,
        limit=limit,
    )
    return ExpenseListResponse(**result)


@router.get("/{expense_id}", response_model=MutationResponse)
async def get_expense(
    expense_id: str = Path(..., description="지출 ID"),
    db: SQLiteAdapter = Depends(get_db),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """지출 단건 조회"""
    service = ExpenseService(db, clock)

    expense = await service.get_expense(expense_id)
    if expense is None:
        raise HTTPException(status_code=404, detail="지출 내역을 찾을 수 없습니다.")
    return MutationResponse(data=expense)


@router.post("", response_model=MutationResponse, status_code=201)
async def create_expense(
    request: ExpenseCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """지출 생성"""
    service = ExpenseService(db, clock)

    data = request.model_dump(mode="json")
    data["created_by"] = "web:user"

    try:
        expense, outcome = await service.create_expense(data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create expense: {e}")
        raise HTTPException(status_code=500, detail="지출 저장 중 오류가 발생했습니다.")

    return MutationResponse(
        message="지출 내역이 저장되었습니다.",
        data=expense,
        cash_warnings=outcome.warnings(),
    )


@router.put("/{expense_id}", response_model=MutationResponse)
async def update_expense(
    request: ExpenseUpdateRequest,
    expense_id: str = Path(..., description="지출 ID"),
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """지출 수정 (보낸 필드만 변경)"""
    service = ExpenseService(db, clock)

    try:
        result = await service.update_expense(
            expense_id,
            request.model_dump(mode="json", exclude_unset=True, exclude_none=True),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="지출 수정 중 오류가 발생했습니다.")

    if result is None:
        raise HTTPException(status_code=404, detail="지출 내역을 찾을 수 없습니다.")

    expense, outcome = result
    return MutationResponse(
        message="지출 내역이 수정되었습니다.",
        data=expense,
        cash_warnings=outcome.warnings(),
    )


@router.delete("/{expense_id}", response_model=MutationResponse)
async def delete_expense(
    expense_id: str = Path(..., description="지출 ID"),
    db: SQLiteAdapter = Depends(get_db_write),
    clock: ClinicClock = Depends(get_clock),
) -> MutationResponse:
    """지출 삭제

    시재 기록을 먼저 정리하고, 실패하면 지출을 삭제하지 않는다.
    """
    service = ExpenseService(db, clock)

    try:
        deleted = await service.delete_expense(expense_id)
    except CashLedgerError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to delete expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="지출 삭제 중 오류가 발생했습니다.")

    if not deleted:
        raise HTTPException(status_code=404, detail="지출 내역을 찾을 수 없습니다.")

    return MutationResponse(message="지출 내역이 삭제되었습니다.")
