"""
지출 서비스

지출 CRUD + 시재 기록 동기화.

- 생성/수정: 동기화 실패는 로그로 남기고 계속 진행
- 삭제: 시재 기록을 먼저 정리하고, 실패하면 지출도 삭제하지 않는다
"""

import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cash.reconciler import CashReconciler, ReconciliationOutcome
from core.cash.store import CashRecordStore
from core.constants import Defaults
from core.storage.expense_store import ExpenseStore
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock

logger = logging.getLogger(__name__)


class ExpenseService:
    """지출 서비스

    Args:
        db: SQLite 어댑터 (쓰기 가능)
        clock: 병원 시계
        reconciler: 시재 기록 동기화 (None이면 db로 생성)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        clock: ClinicClock = DEFAULT_CLOCK,
        reconciler: CashReconciler | None = None,
    ):
        self.db = db
        self.clock = clock
        self.store = ExpenseStore(db, clock)
        self.reconciler = reconciler or CashReconciler(CashRecordStore(db, clock), clock=clock)

    async def _reconcile(
        self,
        old: dict[str, Any] | None,
        new: dict[str, Any] | None,
    ) -> ReconciliationOutcome:
        source = new if new is not None else old
        source_id = source["expense_id"] if source is not None else None
        try:
            return await self.reconciler.reconcile_expense(old, new)
        except Exception as e:
            logger.exception(f"시재 기록 동기화 중 예외 (지출): {source_id}")
            return ReconciliationOutcome.from_exception(source_id, e)

    async def get_expense(self, expense_id: str) -> dict[str, Any] | None:
        """지출 조회"""
        return await self.store.get(expense_id)

    async def list_expenses(
        self,
        date_start: str | None = None,
        date_end: str | None = None,
        method: str | None = None,
        vendor: str | None = None,
        page: int = 1,
        limit: int = Defaults.PAGE_LIMIT,
    ) -> dict[str, Any]:
        """지출 목록 조회

        시작일과 종료일이 같은 하루 조회는 페이지 없이 전체를 반환한다.

        Returns:
            expenses, pagination(total, page, limit, total_pages) 포함 응답
        """
        single_day = date_start is not None and date_start == date_end
        expenses, total = await self.store.find(
            date_start=date_start,
            date_end=date_end,
            method=method,
            vendor=vendor,
            page=1 if single_day else page,
            limit=None if single_day else limit,
        )

        if single_day:
            return {
                "expenses": expenses,
                "pagination": {"total": total, "page": 1, "limit": total, "total_pages": 1},
            }

        return {
            "expenses": expenses,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit if limit else 1,
            },
        }

    async def create_expense(
        self,
        data: dict[str, Any],
    ) -> tuple[dict[str, Any], ReconciliationOutcome]:
        """지출 생성

        Returns:
            (저장된 지출, 시재 기록 동기화 결과)
        """
        expense = await self.store.create(data)
        logger.info(
            f"지출 생성: {expense['expense_id']} {expense['method']} {expense['amount']}"
        )

        outcome = await self._reconcile(None, expense)
        if not outcome.ok:
            logger.warning(
                f"지출 생성은 완료되었으나 시재 기록 동기화 실패: "
                f"{expense['expense_id']} {outcome.warnings()}"
            )
        return expense, outcome

    async def update_expense(
        self,
        expense_id: str,
        changes: dict[str, Any],
    ) -> tuple[dict[str, Any], ReconciliationOutcome] | None:
        """지출 수정

        Returns:
            (수정된 지출, 시재 기록 동기화 결과). 대상이 없으면 None
        """
        old = await self.store.get(expense_id)
        if old is None:
            return None

        new = await self.store.update(expense_id, changes)
        if new is None:
            return None

        logger.info(f"지출 수정: {expense_id} {sorted(changes)}")
        outcome = await self._reconcile(old, new)
        if not outcome.ok:
            logger.warning(
                f"지출 수정은 완료되었으나 시재 기록 동기화 실패: "
                f"{expense_id} {outcome.warnings()}"
            )
        return new, outcome

    async def delete_expense(self, expense_id: str) -> bool:
        """지출 삭제

        시재 기록을 먼저 정리한다. 마감된 날짜 등으로 실패하면
        지출을 삭제하지 않고 예외를 올린다.

        Returns:
            삭제되었으면 True, 대상이 없으면 False

        Raises:
            CashLedgerError: 시재 기록 정리 실패 시
        """
        expense = await self.store.get(expense_id)
        if expense is None:
            return False

        outcome = await self._reconcile(expense, None)
        if not outcome.ok:
            logger.error(
                f"시재 기록 정리 실패로 지출 삭제 중단: {expense_id} {outcome.warnings()}"
            )
        outcome.raise_for_failure()

        deleted = await self.store.delete(expense_id)
        logger.info(f"지출 삭제: {expense_id}")
        return deleted
