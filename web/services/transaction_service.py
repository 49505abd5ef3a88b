"""
내원 정보 서비스

내원 정보 CRUD + 시재 기록 동기화.

시재 기록 동기화 실패는 내원 정보 저장을 되돌리지 않는다.
실패는 로그로 남기고 응답의 cash_warnings로 알린다.
"""

import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cash.reconciler import CashReconciler, ReconciliationOutcome
from core.cash.store import CashRecordStore
from core.storage.transaction_store import TransactionStore
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock, DateInput

logger = logging.getLogger(__name__)


class TransactionService:
    """내원 정보 서비스

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
        self.store = TransactionStore(db, clock)
        self.reconciler = reconciler or CashReconciler(CashRecordStore(db, clock), clock=clock)

    async def _reconcile(
        self,
        old: dict[str, Any] | None,
        new: dict[str, Any] | None,
        action: str,
    ) -> ReconciliationOutcome:
        source = new if new is not None else old
        source_id = source["transaction_id"] if source is not None else None
        try:
            outcome = await self.reconciler.reconcile_transaction(old, new)
        except Exception as e:
            logger.exception(f"시재 기록 동기화 중 예외 (내원 정보 {action}): {source_id}")
            outcome = ReconciliationOutcome.from_exception(source_id, e)

        if not outcome.ok:
            patient_name = (source or {}).get("patient_name")
            logger.warning(
                f"내원 정보 {action}은 완료되었으나 시재 기록 동기화 실패: "
                f"{source_id} ({patient_name}) {outcome.warnings()}"
            )
        return outcome

    async def get_transaction(self, transaction_id: str) -> dict[str, Any] | None:
        """내원 정보 조회"""
        return await self.store.get(transaction_id)

    async def list_by_date(self, date: DateInput) -> list[dict[str, Any]]:
        """현지 날짜 하루의 내원 정보"""
        return await self.store.list_by_date(date)

    async def create_transaction(
        self,
        data: dict[str, Any],
    ) -> tuple[dict[str, Any], ReconciliationOutcome]:
        """내원 정보 생성

        Returns:
            (저장된 내원 정보, 시재 기록 동기화 결과)
        """
        record = await self.store.create(data)
        logger.info(
            f"내원 정보 생성: {record['transaction_id']}",
            extra={"patient_name": record.get("patient_name")},
        )
        outcome = await self._reconcile(None, record, "생성")
        return record, outcome

    async def update_transaction(
        self,
        transaction_id: str,
        changes: dict[str, Any],
    ) -> tuple[dict[str, Any], ReconciliationOutcome] | None:
        """내원 정보 수정

        Returns:
            (수정된 내원 정보, 시재 기록 동기화 결과). 대상이 없으면 None
        """
        old = await self.store.get(transaction_id)
        if old is None:
            return None

        new = await self.store.update(transaction_id, changes)
        if new is None:
            return None

        logger.info(f"내원 정보 수정: {transaction_id} {sorted(changes)}")
        outcome = await self._reconcile(old, new, "수정")
        return new, outcome

    async def delete_transaction(self, transaction_id: str) -> ReconciliationOutcome | None:
        """내원 정보 삭제

        Returns:
            시재 기록 동기화 결과. 대상이 없으면 None
        """
        old = await self.store.get(transaction_id)
        if old is None:
            return None

        await self.store.delete(transaction_id)
        logger.info(f"내원 정보 삭제: {transaction_id}")
        return await self._reconcile(old, None, "삭제")
