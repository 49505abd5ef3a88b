"""
Cash Reconciler

원천 레코드(내원 정보, 지출)가 생성/수정/삭제될 때
시재 기록을 결제 건 단위로 맞춘다.

결제 건 하나(원천 ID + payment_id)에 대한 전이 규칙:

| 이전      | 이후      | 동작                                      |
|-----------|-----------|-------------------------------------------|
| 없음/비현금 | 현금     | 기록 추가                                  |
| 현금      | 비현금/없음 | 기록 삭제 (마감 확인)                      |
| 현금      | 현금      | 날짜 변경: 삭제 후 추가 (이전 날짜 마감 확인) |
|           |           | 금액/설명 변경: 기록 수정 (마감 확인)        |
|           |           | 변경 없음: 동작 없음                        |
| 비현금/없음 | 비현금/없음 | 동작 없음                               |

기존 기록이 있어야 하는데 없으면 새로 추가한다.
결제 건별로 독립 처리하며, 실패는 ReconciliationOutcome에 모아서 반환한다.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from core.cash.errors import CashLedgerError, PersistenceError
from core.cash.guard import ClosedPeriodGuard
from core.cash.models import CashRecord
from core.cash.payments import (
    FLAT_PAYMENT_ID,
    PaymentLine,
    cash_lines,
    expense_description,
    transaction_description,
)
from core.cash.store import CashRecordStore
from core.types import CashRecordType, LedgerAction, SourceType, is_cash
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerOperation:
    """시재 기록에 실제로 적용된 변경 한 건"""

    action: LedgerAction
    record_id: str
    payment_id: str = FLAT_PAYMENT_ID


@dataclass(frozen=True)
class ReconciliationFailure:
    """결제 건 하나의 동기화 실패"""

    payment_id: str
    error: CashLedgerError


@dataclass
class ReconciliationOutcome:
    """시재 기록 동기화 결과

    동기화는 예외를 던지지 않고 이 객체로 결과를 알린다.
    호출자가 실패를 무시할지(내원 정보) 중단할지(지출 삭제) 결정한다.
    """

    source_id: str | None
    operations: list[LedgerOperation] = field(default_factory=list)
    failures: list[ReconciliationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def error(self) -> CashLedgerError | None:
        """첫 번째 실패 원인"""
        if not self.failures:
            return None
        return self.failures[0].error

    def warnings(self) -> list[str]:
        """API 응답용 경고 메시지"""
        return [str(failure.error) for failure in self.failures]

    def raise_for_failure(self) -> None:
        """실패가 있으면 첫 번째 원인 예외를 던진다"""
        if self.error is not None:
            raise self.error

    @classmethod
    def from_exception(
        cls,
        source_id: str | None,
        exc: Exception,
    ) -> "ReconciliationOutcome":
        """예상치 못한 예외를 실패 결과로 변환"""
        error = exc if isinstance(exc, CashLedgerError) else PersistenceError(
            f"시재 기록 동기화 실패: {exc}", cause=exc
        )
        outcome = cls(source_id=source_id)
        outcome.failures.append(ReconciliationFailure(FLAT_PAYMENT_ID, error))
        return outcome


@dataclass(frozen=True)
class _CashTarget:
    """시재 기록 한 건의 목표 상태"""

    payment_id: str
    amount: int
    date: datetime
    description: str


class CashReconciler:
    """시재 기록 동기화

    Args:
        store: 시재 기록 저장소
        guard: 마감 기간 가드 (None이면 store로 생성)
        clock: 병원 시계

    사용 예시:
    ```python
    reconciler = CashReconciler(CashRecordStore(db))
    outcome = await reconciler.reconcile_transaction(old_tx, new_tx)
    if not outcome.ok:
        logger.warning(outcome.warnings())
    ```
    """

    def __init__(
        self,
        store: CashRecordStore,
        guard: ClosedPeriodGuard | None = None,
        clock: ClinicClock = DEFAULT_CLOCK,
    ):
        self.store = store
        self.clock = clock
        self.guard = guard or ClosedPeriodGuard(store, clock)

    async def reconcile_transaction(
        self,
        old: Mapping[str, Any] | None,
        new: Mapping[str, Any] | None,
    ) -> ReconciliationOutcome:
        """내원 정보 변경에 맞춰 수입 기록 동기화

        Args:
            old: 변경 전 내원 정보 (생성이면 None)
            new: 변경 후 내원 정보 (삭제면 None)

        Returns:
            ReconciliationOutcome
        """
        source = new if new is not None else old
        outcome = ReconciliationOutcome(
            source_id=source["transaction_id"] if source is not None else None
        )
        if source is None:
            return outcome

        old_targets = self._transaction_targets(old)
        new_targets = self._transaction_targets(new)

        # 이전 결제 순서 → 새로 추가된 결제 순서
        payment_ids = list(old_targets) + [
            payment_id for payment_id in new_targets if payment_id not in old_targets
        ]
        for payment_id in payment_ids:
            await self._reconcile_line(
                outcome,
                source_type=SourceType.TRANSACTION,
                kind=CashRecordType.INCOME,
                payment_id=payment_id,
                old=old_targets.get(payment_id),
                new=new_targets.get(payment_id),
            )
        return outcome

    async def reconcile_expense(
        self,
        old: Mapping[str, Any] | None,
        new: Mapping[str, Any] | None,
    ) -> ReconciliationOutcome:
        """지출 변경에 맞춰 지출 기록 동기화

        Args:
            old: 변경 전 지출 (생성이면 None)
            new: 변경 후 지출 (삭제면 None)

        Returns:
            ReconciliationOutcome
        """
        source = new if new is not None else old
        outcome = ReconciliationOutcome(
            source_id=source["expense_id"] if source is not None else None
        )
        if source is None:
            return outcome

        await self._reconcile_line(
            outcome,
            source_type=SourceType.EXPENSE,
            kind=CashRecordType.EXPENSE,
            payment_id=FLAT_PAYMENT_ID,
            old=self._expense_target(old),
            new=self._expense_target(new),
        )
        return outcome

    # -------------------------------------------------------------------------
    # 목표 상태 계산
    # -------------------------------------------------------------------------

    def _transaction_targets(
        self,
        record: Mapping[str, Any] | None,
    ) -> dict[str, _CashTarget]:
        if record is None:
            return {}
        description = transaction_description(record)
        return {
            payment_id: self._target(line, description)
            for payment_id, line in cash_lines(record, self.clock).items()
        }

    def _expense_target(self, record: Mapping[str, Any] | None) -> _CashTarget | None:
        if record is None:
            return None
        amount = int(record.get("amount") or 0)
        if not is_cash(record.get("method")) or amount <= 0:
            return None
        return _CashTarget(
            payment_id=FLAT_PAYMENT_ID,
            amount=amount,
            date=self.clock.day_start(record["date"]),
            description=expense_description(record),
        )

    @staticmethod
    def _target(line: PaymentLine, description: str) -> _CashTarget:
        return _CashTarget(
            payment_id=line.payment_id,
            amount=line.amount,
            date=line.date,
            description=description,
        )

    # -------------------------------------------------------------------------
    # 결제 건 단위 동기화
    # -------------------------------------------------------------------------

    async def _reconcile_line(
        self,
        outcome: ReconciliationOutcome,
        source_type: SourceType,
        kind: CashRecordType,
        payment_id: str,
        old: _CashTarget | None,
        new: _CashTarget | None,
    ) -> None:
        if old is None and new is None:
            return

        source_id = outcome.source_id
        try:
            existing = await self.store.find_by_source(source_id, kind, payment_id)

            if new is None:
                if existing is None:
                    logger.warning(
                        f"삭제할 시재 기록이 없습니다: {source_type.value} {source_id}",
                        extra={"payment_id": payment_id},
                    )
                    return
                await self._delete(outcome, existing)
                return

            if existing is None:
                if old is not None:
                    logger.warning(
                        f"시재 기록 누락, 새로 생성합니다: {source_type.value} {source_id}",
                        extra={"payment_id": payment_id},
                    )
                await self._insert(outcome, source_type, kind, new)
                return

            await self._apply_changes(outcome, source_type, kind, existing, new)

        except CashLedgerError as e:
            logger.error(
                f"시재 기록 동기화 실패: {source_type.value} {source_id}: {e}",
                extra={"payment_id": payment_id, "error_type": type(e).__name__},
            )
            outcome.failures.append(ReconciliationFailure(payment_id, e))

    async def _apply_changes(
        self,
        outcome: ReconciliationOutcome,
        source_type: SourceType,
        kind: CashRecordType,
        existing: CashRecord,
        new: _CashTarget,
    ) -> None:
        if existing.date != new.date:
            # 날짜 변경: 이전 날짜가 마감되었으면 거부
            await self._delete(outcome, existing)
            await self._insert(outcome, source_type, kind, new)
            return

        changes: dict[str, Any] = {}
        if existing.amount != new.amount:
            changes["amount"] = new.amount
        if existing.description != new.description:
            changes["description"] = new.description
        if not changes:
            return

        await self.guard.ensure_open(existing)
        updated = await self.store.update(existing.record_id, changes)
        if not updated:
            raise PersistenceError(f"시재 기록 수정 실패 (ID: {existing.record_id})")
        outcome.operations.append(
            LedgerOperation(LedgerAction.UPDATE, existing.record_id, new.payment_id)
        )
        logger.info(
            f"시재 기록 수정: {sorted(changes)}",
            extra={"record_id": existing.record_id, "source_id": outcome.source_id},
        )

    async def _insert(
        self,
        outcome: ReconciliationOutcome,
        source_type: SourceType,
        kind: CashRecordType,
        target: _CashTarget,
    ) -> None:
        record = await self.store.insert(
            CashRecord(
                date=target.date,
                kind=kind,
                amount=target.amount,
                description=target.description,
                source_type=source_type,
                source_id=outcome.source_id,
                payment_id=target.payment_id,
            )
        )
        outcome.operations.append(
            LedgerOperation(LedgerAction.INSERT, record.record_id, target.payment_id)
        )
        logger.info(
            f"시재 기록 추가: {kind.value} {target.amount} ({self.clock.local_date(target.date)})",
            extra={"record_id": record.record_id, "source_id": outcome.source_id},
        )

    async def _delete(self, outcome: ReconciliationOutcome, record: CashRecord) -> None:
        await self.guard.ensure_open(record)
        deleted = await self.store.delete(record.record_id)
        if not deleted:
            raise PersistenceError(f"시재 기록 삭제 실패 (ID: {record.record_id})")
        outcome.operations.append(
            LedgerOperation(LedgerAction.DELETE, record.record_id, record.payment_id)
        )
        logger.info(
            f"시재 기록 삭제: {record.kind.value} {record.amount}",
            extra={"record_id": record.record_id, "source_id": outcome.source_id},
        )
