"""
Cash Record Store

cash_records 테이블 CRUD.
저장소 오류는 모두 PersistenceError로 감싸서 올린다.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator

import aiosqlite

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cash.errors import PersistenceError
from core.cash.models import CashRecord
from core.types import CashRecordType
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock, to_db_ts

logger = logging.getLogger(__name__)

# update()로 변경 가능한 필드 → 컬럼
_UPDATABLE_COLUMNS = {
    "date": "date",
    "kind": "kind",
    "amount": "amount",
    "description": "description",
    "completed": "is_completed",
    "completed_at": "completed_at",
    "group_id": "group_id",
    "grouped": "is_grouped",
    "closed": "is_closed",
    "closing_amount": "closing_amount",
    "closed_at": "closed_at",
}


def _to_column_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_db_ts(value)
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, CashRecordType):
        return value.value
    return value


class CashRecordStore:
    """시재 기록 저장소

    Args:
        db: SQLite 어댑터
        clock: 병원 시계 (created_at/updated_at 기록용)

    사용 예시:
    ```python
    store = CashRecordStore(db)
    record = await store.find_by_source(transaction_id, payment_id="")
    if record is not None:
        await store.update(record.record_id, {"amount": 30000})
    ```
    """

    def __init__(self, db: SQLiteAdapter, clock: ClinicClock = DEFAULT_CLOCK):
        self.db = db
        self.clock = clock

    @asynccontextmanager
    async def _storage_errors(self, action: str) -> AsyncIterator[None]:
        try:
            yield
        except (aiosqlite.Error, RuntimeError) as e:
            logger.error(f"시재 기록 {action} 실패: {e}")
            raise PersistenceError(f"시재 기록 {action} 실패: {e}", cause=e) from e

    async def insert(self, record: CashRecord) -> CashRecord:
        """시재 기록 저장

        created_at/updated_at은 저장 시각으로 채운다.

        Returns:
            저장된 CashRecord
        """
        now = self.clock.now()
        record.created_at = record.created_at or now
        record.updated_at = now

        async with self._storage_errors("저장"):
            await self.db.execute_write(
                """
                INSERT INTO cash_records (
                    record_id, date, kind, amount, description,
                    source_type, source_id, payment_id,
                    is_completed, completed_at, group_id, is_grouped,
                    is_closed, closing_amount, closed_at,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.record_id,
                    to_db_ts(record.date),
                    record.kind.value,
                    record.amount,
                    record.description,
                    record.source_type.value if record.source_type else None,
                    record.source_id,
                    record.payment_id,
                    _to_column_value(record.completed),
                    _to_column_value(record.completed_at),
                    record.group_id,
                    _to_column_value(record.grouped),
                    _to_column_value(record.closed),
                    record.closing_amount,
                    _to_column_value(record.closed_at),
                    to_db_ts(record.created_at),
                    to_db_ts(record.updated_at),
                ),
            )

        logger.debug(
            f"시재 기록 저장: {record.kind.value} {record.amount}",
            extra={"record_id": record.record_id, "source_id": record.source_id},
        )
        return record

    async def get(self, record_id: str) -> CashRecord | None:
        """ID로 시재 기록 조회"""
        async with self._storage_errors("조회"):
            row = await self.db.fetchone(
                "SELECT * FROM cash_records WHERE record_id = ?",
                (record_id,),
            )
        return CashRecord.from_row(row) if row else None

    async def find_by_source(
        self,
        source_id: str,
        kind: CashRecordType = CashRecordType.INCOME,
        payment_id: str | None = None,
    ) -> CashRecord | None:
        """원천 레코드의 시재 기록 조회

        Args:
            source_id: 원천 레코드 ID
            kind: 시재 기록 유형
            payment_id: 결제 식별자 (None이면 첫 번째 기록)

        Returns:
            CashRecord 또는 None
        """
        records = await self.find_all_by_source(source_id, kind, payment_id)
        return records[0] if records else None

    async def find_all_by_source(
        self,
        source_id: str,
        kind: CashRecordType | None = None,
        payment_id: str | None = None,
    ) -> list[CashRecord]:
        """원천 레코드의 시재 기록 전체 조회 (생성 순)"""
        sql = "SELECT * FROM cash_records WHERE source_id = ?"
        params: list[Any] = [source_id]

        if kind is not None:
            sql += " AND kind = ?"
            params.append(kind.value)
        if payment_id is not None:
            sql += " AND payment_id = ?"
            params.append(payment_id)

        sql += " ORDER BY created_at ASC, record_id ASC"

        async with self._storage_errors("조회"):
            rows = await self.db.fetchall(sql, tuple(params))
        return [CashRecord.from_row(row) for row in rows]

    async def update(self, record_id: str, changes: dict[str, Any]) -> bool:
        """시재 기록 일부 필드 변경

        updated_at은 항상 갱신된다.

        Args:
            record_id: 시재 기록 ID
            changes: 변경할 필드 (CashRecord 필드명 기준)

        Returns:
            대상 기록이 있었으면 True

        Raises:
            ValueError: 변경할 수 없는 필드가 포함된 경우
        """
        unknown = set(changes) - set(_UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"변경할 수 없는 시재 기록 필드: {sorted(unknown)}")

        assignments = [f"{_UPDATABLE_COLUMNS[name]} = ?" for name in changes]
        params = [_to_column_value(value) for value in changes.values()]
        assignments.append("updated_at = ?")
        params.append(to_db_ts(self.clock.now()))
        params.append(record_id)

        async with self._storage_errors("수정"):
            affected = await self.db.execute_write(
                f"UPDATE cash_records SET {', '.join(assignments)} WHERE record_id = ?",
                tuple(params),
            )

        logger.debug(
            f"시재 기록 수정: {sorted(changes)}",
            extra={"record_id": record_id},
        )
        return affected > 0

    async def delete(self, record_id: str) -> bool:
        """시재 기록 삭제

        Returns:
            삭제된 기록이 있으면 True
        """
        async with self._storage_errors("삭제"):
            affected = await self.db.execute_write(
                "DELETE FROM cash_records WHERE record_id = ?",
                (record_id,),
            )
        return affected > 0

    async def find_in_range(
        self,
        start: datetime,
        end: datetime,
        closed: bool | None = None,
    ) -> list[CashRecord]:
        """[start, end] 구간의 시재 기록 조회 (날짜, 생성 순)

        Args:
            start: 구간 시작 (UTC, 포함)
            end: 구간 끝 (UTC, 포함)
            closed: 마감 여부 필터 (None이면 전체)
        """
        sql = "SELECT * FROM cash_records WHERE date >= ? AND date <= ?"
        params: list[Any] = [to_db_ts(start), to_db_ts(end)]

        if closed is not None:
            sql += " AND is_closed = ?"
            params.append(1 if closed else 0)

        sql += " ORDER BY date ASC, created_at ASC"

        async with self._storage_errors("조회"):
            rows = await self.db.fetchall(sql, tuple(params))
        return [CashRecord.from_row(row) for row in rows]

    async def has_closed_in_range(self, start: datetime, end: datetime) -> bool:
        """[start, end] 구간에 마감된 기록이 하나라도 있는지 확인"""
        async with self._storage_errors("조회"):
            row = await self.db.fetchone(
                """
                SELECT 1 FROM cash_records
                WHERE date >= ? AND date <= ? AND is_closed = 1
                LIMIT 1
                """,
                (to_db_ts(start), to_db_ts(end)),
            )
        return row is not None

    async def find_last_closed_before(self, before: datetime) -> CashRecord | None:
        """before 이전의 가장 최근 마감 기록"""
        async with self._storage_errors("조회"):
            row = await self.db.fetchone(
                """
                SELECT * FROM cash_records
                WHERE date < ? AND is_closed = 1
                ORDER BY date DESC, closed_at DESC
                LIMIT 1
                """,
                (to_db_ts(before),),
            )
        return CashRecord.from_row(row) if row else None

    async def close_range(
        self,
        start: datetime,
        end: datetime,
        closing_amount: int,
        closed_at: datetime,
    ) -> int:
        """[start, end] 구간의 모든 기록을 마감 처리

        Returns:
            마감된 기록 수
        """
        async with self._storage_errors("마감"):
            affected = await self.db.execute_write(
                """
                UPDATE cash_records
                SET is_closed = 1, closing_amount = ?, closed_at = ?, updated_at = ?
                WHERE date >= ? AND date <= ?
                """,
                (
                    closing_amount,
                    to_db_ts(closed_at),
                    to_db_ts(closed_at),
                    to_db_ts(start),
                    to_db_ts(end),
                ),
            )
        return affected
