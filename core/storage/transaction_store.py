"""
TransactionStore - 내원 정보 저장소

transactions 테이블 CRUD.
조회/필터에 쓰는 필드는 컬럼으로, 전체 문서(payments 배열 포함)는
payload_json으로 저장한다.

날짜 입력("YYYY-MM-DD")은 병원 현지 날짜로 해석하여 UTC 시각으로 저장.
"""

import json
import logging
from datetime import datetime
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cash.models import new_id
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock, DateInput, from_db_ts, to_db_ts

logger = logging.getLogger(__name__)

# payload_json 안에서 시각으로 다루는 필드
_TIMESTAMP_FIELDS = ("date", "created_at", "updated_at")


def _encode(document: dict[str, Any]) -> str:
    """문서를 payload_json 문자열로 변환"""

    def convert(value: Any) -> Any:
        if isinstance(value, datetime):
            return to_db_ts(value)
        if isinstance(value, dict):
            return {key: convert(item) for key, item in value.items()}
        if isinstance(value, list):
            return [convert(item) for item in value]
        return value

    return json.dumps(convert(document), ensure_ascii=False)


def _decode(payload_json: str) -> dict[str, Any]:
    """payload_json 문자열을 문서로 변환 (시각 필드는 datetime)"""
    document = json.loads(payload_json)
    for name in _TIMESTAMP_FIELDS:
        if document.get(name):
            document[name] = from_db_ts(document[name])
    for payment in document.get("payments") or []:
        if payment.get("date"):
            payment["date"] = from_db_ts(payment["date"])
    return document


class TransactionStore:
    """내원 정보 저장소

    Args:
        db: SQLiteAdapter 인스턴스
        clock: 병원 시계

    사용 예시:
    ```python
    store = TransactionStore(db)
    record = await store.create({
        "date": "2024-03-01",
        "patient_name": "홍길동",
        "payment_method": "현금",
        "payment_amount": 30000,
    })
    ```
    """

    def __init__(self, db: SQLiteAdapter, clock: ClinicClock = DEFAULT_CLOCK):
        self.db = db
        self.clock = clock

    def _normalize(self, document: dict[str, Any]) -> dict[str, Any]:
        """날짜/금액/결제 항목 정규화

        - date: UTC 시각
        - payment_amount: 정수
        - payments[]: payment_id가 없거나 중복이면 새로 부여, date는 UTC 시각
        """
        normalized = dict(document)
        normalized["date"] = self.clock.to_instant(document["date"])
        normalized["payment_amount"] = int(document.get("payment_amount") or 0)

        payments = []
        seen: set[str] = set()
        for item in document.get("payments") or []:
            payment = dict(item)
            payment_id = payment.get("payment_id")
            if not payment_id or payment_id in seen:
                payment_id = new_id()
            seen.add(payment_id)
            payment["payment_id"] = payment_id
            payment["amount"] = int(payment.get("amount") or 0)
            if payment.get("date"):
                payment["date"] = self.clock.to_instant(payment["date"])
            else:
                payment["date"] = None
            payments.append(payment)
        normalized["payments"] = payments
        return normalized

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        """내원 정보 저장

        Args:
            data: 내원 정보 (date 필수)

        Returns:
            저장된 문서 (transaction_id 포함)

        Raises:
            KeyError: date가 없는 경우
            ValueError: 날짜 형식이 잘못된 경우
        """
        now = self.clock.now()
        document = self._normalize(data)
        document["transaction_id"] = document.get("transaction_id") or new_id()
        document["created_at"] = now
        document["updated_at"] = now

        await self.db.execute_write(
            """
            INSERT INTO transactions (
                transaction_id, date, chart_number, patient_name, doctor,
                payment_method, payment_amount, payload_json,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                document["transaction_id"],
                to_db_ts(document["date"]),
                document.get("chart_number"),
                document.get("patient_name"),
                document.get("doctor"),
                document.get("payment_method"),
                document["payment_amount"],
                _encode(document),
                to_db_ts(now),
                to_db_ts(now),
            ),
        )

        logger.debug(f"내원 정보 저장: {document['transaction_id']}")
        return document

    async def get(self, transaction_id: str) -> dict[str, Any] | None:
        """ID로 내원 정보 조회"""
        row = await self.db.fetchone(
            "SELECT payload_json FROM transactions WHERE transaction_id = ?",
            (transaction_id,),
        )
        if row is None:
            return None
        return _decode(row["payload_json"])

    async def update(
        self,
        transaction_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any] | None:
        """내원 정보 수정

        changes의 필드만 덮어쓴다. payments를 주면 배열 전체를 교체하며,
        기존 payment_id를 유지한 항목은 같은 결제 건으로 취급된다.

        Returns:
            수정된 문서. 대상이 없으면 None
        """
        current = await self.get(transaction_id)
        if current is None:
            return None

        merged = {**current, **changes}
        merged["transaction_id"] = transaction_id
        document = self._normalize(merged)
        document["created_at"] = current.get("created_at")
        document["updated_at"] = self.clock.now()

        await self.db.execute_write(
            """
            UPDATE transactions
            SET date = ?, chart_number = ?, patient_name = ?, doctor = ?,
                payment_method = ?, payment_amount = ?, payload_json = ?,
                updated_at = ?
            WHERE transaction_id = ?
            """,
            (
                to_db_ts(document["date"]),
                document.get("chart_number"),
                document.get("patient_name"),
                document.get("doctor"),
                document.get("payment_method"),
                document["payment_amount"],
                _encode(document),
                to_db_ts(document["updated_at"]),
                transaction_id,
            ),
        )

        logger.debug(f"내원 정보 수정: {transaction_id} {sorted(changes)}")
        return document

    async def delete(self, transaction_id: str) -> bool:
        """내원 정보 삭제

        Returns:
            삭제되었으면 True
        """
        affected = await self.db.execute_write(
            "DELETE FROM transactions WHERE transaction_id = ?",
            (transaction_id,),
        )
        return affected > 0

    async def list_by_date(self, date: DateInput) -> list[dict[str, Any]]:
        """현지 날짜 하루의 내원 정보 (시각, 생성 순)"""
        start, end = self.clock.day_window(date)
        rows = await self.db.fetchall(
            """
            SELECT payload_json FROM transactions
            WHERE date >= ? AND date <= ?
            ORDER BY date ASC, created_at ASC
            """,
            (to_db_ts(start), to_db_ts(end)),
        )
        return [_decode(row["payload_json"]) for row in rows]
