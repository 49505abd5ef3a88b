"""
ExpenseStore - 지출 내역 저장소

expenses 테이블 CRUD 및 필터/페이지 조회.
"""

import logging
from typing import Any

import aiosqlite

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cash.models import new_id
from core.constants import Defaults
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock, DateInput, from_db_ts, to_db_ts

logger = logging.getLogger(__name__)

# update()로 변경 가능한 필드
_UPDATABLE_FIELDS = (
    "date",
    "description",
    "amount",
    "method",
    "has_receipt",
    "vendor",
    "account",
    "notes",
)


def _escape_like(text: str) -> str:
    """LIKE 패턴 문자(\\, %, _)를 리터럴로 이스케이프"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_dict(row: aiosqlite.Row) -> dict[str, Any]:
    return {
        "expense_id": row["expense_id"],
        "date": from_db_ts(row["date"]),
        "description": row["description"],
        "amount": row["amount"],
        "method": row["method"],
        "has_receipt": bool(row["has_receipt"]),
        "vendor": row["vendor"],
        "account": row["account"],
        "notes": row["notes"],
        "created_by": row["created_by"],
        "created_at": from_db_ts(row["created_at"]),
        "updated_at": from_db_ts(row["updated_at"]),
    }


class ExpenseStore:
    """지출 내역 저장소

    Args:
        db: SQLiteAdapter 인스턴스
        clock: 병원 시계
    """

    def __init__(self, db: SQLiteAdapter, clock: ClinicClock = DEFAULT_CLOCK):
        self.db = db
        self.clock = clock

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        """지출 저장

        Returns:
            저장된 지출 (expense_id 포함)
        """
        now = self.clock.now()
        expense = {
            "expense_id": data.get("expense_id") or new_id(),
            "date": self.clock.to_instant(data["date"]),
            "description": data["description"],
            "amount": int(data["amount"]),
            "method": data["method"],
            "has_receipt": bool(data.get("has_receipt", False)),
            "vendor": data.get("vendor"),
            "account": data.get("account"),
            "notes": data.get("notes"),
            "created_by": data.get("created_by") or "web:user",
            "created_at": now,
            "updated_at": now,
        }

        await self.db.execute_write(
            """
            INSERT INTO expenses (
                expense_id, date, description, amount, method, has_receipt,
                vendor, account, notes, created_by, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                expense["expense_id"],
                to_db_ts(expense["date"]),
                expense["description"],
                expense["amount"],
                expense["method"],
                1 if expense["has_receipt"] else 0,
                expense["vendor"],
                expense["account"],
                expense["notes"],
                expense["created_by"],
                to_db_ts(now),
                to_db_ts(now),
            ),
        )

        logger.debug(f"지출 저장: {expense['expense_id']} {expense['amount']}")
        return expense

    async def get(self, expense_id: str) -> dict[str, Any] | None:
        """ID로 지출 조회"""
        row = await self.db.fetchone(
            "SELECT * FROM expenses WHERE expense_id = ?",
            (expense_id,),
        )
        return _row_to_dict(row) if row else None

    async def update(
        self,
        expense_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any] | None:
        """지출 수정

        Returns:
            수정된 지출. 대상이 없으면 None

        Raises:
            ValueError: 변경할 수 없는 필드가 포함된 경우
        """
        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"변경할 수 없는 지출 필드: {sorted(unknown)}")

        current = await self.get(expense_id)
        if current is None:
            return None

        expense = {**current, **changes}
        expense["date"] = self.clock.to_instant(expense["date"])
        expense["amount"] = int(expense["amount"])
        expense["has_receipt"] = bool(expense["has_receipt"])
        expense["updated_at"] = self.clock.now()

        await self.db.execute_write(
            """
            UPDATE expenses
            SET date = ?, description = ?, amount = ?, method = ?, has_receipt = ?,
                vendor = ?, account = ?, notes = ?, updated_at = ?
            WHERE expense_id = ?
            """,
            (
                to_db_ts(expense["date"]),
                expense["description"],
                expense["amount"],
                expense["method"],
                1 if expense["has_receipt"] else 0,
                expense["vendor"],
                expense["account"],
                expense["notes"],
                to_db_ts(expense["updated_at"]),
                expense_id,
            ),
        )
        return expense

    async def delete(self, expense_id: str) -> bool:
        """지출 삭제"""
        affected = await self.db.execute_write(
            "DELETE FROM expenses WHERE expense_id = ?",
            (expense_id,),
        )
        return affected > 0

    async def find(
        self,
        date_start: DateInput | None = None,
        date_end: DateInput | None = None,
        method: str | None = None,
        vendor: str | None = None,
        page: int = 1,
        limit: int | None = Defaults.PAGE_LIMIT,
    ) -> tuple[list[dict[str, Any]], int]:
        """지출 조회 (날짜 내림차순)

        Args:
            date_start: 시작 날짜 (현지 00:00부터, 포함)
            date_end: 끝 날짜 (현지 23:59:59.999까지, 포함)
            method: 결제 수단
            vendor: 거래처 (대소문자 무시 부분 일치)
            page: 페이지 번호 (1부터)
            limit: 페이지 크기 (None이면 전체)

        Returns:
            (지출 목록, 전체 건수)
        """
        conditions: list[str] = []
        params: list[Any] = []

        if date_start is not None:
            conditions.append("date >= ?")
            params.append(to_db_ts(self.clock.to_instant(date_start)))
        if date_end is not None:
            conditions.append("date <= ?")
            params.append(to_db_ts(self.clock.to_instant(date_end, end=True)))
        if method:
            conditions.append("method = ?")
            params.append(method)
        if vendor:
            conditions.append("LOWER(vendor) LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like(vendor.lower())}%")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        count_row = await self.db.fetchone(
            f"SELECT COUNT(*) AS total FROM expenses {where}",
            tuple(params),
        )
        total = count_row["total"] if count_row else 0

        sql = f"SELECT * FROM expenses {where} ORDER BY date DESC, created_at DESC"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, (max(page, 1) - 1) * limit])

        rows = await self.db.fetchall(sql, tuple(params))
        return [_row_to_dict(row) for row in rows], total

