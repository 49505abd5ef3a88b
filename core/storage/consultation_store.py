"""
ConsultationStore - 상담 내역 저장소

consultations 테이블 CRUD. 시재 기록과는 연동하지 않는다.
"""

import logging
from typing import Any

import aiosqlite

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cash.models import new_id
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock, DateInput, from_db_ts, to_db_ts

logger = logging.getLogger(__name__)

_FIELDS = (
    "date",
    "chart_number",
    "patient_name",
    "doctor",
    "staff",
    "amount",
    "agreed",
    "confirmed_date",
    "notes",
)


def _row_to_dict(row: aiosqlite.Row) -> dict[str, Any]:
    confirmed_date = row["confirmed_date"]
    return {
        "consultation_id": row["consultation_id"],
        "date": from_db_ts(row["date"]),
        "chart_number": row["chart_number"],
        "patient_name": row["patient_name"],
        "doctor": row["doctor"],
        "staff": row["staff"],
        "amount": row["amount"],
        "agreed": bool(row["agreed"]),
        "confirmed_date": from_db_ts(confirmed_date) if confirmed_date else None,
        "notes": row["notes"],
        "created_at": from_db_ts(row["created_at"]),
        "updated_at": from_db_ts(row["updated_at"]),
    }


class ConsultationStore:
    """상담 내역 저장소

    Args:
        db: SQLiteAdapter 인스턴스
        clock: 병원 시계
    """

    def __init__(self, db: SQLiteAdapter, clock: ClinicClock = DEFAULT_CLOCK):
        self.db = db
        self.clock = clock

    def _column_values(self, consultation: dict[str, Any]) -> tuple[Any, ...]:
        confirmed_date = consultation.get("confirmed_date")
        return (
            to_db_ts(self.clock.to_instant(consultation["date"])),
            consultation.get("chart_number"),
            consultation.get("patient_name"),
            consultation.get("doctor"),
            consultation.get("staff"),
            int(consultation.get("amount") or 0),
            1 if consultation.get("agreed") else 0,
            to_db_ts(self.clock.to_instant(confirmed_date)) if confirmed_date else None,
            consultation.get("notes"),
        )

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        """상담 내역 저장"""
        consultation_id = data.get("consultation_id") or new_id()
        now = to_db_ts(self.clock.now())

        await self.db.execute_write(
            f"""
            INSERT INTO consultations (
                consultation_id, {', '.join(_FIELDS)}, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (consultation_id, *self._column_values(data), now, now),
        )

        logger.debug(f"상담 내역 저장: {consultation_id}")
        created = await self.get(consultation_id)
        assert created is not None
        return created

    async def get(self, consultation_id: str) -> dict[str, Any] | None:
        """ID로 상담 내역 조회"""
        row = await self.db.fetchone(
            "SELECT * FROM consultations WHERE consultation_id = ?",
            (consultation_id,),
        )
        return _row_to_dict(row) if row else None

    async def update(
        self,
        consultation_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any] | None:
        """상담 내역 수정

        Returns:
            수정된 상담 내역. 대상이 없으면 None

        Raises:
            ValueError: 변경할 수 없는 필드가 포함된 경우
        """
        unknown = set(changes) - set(_FIELDS)
        if unknown:
            raise ValueError(f"변경할 수 없는 상담 필드: {sorted(unknown)}")

        current = await self.get(consultation_id)
        if current is None:
            return None

        merged = {**current, **changes}
        assignments = ", ".join(f"{name} = ?" for name in _FIELDS)

        await self.db.execute_write(
            f"""
            UPDATE consultations
            SET {assignments}, updated_at = ?
            WHERE consultation_id = ?
            """,
            (*self._column_values(merged), to_db_ts(self.clock.now()), consultation_id),
        )
        return await self.get(consultation_id)

    async def toggle_agreed(
        self,
        consultation_id: str,
        confirmed_date: DateInput | None = None,
    ) -> dict[str, Any] | None:
        """동의 여부 반전

        동의로 바뀌면 확정일을 confirmed_date(없으면 오늘)로,
        미동의로 바뀌면 확정일을 비운다.
        """
        current = await self.get(consultation_id)
        if current is None:
            return None

        agreed = not current["agreed"]
        return await self.update(
            consultation_id,
            {
                "agreed": agreed,
                "confirmed_date": (confirmed_date or self.clock.today()) if agreed else None,
            },
        )

    async def delete(self, consultation_id: str) -> bool:
        """상담 내역 삭제"""
        affected = await self.db.execute_write(
            "DELETE FROM consultations WHERE consultation_id = ?",
            (consultation_id,),
        )
        return affected > 0

    async def find(
        self,
        date_start: DateInput | None = None,
        date_end: DateInput | None = None,
        query: str | None = None,
        agreed: bool | None = None,
    ) -> list[dict[str, Any]]:
        """상담 내역 조회 (날짜 내림차순)

        Args:
            date_start: 시작 날짜 (현지 00:00부터, 포함)
            date_end: 끝 날짜 (현지 23:59:59.999까지, 포함)
            query: 차트번호/환자명 부분 일치 (대소문자 무시)
            agreed: 동의 여부 필터
        """
        conditions: list[str] = []
        params: list[Any] = []

        if date_start is not None:
            conditions.append("date >= ?")
            params.append(to_db_ts(self.clock.to_instant(date_start)))
        if date_end is not None:
            conditions.append("date <= ?")
            params.append(to_db_ts(self.clock.to_instant(date_end, end=True)))
        if query:
            conditions.append("(LOWER(chart_number) LIKE ? OR LOWER(patient_name) LIKE ?)")
            params.extend([f"%{query.lower()}%"] * 2)
        if agreed is not None:
            conditions.append("agreed = ?")
            params.append(1 if agreed else 0)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = await self.db.fetchall(
            f"SELECT * FROM consultations {where} ORDER BY date DESC, created_at DESC",
            tuple(params),
        )
        return [_row_to_dict(row) for row in rows]
