"""
시재 기록 모델

cash_records 테이블 한 행 = CashRecord 하나.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping
from uuid import uuid4

from core.types import CashRecordType, SourceType
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock, from_db_ts


def new_id() -> str:
    """레코드 ID 생성 (uuid4 hex)"""
    return uuid4().hex


def _optional_ts(value: str | None) -> datetime | None:
    return from_db_ts(value) if value else None


@dataclass
class CashRecord:
    """시재 기록

    현금으로 정산된 수입/지출 한 건.
    amount는 항상 양수이고 부호는 kind로 결정된다.

    source_id는 원천 레코드(내원 정보 또는 지출)에 대한 약한 참조이며,
    (source_id, payment_id, kind)가 하나의 현금 결제 건을 식별한다.
    통장입금은 원천 레코드가 없다.
    """

    date: datetime  # 현지 날짜의 00:00 (UTC 시각)
    kind: CashRecordType
    amount: int
    description: str = ""

    source_type: SourceType | None = None
    source_id: str | None = None
    payment_id: str = ""

    record_id: str = field(default_factory=new_id)

    completed: bool = False
    completed_at: datetime | None = None
    group_id: str | None = None
    grouped: bool = False
    closed: bool = False
    closing_amount: int | None = None
    closed_at: datetime | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def signed_amount(self) -> int:
        """현금 증감 (수입 +, 지출/통장입금 -)"""
        if self.kind == CashRecordType.INCOME:
            return self.amount
        return -self.amount

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> CashRecord:
        """DB 행에서 생성"""
        source_type = row["source_type"]
        return cls(
            record_id=row["record_id"],
            date=from_db_ts(row["date"]),
            kind=CashRecordType(row["kind"]),
            amount=int(row["amount"]),
            description=row["description"] or "",
            source_type=SourceType(source_type) if source_type else None,
            source_id=row["source_id"],
            payment_id=row["payment_id"] or "",
            completed=bool(row["is_completed"]),
            completed_at=_optional_ts(row["completed_at"]),
            group_id=row["group_id"],
            grouped=bool(row["is_grouped"]),
            closed=bool(row["is_closed"]),
            closing_amount=row["closing_amount"],
            closed_at=_optional_ts(row["closed_at"]),
            created_at=_optional_ts(row["created_at"]),
            updated_at=_optional_ts(row["updated_at"]),
        )

    def to_dict(self, clock: ClinicClock = DEFAULT_CLOCK) -> dict[str, Any]:
        """API 응답용 딕셔너리 (시각은 ISO 문자열, local_date는 clock 기준)"""

        def iso(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "record_id": self.record_id,
            "date": iso(self.date),
            "local_date": clock.local_date(self.date),
            "kind": self.kind.value,
            "amount": self.amount,
            "description": self.description,
            "source_type": self.source_type.value if self.source_type else None,
            "source_id": self.source_id,
            "payment_id": self.payment_id,
            "completed": self.completed,
            "completed_at": iso(self.completed_at),
            "group_id": self.group_id,
            "grouped": self.grouped,
            "closed": self.closed,
            "closing_amount": self.closing_amount,
            "closed_at": iso(self.closed_at),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
