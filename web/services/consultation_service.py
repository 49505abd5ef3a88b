"""
상담 내역 서비스

ConsultationStore CRUD (시재 기록과 무관)
"""

import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.storage.consultation_store import ConsultationStore
from core.utils.timezone import DEFAULT_CLOCK, ClinicClock

logger = logging.getLogger(__name__)


class ConsultationService:
    """상담 내역 서비스

    Args:
        db: SQLite 어댑터
        clock: 병원 시계
    """

    def __init__(self, db: SQLiteAdapter, clock: ClinicClock = DEFAULT_CLOCK):
        self.db = db
        self.store = ConsultationStore(db, clock)

    async def list_consultations(
        self,
        date_start: str | None = None,
        date_end: str | None = None,
        query: str | None = None,
        agreed: bool | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        """상담 내역 목록 (날짜 내림차순, 페이지)"""
        consultations = await self.store.find(date_start, date_end, query, agreed)
        total = len(consultations)
        offset = (max(page, 1) - 1) * limit

        return {
            "consultations": consultations[offset:offset + limit],
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit,
            },
        }

    async def get_consultation(self, consultation_id: str) -> dict[str, Any] | None:
        return await self.store.get(consultation_id)

    async def create_consultation(self, data: dict[str, Any]) -> dict[str, Any]:
        consultation = await self.store.create(data)
        logger.info(f"상담 내역 생성: {consultation['consultation_id']}")
        return consultation

    async def update_consultation(
        self,
        consultation_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any] | None:
        consultation = await self.store.update(consultation_id, changes)
        if consultation is not None:
            logger.info(f"상담 내역 수정: {consultation_id} {sorted(changes)}")
        return consultation

    async def toggle_agreed(
        self,
        consultation_id: str,
        confirmed_date: str | None = None,
    ) -> dict[str, Any] | None:
        """동의 여부 반전"""
        consultation = await self.store.toggle_agreed(consultation_id, confirmed_date)
        if consultation is not None:
            logger.info(
                f"상담 동의 여부 변경: {consultation_id} → {consultation['agreed']}"
            )
        return consultation

    async def delete_consultation(self, consultation_id: str) -> bool:
        deleted = await self.store.delete(consultation_id)
        if deleted:
            logger.info(f"상담 내역 삭제: {consultation_id}")
        return deleted
