"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
테스트에서는 app.dependency_overrides로 DB/시계를 교체한다.
"""

from typing import AsyncGenerator

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings, get_settings
from core.utils.timezone import ClinicClock


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


def get_clock() -> ClinicClock:
    """병원 시계 반환 (settings.yaml의 UTC 오프셋)"""
    return get_settings().clock


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (읽기 전용)

    조회 API에서 사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=True) as db:
        yield db


async def get_db_write() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (쓰기 가능)

    내원 정보/지출/시재 기록 변경 시 사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=False) as db:
        yield db
