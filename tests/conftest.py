"""
pytest 공통 fixture 정의

- 임시 디렉토리 / settings.yaml
- 인메모리 DB (스키마 초기화 완료)
- 고정 시각 병원 시계
"""

import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.cash.store import CashRecordStore
from core.config.loader import Settings
from core.utils.timezone import ClinicClock

# 테스트 기준 시각: 2024-03-05 10:00 KST
FIXED_NOW = datetime(2024, 3, 5, 1, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    settings_content = """# 테스트용 settings.yaml
mode: test

clinic:
  utc_offset_hours: 9

web:
  host: "0.0.0.0"
  port: 8080
"""
    settings_path = temp_dir / "settings.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_invalid_mode(temp_dir: Path) -> Path:
    """잘못된 모드의 settings.yaml 파일 생성"""
    settings_path = temp_dir / "settings_invalid.yaml"
    settings_path.write_text("mode: invalid_mode\n", encoding="utf-8")
    return settings_path


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """테스트마다 Settings 싱글턴 초기화"""
    Settings.reset()
    yield
    Settings.reset()


@pytest.fixture
def clock() -> ClinicClock:
    """고정 시각(2024-03-05 10:00 KST)의 병원 시계"""
    return ClinicClock(now_fn=lambda: FIXED_NOW)


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[SQLiteAdapter, None]:
    """임시 인메모리 DB"""
    adapter = SQLiteAdapter(":memory:")
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def cash_store(db: SQLiteAdapter, clock: ClinicClock) -> CashRecordStore:
    """시재 기록 저장소"""
    return CashRecordStore(db, clock)
