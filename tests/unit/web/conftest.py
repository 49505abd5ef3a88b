"""
Web API 테스트용 fixture

임시 파일 DB와 고정 시각 시계로 의존성을 교체한 TestClient.
"""

from pathlib import Path
from typing import AsyncGenerator

import pytest
from fastapi.testclient import TestClient

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import get_settings
from core.utils.timezone import ClinicClock
from web.app import app
from web.dependencies import get_clock, get_db, get_db_write


@pytest.fixture
def client(tmp_path: Path, temp_settings_file: Path, clock: ClinicClock) -> TestClient:
    """의존성을 교체한 TestClient (lifespan 미실행)"""
    db_path = tmp_path / "api_test.db"
    get_settings(temp_settings_file)

    async def override_db() -> AsyncGenerator[SQLiteAdapter, None]:
        async with SQLiteAdapter(db_path) as db:
            await init_schema(db)
            yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_db_write] = override_db
    app.dependency_overrides[get_clock] = lambda: clock

    yield TestClient(app)

    app.dependency_overrides.clear()
