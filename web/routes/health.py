"""
헬스 체크 엔드포인트

GET /api/health - 서버 상태 확인
"""

from fastapi import APIRouter, Depends

from core.config.loader import Settings
from core.utils.timezone import ClinicClock
from web.dependencies import get_app_settings, get_clock
from web.models.responses import HealthResponse

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_app_settings),
    clock: ClinicClock = Depends(get_clock),
) -> HealthResponse:
    """서버 상태 확인

    Returns:
        HealthResponse: status, mode, 현재 시각, 현지 기준 오늘
    """
    return HealthResponse(
        status="ok",
        mode=settings.mode.value,
        timestamp=clock.now(),
        today=clock.today(),
    )
