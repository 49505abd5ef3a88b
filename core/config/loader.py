"""
설정 로더

config/settings.yaml 로드 및 실행 설정 생성
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths
from core.types import AppMode
from core.utils.timezone import ClinicClock


@dataclass(frozen=True)
class AppConfig:
    """실행 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    mode: AppMode
    utc_offset_hours: int = Defaults.UTC_OFFSET_HOURS
    web_host: str = Defaults.WEB_HOST
    web_port: int = Defaults.WEB_PORT
    db_path: Path | None = None  # 지정하지 않으면 mode에 따른 기본 경로


class SettingsLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _parse_config(data: dict[str, Any]) -> AppConfig:
    mode_str = data.get("mode", AppMode.PRODUCTION.value)
    try:
        mode = AppMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in AppMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    clinic_config = data.get("clinic") or {}
    web_config = data.get("web") or {}
    db_config = data.get("database") or {}

    utc_offset_hours = int(clinic_config.get("utc_offset_hours", Defaults.UTC_OFFSET_HOURS))
    if not -12 <= utc_offset_hours <= 14:
        raise SettingsLoadError(
            f"settings.yaml의 clinic.utc_offset_hours 값이 범위를 벗어났습니다: {utc_offset_hours}"
        )

    db_path = db_config.get("path")

    return AppConfig(
        mode=mode,
        utc_offset_hours=utc_offset_hours,
        web_host=web_config.get("host", Defaults.WEB_HOST),
        web_port=int(web_config.get("port", Defaults.WEB_PORT)),
        db_path=Path(db_path) if db_path else None,
    )


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    파일이 없으면 기본값(production, KST)으로 동작한다.

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스

    Raises:
        SettingsLoadError: 파일 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        return AppConfig(mode=AppMode.PRODUCTION)

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return AppConfig(mode=AppMode.PRODUCTION)

    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    return _parse_config(data)


def get_db_path(config: AppConfig) -> Path:
    """모드에 따른 DB 경로 반환

    Args:
        config: AppConfig 인스턴스

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if config.db_path is not None:
        return config.db_path
    if config.mode == AppMode.PRODUCTION:
        return Paths.PROD_DB
    return Paths.TEST_DB


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            self._config = load_config(settings_path)

    @property
    def mode(self) -> AppMode:
        """현재 실행 모드"""
        assert self._config is not None
        return self._config.mode

    @property
    def utc_offset_hours(self) -> int:
        """병원 현지 시각 UTC 오프셋"""
        assert self._config is not None
        return self._config.utc_offset_hours

    @property
    def web_host(self) -> str:
        assert self._config is not None
        return self._config.web_host

    @property
    def web_port(self) -> int:
        assert self._config is not None
        return self._config.web_port

    @property
    def db_path(self) -> Path:
        """현재 모드의 DB 경로"""
        assert self._config is not None
        return get_db_path(self._config)

    @property
    def clock(self) -> ClinicClock:
        """설정된 오프셋의 병원 시계"""
        return ClinicClock(utc_offset_hours=self.utc_offset_hours)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
