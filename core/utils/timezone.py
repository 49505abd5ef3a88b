"""
타임존 유틸리티

내부 저장: UTC | 입력/표시: 병원 현지 시각(KST) 원칙 준수를 위한 헬퍼.

호스트 OS의 로컬 타임존은 절대 사용하지 않는다.
날짜 문자열은 항상 고정 오프셋(UTC+9)의 현지 날짜로 해석하여
UTC 시각으로 변환한 뒤 저장/조회한다.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable

from core.constants import Defaults

# KST 타임존 (UTC+9)
KST = timezone(timedelta(hours=Defaults.UTC_OFFSET_HOURS))

# DB 저장용 고정 폭 포맷 (문자열 정렬 == 시간 정렬)
DB_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"

# 하루의 마지막 순간 (밀리초 정밀도)
END_OF_DAY = time(23, 59, 59, 999000)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")

DateInput = str | date | datetime


def _parse_iso_datetime(text: str) -> datetime:
    """ISO 8601 날짜시간 문자열 파싱 ('Z' 접미사 허용)"""
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class ClinicClock:
    """병원 시계

    고정 UTC 오프셋과 현재 시각 공급자를 묶은 값 객체.
    테스트에서는 now_fn을 주입하여 결정적인 시각을 사용한다.

    Args:
        utc_offset_hours: 병원 현지 시각의 UTC 오프셋 (기본 9 = KST)
        now_fn: 현재 시각 공급 함수 (None이면 시스템 UTC 시각)

    사용 예시:
    ```python
    clock = ClinicClock()
    clock.to_instant("2024-03-01")
    # datetime(2024, 2, 29, 15, 0, tzinfo=timezone.utc)
    clock.to_instant("2024-03-01", end=True)
    # datetime(2024, 3, 1, 14, 59, 59, 999000, tzinfo=timezone.utc)
    ```
    """

    utc_offset_hours: int = Defaults.UTC_OFFSET_HOURS
    now_fn: Callable[[], datetime] | None = None

    @property
    def tz(self) -> timezone:
        """병원 현지 타임존"""
        return timezone(timedelta(hours=self.utc_offset_hours))

    def now(self) -> datetime:
        """현재 UTC 시각 (tzinfo=timezone.utc)"""
        if self.now_fn is None:
            return datetime.now(timezone.utc)
        current = self.now_fn()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc)

    def to_instant(self, value: DateInput, end: bool = False) -> datetime:
        """현지 날짜 입력을 UTC 시각으로 변환

        - "YYYY-MM-DD" / date: 현지 00:00:00.000 (end=True면 23:59:59.999)
        - "YYYY-MM": 월의 첫날 00:00 (end=True면 말일 23:59:59.999)
        - ISO 날짜시간 문자열 / datetime: 시각 그대로 (naive면 현지 시각으로 간주)

        Args:
            value: 변환할 날짜 입력
            end: 범위 끝으로 해석할지 여부 (날짜/월 입력에만 적용)

        Returns:
            UTC datetime

        Raises:
            ValueError: 날짜 형식이 잘못된 경우
            TypeError: 지원하지 않는 입력 타입
        """
        if isinstance(value, datetime):
            return self._from_datetime(value)
        if isinstance(value, date):
            return self._civil_day(value, end)
        if isinstance(value, str):
            text = value.strip()
            if _DATE_RE.match(text):
                return self._civil_day(date.fromisoformat(text), end)
            if _MONTH_RE.match(text):
                return self._civil_month(text, end)
            return self._from_datetime(_parse_iso_datetime(text))
        raise TypeError(f"지원하지 않는 날짜 입력 타입입니다: {type(value).__name__}")

    def to_local(self, instant: datetime) -> datetime:
        """UTC 시각을 현지 시각으로 변환 (naive면 UTC로 간주)"""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.tz)

    def local_date(self, instant: datetime) -> str:
        """UTC 시각의 현지 날짜 문자열 (YYYY-MM-DD)"""
        return self.to_local(instant).strftime("%Y-%m-%d")

    def today(self) -> str:
        """현지 기준 오늘 날짜 (YYYY-MM-DD)"""
        return self.local_date(self.now())

    def day_window(self, value: DateInput) -> tuple[datetime, datetime]:
        """입력이 속한 현지 하루의 [시작, 끝] UTC 구간

        Args:
            value: 날짜 문자열 또는 시각

        Returns:
            (현지 00:00:00.000, 현지 23:59:59.999) 의 UTC 시각 쌍
        """
        local_day = self.local_date(self.to_instant(value))
        return self.to_instant(local_day), self.to_instant(local_day, end=True)

    def day_start(self, value: DateInput) -> datetime:
        """입력이 속한 현지 날짜의 00:00 (UTC 시각)"""
        return self.to_instant(self.local_date(self.to_instant(value)))

    def add_days(self, value: DateInput, days: int) -> str:
        """입력이 속한 현지 날짜에서 days일 이동한 날짜 (YYYY-MM-DD)"""
        local_day = date.fromisoformat(self.local_date(self.to_instant(value)))
        return (local_day + timedelta(days=days)).isoformat()

    def _civil_day(self, day: date, end: bool) -> datetime:
        local = datetime.combine(day, END_OF_DAY if end else time.min, tzinfo=self.tz)
        return local.astimezone(timezone.utc)

    def _civil_month(self, text: str, end: bool) -> datetime:
        year, month = (int(part) for part in text.split("-"))
        first_day = date(year, month, 1)
        if not end:
            return self._civil_day(first_day, end=False)
        # 다음 달 0일 = 이번 달 말일
        if month == 12:
            next_month = date(year + 1, 1, 1)
        else:
            next_month = date(year, month + 1, 1)
        return self._civil_day(next_month - timedelta(days=1), end=True)

    def _from_datetime(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.tz)
        return value.astimezone(timezone.utc)


# 기본 시계 (KST 고정)
DEFAULT_CLOCK = ClinicClock()


def to_anchored_instant(value: DateInput, end: bool = False) -> datetime:
    """KST 기준 날짜 입력을 UTC 시각으로 변환

    Example:
        >>> to_anchored_instant("2024-01-15")
        datetime(2024, 1, 14, 15, 0, tzinfo=timezone.utc)
    """
    return DEFAULT_CLOCK.to_instant(value, end=end)


def format_local_date(instant: datetime) -> str:
    """UTC 시각을 KST 날짜 문자열로 포맷

    Example:
        >>> format_local_date(datetime(2024, 1, 14, 15, 0, tzinfo=timezone.utc))
        '2024-01-15'
    """
    return DEFAULT_CLOCK.local_date(instant)


def to_db_ts(dt: datetime) -> str:
    """datetime을 DB 저장용 UTC 문자열로 변환

    고정 폭 포맷이므로 문자열 비교로 범위 조회가 가능하다.
    naive datetime은 UTC로 간주.

    Example:
        >>> to_db_ts(datetime(2024, 2, 29, 15, 0, tzinfo=timezone.utc))
        '2024-02-29T15:00:00.000000+00:00'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime(DB_TS_FORMAT)


def from_db_ts(value: str) -> datetime:
    """DB 저장 문자열을 UTC datetime으로 변환"""
    parsed = _parse_iso_datetime(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
