"""
core/utils/timezone.py 테스트

현지 날짜 → UTC 구간 변환, DB 시각 포맷 검증
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from core.utils.timezone import (
    ClinicClock,
    format_local_date,
    from_db_ts,
    to_anchored_instant,
    to_db_ts,
)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestToInstant:
    """ClinicClock.to_instant 테스트"""

    def test_date_string_start(self, clock: ClinicClock) -> None:
        """현지 00:00 = 전날 15:00 UTC"""
        assert clock.to_instant("2024-03-01") == utc(2024, 2, 29, 15, 0)

    def test_date_string_end(self, clock: ClinicClock) -> None:
        """현지 23:59:59.999"""
        assert clock.to_instant("2024-03-01", end=True) == datetime(
            2024, 3, 1, 14, 59, 59, 999000, tzinfo=timezone.utc
        )

    def test_date_object(self, clock: ClinicClock) -> None:
        assert clock.to_instant(date(2024, 1, 15)) == utc(2024, 1, 14, 15, 0)

    def test_month_start(self, clock: ClinicClock) -> None:
        assert clock.to_instant("2024-03") == utc(2024, 2, 29, 15, 0)

    def test_month_end_leap_year(self, clock: ClinicClock) -> None:
        """윤년 2월 말일"""
        end = clock.to_instant("2024-02", end=True)

        assert clock.local_date(end) == "2024-02-29"

    def test_month_end_non_leap_year(self, clock: ClinicClock) -> None:
        end = clock.to_instant("2023-02", end=True)

        assert clock.local_date(end) == "2023-02-28"

    def test_month_end_december(self, clock: ClinicClock) -> None:
        """12월 → 다음 해 경계"""
        end = clock.to_instant("2023-12", end=True)

        assert clock.local_date(end) == "2023-12-31"
        assert end == datetime(2023, 12, 31, 14, 59, 59, 999000, tzinfo=timezone.utc)

    def test_iso_with_z_suffix(self, clock: ClinicClock) -> None:
        """'Z' 접미사는 UTC"""
        assert clock.to_instant("2024-03-01T03:00:00Z") == utc(2024, 3, 1, 3, 0)

    def test_iso_with_offset(self, clock: ClinicClock) -> None:
        assert clock.to_instant("2024-03-01T12:00:00+09:00") == utc(2024, 3, 1, 3, 0)

    def test_naive_datetime_is_local(self, clock: ClinicClock) -> None:
        """naive datetime은 현지 시각으로 간주"""
        assert clock.to_instant(datetime(2024, 3, 1, 9, 0)) == utc(2024, 3, 1, 0, 0)

    def test_end_ignored_for_datetime(self, clock: ClinicClock) -> None:
        value = utc(2024, 3, 1, 3, 0)

        assert clock.to_instant(value, end=True) == value

    def test_invalid_string(self, clock: ClinicClock) -> None:
        with pytest.raises(ValueError):
            clock.to_instant("not-a-date")

    def test_invalid_calendar_date(self, clock: ClinicClock) -> None:
        with pytest.raises(ValueError):
            clock.to_instant("2023-02-30")

    def test_unsupported_type(self, clock: ClinicClock) -> None:
        with pytest.raises(TypeError):
            clock.to_instant(20240301)  # type: ignore[arg-type]


class TestLocalDay:
    """현지 하루 관련 헬퍼 테스트"""

    def test_local_date_crosses_midnight(self, clock: ClinicClock) -> None:
        """UTC 15:00 이후는 현지 다음 날"""
        assert clock.local_date(utc(2024, 3, 4, 14, 59)) == "2024-03-04"
        assert clock.local_date(utc(2024, 3, 4, 15, 0)) == "2024-03-05"

    def test_today_uses_injected_now(self, clock: ClinicClock) -> None:
        assert clock.today() == "2024-03-05"

    def test_day_window(self, clock: ClinicClock) -> None:
        start, end = clock.day_window("2024-03-05T20:00:00+09:00")

        assert start == utc(2024, 3, 4, 15, 0)
        assert end - start == timedelta(hours=23, minutes=59, seconds=59, milliseconds=999)

    def test_day_start(self, clock: ClinicClock) -> None:
        """현지 날짜의 00:00으로 정규화"""
        assert clock.day_start(utc(2024, 3, 5, 5, 30)) == utc(2024, 3, 4, 15, 0)

    def test_add_days(self, clock: ClinicClock) -> None:
        assert clock.add_days("2024-03-01", -1) == "2024-02-29"
        assert clock.add_days("2023-12-31", 1) == "2024-01-01"

    def test_other_offset(self) -> None:
        """다른 오프셋의 시계"""
        ict = ClinicClock(utc_offset_hours=7)

        assert ict.to_instant("2024-03-01") == utc(2024, 2, 29, 17, 0)


class TestDbTimestamp:
    """to_db_ts / from_db_ts 테스트"""

    def test_fixed_width_format(self) -> None:
        assert to_db_ts(utc(2024, 2, 29, 15, 0)) == "2024-02-29T15:00:00.000000+00:00"

    def test_converts_to_utc(self) -> None:
        kst = timezone(timedelta(hours=9))

        assert to_db_ts(datetime(2024, 3, 1, 0, 0, tzinfo=kst)) == (
            "2024-02-29T15:00:00.000000+00:00"
        )

    def test_string_order_matches_time_order(self) -> None:
        """문자열 정렬 == 시간 정렬"""
        earlier = utc(2024, 3, 1, 9, 0)
        later = earlier + timedelta(microseconds=1)

        assert to_db_ts(earlier) < to_db_ts(later)

    def test_from_db_ts(self) -> None:
        assert from_db_ts("2024-02-29T15:00:00.000000+00:00") == utc(2024, 2, 29, 15, 0)


class TestModuleHelpers:
    def test_to_anchored_instant(self) -> None:
        assert to_anchored_instant("2024-01-15") == utc(2024, 1, 14, 15, 0)

    def test_format_local_date(self) -> None:
        assert format_local_date(utc(2024, 1, 14, 15, 0)) == "2024-01-15"
