"""Tests for time and week helpers."""

from datetime import date, datetime

import pytest

from conflict_core.time_utils import (
    InvalidInputError,
    day_of_week,
    duration_hours,
    is_valid_hhmm,
    parse_date,
    time_to_minutes,
    week_bounds,
    windows_overlap,
)


class TestTimeToMinutes:
    def test_parses_hhmm(self):
        assert time_to_minutes("00:00") == 0
        assert time_to_minutes("09:30") == 570
        assert time_to_minutes("23:59") == 23 * 60 + 59

    def test_accepts_single_digit_hour(self):
        assert time_to_minutes("9:05") == 545

    @pytest.mark.parametrize(
        "value", ["24:00", "12:60", "1230", "", None, "ab:cd", "12:5", "09:00\n", "x09:00"]
    )
    def test_rejects_malformed(self, value):
        with pytest.raises(InvalidInputError):
            time_to_minutes(value)

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            time_to_minutes("25:00")

    def test_is_valid_hhmm(self):
        assert is_valid_hhmm("08:00") is True
        assert is_valid_hhmm("8:00") is True
        assert is_valid_hhmm("08:0") is False
        assert is_valid_hhmm(None) is False


class TestDurationHours:
    def test_whole_and_fractional_hours(self):
        assert duration_hours("09:00", "17:00") == 8.0
        assert duration_hours("09:15", "10:45") == 1.5

    def test_negative_when_end_precedes_start(self):
        assert duration_hours("18:00", "16:00") == -2.0


class TestWindowsOverlap:
    def test_partial_overlap(self):
        assert windows_overlap("10:00", "12:00", "09:00", "11:00") is True

    def test_containment(self):
        assert windows_overlap("09:00", "17:00", "10:00", "11:00") is True
        assert windows_overlap("10:00", "11:00", "09:00", "17:00") is True

    def test_touching_windows_do_not_overlap(self):
        assert windows_overlap("09:00", "11:00", "11:00", "12:00") is False
        assert windows_overlap("11:00", "12:00", "09:00", "11:00") is False

    def test_disjoint(self):
        assert windows_overlap("06:00", "07:00", "13:00", "14:00") is False

    def test_symmetry(self):
        windows = [
            ("08:00", "10:00"),
            ("09:00", "11:00"),
            ("10:00", "12:00"),
            ("07:00", "13:00"),
            ("12:00", "12:30"),
        ]
        for a in windows:
            for b in windows:
                assert windows_overlap(*a, *b) == windows_overlap(*b, *a)


class TestDayOfWeek:
    def test_sunday_is_zero(self):
        assert day_of_week(date(2024, 1, 14)) == 0

    def test_monday_and_saturday(self):
        assert day_of_week(date(2024, 1, 15)) == 1
        assert day_of_week(date(2024, 1, 20)) == 6


class TestWeekBounds:
    def test_midweek(self):
        start, end = week_bounds(date(2024, 1, 17))
        assert start == datetime(2024, 1, 15, 0, 0, 0)
        assert end == datetime(2024, 1, 21, 23, 59, 59, 999000)

    def test_monday_starts_its_own_week(self):
        start, _ = week_bounds(date(2024, 1, 15))
        assert start.date() == date(2024, 1, 15)

    def test_sunday_belongs_to_preceding_monday(self):
        start, end = week_bounds(date(2024, 1, 21))
        assert start.date() == date(2024, 1, 15)
        assert end.date() == date(2024, 1, 21)

    def test_crosses_year_boundary(self):
        start, end = week_bounds(date(2023, 12, 31))
        assert start.date() == date(2023, 12, 25)
        assert end.date() == date(2023, 12, 31)
        start, end = week_bounds(date(2024, 1, 1))
        assert start.date() == date(2024, 1, 1)
        assert end.date() == date(2024, 1, 7)

    def test_crosses_month_boundary_in_leap_year(self):
        start, end = week_bounds(date(2024, 2, 29))
        assert start.date() == date(2024, 2, 26)
        assert end.date() == date(2024, 3, 3)


class TestParseDate:
    def test_accepts_date_datetime_and_iso(self):
        assert parse_date(date(2024, 1, 15)) == date(2024, 1, 15)
        assert parse_date(datetime(2024, 1, 15, 8, 30)) == date(2024, 1, 15)
        assert parse_date("2024-01-15") == date(2024, 1, 15)

    def test_ignores_time_component(self):
        assert parse_date("2024-01-15T00:00:00.000Z") == date(2024, 1, 15)
        assert parse_date("2024-01-15 08:30:00") == date(2024, 1, 15)

    @pytest.mark.parametrize(
        "value", ["", None, "15/01/2024", "2024-13-01", "2024-01-15garbage", "2024-01-150"]
    )
    def test_rejects_invalid(self, value):
        with pytest.raises(InvalidInputError):
            parse_date(value)
