"""Tests for quarter-hour slot arithmetic."""

from datetime import date, datetime

from ob_billing.billing.timeslots import (
    floor_to_quarter,
    format_display,
    generate_slots,
    is_evening,
    is_listed_date,
    is_night,
    is_same_date,
    is_weekday_daytime,
    is_weekend,
    slot_key,
)


class TestSlotArithmetic:
    def test_floor_to_quarter(self):
        assert floor_to_quarter(datetime(2024, 1, 1, 8, 29, 45)) == datetime(2024, 1, 1, 8, 15)

    def test_floor_keeps_aligned_time(self):
        assert floor_to_quarter(datetime(2024, 1, 1, 8, 30)) == datetime(2024, 1, 1, 8, 30)

    def test_slot_key_drops_seconds(self):
        assert slot_key(datetime(2024, 1, 1, 8, 7, 59, 12)) == datetime(2024, 1, 1, 8, 7)

    def test_generate_slots_half_open(self):
        slots = generate_slots(datetime(2024, 1, 1, 8), datetime(2024, 1, 1, 9))
        assert slots == [
            datetime(2024, 1, 1, 8, 0),
            datetime(2024, 1, 1, 8, 15),
            datetime(2024, 1, 1, 8, 30),
            datetime(2024, 1, 1, 8, 45),
        ]

    def test_generate_slots_empty_range(self):
        assert generate_slots(datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 9)) == []


class TestClassification:
    def test_night_boundaries(self):
        assert is_night(datetime(2024, 1, 1, 6, 59))
        assert not is_night(datetime(2024, 1, 1, 7, 0))
        assert not is_night(datetime(2024, 1, 1, 21, 59))
        assert is_night(datetime(2024, 1, 1, 22, 0))

    def test_evening_is_weekday_only(self):
        assert is_evening(datetime(2024, 1, 1, 17, 0))
        assert not is_evening(datetime(2024, 1, 6, 17, 0))

    def test_weekend(self):
        assert is_weekend(datetime(2024, 1, 6, 12))
        assert is_weekend(datetime(2024, 1, 7, 12))
        assert not is_weekend(datetime(2024, 1, 5, 12))

    def test_weekday_daytime(self):
        assert is_weekday_daytime(datetime(2024, 1, 1, 7, 0))
        assert is_weekday_daytime(datetime(2024, 1, 1, 16, 45))
        assert not is_weekday_daytime(datetime(2024, 1, 1, 17, 0))
        assert not is_weekday_daytime(datetime(2024, 1, 6, 10, 0))

    def test_same_date_with_missing_value(self):
        assert is_same_date(datetime(2024, 1, 1, 1), datetime(2024, 1, 1, 23))
        assert not is_same_date(datetime(2024, 1, 1, 1), None)

    def test_listed_date(self):
        assert is_listed_date(datetime(2024, 12, 25, 10), [date(2024, 12, 25)])
        assert not is_listed_date(datetime(2024, 12, 26, 10), [date(2024, 12, 25)])

    def test_format_display(self):
        assert format_display(datetime(2024, 1, 1, 20, 5)) == "Jan 01, 2024 08:05 PM"
        assert format_display(None) == ""
