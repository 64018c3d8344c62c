from datetime import time, timedelta
import itertools

import pytest

from lessonhub.core.enums import Weekday
from lessonhub.domain.intervals import (
    dates_intersect_inclusive,
    day_name,
    fits_within_window,
    format_window,
    minutes_since_midnight,
    ranges_intersect_inclusive,
    ranges_overlap,
)
from tests.helpers import utc

QUARTER_HOURS = [f"{h:02d}:{m:02d}" for h in range(8, 12) for m in (0, 15, 30, 45)]


class TestFitsWithinWindow:
    def test_matches_inclusive_containment_over_grid(self):
        for event_start, event_end, window_start, window_end in itertools.product(
            QUARTER_HOURS[::2], QUARTER_HOURS[1::2], QUARTER_HOURS[::3], QUARTER_HOURS[2::3]
        ):
            if event_start >= event_end or window_start >= window_end:
                continue
            expected = window_start <= event_start and event_end <= window_end
            assert fits_within_window(event_start, event_end, window_start, window_end) is expected

    def test_exact_window_fits(self):
        assert fits_within_window("09:00", "17:00", "09:00", "17:00")

    def test_one_minute_outside_does_not_fit(self):
        assert not fits_within_window("08:59", "10:00", "09:00", "17:00")
        assert not fits_within_window("16:00", "17:01", "09:00", "17:00")

    def test_accepts_seconds_and_time_objects(self):
        assert fits_within_window("10:00:00", "11:00:00", time(9), time(17))

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            minutes_since_midnight("nine")

    def test_end_of_day_is_the_only_hour_24(self):
        assert minutes_since_midnight("24:00") == 1440
        assert fits_within_window("23:00", "24:00", "09:00", "24:00")
        for value in ("24:59", "24:01", "25:00", "23:60"):
            with pytest.raises(ValueError):
                minutes_since_midnight(value)


class TestRangesOverlap:
    def test_symmetric(self):
        base = utc(2030, 1, 14, 10)
        ranges = [
            (base + timedelta(minutes=a), base + timedelta(minutes=a + length))
            for a in range(0, 120, 30)
            for length in (15, 30, 60)
        ]
        for (a_start, a_end), (b_start, b_end) in itertools.product(ranges, ranges):
            assert ranges_overlap(a_start, a_end, b_start, b_end) == ranges_overlap(
                b_start, b_end, a_start, a_end
            )

    def test_range_overlaps_itself(self):
        start, end = utc(2030, 1, 14, 10), utc(2030, 1, 14, 11)
        assert ranges_overlap(start, end, start, end)

    def test_touching_endpoints_do_not_overlap(self):
        assert not ranges_overlap(
            utc(2030, 1, 15, 10), utc(2030, 1, 15, 11), utc(2030, 1, 15, 11), utc(2030, 1, 15, 12)
        )

    def test_inclusive_intersection_counts_touching_endpoints(self):
        assert ranges_intersect_inclusive(
            utc(2030, 1, 15, 10), utc(2030, 1, 15, 11), utc(2030, 1, 15, 11), utc(2030, 1, 15, 12)
        )


def test_dates_intersect_inclusive_on_shared_day():
    from datetime import date

    assert dates_intersect_inclusive(
        date(2030, 12, 22), date(2030, 12, 22), date(2030, 12, 20), date(2030, 12, 22)
    )
    assert not dates_intersect_inclusive(
        date(2030, 12, 23), date(2030, 12, 23), date(2030, 12, 20), date(2030, 12, 22)
    )


def test_day_name_is_sunday_based():
    assert day_name(0) == Weekday.SUNDAY
    assert day_name(1) == Weekday.MONDAY
    assert day_name(6) == Weekday.SATURDAY
    with pytest.raises(ValueError):
        day_name(7)


def test_weekday_for_datetime():
    # 2030-01-14 is a Monday
    assert Weekday.for_datetime(utc(2030, 1, 14, 10)) == Weekday.MONDAY
    assert Weekday.for_datetime(utc(2030, 1, 13).date()) == Weekday.SUNDAY
    assert Weekday.MONDAY.label == "Monday"


def test_format_window():
    assert format_window(time(9), time(17, 30)) == "09:00 - 17:30"
