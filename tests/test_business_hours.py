"""
Business-hours rule and alternative candidate generation.
"""

import pytest
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

from salonbook.core.business import BusinessHours, SchedulingConfig


@pytest.mark.unit
class TestBusinessHours:
    """Opening hours checks on [start, end) intervals"""

    def setup_method(self):
        self.hours = BusinessHours()

    def test_inside_hours(self):
        start = datetime(2024, 1, 15, 10, 0)
        assert self.hours.is_within(start, start + timedelta(hours=1))

    def test_starts_before_opening(self):
        start = datetime(2024, 1, 15, 8, 59)
        assert not self.hours.is_within(start, start + timedelta(minutes=30))

    def test_exactly_at_opening(self):
        start = datetime(2024, 1, 15, 9, 0)
        assert self.hours.is_within(start, start + timedelta(minutes=30))

    def test_ending_exactly_at_closing(self):
        start = datetime(2024, 1, 15, 17, 30)
        assert self.hours.is_within(start, start + timedelta(minutes=30))

    def test_ending_after_closing(self):
        start = datetime(2024, 1, 15, 17, 31)
        assert not self.hours.is_within(start, start + timedelta(minutes=30))

    def test_sunday_closed(self):
        start = datetime(2024, 1, 14, 10, 0)
        assert start.isoweekday() == 7
        assert not self.hours.is_within(start, start + timedelta(hours=1))

    def test_cross_midnight_rejected(self):
        hours = BusinessHours(opens=time(0, 0), closes=time(23, 59))
        start = datetime(2024, 1, 15, 23, 30)
        assert not hours.is_within(start, start + timedelta(hours=1))

    def test_custom_closed_days(self):
        hours = BusinessHours(closed_weekdays=frozenset({1, 7}))
        monday = datetime(2024, 1, 15, 10, 0)
        assert not hours.is_within(monday, monday + timedelta(hours=1))


@pytest.mark.unit
class TestSchedulingConfig:
    """Alternative candidate ordering"""

    def test_candidates_same_day_then_next_morning(self):
        config = SchedulingConfig()
        requested = datetime(2024, 1, 15, 10, 30)

        candidates = config.candidate_starts(requested)

        assert candidates == [
            datetime(2024, 1, 15, 11, 30),
            datetime(2024, 1, 15, 12, 30),
            datetime(2024, 1, 15, 13, 30),
            datetime(2024, 1, 16, 10, 0),
            datetime(2024, 1, 16, 11, 0),
            datetime(2024, 1, 16, 12, 0),
            datetime(2024, 1, 16, 13, 0),
        ]

    def test_no_next_day_candidates_before_closed_day(self):
        config = SchedulingConfig()
        saturday = datetime(2024, 1, 13, 15, 0)

        candidates = config.candidate_starts(saturday)

        assert len(candidates) == 3
        assert all(c.date() == saturday.date() for c in candidates)

    def test_knobs_are_configurable(self):
        config = SchedulingConfig(same_day_alternatives=1, next_day_first_hour=9, next_day_alternatives=2)
        candidates = config.candidate_starts(datetime(2024, 1, 15, 10, 0))
        assert candidates == [
            datetime(2024, 1, 15, 11, 0),
            datetime(2024, 1, 16, 9, 0),
            datetime(2024, 1, 16, 10, 0),
        ]

    def test_aware_input_converted_to_salon_time(self):
        config = SchedulingConfig(tz=ZoneInfo("Europe/Paris"))
        utc = datetime(2024, 1, 15, 9, 0, tzinfo=ZoneInfo("UTC"))
        assert config.to_local(utc) == datetime(2024, 1, 15, 10, 0)

    def test_naive_input_kept(self):
        config = SchedulingConfig()
        naive = datetime(2024, 1, 15, 10, 0)
        assert config.to_local(naive) is naive
