"""Tests for schedule window queries: weekly, calendar, and composite."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta, timezone

import pytest

from mwr.policy.schedule import (
    CalendarSchedule,
    CompositeSchedule,
    ResolvedWindow,
    WeeklySchedule,
    combine_schedules,
    slot_length,
)

FRIDAY = 4
SATURDAY = 5


def utc(text: str) -> datetime:
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def win(begin: str, end: str) -> ResolvedWindow:
    return ResolvedWindow(begin=utc(begin), end=utc(end))


class TestResolvedWindow:
    """Window value semantics."""

    def test_half_open(self) -> None:
        w = win("2024-10-10T20:00:00Z", "2024-10-11T00:00:00Z")
        assert w.contains(utc("2024-10-10T20:00:00Z"))
        assert w.contains(utc("2024-10-10T23:59:59Z"))
        assert not w.contains(utc("2024-10-11T00:00:00Z"))

    def test_truncates_to_seconds_and_normalizes_to_utc(self) -> None:
        cet = timezone(timedelta(hours=1))
        w = ResolvedWindow(
            begin=datetime(2024, 10, 10, 21, 0, 0, 500_000, tzinfo=cet),
            end=datetime(2024, 10, 11, 1, 0, 0, tzinfo=cet),
        )
        assert w.begin == datetime(2024, 10, 10, 20, 0, 0, tzinfo=UTC)
        assert w.begin.microsecond == 0
        assert w.duration == timedelta(hours=4)

    def test_begin_must_precede_end(self) -> None:
        with pytest.raises(ValueError, match="precede"):
            win("2024-10-10T20:00:00Z", "2024-10-10T20:00:00Z")

    def test_naive_datetimes_rejected(self) -> None:
        with pytest.raises(ValueError, match="timezone-aware"):
            ResolvedWindow(begin=datetime(2024, 1, 1), end=datetime(2024, 1, 2))

    def test_string_and_dict(self) -> None:
        w = win("2024-10-04T01:00:00Z", "2024-10-05T01:00:00Z")
        assert str(w) == "<ResolvedWindow Begin:'2024-10-04T01:00:00Z' End:'2024-10-05T01:00:00Z'>"
        assert w.to_dict() == {
            "begin": "2024-10-04T01:00:00Z",
            "end": "2024-10-05T01:00:00Z",
            "duration_seconds": 86400,
        }


class TestSlotLength:
    def test_same_day(self) -> None:
        assert slot_length(time(2), time(6)) == timedelta(hours=4)

    def test_rolls_over_midnight(self) -> None:
        assert slot_length(time(20), time(0)) == timedelta(hours=4)

    def test_equal_times_is_full_day(self) -> None:
        assert slot_length(time(1), time(1)) == timedelta(days=1)


class TestWeeklySchedule:
    """Weekly-recurring slots."""

    def test_next_window_later_in_week(self) -> None:
        schedule = WeeklySchedule(weekdays=frozenset({FRIDAY}), begin=time(1), end=time(1))
        # 2024-10-03 is a Thursday
        assert schedule.next_window(utc("2024-10-03T05:05:00Z")) == win(
            "2024-10-04T01:00:00Z", "2024-10-05T01:00:00Z"
        )

    def test_next_window_same_day_before_begin(self) -> None:
        schedule = WeeklySchedule(weekdays=frozenset({FRIDAY}), begin=time(1), end=time(1))
        assert schedule.next_window(utc("2024-10-04T00:30:00Z")) == win(
            "2024-10-04T01:00:00Z", "2024-10-05T01:00:00Z"
        )

    def test_next_window_is_strictly_after(self) -> None:
        """At exactly begin, the next window is a week later."""
        schedule = WeeklySchedule(weekdays=frozenset({FRIDAY}), begin=time(1), end=time(1))
        assert schedule.next_window(utc("2024-10-04T01:00:00Z")) == win(
            "2024-10-11T01:00:00Z", "2024-10-12T01:00:00Z"
        )

    def test_next_window_picks_nearest_weekday(self) -> None:
        schedule = WeeklySchedule(weekdays=frozenset({1, 3}), begin=time(22), end=time(2))
        # Wednesday 2024-10-02 -> Thursday 2024-10-03 22:00
        assert schedule.next_window(utc("2024-10-02T12:00:00Z")) == win(
            "2024-10-03T22:00:00Z", "2024-10-04T02:00:00Z"
        )

    def test_ongoing_window_same_day(self) -> None:
        schedule = WeeklySchedule(weekdays=frozenset({SATURDAY}), begin=time(0), end=time(0))
        assert schedule.ongoing_window(utc("2024-12-14T13:00:00Z")) == win(
            "2024-12-14T00:00:00Z", "2024-12-15T00:00:00Z"
        )

    def test_ongoing_window_across_midnight(self) -> None:
        schedule = WeeklySchedule(weekdays=frozenset({FRIDAY}), begin=time(22), end=time(2))
        # Saturday 01:00 is inside Friday's 22:00-02:00 slot
        assert schedule.ongoing_window(utc("2024-10-05T01:00:00Z")) == win(
            "2024-10-04T22:00:00Z", "2024-10-05T02:00:00Z"
        )

    def test_no_ongoing_window_outside_slot(self) -> None:
        schedule = WeeklySchedule(weekdays=frozenset({FRIDAY}), begin=time(22), end=time(2))
        assert schedule.ongoing_window(utc("2024-10-05T02:00:00Z")) is None
        assert schedule.ongoing_window(utc("2024-10-03T23:00:00Z")) is None

    def test_empty_weekdays_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least one weekday"):
            WeeklySchedule(weekdays=frozenset(), begin=time(0), end=time(1))

    def test_out_of_range_weekday_rejected(self) -> None:
        with pytest.raises(ValueError, match="0..6"):
            WeeklySchedule(weekdays=frozenset({7}), begin=time(0), end=time(1))

    def test_next_window_near_datetime_max_is_none(self) -> None:
        schedule = WeeklySchedule(weekdays=frozenset(range(7)), begin=time(0), end=time(0))
        assert schedule.next_window(datetime(9999, 12, 31, 12, tzinfo=UTC)) is None

    def test_ongoing_window_near_date_limits(self) -> None:
        schedule = WeeklySchedule(weekdays=frozenset(range(7)), begin=time(22), end=time(2))
        assert schedule.ongoing_window(datetime(9999, 12, 31, 23, tzinfo=UTC)) is None
        assert schedule.ongoing_window(datetime(1, 1, 1, 1, tzinfo=UTC)) is None

    def test_next_window_is_monotonic(self) -> None:
        schedule = WeeklySchedule(weekdays=frozenset({1, 4}), begin=time(3), end=time(5))
        start = utc("2024-10-01T00:00:00Z")
        previous = schedule.next_window(start)
        for hour in range(1, 24 * 21, 5):
            current = schedule.next_window(start + timedelta(hours=hour))
            assert previous is not None and current is not None
            assert previous.begin <= current.begin
            previous = current


class TestCalendarSchedule:
    """Sparse explicit windows."""

    @pytest.fixture
    def schedule(self) -> CalendarSchedule:
        return CalendarSchedule.from_dates(
            [date(2024, 12, 8), date(2024, 10, 10)], begin=time(20), end=time(0)
        )

    def test_entries_are_sorted(self, schedule: CalendarSchedule) -> None:
        assert [w.begin.date() for w in schedule.entries] == [date(2024, 10, 10), date(2024, 12, 8)]

    def test_ongoing_hit(self, schedule: CalendarSchedule) -> None:
        assert schedule.ongoing_window(utc("2024-10-10T22:05:00Z")) == win(
            "2024-10-10T20:00:00Z", "2024-10-11T00:00:00Z"
        )

    def test_ongoing_miss(self, schedule: CalendarSchedule) -> None:
        assert schedule.ongoing_window(utc("2024-10-11T00:00:00Z")) is None
        assert schedule.ongoing_window(utc("2024-01-01T00:00:00Z")) is None

    def test_next_window(self, schedule: CalendarSchedule) -> None:
        assert schedule.next_window(utc("2024-10-10T22:05:00Z")) == win(
            "2024-12-08T20:00:00Z", "2024-12-09T00:00:00Z"
        )

    def test_next_window_exhausted(self, schedule: CalendarSchedule) -> None:
        assert schedule.next_window(utc("2024-12-10T22:05:00Z")) is None

    def test_not_recurring(self, schedule: CalendarSchedule) -> None:
        assert not schedule.is_recurring

    def test_overlapping_entries_rejected(self) -> None:
        with pytest.raises(ValueError, match="overlap"):
            CalendarSchedule(entries=(
                win("2024-10-10T20:00:00Z", "2024-10-11T00:00:00Z"),
                win("2024-10-10T23:00:00Z", "2024-10-11T02:00:00Z"),
            ))


class TestCompositeSchedule:
    """Several window definitions behind one rule."""

    @pytest.fixture
    def schedule(self) -> CompositeSchedule:
        return CompositeSchedule(children=(
            CalendarSchedule.from_dates([date(2024, 12, 18)], begin=time(20), end=time(0)),
            WeeklySchedule(weekdays=frozenset({SATURDAY}), begin=time(0), end=time(0)),
        ))

    def test_next_window_is_earliest_child(self, schedule: CompositeSchedule) -> None:
        assert schedule.next_window(utc("2024-12-16T00:00:00Z")) == win(
            "2024-12-18T20:00:00Z", "2024-12-19T00:00:00Z"
        )
        assert schedule.next_window(utc("2024-12-19T00:00:00Z")) == win(
            "2024-12-21T00:00:00Z", "2024-12-22T00:00:00Z"
        )

    def test_ongoing_window_from_any_child(self, schedule: CompositeSchedule) -> None:
        assert schedule.ongoing_window(utc("2024-12-18T21:00:00Z")) == win(
            "2024-12-18T20:00:00Z", "2024-12-19T00:00:00Z"
        )
        assert schedule.ongoing_window(utc("2024-12-17T21:00:00Z")) is None

    def test_overlapping_children_prefer_longest_ongoing(self) -> None:
        schedule = CompositeSchedule(children=(
            WeeklySchedule(weekdays=frozenset({SATURDAY}), begin=time(0), end=time(2)),
            WeeklySchedule(weekdays=frozenset({SATURDAY}), begin=time(1), end=time(7)),
        ))
        assert schedule.ongoing_window(utc("2024-12-14T01:30:00Z")) == win(
            "2024-12-14T01:00:00Z", "2024-12-14T07:00:00Z"
        )

    def test_recurring_if_any_child_recurs(self, schedule: CompositeSchedule) -> None:
        assert schedule.is_recurring

    def test_combine_single_schedule_is_unwrapped(self) -> None:
        weekly = WeeklySchedule(weekdays=frozenset({SATURDAY}), begin=time(0), end=time(0))
        assert combine_schedules([weekly]) is weekly
        assert isinstance(combine_schedules([weekly, weekly]), CompositeSchedule)

    def test_empty_composite_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least one"):
            CompositeSchedule(children=())
