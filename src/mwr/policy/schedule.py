"""Schedules: translate recurrence and calendar definitions into window queries.

Every schedule answers two questions about a UTC instant:
- ongoing_window(at): the window whose half-open interval contains at
- next_window(at): the earliest window with begin strictly after at

Variants:
    WeeklySchedule: a daily time slot repeated on selected weekdays
    CalendarSchedule: a finite, sorted list of explicit windows
    CompositeSchedule: several schedules queried together (one rule, many windows)

Recurring variants are answered arithmetically over a bounded number of
dates, never by open-ended iteration.
"""

from __future__ import annotations

import bisect
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta

DAY = timedelta(days=1)

# A weekly occurrence begins on one of the next 8 dates (today's may have passed).
_WEEKLY_LOOKAHEAD_DAYS = 8


def to_utc_seconds(value: datetime) -> datetime:
    """Normalize an aware datetime to UTC with second precision.

    Raises:
        ValueError: If the datetime is naive.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"Datetime must be timezone-aware, got naive {value.isoformat()}")
    return value.astimezone(UTC).replace(microsecond=0)


def format_utc(value: datetime) -> str:
    """Render a UTC datetime as RFC 3339 with a trailing Z."""
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True, order=True)
class ResolvedWindow:
    """A half-open [begin, end) maintenance window in UTC, second precision."""

    begin: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "begin", to_utc_seconds(self.begin))
        object.__setattr__(self, "end", to_utc_seconds(self.end))
        if self.begin >= self.end:
            raise ValueError(
                f"Window begin must precede end: {format_utc(self.begin)} >= {format_utc(self.end)}"
            )

    @property
    def duration(self) -> timedelta:
        return self.end - self.begin

    def contains(self, at: datetime) -> bool:
        """Check if an instant lies inside the window (end excluded)."""
        return self.begin <= at < self.end

    def to_dict(self) -> dict[str, object]:
        return {
            "begin": format_utc(self.begin),
            "end": format_utc(self.end),
            "duration_seconds": int(self.duration.total_seconds()),
        }

    def __str__(self) -> str:
        return f"<ResolvedWindow Begin:'{format_utc(self.begin)}' End:'{format_utc(self.end)}'>"


def slot_length(begin: time, end: time) -> timedelta:
    """Length of a daily slot from begin to end.

    An end at or before begin rolls over to the next day, so equal times
    describe a full 24h slot.
    """
    start = timedelta(hours=begin.hour, minutes=begin.minute, seconds=begin.second)
    stop = timedelta(hours=end.hour, minutes=end.minute, seconds=end.second)
    if stop <= start:
        stop += DAY
    return stop - start


def _slot_on(day: date, begin: time, length: timedelta) -> ResolvedWindow:
    start = datetime.combine(day, begin.replace(microsecond=0, tzinfo=UTC))
    return ResolvedWindow(begin=start, end=start + length)


class Schedule(ABC):
    """Window query capability shared by all schedule variants."""

    @abstractmethod
    def ongoing_window(self, at: datetime) -> ResolvedWindow | None:
        """Return the window containing at, or None."""

    @abstractmethod
    def next_window(self, at: datetime) -> ResolvedWindow | None:
        """Return the earliest window beginning strictly after at, or None."""

    @property
    @abstractmethod
    def is_recurring(self) -> bool:
        """True if next_window never runs out of occurrences."""


@dataclass(frozen=True)
class WeeklySchedule(Schedule):
    """A daily slot [begin, begin + length) repeated on the given weekdays.

    Weekdays use datetime.weekday() numbering (Monday == 0). A slot is at most
    24h long, so only the instant's date and the day before can hold an ongoing
    occurrence.
    """

    weekdays: frozenset[int]
    begin: time
    end: time

    def __post_init__(self) -> None:
        if not self.weekdays:
            raise ValueError("Weekly schedule needs at least one weekday")
        if any(d not in range(7) for d in self.weekdays):
            raise ValueError(f"Weekdays must be in 0..6, got {sorted(self.weekdays)}")

    @property
    def length(self) -> timedelta:
        return slot_length(self.begin, self.end)

    @property
    def is_recurring(self) -> bool:
        return True

    def ongoing_window(self, at: datetime) -> ResolvedWindow | None:
        at = to_utc_seconds(at)
        length = self.length
        for offset in (0, 1):
            try:
                day = at.date() - timedelta(days=offset)
                if day.weekday() not in self.weekdays:
                    continue
                window = _slot_on(day, self.begin, length)
            except OverflowError:
                # Slot falls outside the representable datetime range.
                continue
            if window.contains(at):
                return window
        return None

    def next_window(self, at: datetime) -> ResolvedWindow | None:
        at = to_utc_seconds(at)
        length = self.length
        for offset in range(_WEEKLY_LOOKAHEAD_DAYS):
            try:
                day = at.date() + timedelta(days=offset)
                if day.weekday() not in self.weekdays:
                    continue
                window = _slot_on(day, self.begin, length)
            except OverflowError:
                # No later occurrence fits before datetime.max.
                return None
            if window.begin > at:
                return window
        return None


@dataclass(frozen=True)
class CalendarSchedule(Schedule):
    """Explicit windows, kept sorted by begin. Exhausts after the last entry."""

    entries: tuple[ResolvedWindow, ...]
    _begins: tuple[datetime, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.entries))
        for previous, current in zip(ordered, ordered[1:]):
            if current.begin < previous.end:
                raise ValueError(f"Calendar windows overlap: {previous} and {current}")
        object.__setattr__(self, "entries", ordered)
        object.__setattr__(self, "_begins", tuple(w.begin for w in ordered))

    @classmethod
    def from_dates(cls, dates: Iterable[date], begin: time, end: time) -> CalendarSchedule:
        """Build one slot per date, each starting at begin on that date."""
        length = slot_length(begin, end)
        return cls(entries=tuple(_slot_on(day, begin, length) for day in dates))

    @property
    def is_recurring(self) -> bool:
        return False

    def ongoing_window(self, at: datetime) -> ResolvedWindow | None:
        at = to_utc_seconds(at)
        index = bisect.bisect_right(self._begins, at) - 1
        if index >= 0 and self.entries[index].contains(at):
            return self.entries[index]
        return None

    def next_window(self, at: datetime) -> ResolvedWindow | None:
        at = to_utc_seconds(at)
        index = bisect.bisect_right(self._begins, at)
        if index < len(self.entries):
            return self.entries[index]
        return None


@dataclass(frozen=True)
class CompositeSchedule(Schedule):
    """Several schedules answering as one: earliest begin wins."""

    children: tuple[Schedule, ...]

    def __post_init__(self) -> None:
        if not self.children:
            raise ValueError("Composite schedule needs at least one child schedule")

    @property
    def is_recurring(self) -> bool:
        return any(child.is_recurring for child in self.children)

    def ongoing_window(self, at: datetime) -> ResolvedWindow | None:
        found = [w for w in (c.ongoing_window(at) for c in self.children) if w is not None]
        if not found:
            return None
        # Longest containing window, then earliest begin.
        return min(found, key=lambda w: (-w.duration, w.begin))

    def next_window(self, at: datetime) -> ResolvedWindow | None:
        found = [w for w in (c.next_window(at) for c in self.children) if w is not None]
        if not found:
            return None
        return min(found)


def combine_schedules(schedules: Iterable[Schedule]) -> Schedule:
    """Collapse a single schedule to itself, wrap several in a composite."""
    items = tuple(schedules)
    if len(items) == 1:
        return items[0]
    return CompositeSchedule(children=items)
