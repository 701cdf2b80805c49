"""Pydantic models for the serialized maintenance window ruleset.

Mirrors the YAML/JSON document:
- MatchConfig: the four field patterns of a rule
- WindowConfig: one window definition, weekly (days) or calendar (dates)
- RuleConfig / DefaultRuleConfig: a match plus its windows
- PolicyDocument: version, ordered rules, default

Extra fields are forbidden everywhere. Patterns are compiled during
validation so a malformed regular expression fails the load.
"""

from __future__ import annotations

import re
from datetime import date, time, timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mwr.policy.matcher import MaintenancePolicyMatch
from mwr.policy.schedule import CalendarSchedule, Schedule, WeeklySchedule, combine_schedules

_WEEKDAYS: dict[str, int] = {
    "mon": 0, "monday": 0,
    "tue": 1, "tuesday": 1,
    "wed": 2, "wednesday": 2,
    "thu": 3, "thursday": 3,
    "fri": 4, "friday": 4,
    "sat": 5, "saturday": 5,
    "sun": 6, "sunday": 6,
}


def parse_weekday(name: str) -> int:
    """Map a weekday name (short or full, any case) to datetime.weekday() numbering."""
    try:
        return _WEEKDAYS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown weekday: {name!r}") from None


def parse_time_of_day(value: str | time) -> time:
    """Parse HH:MM[:SS] in UTC. A Z or +00:00 suffix is accepted, other offsets are not."""
    if isinstance(value, time):
        parsed = value
    else:
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = time.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid time of day: {value!r}") from None
    offset = parsed.utcoffset()
    if offset is not None and offset != timedelta(0):
        raise ValueError(f"Window times must be UTC, got offset {offset} in {value!r}")
    return parsed.replace(tzinfo=None, microsecond=0)


class MatchConfig(BaseModel):
    """Field patterns of a rule. Omitted or empty patterns match anything."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    global_account_id: str = ""
    plan: str = ""
    region: str = ""
    platform_region: str = ""

    @field_validator("global_account_id", "plan", "region", "platform_region")
    @classmethod
    def pattern_compiles(cls, v: str) -> str:
        """Reject malformed regular expressions at load time."""
        if v:
            try:
                re.compile(v)
            except re.error as exc:
                raise ValueError(f"Invalid pattern {v!r}: {exc}") from exc
        return v

    def to_match(self) -> MaintenancePolicyMatch:
        return MaintenancePolicyMatch.from_patterns(
            global_account_id=self.global_account_id,
            plan=self.plan,
            region=self.region,
            platform_region=self.platform_region,
        )


class WindowConfig(BaseModel):
    """One window definition: a begin/end slot on weekdays or on explicit dates."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    days: list[str] = Field(default_factory=list)
    dates: list[date] = Field(default_factory=list)
    begin: time
    end: time

    @field_validator("begin", "end", mode="before")
    @classmethod
    def utc_time_of_day(cls, v: object) -> time:
        if not isinstance(v, (str, time)):
            raise ValueError("Window times must be HH:MM[:SS] strings")
        return parse_time_of_day(v)

    @field_validator("days")
    @classmethod
    def days_are_weekdays(cls, v: list[str]) -> list[str]:
        for name in v:
            parse_weekday(name)
        return v

    @model_validator(mode="after")
    def exactly_one_kind(self) -> WindowConfig:
        """A window is either weekly (days) or calendar (dates), never both."""
        if bool(self.days) == bool(self.dates):
            raise ValueError("A window must define exactly one of 'days' or 'dates'")
        if len(set(self.dates)) != len(self.dates):
            raise ValueError("Window dates must be unique")
        return self

    @property
    def is_weekly(self) -> bool:
        return bool(self.days)

    def to_schedule(self) -> Schedule:
        if self.is_weekly:
            return WeeklySchedule(
                weekdays=frozenset(parse_weekday(name) for name in self.days),
                begin=self.begin,
                end=self.end,
            )
        return CalendarSchedule.from_dates(self.dates, self.begin, self.end)


class RuleConfig(BaseModel):
    """A policy rule: which runtimes it applies to and when their windows are."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    match: MatchConfig = Field(default_factory=MatchConfig)
    windows: list[WindowConfig] = Field(min_length=1)

    def to_schedule(self) -> Schedule:
        return combine_schedules(w.to_schedule() for w in self.windows)


class DefaultRuleConfig(BaseModel):
    """The fallback rule. It matches everything, so it carries only windows."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    windows: list[WindowConfig] = Field(min_length=1)

    @field_validator("windows")
    @classmethod
    def has_recurring_window(cls, v: list[WindowConfig]) -> list[WindowConfig]:
        """The default must never run out of windows, so it needs a weekly slot."""
        if not any(w.is_weekly for w in v):
            raise ValueError("The default rule must define at least one weekly ('days') window")
        return v

    def to_schedule(self) -> Schedule:
        return combine_schedules(w.to_schedule() for w in self.windows)


class PolicyDocument(BaseModel):
    """Top-level ruleset document. Rule order is priority order."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: str = "1"
    rules: list[RuleConfig] = Field(default_factory=list)
    default: DefaultRuleConfig
