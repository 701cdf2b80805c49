"""Resolution options and their folding into an effective configuration.

In-process callers pass typed option values to resolve():

    policy.resolve(runtime, At(now), Ongoing(True), MinWindowSize(timedelta(hours=5)))

Untyped input (JSON bodies, CLI text) goes through ResolutionOptions.from_mapping().
Both paths reject unknown kinds and malformed values with InvalidOptionError.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from mwr.policy.errors import InvalidOptionError
from mwr.policy.schedule import to_utc_seconds


@dataclass(frozen=True)
class At:
    """Instant to resolve from. Must be timezone-aware."""

    value: datetime


@dataclass(frozen=True)
class Ongoing:
    """Accept a window that is already in progress at the instant."""

    value: bool = True


@dataclass(frozen=True)
class MinWindowSize:
    """Minimum duration an ongoing window must have to be accepted."""

    value: timedelta


@dataclass(frozen=True)
class FirstMatchOnly:
    """Only try the first matching rule before falling back."""

    value: bool = True


@dataclass(frozen=True)
class FallbackDefault:
    """Use the default rule when no candidate rule yields a window."""

    value: bool = True


_OPTION_FIELDS: dict[type, str] = {
    At: "at",
    Ongoing: "ongoing",
    MinWindowSize: "min_window_size",
    FirstMatchOnly: "first_match_only",
    FallbackDefault: "fallback_default",
}


class ResolutionOptions(BaseModel):
    """Effective resolution configuration. An unset `at` means "now"."""

    model_config = ConfigDict(extra="forbid", frozen=True, strict=False)

    at: datetime | None = None
    ongoing: bool = False
    min_window_size: timedelta = timedelta(0)
    first_match_only: bool = True
    fallback_default: bool = True

    @field_validator("at")
    @classmethod
    def at_is_aware(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return None
        try:
            return to_utc_seconds(v)
        except OverflowError as exc:
            raise ValueError(f"Instant out of range: {v.isoformat()}") from exc

    @field_validator("min_window_size")
    @classmethod
    def min_window_size_not_negative(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError(f"min_window_size must not be negative, got {v}")
        return v

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> ResolutionOptions:
        """Decode options from untyped input.

        Raises:
            InvalidOptionError: On unknown keys or invalid values.
        """
        try:
            return cls.model_validate(dict(data or {}))
        except ValidationError as exc:
            raise InvalidOptionError(_describe(exc)) from exc

    @classmethod
    def fold(cls, *options: object) -> ResolutionOptions:
        """Fold typed options left to right; later options override earlier ones.

        A ResolutionOptions instance in the list replaces everything before it.

        Raises:
            InvalidOptionError: If any entry is not an option kind or holds a
                malformed value, wherever it sits in the list.
        """
        values: dict[str, Any] = {}
        for index, option in enumerate(options):
            if isinstance(option, ResolutionOptions):
                values = option.model_dump(exclude_unset=True)
                continue
            name = _OPTION_FIELDS.get(type(option))
            if name is None:
                raise InvalidOptionError(
                    f"Unknown option at position {index}: {type(option).__name__} {option!r}"
                )
            try:
                checked = cls.model_validate({name: option.value}, strict=True)  # type: ignore[attr-defined]
            except ValidationError as exc:
                raise InvalidOptionError(f"Malformed option at position {index}: {_describe(exc)}") from exc
            values[name] = getattr(checked, name)
        try:
            return cls.model_validate(values, strict=True)
        except ValidationError as exc:
            raise InvalidOptionError(_describe(exc)) from exc

    def resolve_at(self) -> datetime:
        """The instant to resolve from, reading the clock when unset."""
        if self.at is not None:
            return self.at
        return datetime.now(UTC).replace(microsecond=0)


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error["loc"]) or "options"
        parts.append(f"{location}: {error['msg']}")
    return "Invalid resolution options: " + "; ".join(parts)
