"""Runtime descriptors and the field matchers that select policy rules.

A rule's match is the AND of four PatternMatchers, one per runtime attribute.
An empty pattern is the ANY sentinel, so unspecified fields never constrain
matching and a plan-only rule can sit next to a tenant+region rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Runtime:
    """Identifying attributes of a tenant workload instance."""

    global_account_id: str = ""
    plan: str = ""
    region: str = ""
    platform_region: str = ""


class PatternMatcher:
    """A compiled regular expression matched against a whole field value.

    Use PatternMatcher.ANY (or an empty pattern) for the always-matching
    sentinel. Instances are immutable after construction.

    Raises:
        re.error: If the pattern is not a valid regular expression.
    """

    ANY: ClassVar[PatternMatcher]

    __slots__ = ("_pattern", "_compiled")

    def __init__(self, pattern: str = "") -> None:
        self._pattern = pattern
        self._compiled = re.compile(pattern) if pattern else None

    @property
    def pattern(self) -> str:
        """The source pattern, empty for the sentinel."""
        return self._pattern

    @property
    def is_any(self) -> bool:
        return self._compiled is None

    def match(self, value: str) -> bool:
        """Return True if the value matches; the sentinel matches anything."""
        if self._compiled is None:
            return True
        return self._compiled.fullmatch(value) is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatternMatcher):
            return NotImplemented
        return self._pattern == other._pattern

    def __hash__(self) -> int:
        return hash(self._pattern)

    def __str__(self) -> str:
        return self._pattern

    def __repr__(self) -> str:
        return f"PatternMatcher({self._pattern!r})"


PatternMatcher.ANY = PatternMatcher("")


def new_pattern_matcher(pattern: str | None) -> PatternMatcher:
    """Build a matcher, mapping None and "" to the ANY sentinel."""
    if not pattern:
        return PatternMatcher.ANY
    return PatternMatcher(pattern)


@dataclass(frozen=True)
class MaintenancePolicyMatch:
    """AND-combination of four field matchers against a Runtime."""

    global_account_id: PatternMatcher = PatternMatcher.ANY
    plan: PatternMatcher = PatternMatcher.ANY
    region: PatternMatcher = PatternMatcher.ANY
    platform_region: PatternMatcher = PatternMatcher.ANY

    @classmethod
    def always(cls) -> MaintenancePolicyMatch:
        """A match that accepts every runtime, used by the default rule."""
        return cls()

    @classmethod
    def from_patterns(
        cls,
        global_account_id: str | None = None,
        plan: str | None = None,
        region: str | None = None,
        platform_region: str | None = None,
    ) -> MaintenancePolicyMatch:
        return cls(
            global_account_id=new_pattern_matcher(global_account_id),
            plan=new_pattern_matcher(plan),
            region=new_pattern_matcher(region),
            platform_region=new_pattern_matcher(platform_region),
        )

    def match(self, runtime: Runtime) -> bool:
        return (
            self.global_account_id.match(runtime.global_account_id)
            and self.plan.match(runtime.plan)
            and self.region.match(runtime.region)
            and self.platform_region.match(runtime.platform_region)
        )

    def __str__(self) -> str:
        return (
            f"<MaintenancePolicyMatch GlobalAccountID:'{self.global_account_id}'"
            f" Plan:'{self.plan}' Region:'{self.region}'"
            f" PlatformRegion:'{self.platform_region}'>"
        )
