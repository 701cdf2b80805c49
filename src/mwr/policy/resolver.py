"""Maintenance window policy and resolution.

The policy is built once and never mutated, so resolve() can be called from
any number of threads without locking. Resolution flow:

1. Fold options into ResolutionOptions (InvalidOptionError on bad input)
2. Collect rules whose match accepts the runtime, in policy order
3. Keep only the first of them when first_match_only is set
4. Try each candidate's schedule; the first window found wins
5. Otherwise fall back to the default schedule, or raise NoWindowResolvedError
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from mwr.policy.errors import NoWindowResolvedError
from mwr.policy.matcher import MaintenancePolicyMatch, Runtime
from mwr.policy.models import PolicyDocument
from mwr.policy.options import ResolutionOptions
from mwr.policy.schedule import ResolvedWindow, Schedule

logger = structlog.get_logger()


@dataclass(frozen=True)
class Rule:
    """A match predicate paired with the schedule of its windows."""

    match: MaintenancePolicyMatch
    schedule: Schedule


def resolve_rule_window(
    schedule: Schedule,
    at: datetime,
    ongoing: bool,
    min_window_size: timedelta,
) -> ResolvedWindow | None:
    """Resolve a window from a single schedule.

    With ongoing set, a window containing `at` wins if it lasts at least
    min_window_size. Otherwise the next window after `at` is returned whatever
    its length; min_window_size only gates the ongoing case.
    """
    if ongoing:
        current = schedule.ongoing_window(at)
        if current is not None and current.duration >= min_window_size:
            return current
    return schedule.next_window(at)


@dataclass(frozen=True)
class MaintenanceWindowPolicy:
    """Ordered rules plus an always-matching default rule.

    Args:
        rules: Rules in priority order.
        default: The fallback rule; its match accepts every runtime.
        version: Version string from the ruleset document.
        document: The validated document the policy was built from.
    """

    rules: tuple[Rule, ...]
    default: Rule
    version: str = "1"
    document: PolicyDocument | None = None

    @classmethod
    def from_document(cls, document: PolicyDocument) -> MaintenanceWindowPolicy:
        rules = tuple(
            Rule(match=rule.match.to_match(), schedule=rule.to_schedule())
            for rule in document.rules
        )
        default = Rule(
            match=MaintenancePolicyMatch.always(),
            schedule=document.default.to_schedule(),
        )
        return cls(rules=rules, default=default, version=document.version, document=document)

    def matching_rules(self, runtime: Runtime) -> list[tuple[int, Rule]]:
        """Return (index, rule) pairs whose match accepts the runtime, in order."""
        return [(index, rule) for index, rule in enumerate(self.rules) if rule.match.match(runtime)]

    def resolve(self, runtime: Runtime, *options: object) -> ResolvedWindow:
        """Resolve the maintenance window applicable to a runtime.

        Args:
            runtime: The workload to resolve for.
            *options: Option values (At, Ongoing, MinWindowSize, FirstMatchOnly,
                FallbackDefault) or a ResolutionOptions instance.

        Returns:
            The resolved window.

        Raises:
            InvalidOptionError: If an option is of unknown kind or malformed.
            NoWindowResolvedError: If no candidate rule (nor the default, when
                enabled) yields a window.
        """
        config = ResolutionOptions.fold(*options)
        at = config.resolve_at()

        matched = self.matching_rules(runtime)
        candidates = matched[:1] if config.first_match_only else matched

        for index, rule in candidates:
            window = resolve_rule_window(rule.schedule, at, config.ongoing, config.min_window_size)
            if window is not None:
                logger.debug(
                    "maintenance_window_resolved",
                    rule_index=index,
                    rule=str(rule.match),
                    at=at.isoformat(),
                    begin=window.begin.isoformat(),
                    end=window.end.isoformat(),
                )
                return window
            logger.debug("rule_exhausted", rule_index=index, rule=str(rule.match), at=at.isoformat())

        if config.fallback_default:
            window = resolve_rule_window(
                self.default.schedule, at, config.ongoing, config.min_window_size
            )
            if window is not None:
                logger.debug(
                    "fallback_default_used",
                    matched_rules=len(matched),
                    at=at.isoformat(),
                    begin=window.begin.isoformat(),
                    end=window.end.isoformat(),
                )
                return window

        logger.info(
            "no_window_resolved",
            matched_rules=len(matched),
            first_match_only=config.first_match_only,
            fallback_default=config.fallback_default,
            at=at.isoformat(),
        )
        raise NoWindowResolvedError(
            f"No maintenance window resolved for {_describe_runtime(runtime)} at {at.isoformat()}"
        )


def _describe_runtime(runtime: Runtime) -> str:
    return (
        f"runtime(GlobalAccountID:'{runtime.global_account_id}' Plan:'{runtime.plan}'"
        f" Region:'{runtime.region}' PlatformRegion:'{runtime.platform_region}')"
    )
