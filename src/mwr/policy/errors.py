"""Error kinds raised by policy loading and window resolution."""

from __future__ import annotations


class MaintenanceWindowError(Exception):
    """Base class for all maintenance window errors."""


class InvalidOptionError(MaintenanceWindowError):
    """An option of unrecognized kind, or with a malformed value, was supplied.

    A caller defect. Never retried.
    """


class NoWindowResolvedError(MaintenanceWindowError):
    """No candidate rule (nor the default, when enabled) produced a window."""


class PolicyLoadError(MaintenanceWindowError):
    """The serialized ruleset could not be turned into a policy."""
