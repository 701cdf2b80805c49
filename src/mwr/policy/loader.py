"""Ruleset loading, validation, hot reload, and diff logging.

SECURITY: Uses yaml.safe_load() exclusively. Never use yaml.load().
JSON rulesets load through the same path (JSON is valid YAML).
Uses aiofiles for non-blocking file I/O.
"""

from __future__ import annotations

import difflib
from pathlib import Path

import aiofiles
import structlog
import yaml
from pydantic import ValidationError

from mwr.config import Settings
from mwr.policy.errors import PolicyLoadError
from mwr.policy.models import PolicyDocument
from mwr.policy.resolver import MaintenanceWindowPolicy

logger = structlog.get_logger()

POLICY_EXTENSIONS: tuple[str, ...] = (".json", ".yaml", ".yml")


def policy_from_bytes(raw: bytes | str, source: str = "<bytes>") -> MaintenanceWindowPolicy:
    """Parse and validate a serialized ruleset into a policy.

    Args:
        raw: YAML or JSON ruleset content.
        source: Where the content came from, for error messages.

    Returns:
        An immutable MaintenanceWindowPolicy.

    Raises:
        PolicyLoadError: If the content is empty, malformed, or fails validation.
    """
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise PolicyLoadError(f"Malformed ruleset in {source}: {exc}") from exc

    if data is None:
        raise PolicyLoadError(f"Ruleset is empty: {source}")
    if not isinstance(data, dict):
        raise PolicyLoadError(f"Ruleset must be a mapping, got {type(data).__name__}: {source}")

    try:
        document = PolicyDocument.model_validate(data)
        policy = MaintenanceWindowPolicy.from_document(document)
    except (ValidationError, ValueError) as exc:
        raise PolicyLoadError(f"Invalid ruleset in {source}: {exc}") from exc
    except OverflowError as exc:
        raise PolicyLoadError(f"Invalid ruleset in {source}: window out of range: {exc}") from exc

    return policy


async def load_policy(file_path: str | Path) -> MaintenanceWindowPolicy:
    """Load and validate a ruleset file.

    Raises:
        FileNotFoundError: If the file does not exist.
        PolicyLoadError: If the ruleset is empty, malformed, or invalid.
    """
    async with aiofiles.open(file_path, mode="rb") as f:
        raw_content = await f.read()

    policy = policy_from_bytes(raw_content, source=str(file_path))

    await logger.ainfo(
        "policy_loaded",
        file_path=str(file_path),
        version=policy.version,
        rule_count=len(policy.rules),
    )

    return policy


def find_policy_file(directory: str | Path, name: str) -> Path:
    """Locate <name>.json, <name>.yaml or <name>.yml in a directory, in that order.

    Raises:
        FileNotFoundError: If none of the candidates exist.
        ValueError: If the name would escape the directory.
    """
    if not name or Path(name).name != name:
        raise ValueError(f"Invalid policy name: {name!r}")
    base = Path(directory)
    for extension in POLICY_EXTENSIONS:
        candidate = base / f"{name}{extension}"
        if candidate.is_file():
            return candidate
    tried = ", ".join(f"{name}{ext}" for ext in POLICY_EXTENSIONS)
    raise FileNotFoundError(f"No policy named {name!r} in {base} (tried {tried})")


async def load_policy_by_name(directory: str | Path, name: str) -> MaintenanceWindowPolicy:
    """Load the named ruleset from a policy directory."""
    return await load_policy(find_policy_file(directory, name))


def configured_policy_path(settings: Settings) -> Path:
    """Path of the configured policy: the named policy if set, else the policy file."""
    if settings.policy_name:
        return find_policy_file(settings.policy_directory, settings.policy_name)
    return Path(settings.policy_file_path)


async def load_configured_policy(settings: Settings) -> MaintenanceWindowPolicy:
    """Load the policy selected by MWR_POLICY_NAME or MWR_POLICY_FILE_PATH."""
    return await load_policy(configured_policy_path(settings))


async def reload_policy(
    file_path: str | Path,
    current_policy: MaintenanceWindowPolicy | None = None,
) -> tuple[MaintenanceWindowPolicy, str | None]:
    """Reload a ruleset with optional diff logging.

    The current policy is left untouched; callers swap in the returned one.

    Returns:
        A tuple of (new_policy, diff_text). diff_text is None if there
        was no previous policy or nothing changed.
    """
    new_policy = await load_policy(file_path)

    diff_text: str | None = None
    if current_policy is not None:
        diff_text = compute_policy_diff(current_policy, new_policy)
        if diff_text:
            await logger.ainfo(
                "policy_reloaded_with_changes",
                file_path=str(file_path),
                diff=diff_text,
            )
        else:
            await logger.ainfo(
                "policy_reloaded_no_changes",
                file_path=str(file_path),
            )

    return new_policy, diff_text


def compute_policy_diff(old: MaintenanceWindowPolicy, new: MaintenanceWindowPolicy) -> str | None:
    """Compute a unified diff between the documents of two policies.

    Returns None if the documents are identical or either policy was built
    without a document.
    """
    if old.document is None or new.document is None:
        return None

    old_text = old.document.model_dump_json(indent=2).splitlines(keepends=True)
    new_text = new.document.model_dump_json(indent=2).splitlines(keepends=True)

    diff_lines = list(difflib.unified_diff(
        old_text,
        new_text,
        fromfile="policy (before)",
        tofile="policy (after)",
    ))

    if not diff_lines:
        return None

    return "".join(diff_lines)
