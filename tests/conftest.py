"""Shared test fixtures for the resolver test suite.

Provides the fixture ruleset, the sample policy shipped in policies/, and a
loaded policy built from the fixture ruleset.
"""

from pathlib import Path

import pytest

from mwr.policy.loader import policy_from_bytes
from mwr.policy.resolver import MaintenanceWindowPolicy

TESTS_DIR = Path(__file__).parent
PROJECT_ROOT = TESTS_DIR.parent
RULESET_PATH = TESTS_DIR / "testdata" / "ruleset-1.json"
SAMPLE_POLICY_PATH = PROJECT_ROOT / "policies" / "default.yaml"


@pytest.fixture
def ruleset_path() -> Path:
    """Path to the JSON ruleset used by the resolution scenarios."""
    return RULESET_PATH


@pytest.fixture
def sample_policy_path() -> Path:
    """Path to the default policy YAML for testing."""
    return SAMPLE_POLICY_PATH


@pytest.fixture
def policy() -> MaintenanceWindowPolicy:
    """The fixture ruleset, loaded."""
    return policy_from_bytes(RULESET_PATH.read_bytes(), source=str(RULESET_PATH))
