"""Shared fixtures for API route tests.

Provides:
- A configured FastAPI test app with the fixture ruleset loaded
- An httpx AsyncClient pointed at the test app
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from mwr.api.app import create_app
from mwr.config import Settings
from mwr.policy.loader import load_policy

RULESET = str(Path(__file__).parent.parent / "testdata" / "ruleset-1.json")


@pytest.fixture
async def test_settings() -> Settings:
    """Create test Settings pointing at the fixture ruleset."""
    return Settings(
        policy_file_path=RULESET,
        log_level="WARNING",
        log_format="console",
        max_request_body_bytes=4096,
    )


@pytest.fixture
async def test_app(test_settings: Settings) -> AsyncGenerator[object, None]:
    """Create a test FastAPI app with the policy loaded."""
    app = create_app(settings=test_settings)

    # Manually run lifespan startup
    app.state.policy = await load_policy(test_settings.policy_file_path)
    app.state.settings = test_settings

    yield app


@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient for the test app."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
