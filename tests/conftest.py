"""Shared test fixtures and configuration."""

from __future__ import annotations

import pytest

from foundry_agent_runner.config import Settings
from tests.helpers import FakeAgentsService


@pytest.fixture
def settings():
    """Settings with a valid endpoint and no real delays."""
    return Settings(
        _env_file=None,
        PROJECT_ENDPOINT="https://test.services.ai.azure.com/api/projects/test",
        MODEL_DEPLOYMENT_NAME="gpt-4.1",
        AGENT_NAME="TestAgent",
        POLL_INTERVAL_SECONDS=0,
        POLL_MAX_ATTEMPTS=5,
    )


@pytest.fixture
def fake_service():
    return FakeAgentsService()
