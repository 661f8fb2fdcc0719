"""
Pytest configuration and fixtures for EditOrchestra tests.
"""

from unittest.mock import AsyncMock

import pytest

from edit_orchestrator.config_loader import reset_config_cache
from edit_orchestrator.tracing import client as tracing_client_module


@pytest.fixture
def scripted_client():
    """
    Completion client stub returning scripted turns in order.

    Assign ``scripted_client.complete.side_effect`` to a list of turns;
    every call is recorded with the messages it was sent.
    """
    client = AsyncMock()
    client.model = "test-model"
    client.temperature = 0.0
    return client


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset cached configuration and the tracing singleton around each test."""
    reset_config_cache()
    tracing_client_module._tracing_client = None
    yield
    reset_config_cache()
    tracing_client_module._tracing_client = None
