"""Shared fixtures for integration tests."""

import os

import pytest

# Skip all integration tests unless RUN_SPOKABLE_NETWORK_TESTS=1
pytestmark = pytest.mark.skipif(
    os.environ.get("RUN_SPOKABLE_NETWORK_TESTS") != "1",
    reason="Requires network access. Set RUN_SPOKABLE_NETWORK_TESTS=1 to run",
)


@pytest.fixture
def gemini_api_key() -> str:
    key = os.environ.get("GEMINI_API_KEY")
    if not key:
        pytest.skip("GEMINI_API_KEY not set")
    return key
