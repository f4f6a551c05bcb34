"""
Shared test fixtures and configuration for agent-cli-sdk tests.
"""

import os

import pytest

# Flat variables read by the legacy settings source
LEGACY_ENV_VARS = (
    "CLAUDE_CLI_PATH",
    "CODEX_CLI_PATH",
    "GEMINI_CLI_PATH",
    "LOG_LEVEL",
    "AGENT_CLI_LOG_PATH",
    "AGENT_CLI_CONFIG_FILE",
)


@pytest.fixture(autouse=True)
def isolate_settings(monkeypatch):
    """Keep a developer's environment out of the cached settings."""
    from agent_cli_sdk.config import get_settings

    for key in LEGACY_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    for key in list(os.environ):
        if key.startswith("AGENT_CLI__"):
            monkeypatch.delenv(key, raising=False)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_env(monkeypatch):
    """Set up test environment variables."""
    from agent_cli_sdk.config import get_settings

    get_settings.cache_clear()

    test_env = {
        "CLAUDE_CLI_PATH": "/opt/test/claude",
        "LOG_LEVEL": "WARNING",  # Reduce noise in tests
    }
    for key, value in test_env.items():
        monkeypatch.setenv(key, value)

    # Clear cache again to force reload with new env
    get_settings.cache_clear()

    return test_env
