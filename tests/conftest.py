"""Pytest configuration for openclaw-container tests."""

import logging
import os

import pytest

from openclaw_container.commands.env import inventory

# Variables outside the inventory that still steer a configure pass
_EXTRA_VARIABLES = (
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "BEDROCK_PROVIDER_FILTER",
    "BEDROCK_API_TYPE",
    "BEDROCK_BASE_URL",
    "BEDROCK_MODELS",
    "OPENCLAW_STATE_DIR",
    "OPENCLAW_WORKSPACE_DIR",
    "OPENCLAW_CONFIG_PATH",
    "OPENCLAW_CUSTOM_CONFIG",
    "OPENCLAW_CADDY_DIR",
    "OPENCLAW_BIN",
    "OPENCLAW_CONFIGURE_LOG_PATH",
    "OPENCLAW_CONFIGURE_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_environ(monkeypatch):
    """Strip every variable the configure pass reads from the test process."""
    known = {row[1] for row in inventory()} | set(_EXTRA_VARIABLES)
    for name in list(os.environ):
        if name in known or name.startswith("OPENCLAW_JSON__"):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_configure_logging():
    """Drop handlers installed by init_logging so they don't outlive the test's streams."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    for handler in list(root.handlers):
        if getattr(handler, "_openclaw_configure", False):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def base_env():
    """Minimal environment for a successful configure pass."""
    return {
        "OPENCLAW_GATEWAY_TOKEN": "gw-token-0123456789",
        "AUTH_PASSWORD": "proxy-password-42",
        "ANTHROPIC_API_KEY": "sk-ant-test-key",
    }
