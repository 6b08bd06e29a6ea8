"""Container path policy.

This module centralizes ALL path-related policy decisions. Components receive
paths via injection; this module provides the container's choices, each
overridable through the environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_STATE_DIR = "/data/.openclaw"
DEFAULT_WORKSPACE_DIR = "/data/workspace"
DEFAULT_CUSTOM_CONFIG = "/app/config/openclaw.json"
DEFAULT_CADDY_DIR = "/app/caddy.d"
DEFAULT_AGENT_BINARY = "openclaw"

CONFIG_FILE_NAME = "openclaw.json"
ROUTES_FILE_NAME = "routes.caddyfile"


def _dir(value: str) -> Path:
    # "/data/.openclaw/" and "/data/.openclaw" are the same directory
    return Path(value.rstrip("/") or "/")


@dataclass
class ContainerPaths:
    """Locations the configure pass reads and writes."""

    state_dir: Path
    workspace_dir: Path
    config_file: Path
    custom_config: Path
    caddy_dir: Path
    agent_binary: str = DEFAULT_AGENT_BINARY

    @property
    def routes_file(self) -> Path:
        return self.caddy_dir / ROUTES_FILE_NAME

    @property
    def log_file(self) -> Path:
        return self.state_dir / "logs" / "configure.log.jsonl"

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> ContainerPaths:
        """Resolve paths from OPENCLAW_* variables, falling back to the image layout."""
        env = os.environ if environ is None else environ
        state_dir = _dir(env.get("OPENCLAW_STATE_DIR") or DEFAULT_STATE_DIR)
        return cls(
            state_dir=state_dir,
            workspace_dir=_dir(env.get("OPENCLAW_WORKSPACE_DIR") or DEFAULT_WORKSPACE_DIR),
            config_file=Path(env.get("OPENCLAW_CONFIG_PATH") or state_dir / CONFIG_FILE_NAME),
            custom_config=Path(env.get("OPENCLAW_CUSTOM_CONFIG") or DEFAULT_CUSTOM_CONFIG),
            caddy_dir=_dir(env.get("OPENCLAW_CADDY_DIR") or DEFAULT_CADDY_DIR),
            agent_binary=env.get("OPENCLAW_BIN") or DEFAULT_AGENT_BINARY,
        )


__all__ = ["ContainerPaths", "CONFIG_FILE_NAME", "ROUTES_FILE_NAME"]
