"""Reverse-proxy routing derived from the runtime config.

The proxy protects everything with basic auth and injects the gateway token
upstream. The single exception is the webhook path (``hooks.path``), which
bypasses basic auth when hooks are enabled. Derivation fails closed: any
ambiguity resolves to no bypass.
"""

from __future__ import annotations

import logging
import re
import subprocess
from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from .document import get_nested
from .env_schema import AUTH_PASSWORD_ENV
from .env_schema import AUTH_USERNAME_ENV
from .errors import MissingRequiredSecretError
from .errors import ProxyConfigError

logger = logging.getLogger(__name__)

DEFAULT_AUTH_USERNAME = "admin"
DEFAULT_UPSTREAM_PORT = 18789

# One or more "/segment" parts; no wildcards, placeholders, whitespace or quotes
_SAFE_PATH = re.compile(r"^(/[A-Za-z0-9._~-]+)+$")
_SAFE_TOKEN = re.compile(r"^[^\s\"'{}\\]+$")

PasswordHasher = Callable[[str], str]


class RouteKind(str, Enum):
    """Authentication treatment of a route."""

    PROTECTED = "protected"
    BYPASS = "bypass"


@dataclass(frozen=True)
class RouteRule:
    """One routing rule. ``path=None`` is the catch-all."""

    kind: RouteKind
    path: str | None = None

    @property
    def is_catch_all(self) -> bool:
        return self.path is None

    def matches(self, request_path: str) -> bool:
        """Match the rule's path and anything below it, never sibling prefixes."""
        if self.path is None:
            return True
        return request_path == self.path or request_path.startswith(self.path + "/")

    def caddy_paths(self) -> list[str]:
        if self.path is None:
            return []
        return [self.path, f"{self.path}/*"]


@dataclass(frozen=True)
class ProxyRoutingConfig:
    """Ordered routing rules; the last rule is always the protected catch-all."""

    rules: tuple[RouteRule, ...]

    @property
    def bypass_rules(self) -> list[RouteRule]:
        return [rule for rule in self.rules if rule.kind is RouteKind.BYPASS]

    def route_for(self, request_path: str) -> RouteRule:
        """First rule matching ``request_path``."""
        for rule in self.rules:
            if rule.matches(request_path):
                return rule
        # Unreachable while the catch-all is last, kept closed regardless
        return RouteRule(kind=RouteKind.PROTECTED)


CATCH_ALL = RouteRule(kind=RouteKind.PROTECTED)


def normalize_hooks_path(raw: Any) -> str | None:
    """Return a safe bypass path, or None if the value is unusable.

    Trailing slashes are dropped. The root path, relative paths, ``.``/``..``
    segments and anything with wildcard or placeholder syntax are rejected.
    """
    if not isinstance(raw, str):
        return None
    path = raw.strip().rstrip("/")
    if not path or not _SAFE_PATH.match(path):
        return None
    if any(segment in (".", "..") for segment in path.split("/")):
        return None
    return path


def derive_routes(runtime_config: Mapping[str, Any]) -> ProxyRoutingConfig:
    """Derive proxy routing from the runtime config.

    Only ``hooks.enabled`` and ``hooks.path`` are consulted. A bypass rule is
    produced only when ``hooks.enabled`` is the boolean ``True`` and
    ``hooks.path`` is a usable path.

    Args:
        runtime_config: Synthesized runtime document

    Returns:
        ProxyRoutingConfig with at most one bypass rule and a protected catch-all
    """
    hooks = runtime_config.get("hooks")
    if not isinstance(hooks, Mapping):
        return ProxyRoutingConfig(rules=(CATCH_ALL,))

    raw_path = hooks.get("path")
    if hooks.get("enabled") is not True:
        if raw_path:
            logger.info(f"hooks.path {raw_path!r} set but hooks are not enabled; no auth bypass")
        return ProxyRoutingConfig(rules=(CATCH_ALL,))

    path = normalize_hooks_path(raw_path)
    if path is None:
        if raw_path is not None:
            logger.warning(f"hooks.path {raw_path!r} is not a usable webhook path; no auth bypass")
        return ProxyRoutingConfig(rules=(CATCH_ALL,))

    logger.info(f"Webhook path {path} bypasses proxy basic auth")
    return ProxyRoutingConfig(rules=(RouteRule(kind=RouteKind.BYPASS, path=path), CATCH_ALL))


def caddy_hash_password(password: str, caddy_binary: str = "caddy") -> str:
    """Hash a password with ``caddy hash-password`` (bcrypt).

    Raises:
        ProxyConfigError: If caddy is missing or the hash fails
    """
    try:
        result = subprocess.run(
            [caddy_binary, "hash-password", "--plaintext", password],
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise ProxyConfigError(f"Cannot hash {AUTH_PASSWORD_ENV}: '{caddy_binary}' not found") from e

    if result.returncode != 0:
        raise ProxyConfigError(f"caddy hash-password failed: {result.stderr.strip() or result.returncode}")
    return result.stdout.strip()


@dataclass(frozen=True)
class ProxySettings:
    """Everything the renderer needs beyond the rules."""

    upstream: str
    gateway_token: str
    auth_username: str
    auth_password_hash: str

    @classmethod
    def from_runtime(
        cls,
        runtime_config: Mapping[str, Any],
        environ: Mapping[str, str],
        hasher: PasswordHasher = caddy_hash_password,
    ) -> ProxySettings:
        """Build settings from the runtime document and the auth env vars.

        Raises:
            MissingRequiredSecretError: No gateway token or AUTH_PASSWORD
            ProxyConfigError: Unusable credential values
        """
        port = get_nested(dict(runtime_config), "gateway.port", DEFAULT_UPSTREAM_PORT)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ProxyConfigError(f"gateway.port must be an integer, got {port!r}")

        token = get_nested(dict(runtime_config), "gateway.auth.token")
        if not isinstance(token, str) or not token:
            raise MissingRequiredSecretError("OPENCLAW_GATEWAY_TOKEN")

        password = (environ.get(AUTH_PASSWORD_ENV) or "").strip()
        if not password:
            raise MissingRequiredSecretError(AUTH_PASSWORD_ENV)
        username = (environ.get(AUTH_USERNAME_ENV) or "").strip() or DEFAULT_AUTH_USERNAME

        for label, value in (("gateway token", token), (AUTH_USERNAME_ENV, username)):
            if not _SAFE_TOKEN.match(value):
                raise ProxyConfigError(f"{label} contains whitespace, quotes or braces")

        password_hash = hasher(password)
        if not password_hash or not _SAFE_TOKEN.match(password_hash):
            raise ProxyConfigError("password hash is empty or malformed")

        return cls(
            upstream=f"localhost:{port}",
            gateway_token=token,
            auth_username=username,
            auth_password_hash=password_hash,
        )


def render_caddyfile(routing: ProxyRoutingConfig, settings: ProxySettings) -> str:
    """Render routing rules as a Caddyfile snippet imported by the site block."""
    lines = ["# Generated by openclaw-container configure; regenerated on every start.", ""]

    for index, rule in enumerate(routing.rules):
        if rule.is_catch_all:
            lines.append("handle {")
        else:
            matcher = f"@route_{index}"
            lines.append(f"{matcher} path {' '.join(rule.caddy_paths())}")
            lines.append(f"handle {matcher} {{")

        if rule.kind is RouteKind.BYPASS:
            lines.append(f"\treverse_proxy {settings.upstream}")
        else:
            lines += [
                "\tbasicauth {",
                f"\t\t{settings.auth_username} {settings.auth_password_hash}",
                "\t}",
                f"\treverse_proxy {settings.upstream} {{",
                f'\t\theader_up Authorization "Bearer {settings.gateway_token}"',
                "\t}",
            ]
        lines += ["}", ""]

    return "\n".join(lines)


def write_routes(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    path.chmod(0o600)
    logger.info(f"Proxy routes written to {path}")


__all__ = [
    "RouteKind",
    "RouteRule",
    "ProxyRoutingConfig",
    "ProxySettings",
    "CATCH_ALL",
    "normalize_hooks_path",
    "derive_routes",
    "caddy_hash_password",
    "render_caddyfile",
    "write_routes",
]
