"""Error taxonomy for the configure pass.

Every error is fatal: inputs are local and deterministic, so a failure would
recur identically on retry. The CLI renders these as a panel and exits 1
before the agent or the proxy is started.
"""

from __future__ import annotations

from pathlib import Path


class ConfigureError(Exception):
    """Base class for all configure-pass failures."""


class ConfigParseError(ConfigureError):
    """A custom or persisted document exists but cannot be parsed."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot parse config document {self.path}: {reason}")


class ConfigValueError(ConfigureError):
    """An environment variable holds a value that cannot be used."""

    def __init__(self, variable: str, reason: str):
        self.variable = variable
        self.reason = reason
        super().__init__(f"Invalid value for {variable}: {reason}")


class ProviderConfigError(ConfigureError):
    """A custom provider is enabled but its descriptor is incomplete."""

    def __init__(self, provider: str, field: str, variable: str | None = None):
        self.provider = provider
        self.field = field
        self.variable = variable
        message = f"Provider '{provider}' is enabled but missing required field '{field}'"
        if variable:
            message += f" (set {variable})"
        super().__init__(message)


class NoProviderConfiguredError(ConfigureError):
    """No AI provider is usable after classification."""

    def __init__(self, candidates: list[str] | None = None):
        self.candidates = candidates or []
        message = "No AI provider configured"
        if self.candidates:
            message += f"; set one of: {', '.join(self.candidates)}"
        super().__init__(message)


class MissingRequiredSecretError(ConfigureError):
    """A secret the container cannot start without is unset."""

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"Required secret {variable} is not set")


class ProxyConfigError(ConfigureError):
    """Proxy routing output cannot be produced safely."""


__all__ = [
    "ConfigureError",
    "ConfigParseError",
    "ConfigValueError",
    "ProviderConfigError",
    "NoProviderConfiguredError",
    "MissingRequiredSecretError",
    "ProxyConfigError",
]
