"""Build the env layer document from environment variables.

Generic engine over the tables in :mod:`env_schema`: every recognized variable
maps to one leaf path. Unset (or blank) variables contribute nothing, never an
explicit null.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any

from .document import Document
from .document import set_nested
from .env_schema import AGENT_DEFAULT_FIELDS
from .env_schema import BROWSER_FIELDS
from .env_schema import BROWSER_GATE
from .env_schema import CHANNELS
from .env_schema import CONVENTION_PREFIX
from .env_schema import CONVENTION_SEPARATOR
from .env_schema import DEEPGRAM_ENV
from .env_schema import GATEWAY_FIELDS
from .env_schema import GATEWAY_TOKEN_ENV
from .env_schema import HOOKS_FIELDS
from .env_schema import HOOKS_GATE
from .env_schema import JSON_ONLY_VARIABLES
from .env_schema import ChannelSpec
from .env_schema import EnvBinding
from .env_schema import ValueType
from .env_schema import is_secret_variable
from .errors import ConfigValueError
from .policies import json_only_paths_in
from .providers import ProviderClassifier

logger = logging.getLogger(__name__)

TRUTHY = frozenset({"1", "true", "yes", "on"})
FALSY = frozenset({"0", "false", "no", "off"})

INT_LITERAL = re.compile(r"-?(?:0|[1-9]\d*)")
FLOAT_LITERAL = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")


def parse_bool(variable: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in TRUTHY:
        return True
    if value in FALSY:
        return False
    raise ConfigValueError(variable, f"expected one of {sorted(TRUTHY | FALSY)}, got {raw!r}")


def parse_value(variable: str, raw: str, type_hint: ValueType) -> Any:
    """Parse an env var string to a typed value.

    Raises:
        ConfigValueError: If the string cannot be parsed as ``type_hint``
    """
    if type_hint == "str":
        return raw
    if type_hint == "int":
        try:
            return int(raw.strip())
        except ValueError:
            raise ConfigValueError(variable, f"expected an integer, got {raw!r}") from None
    if type_hint == "bool":
        return parse_bool(variable, raw)
    if type_hint == "csv":
        return [s.strip() for s in raw.split(",") if s.strip()]
    if type_hint == "csv_smart":
        result: list[Any] = []
        for s in raw.split(","):
            s = s.strip()
            if not s:
                continue
            try:
                result.append(int(s))
            except ValueError:
                result.append(s)
        return result
    raise ConfigValueError(variable, f"unknown value type {type_hint!r}")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def auto_type(raw: str) -> Any:
    """Auto-detect type for convention overrides: bool, int, float, JSON, else string.

    Only plain JSON number literals become numbers; "nan", "inf" and "1_000"
    stay strings so the written document remains valid JSON.
    """
    if raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    if INT_LITERAL.fullmatch(raw):
        return int(raw)
    if FLOAT_LITERAL.fullmatch(raw):
        value = float(raw)
        return value if math.isfinite(value) else raw
    if raw.startswith(("[", "{")):
        try:
            return json.loads(raw, parse_constant=_reject_constant)
        except ValueError:
            pass
    return raw


def _get(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(name)
    if value is None or not value.strip():
        return None
    return value


def apply_fields(target: Document, fields: Iterable[EnvBinding], environ: Mapping[str, str]) -> int:
    """Apply (env_var, path, type) field mappings to ``target``. Returns the count applied."""
    applied = 0
    for binding in fields:
        raw = _get(environ, binding.env)
        if raw is not None:
            set_nested(target, binding.path, parse_value(binding.env, raw, binding.type))
            applied += 1
    return applied


def _warn_gated_fields(fields: Iterable[EnvBinding], environ: Mapping[str, str], gate: str) -> None:
    for binding in fields:
        if binding.env != gate and _get(environ, binding.env) is not None:
            logger.warning(f"{binding.env} ignored: {gate} is not enabled")


def _channel_gate_open(spec: ChannelSpec, environ: Mapping[str, str]) -> bool:
    if spec.gate_kind == "bool":
        raw = _get(environ, spec.gates[0])
        return raw is not None and parse_bool(spec.gates[0], raw)
    return all(_get(environ, gate) for gate in spec.gates)


def build_channels(environ: Mapping[str, str]) -> Document:
    channels: Document = {}
    for spec in CHANNELS:
        if not _channel_gate_open(spec, environ):
            _warn_gated_fields(spec.fields, environ, "+".join(spec.gates))
            continue

        logger.info(f"Configuring {spec.key} channel from env")
        channel: Document = {"enabled": True}
        for gate, token_field in zip(spec.gates, spec.token_fields):
            channel[token_field] = environ[gate].strip()
        apply_fields(channel, spec.fields, environ)
        channels[spec.key] = channel
    return channels


def build_gateway(environ: Mapping[str, str]) -> Document:
    gateway: Document = {}
    apply_fields(gateway, GATEWAY_FIELDS, environ)
    token = _get(environ, GATEWAY_TOKEN_ENV)
    if token:
        gateway["auth"] = {"mode": "token", "token": token.strip()}
    return gateway


def build_hooks(environ: Mapping[str, str]) -> Document:
    raw = _get(environ, HOOKS_GATE)
    if raw is None:
        _warn_gated_fields(HOOKS_FIELDS, environ, HOOKS_GATE)
        return {}
    if not parse_bool(HOOKS_GATE, raw):
        _warn_gated_fields(HOOKS_FIELDS, environ, HOOKS_GATE)
        return {"enabled": False}

    logger.info("Configuring hooks from env")
    hooks: Document = {"enabled": True}
    apply_fields(hooks, HOOKS_FIELDS, environ)
    return hooks


def build_convention_overrides(environ: Mapping[str, str]) -> list[tuple[str, str, Any]]:
    """Collect ``OPENCLAW_JSON__path__to__key=value`` overrides in sorted order.

    Returns:
        List of (variable, dotted path, typed value)

    Raises:
        ConfigValueError: For an empty path or a path feeding a json-only domain
    """
    overrides = []
    for variable in sorted(environ):
        if not variable.startswith(CONVENTION_PREFIX):
            continue
        segments = variable[len(CONVENTION_PREFIX) :].split(CONVENTION_SEPARATOR)
        if not all(segments):
            raise ConfigValueError(variable, "override path has an empty segment")
        path = ".".join(segments)
        value = auto_type(environ[variable])

        fragment: Document = {}
        set_nested(fragment, path, value)
        blocked = json_only_paths_in(fragment)
        if blocked:
            raise ConfigValueError(variable, f"{blocked[0]} can only be set in the custom JSON document")

        shown = "***" if is_secret_variable(variable) else repr(value)
        logger.info(f"Convention override: {path} = {shown}")
        overrides.append((variable, path, value))
    return overrides


def reject_json_only_variables(environ: Mapping[str, str]) -> None:
    """Refuse env vars that target json-only domains instead of silently dropping them."""
    for variable, path in JSON_ONLY_VARIABLES.items():
        if _get(environ, variable) is not None:
            raise ConfigValueError(variable, f"{path} can only be set in the custom JSON document")


def build_env_document(environ: Mapping[str, str], classifier: ProviderClassifier | None = None) -> Document:
    """Build the env layer from ``environ``.

    Args:
        environ: Environment mapping (usually ``os.environ``)
        classifier: Provider classifier over the same environment

    Returns:
        Env layer document (possibly empty)

    Raises:
        ConfigValueError: For malformed values or json-only targets
        ProviderConfigError: For half-specified custom providers
    """
    classifier = classifier or ProviderClassifier(environ)
    reject_json_only_variables(environ)

    doc: Document = {}

    gateway = build_gateway(environ)
    if gateway:
        doc["gateway"] = gateway

    defaults: Document = {}
    apply_fields(defaults, AGENT_DEFAULT_FIELDS, environ)
    if defaults:
        doc["agents"] = {"defaults": defaults}

    models = classifier.env_models_document()
    if models:
        doc["models"] = models

    if _get(environ, DEEPGRAM_ENV):
        logger.info("Configuring Deepgram transcription from env")
        set_nested(
            doc,
            "tools.media.audio",
            {"enabled": True, "models": [{"provider": "deepgram", "model": "nova-3"}]},
        )

    channels = build_channels(environ)
    if channels:
        doc["channels"] = channels

    if _get(environ, BROWSER_GATE):
        logger.info("Configuring browser tool (remote CDP) from env")
        browser: Document = {}
        apply_fields(browser, BROWSER_FIELDS, environ)
        doc["browser"] = browser
    else:
        _warn_gated_fields(BROWSER_FIELDS, environ, BROWSER_GATE)

    hooks = build_hooks(environ)
    if hooks:
        doc["hooks"] = hooks

    for _variable, path, value in build_convention_overrides(environ):
        set_nested(doc, path, value)

    return doc


__all__ = [
    "TRUTHY",
    "FALSY",
    "parse_bool",
    "parse_value",
    "auto_type",
    "apply_fields",
    "build_channels",
    "build_gateway",
    "build_hooks",
    "build_convention_overrides",
    "reject_json_only_variables",
    "build_env_document",
]
