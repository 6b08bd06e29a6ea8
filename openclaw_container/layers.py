"""Configuration layer loading.

Three independently-authored layers, lowest precedence first:
1. custom    (deployer-mounted JSON/YAML document, read-only, optional)
2. persisted (previous run's output on the state volume, optional)
3. env       (built fresh from environment variables every run)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from copy import deepcopy
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any

import yaml

from .config_store import ConfigStore
from .env_layer import build_env_document
from .errors import ConfigParseError
from .providers import ProviderClassifier

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class Layers:
    """The three loaded layers. Treated as immutable once loaded."""

    custom: dict[str, Any] = field(default_factory=dict)
    persisted: dict[str, Any] = field(default_factory=dict)
    env: dict[str, Any] = field(default_factory=dict)


def _as_json_document(path: Path, data: dict[Any, Any]) -> dict[str, Any]:
    """Coerce a YAML document to the JSON shape the runtime file is written in.

    YAML reads unquoted ``-100123:`` as an int key; JSON serialization would
    stringify it, so the next run would see both forms. Normalize here so the
    custom layer merges against persisted keys.

    Raises:
        ConfigParseError: For values JSON cannot represent (dates, NaN, ...)
    """
    try:
        return json.loads(json.dumps(data, allow_nan=False))
    except (TypeError, ValueError) as e:
        raise ConfigParseError(path, f"value not representable as JSON: {e}") from e


def read_custom_document(path: Path) -> dict[str, Any]:
    """Read the deployer's custom document.

    JSON by default; ``.yaml``/``.yml`` files are parsed as YAML.

    Returns:
        Parsed document, or {} if the file is absent or empty

    Raises:
        ConfigParseError: If the file exists but is malformed. The document is
            deployer-authored, so a parse failure must abort startup.
    """
    if not path.exists():
        logger.info(f"No custom config at {path}")
        return {}

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigParseError(path, str(e)) from e

    if not text.strip():
        return {}

    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigParseError(path, f"invalid YAML: {e}") from e
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigParseError(path, f"invalid JSON at line {e.lineno} column {e.colno}: {e.msg}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(path, f"top level must be an object, got {type(data).__name__}")
    if path.suffix.lower() in YAML_SUFFIXES:
        data = _as_json_document(path, data)

    logger.info(f"Loaded custom config from {path}")
    return data


class LayerLoader:
    """Load the custom, persisted and env layers.

    Usage:
        loader = LayerLoader(custom_path, ConfigStore(config_file), os.environ)
        layers = loader.load()
    """

    def __init__(
        self,
        custom_path: Path,
        store: ConfigStore,
        environ: Mapping[str, str],
        classifier: ProviderClassifier | None = None,
    ) -> None:
        self.custom_path = Path(custom_path)
        self.store = store
        self.environ = environ
        self.classifier = classifier or ProviderClassifier(environ)

    def load(self) -> Layers:
        """Load all three layers.

        Raises:
            ConfigParseError: Malformed custom or persisted document
            ConfigValueError: Malformed environment variable
            ProviderConfigError: Half-specified custom provider
        """
        custom = read_custom_document(self.custom_path)
        persisted = self.store.read()
        env = build_env_document(self.environ, self.classifier)
        logger.debug(f"Env layer top-level keys: {sorted(env)}")
        return Layers(custom=deepcopy(custom), persisted=deepcopy(persisted), env=env)


__all__ = ["Layers", "LayerLoader", "read_custom_document"]
