"""Policy-driven synthesis of the runtime config document.

Folds the layers in fixed precedence (defaults < custom < persisted < env)
and applies each domain's merge policy from :mod:`policies`. Domains are
independent: only the policy table decides behavior, never another
domain's resolved value.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .document import Document
from .document import delete_nested
from .document import get_nested
from .document import set_nested
from .layers import Layers
from .lib.merge_utils import deep_merge
from .lib.merge_utils import merge_layers
from .policies import MergePolicy
from .policies import domains_with_policy
from .providers import ProviderClassifier
from .providers import ProviderResolution

logger = logging.getLogger(__name__)

_MISSING = object()

DEFAULT_GATEWAY_PORT = 18789


def default_document(workspace_dir: Path | str | None = None) -> Document:
    """Core settings the agent needs to boot, below every other layer."""
    doc: Document = {
        "gateway": {
            "port": DEFAULT_GATEWAY_PORT,
            "mode": "local",
            "controlUi": {"enabled": True, "allowInsecureAuth": True},
        },
    }
    if workspace_dir:
        doc["agents"] = {"defaults": {"workspace": str(workspace_dir)}}
    return doc


@dataclass
class SynthesisResult:
    """Runtime document plus the provider classification outcome."""

    config: Document
    providers: ProviderResolution


def _supplies(env: Document, dotpath: str) -> bool:
    """True if the env layer holds any key (or a non-mapping value) at ``dotpath``."""
    value = get_nested(env, dotpath, _MISSING)
    if value is _MISSING:
        return False
    return not isinstance(value, dict) or bool(value)


def fold_domains(layers: Layers, defaults: Document | None = None) -> Document:
    """Fold the layers under the policy table, without provider classification.

    1. merge domains:     merge(merge(custom, persisted), env)
    2. overwrite domains: env subtree verbatim when env supplies any key,
                          otherwise merge(custom, persisted)
    3. json-only domains: merge(custom, persisted), env is never consulted
    """
    lower = merge_layers(defaults, layers.custom, layers.persisted)
    authored = merge_layers(layers.custom, layers.persisted)

    for domain in domains_with_policy(MergePolicy.OVERWRITE):
        if _supplies(layers.env, domain.path) and delete_nested(lower, domain.path):
            logger.info(f"{domain.path}: env supplied, discarding custom/persisted subtree")

    result = deep_merge(lower, layers.env)

    for domain in domains_with_policy(MergePolicy.JSON_ONLY):
        if get_nested(layers.env, domain.path, _MISSING) is not _MISSING:
            logger.warning(f"{domain.path}: ignoring env-sourced value (json-only domain)")
        value: Any = get_nested(authored, domain.path, _MISSING)
        if value is _MISSING:
            delete_nested(result, domain.path)
        else:
            set_nested(result, domain.path, deepcopy(value))

    return result


def synthesize(
    layers: Layers,
    classifier: ProviderClassifier,
    defaults: Document | None = None,
) -> SynthesisResult:
    """Synthesize the runtime document from the loaded layers.

    Args:
        layers: Custom, persisted and env documents (not modified)
        classifier: Provider classifier over the same environment as the env layer
        defaults: Zeroth layer of core-settings defaults

    Returns:
        SynthesisResult with the runtime document

    Raises:
        ProviderConfigError: Invalid custom provider entry
        NoProviderConfiguredError: No eligible provider
    """
    config = fold_domains(layers, defaults)
    resolution = classifier.resolve(config, layers.custom)
    logger.info(f"Eligible providers: {', '.join(resolution.eligible)}")
    return SynthesisResult(config=config, providers=resolution)


__all__ = ["default_document", "fold_domains", "synthesize", "SynthesisResult", "DEFAULT_GATEWAY_PORT"]
