"""Merge policy table.

Each configuration domain (a dotted subtree of the runtime document) has
exactly one policy:

- MERGE: env values overwrite individual keys, unrelated keys from lower
  layers survive
- OVERWRITE: when the env layer supplies anything for the domain, the lower
  layers' subtree is discarded and replaced
- JSON_ONLY: authored in the custom document only, env never feeds it

Keys outside every listed domain fold with MERGE.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .document import has_nested
from .document import path_within


class MergePolicy(str, Enum):
    MERGE = "merge"
    OVERWRITE = "overwrite"
    JSON_ONLY = "json-only"


@dataclass(frozen=True)
class MergeDomain:
    path: str
    policy: MergePolicy


DOMAINS: tuple[MergeDomain, ...] = (
    MergeDomain("gateway", MergePolicy.MERGE),
    MergeDomain("agents.defaults", MergePolicy.MERGE),
    MergeDomain("channels.telegram", MergePolicy.MERGE),
    MergeDomain("channels.discord", MergePolicy.MERGE),
    MergeDomain("channels.slack", MergePolicy.MERGE),
    MergeDomain("channels.whatsapp", MergePolicy.OVERWRITE),
    MergeDomain("channels.telegram.groups", MergePolicy.JSON_ONLY),
    MergeDomain("channels.discord.guilds", MergePolicy.JSON_ONLY),
    MergeDomain("channels.slack.channels", MergePolicy.JSON_ONLY),
    MergeDomain("bindings", MergePolicy.JSON_ONLY),
    MergeDomain("models.providers", MergePolicy.MERGE),
    MergeDomain("models.bedrockDiscovery", MergePolicy.OVERWRITE),
    MergeDomain("tools.media.audio", MergePolicy.OVERWRITE),
    MergeDomain("browser", MergePolicy.MERGE),
    MergeDomain("hooks", MergePolicy.MERGE),
)


def domains_with_policy(policy: MergePolicy) -> list[MergeDomain]:
    return [domain for domain in DOMAINS if domain.policy is policy]


def policy_for(dotpath: str) -> MergePolicy:
    """Policy of the most specific domain containing ``dotpath``."""
    best: MergeDomain | None = None
    for domain in DOMAINS:
        if path_within(dotpath, domain.path):
            if best is None or len(domain.path) > len(best.path):
                best = domain
    return best.policy if best else MergePolicy.MERGE


def json_only_paths_in(doc: dict[str, Any]) -> list[str]:
    """Json-only domains that ``doc`` holds any value for."""
    return [domain.path for domain in domains_with_policy(MergePolicy.JSON_ONLY) if has_nested(doc, domain.path)]


def _check_table() -> None:
    for json_only in domains_with_policy(MergePolicy.JSON_ONLY):
        for overwrite in domains_with_policy(MergePolicy.OVERWRITE):
            if path_within(json_only.path, overwrite.path):
                raise RuntimeError(
                    f"json-only domain {json_only.path} cannot live under overwrite domain {overwrite.path}"
                )


_check_table()


__all__ = [
    "MergePolicy",
    "MergeDomain",
    "DOMAINS",
    "domains_with_policy",
    "policy_for",
    "json_only_paths_in",
]
