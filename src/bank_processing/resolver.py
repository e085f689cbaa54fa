"""
Feature identity resolution and fallback-chain grouping.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from .errors import DuplicateFeatureIdError
from .models import FeatureConfig, normalize_group
from .plugins.base import Plugin
from .plugins.registry import PluginRegistry

_NON_SLUG = re.compile(r"[^a-z0-9]+")

DEFAULT_SLUG = "feature"


def slugify(provider: str) -> str:
    """Lowercase ``provider`` and collapse everything outside ``[a-z0-9]`` to ``-``."""
    slug = _NON_SLUG.sub("-", provider.lower()).strip("-")
    return slug or DEFAULT_SLUG


def resolve_feature_ids(features: Sequence[FeatureConfig]) -> list[str]:
    """
    Assign one id per feature, in declaration order.

    A non-blank explicit ``id`` is kept verbatim; otherwise the id is
    ``<slug>-<n>`` with ``n`` counting synthesized ids per slug.

    Raises:
        DuplicateFeatureIdError: Listing every repeated id with its feature index
    """
    counters: dict[str, int] = {}
    ids: list[str] = []
    seen: set[str] = set()
    duplicates: list[tuple[str, int]] = []

    for index, feature in enumerate(features):
        feature_id = feature.explicit_id
        if feature_id is None:
            prefix = slugify(feature.provider)
            counters[prefix] = counters.get(prefix, 0) + 1
            feature_id = f"{prefix}-{counters[prefix]}"

        if feature_id in seen:
            duplicates.append((feature_id, index))
        seen.add(feature_id)
        ids.append(feature_id)

    if duplicates:
        raise DuplicateFeatureIdError(duplicates)
    return ids


@dataclass(frozen=True)
class ResolvedFeature:
    feature: FeatureConfig
    plugin: Plugin
    feature_id: str
    feature_index: int

    @property
    def group(self) -> str:
        return normalize_group(self.feature.group)

    @property
    def collapse_group_key(self) -> str:
        return f"{self.plugin.kind.value}:{self.group}"


FallbackChain = list[ResolvedFeature]


def resolve_features(features: Sequence[FeatureConfig], registry: PluginRegistry) -> list[ResolvedFeature]:
    """Bind each feature to its plugin and id; declaration order is kept."""
    feature_ids = resolve_feature_ids(features)
    return [
        ResolvedFeature(
            feature=feature,
            plugin=registry.resolve(feature.provider),
            feature_id=feature_ids[index],
            feature_index=index,
        )
        for index, feature in enumerate(features)
    ]


def group_features(resolved: Sequence[ResolvedFeature]) -> list[FallbackChain]:
    """
    Partition features into fallback chains by collapse group key.

    Members keep declaration order; chains are ordered by first appearance.
    """
    chains: dict[str, FallbackChain] = {}
    for feature in resolved:
        chains.setdefault(feature.collapse_group_key, []).append(feature)
    return list(chains.values())


__all__ = [
    "DEFAULT_SLUG",
    "slugify",
    "resolve_feature_ids",
    "ResolvedFeature",
    "FallbackChain",
    "resolve_features",
    "group_features",
]
