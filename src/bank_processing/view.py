"""
Read-side helpers for generated output banks.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import orjson

from .models import DEFAULT_GROUP, FeatureKind, OutputBank, OutputBankFeature, OutputBankItem, normalize_group


@dataclass(frozen=True)
class FeatureMatch:
    feature: OutputBankFeature
    output: Any


def _type_name(type: FeatureKind | str) -> str:
    return type.value if isinstance(type, FeatureKind) else type


class OutputBankView:
    """
    Lookup of outputs by kind and group.

    Within one kind/group bucket at most one feature is expected to hold an
    output for an item (the winner of its fallback chain); a lookup that finds
    none or several returns None.
    """

    def __init__(self, bank: OutputBank) -> None:
        self.bank = bank
        self._feature_by_id: dict[str, OutputBankFeature] = {}
        self._feature_types: list[str] = []
        self._groups_by_type: dict[str, list[str]] = {}
        self._features_by_bucket: dict[tuple[str, str], list[OutputBankFeature]] = {}

        for feature in bank.features:
            self._feature_by_id[feature.id] = feature
            if feature.type not in self._groups_by_type:
                self._feature_types.append(feature.type)
                self._groups_by_type[feature.type] = []

            group = normalize_group(feature.group)
            if group not in self._groups_by_type[feature.type]:
                self._groups_by_type[feature.type].append(group)
            self._features_by_bucket.setdefault((feature.type, group), []).append(feature)

    @classmethod
    def from_file(cls, path: str | Path) -> OutputBankView:
        return cls(OutputBank.from_dict(orjson.loads(Path(path).read_bytes())))

    @property
    def features(self) -> list[OutputBankFeature]:
        return self.bank.features

    @property
    def feature_types(self) -> list[str]:
        """Kinds present in the bank, first-seen order."""
        return list(self._feature_types)

    def group_for_feature(self, feature_id: str) -> str | None:
        feature = self._feature_by_id.get(feature_id)
        if feature is None:
            return None
        return normalize_group(feature.group)

    def groups_for_type(self, type: FeatureKind | str) -> list[str]:
        return list(self._groups_by_type.get(_type_name(type), []))

    def features_for_type(self, type: FeatureKind | str, group: str = DEFAULT_GROUP) -> list[OutputBankFeature]:
        return list(self._features_by_bucket.get((_type_name(type), normalize_group(group)), []))

    def resolve_feature_match(
        self,
        item: OutputBankItem,
        type: FeatureKind | str,
        group: str = DEFAULT_GROUP,
    ) -> FeatureMatch | None:
        """The feature that produced the item's output in this bucket, with the output."""
        matches = [
            FeatureMatch(feature=feature, output=item.features[feature.id].get("output"))
            for feature in self.features_for_type(type, group)
            if item.features.get(feature.id) is not None
        ]
        if len(matches) != 1:
            return None
        return matches[0]

    def resolve_feature_output(
        self,
        item: OutputBankItem,
        type: FeatureKind | str,
        group: str = DEFAULT_GROUP,
    ) -> Any:
        match = self.resolve_feature_match(item, type, group)
        return match.output if match is not None else None


__all__ = ["FeatureMatch", "OutputBankView"]
