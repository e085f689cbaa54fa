"""
Bank data model: input banks, feature configuration, output variants and
output banks.

On-disk documents use camelCase keys; ``from_dict``/``to_dict`` translate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class FeatureKind(str, Enum):
    """Closed set of output kinds a plugin can produce."""

    TRANSLATION = "TRANSLATION"
    PHONETICS = "PHONETICS"
    MORPHOLOGY = "MORPHOLOGY"


class ReplayPolicy(str, Enum):
    LIVE = "LIVE"
    REPLAY_ONLY = "REPLAY_ONLY"
    REPLAY_THEN_LIVE = "REPLAY_THEN_LIVE"


class ErrorPolicy(str, Enum):
    FAIL = "FAIL"
    SKIP_ITEM = "SKIP_ITEM"


class ItemOutcome(str, Enum):
    PASSED = "PASSED"
    REPLAYED = "REPLAYED"
    PARTIAL_REPLAY = "PARTIAL_REPLAY"
    SKIPPED = "SKIPPED"
    ERROR = "ERROR"


class CallSource(str, Enum):
    REPLAY = "REPLAY"
    LIVE = "LIVE"


DEFAULT_GROUP = "default"


def normalize_group(group: str | None) -> str:
    raw = (group or "").strip()
    return raw or DEFAULT_GROUP


# =============================================================================
# Output variants
# =============================================================================


@dataclass(frozen=True)
class TranslationDetail:
    """Detailed TRANSLATION output."""

    translated_text: str
    alternatives: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"translatedText": self.translated_text, "alternatives": list(self.alternatives)}


class AccentType(str, Enum):
    MULTIPLE_MEANING = "MULTIPLE_MEANING"
    MULTIPLE_VARIANT = "MULTIPLE_VARIANT"


@dataclass(frozen=True)
class AccentedPiece:
    """A PHONETICS piece whose accent depends on meaning or has variants."""

    accented: str
    accent_type: AccentType

    def to_dict(self) -> dict[str, Any]:
        return {"accented": self.accented, "accentType": self.accent_type.value}


TranslationOutput = Union[str, TranslationDetail]
PhoneticsPiece = Union[str, AccentedPiece]
PhoneticsOutput = list[PhoneticsPiece]
MorphologyOutput = dict[str, Any]
FeatureOutput = Union[TranslationOutput, PhoneticsOutput, MorphologyOutput]


# =============================================================================
# Input bank
# =============================================================================


@dataclass
class FeatureConfig:
    """One configured provider invocation of a bank."""

    provider: str
    options: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    group: str | None = None
    max_rpm: int | None = None

    @property
    def explicit_id(self) -> str | None:
        return self.id or None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeatureConfig:
        return cls(
            provider=data["provider"],
            options=dict(data.get("options") or {}),
            id=data.get("id"),
            group=data.get("group"),
            max_rpm=data.get("maxRpm"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.id is not None:
            d["id"] = self.id
        if self.group is not None:
            d["group"] = self.group
        d["provider"] = self.provider
        if self.max_rpm is not None:
            d["maxRpm"] = self.max_rpm
        d["options"] = self.options
        return d


@dataclass
class InputBank:
    schema_version: str
    title: str
    source_language: str
    features: list[FeatureConfig] = field(default_factory=list)
    data: list[str] = field(default_factory=list)
    description: str | None = None
    author: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InputBank:
        return cls(
            schema_version=data["schemaVersion"],
            title=data["title"],
            source_language=data["sourceLanguage"],
            features=[FeatureConfig.from_dict(f) for f in data.get("features", [])],
            data=list(data.get("data", [])),
            description=data.get("description"),
            author=data.get("author"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"schemaVersion": self.schema_version, "title": self.title}
        if self.description is not None:
            d["description"] = self.description
        if self.author is not None:
            d["author"] = self.author
        d["sourceLanguage"] = self.source_language
        d["features"] = [f.to_dict() for f in self.features]
        d["data"] = list(self.data)
        return d


# =============================================================================
# Output bank
# =============================================================================


@dataclass
class OutputBankFeature:
    id: str
    type: str
    provider: str
    version: str
    group: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OutputBankFeature:
        return cls(
            id=data["id"],
            type=data["type"],
            provider=data["provider"],
            version=data["version"],
            group=data.get("group"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "type": self.type}
        if self.group is not None:
            d["group"] = self.group
        d["provider"] = self.provider
        d["version"] = self.version
        return d


@dataclass
class OutputBankItem:
    input: str
    # feature id -> {"output": ...}
    features: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OutputBankItem:
        return cls(input=data["input"], features=dict(data.get("features") or {}))

    def to_dict(self) -> dict[str, Any]:
        return {"input": self.input, "features": self.features}


@dataclass
class OutputBank:
    schema_version: str
    title: str
    source_language: str
    generated_at: str
    features: list[OutputBankFeature] = field(default_factory=list)
    data: list[OutputBankItem] = field(default_factory=list)
    description: str | None = None
    author: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OutputBank:
        return cls(
            schema_version=data["schemaVersion"],
            title=data["title"],
            source_language=data["sourceLanguage"],
            generated_at=data["generatedAt"],
            features=[OutputBankFeature.from_dict(f) for f in data.get("features", [])],
            data=[OutputBankItem.from_dict(i) for i in data.get("data", [])],
            description=data.get("description"),
            author=data.get("author"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"schemaVersion": self.schema_version, "title": self.title}
        if self.description is not None:
            d["description"] = self.description
        if self.author is not None:
            d["author"] = self.author
        d["sourceLanguage"] = self.source_language
        d["generatedAt"] = self.generated_at
        d["features"] = [f.to_dict() for f in self.features]
        d["data"] = [i.to_dict() for i in self.data]
        return d


__all__ = [
    "FeatureKind",
    "ReplayPolicy",
    "ErrorPolicy",
    "ItemOutcome",
    "CallSource",
    "DEFAULT_GROUP",
    "normalize_group",
    "TranslationDetail",
    "AccentType",
    "AccentedPiece",
    "TranslationOutput",
    "PhoneticsPiece",
    "PhoneticsOutput",
    "MorphologyOutput",
    "FeatureOutput",
    "FeatureConfig",
    "InputBank",
    "OutputBankFeature",
    "OutputBankItem",
    "OutputBank",
]
