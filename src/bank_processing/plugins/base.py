"""
Plugin contract.

A plugin turns one input string into one output of its declared kind. It
reaches the network only through ``ctx.call_external``, which lets the
executor record and replay every call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..hashing import DEFAULT_CACHE_SCHEMA
from ..models import FeatureKind
from ..transport import TransportRequest


@dataclass(frozen=True)
class CacheIdentity:
    """
    Fields of a call that matter for caching, independent of request shape.
    """

    value: dict[str, Any]
    schema: str = DEFAULT_CACHE_SCHEMA


@dataclass(frozen=True)
class ExternalCallRequest:
    operation: str
    input: str
    request: TransportRequest
    cache_identity: CacheIdentity | None = None


CallExternal = Callable[[ExternalCallRequest], Awaitable[Any]]

OptionsT = TypeVar("OptionsT", bound=BaseModel)


def _ignore_progress(n: int) -> None:
    return None


@dataclass
class PluginContext:
    """Per-item handle given to ``Plugin.run``."""

    call_external: CallExternal
    emit_progress: Callable[[int], None] = field(default=_ignore_progress)


def parse_options(model: type[OptionsT], options: dict[str, Any]) -> OptionsT:
    """
    Validate feature options against a pydantic model.

    Raises:
        ValueError: Naming every offending field
    """
    try:
        return model.model_validate(options)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in error['loc']) or 'options'}: {error['msg']}" for error in exc.errors()
        ]
        raise ValueError("; ".join(problems)) from None


class Plugin(ABC):
    """
    Base class for feature providers.

    Subclasses set ``kind``, ``provider`` and ``version``; ``item_concurrency``
    overrides the run default for this provider.
    """

    kind: FeatureKind
    provider: str
    version: str
    item_concurrency: int | None = None

    def validate_options(self, options: dict[str, Any]) -> None:
        """Raise when ``options`` cannot be used with this provider."""
        return None

    @abstractmethod
    async def run(self, input: str, options: dict[str, Any], ctx: PluginContext) -> Any:
        """Compute the output for ``input``; raise NoResultError when there is none."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider!r}, version={self.version!r})"


__all__ = [
    "CacheIdentity",
    "ExternalCallRequest",
    "CallExternal",
    "PluginContext",
    "parse_options",
    "Plugin",
]
