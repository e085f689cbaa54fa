"""
Prompt templates shipped with the package.

Templates are jinja2 files (``<id>.j2``) rendered with ``StrictUndefined`` so a
missing variable fails the item instead of producing a silently broken prompt.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template

from ..hashing import compute_hash

TEMPLATE_SUFFIX = ".j2"


@dataclass(frozen=True)
class PromptRenderResult:
    template_id: str
    template_hash: str
    text: str


@dataclass(frozen=True)
class _LoadedTemplate:
    template: Template
    source_hash: str


class PromptTemplateLoader:
    """Renders templates from ``base_path`` (the package directory by default)."""

    def __init__(self, *, base_path: Path | None = None) -> None:
        self.base_path = base_path or Path(__file__).resolve().parent
        self._env = Environment(
            loader=FileSystemLoader(str(self.base_path)),
            undefined=StrictUndefined,
            autoescape=False,
        )
        self._loaded: dict[str, _LoadedTemplate] = {}

    def render(self, template_id: str, context: dict[str, Any]) -> PromptRenderResult:
        name = template_name(template_id)
        loaded = self._load(name)
        return PromptRenderResult(
            template_id=name,
            template_hash=loaded.source_hash,
            text=loaded.template.render(**context).strip(),
        )

    def _load(self, name: str) -> _LoadedTemplate:
        if name not in self._loaded:
            source, _, _ = self._env.loader.get_source(self._env, name)
            self._loaded[name] = _LoadedTemplate(
                template=self._env.from_string(source),
                source_hash=compute_hash(source),
            )
        return self._loaded[name]


def template_name(template_id: str) -> str:
    """``translategemma`` and ``/translategemma.j2`` both name ``translategemma.j2``."""
    name = template_id.strip().lstrip("/")
    return name if name.endswith(TEMPLATE_SUFFIX) else name + TEMPLATE_SUFFIX
