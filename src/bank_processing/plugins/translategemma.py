"""
TranslateGemma provider: TRANSLATION through an Ollama ``/api/generate`` call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

import langcodes
from pydantic import BaseModel, ConfigDict, Field

from ..config.provider import TranslateGemmaConfig
from ..errors import PluginOutputError
from ..hashing import compute_hash
from ..models import FeatureKind, TranslationDetail, TranslationOutput
from ..prompts import PromptTemplateLoader
from ..transport import HttpJsonRequest
from .base import CacheIdentity, ExternalCallRequest, Plugin, PluginContext, parse_options

OLLAMA_GENERATE_OPERATION = "ollama.generate"
PROMPT_TEMPLATE_ID = "translategemma"


class TranslateGemmaOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_language: str = Field(alias="sourceLanguage")
    target_language: str = Field(alias="targetLanguage")
    extra_prompt: str | None = Field(default=None, alias="extraPrompt")
    alternatives: int | None = Field(default=None, ge=0)
    temperature: float | None = None
    output_mode: Literal["compact", "full"] = Field(default="compact", alias="outputMode")


@dataclass(frozen=True)
class LanguageInfo:
    name: str
    code: str


def resolve_language(tag: str, field: str) -> LanguageInfo:
    """
    Resolve a BCP 47 tag such as ``lt-lt`` (case-insensitive) to its English
    name and ISO 639 code.

    Raises:
        ValueError: ``Unsupported <field> tag: "<tag>"``
    """
    error = ValueError(f'Unsupported {field} tag: "{tag}"')
    try:
        language = langcodes.Language.get(tag.strip())
    except ValueError:
        raise error from None
    if not language.language or not language.is_valid():
        raise error
    return LanguageInfo(name=language.language_name(), code=language.language)


class TranslateGemmaPlugin(Plugin):
    """
    Translates one input per call with a locally served TranslateGemma model.

    Calls are keyed by model and prompt hash, so identical prompts are
    replayed across features and banks.
    """

    kind = FeatureKind.TRANSLATION
    provider = "translategemma"
    version = "0.1.0"

    def __init__(
        self,
        config: TranslateGemmaConfig | None = None,
        *,
        prompts: PromptTemplateLoader | None = None,
    ) -> None:
        self.config = config or TranslateGemmaConfig()
        self.item_concurrency = self.config.item_concurrency
        self._prompts = prompts or PromptTemplateLoader()

    def validate_options(self, options: dict[str, Any]) -> None:
        parsed = parse_options(TranslateGemmaOptions, options)
        resolve_language(parsed.source_language, "sourceLanguage")
        resolve_language(parsed.target_language, "targetLanguage")

    def render_prompt(self, input: str, options: TranslateGemmaOptions) -> str:
        source = resolve_language(options.source_language, "sourceLanguage")
        target = resolve_language(options.target_language, "targetLanguage")
        rendered = self._prompts.render(
            PROMPT_TEMPLATE_ID,
            {
                "source_lang": source.name,
                "source_code": source.code,
                "target_lang": target.name,
                "target_code": target.code,
                "extra_prompt": options.extra_prompt or "",
                "text": input,
            },
        )
        return rendered.text

    async def run(self, input: str, options: dict[str, Any], ctx: PluginContext) -> TranslationOutput:
        parsed = parse_options(TranslateGemmaOptions, options)
        prompt = self.render_prompt(input, parsed)

        request = HttpJsonRequest(
            url=f"{self.config.base_url.rstrip('/')}/api/generate",
            headers=dict(self.config.headers),
            body={
                "model": self.config.model,
                "prompt": prompt,
                "stream": False,
                "options": {"temperature": parsed.temperature if parsed.temperature is not None else 0},
            },
            timeout_ms=self.config.timeout_ms,
        )
        body = await ctx.call_external(
            ExternalCallRequest(
                operation=OLLAMA_GENERATE_OPERATION,
                input=input,
                request=request,
                cache_identity=CacheIdentity(
                    value={"model": self.config.model, "promptHash": compute_hash(prompt, "sha256")},
                ),
            )
        )

        raw = body.get("response") if isinstance(body, dict) else None
        if not isinstance(raw, str):
            raise PluginOutputError("Ollama response has no text")
        translated_text = raw.strip()
        if not translated_text:
            raise PluginOutputError("Ollama returned an empty translation")

        ctx.emit_progress(1)

        if parsed.output_mode == "full":
            return TranslationDetail(translated_text=translated_text, alternatives=[])
        return translated_text


__all__ = [
    "OLLAMA_GENERATE_OPERATION",
    "TranslateGemmaOptions",
    "LanguageInfo",
    "resolve_language",
    "TranslateGemmaPlugin",
]
