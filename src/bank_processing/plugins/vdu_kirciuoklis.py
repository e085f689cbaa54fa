"""
VDU kirčiuoklis provider: PHONETICS (Lithuanian stress marks) through the
form-encoded ``text_accents`` action of the VDU language portal.
"""

from __future__ import annotations

from typing import Any, Literal

import orjson
from pydantic import BaseModel, ConfigDict

from ..config.provider import VduKirciuoklisConfig
from ..errors import NoResultError, PluginOutputError
from ..models import AccentedPiece, AccentType, FeatureKind, PhoneticsOutput
from ..transport import HttpFormRequest
from .base import CacheIdentity, ExternalCallRequest, Plugin, PluginContext, parse_options

TEXT_ACCENTS_OPERATION = "vdu_kirciuoklis.text_accents"

# Accent type of a word with a single stress placement.
SINGLE_ACCENT = "ONE"


class VduKirciuoklisOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: Literal["text", "auto", "word"] | None = None


def parse_api_message(response: Any) -> Any:
    """Unwrap the ``{code, message}`` envelope; ``message`` is itself JSON."""
    if not isinstance(response, dict):
        raise PluginOutputError("VDU API error: unexpected response envelope")
    code = response.get("code")
    message = response.get("message")
    if code != 200 or message is False:
        raise PluginOutputError(f"VDU API error ({code})")
    if not isinstance(message, str):
        raise PluginOutputError("VDU API error: message must be a string")
    try:
        return orjson.loads(message)
    except orjson.JSONDecodeError as exc:
        raise PluginOutputError("VDU API error: message is not valid JSON", cause=exc) from exc


def normalize_text_accents(raw: Any) -> PhoneticsOutput:
    """
    Turn ``textParts`` into PHONETICS pieces.

    Separators are dropped; a word with a single accent becomes its accented
    string, other words keep their accent type.
    """
    parts = raw.get("textParts") if isinstance(raw, dict) else None
    if not isinstance(parts, list):
        raise PluginOutputError("VDU API error: textParts must be an array")

    normalized: PhoneticsOutput = []
    for part in parts:
        if not isinstance(part, dict):
            raise PluginOutputError("VDU API error: invalid textParts item")

        part_type = part.get("type")
        if part_type == "SEPARATOR":
            if not isinstance(part.get("string"), str):
                raise PluginOutputError("VDU API error: separator.string must be a string")
            continue
        if part_type != "WORD":
            raise PluginOutputError(f'VDU API error: unsupported token type "{part_type}"')

        accented = part.get("accented")
        if not isinstance(accented, str) or not accented:
            raise PluginOutputError("VDU API error: word.accented must be a non-empty string")

        accent_type = part.get("accentType")
        if accent_type == SINGLE_ACCENT:
            normalized.append(accented)
            continue
        try:
            normalized.append(AccentedPiece(accented=accented, accent_type=AccentType(accent_type)))
        except ValueError:
            raise PluginOutputError(f'VDU API error: unsupported accentType "{accent_type}"') from None

    return normalized


class VduKirciuoklisPlugin(Plugin):
    kind = FeatureKind.PHONETICS
    provider = "vdu_kirciuoklis"
    version = "0.3.1"

    def __init__(self, config: VduKirciuoklisConfig | None = None) -> None:
        self.config = config or VduKirciuoklisConfig()
        self.item_concurrency = self.config.item_concurrency

    def validate_options(self, options: dict[str, Any]) -> None:
        parse_options(VduKirciuoklisOptions, options)

    async def run(self, input: str, options: dict[str, Any], ctx: PluginContext) -> PhoneticsOutput:
        response = await ctx.call_external(
            ExternalCallRequest(
                operation=TEXT_ACCENTS_OPERATION,
                input=input,
                request=HttpFormRequest(
                    url=self.config.endpoint,
                    form={"action": "text_accents", "nonce": self.config.nonce, "body": input},
                    timeout_ms=self.config.timeout_ms,
                ),
                cache_identity=CacheIdentity(value={"input": input}),
            )
        )

        pieces = normalize_text_accents(parse_api_message(response))
        if not pieces:
            raise NoResultError(f'No accented words for input "{input}"')
        return pieces


__all__ = [
    "TEXT_ACCENTS_OPERATION",
    "VduKirciuoklisOptions",
    "parse_api_message",
    "normalize_text_accents",
    "VduKirciuoklisPlugin",
]
