"""
Feature provider plugins.

Built-in providers:
- translategemma: TRANSLATION through a local Ollama model
- vdu_kirciuoklis: PHONETICS through the VDU accentuation service
"""

from .base import CacheIdentity, CallExternal, ExternalCallRequest, Plugin, PluginContext, parse_options
from .registry import PluginRegistry
from .translategemma import TranslateGemmaOptions, TranslateGemmaPlugin
from .vdu_kirciuoklis import VduKirciuoklisOptions, VduKirciuoklisPlugin

__all__ = [
    "CacheIdentity",
    "CallExternal",
    "ExternalCallRequest",
    "Plugin",
    "PluginContext",
    "parse_options",
    "PluginRegistry",
    "TranslateGemmaOptions",
    "TranslateGemmaPlugin",
    "VduKirciuoklisOptions",
    "VduKirciuoklisPlugin",
]
