"""
Plugin registry: provider name -> plugin.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from ..errors import DuplicatePluginError, MissingProviderError
from .base import Plugin

logger = logging.getLogger(__name__)


class PluginRegistry:
    """Registry of active plugins, keyed by ``Plugin.provider``.

    The registry:
    - Registers plugins and rejects a second plugin for the same provider
    - Resolves a provider to its plugin
    - Reports every provider of a bank that has no plugin
    """

    def __init__(self, plugins: Iterable[Plugin] = ()):
        self._plugins: dict[str, Plugin] = {}
        for plugin in plugins:
            self.register(plugin)

    def register(self, plugin: Plugin) -> PluginRegistry:
        """Register a plugin.

        Returns:
            Self for chaining

        Raises:
            DuplicatePluginError: If the provider is already registered
        """
        if plugin.provider in self._plugins:
            raise DuplicatePluginError(f"Plugin for provider '{plugin.provider}' is already registered")

        self._plugins[plugin.provider] = plugin
        logger.debug(f"Registered plugin: {plugin.provider} v{plugin.version}")
        return self

    def unregister(self, provider: str) -> bool:
        return self._plugins.pop(provider, None) is not None

    def get(self, provider: str) -> Plugin | None:
        return self._plugins.get(provider)

    def resolve(self, provider: str) -> Plugin:
        """Return the plugin of ``provider`` or raise MissingProviderError."""
        plugin = self._plugins.get(provider)
        if plugin is None:
            raise MissingProviderError([provider])
        return plugin

    def missing(self, providers: Iterable[str]) -> list[str]:
        """Unregistered providers, de-duplicated, in first-seen order."""
        seen: dict[str, None] = {}
        for provider in providers:
            if provider not in self._plugins:
                seen.setdefault(provider, None)
        return list(seen)

    def ensure_available(self, providers: Iterable[str]) -> None:
        missing = self.missing(providers)
        if missing:
            raise MissingProviderError(missing)

    def providers(self) -> list[str]:
        return list(self._plugins)

    def __contains__(self, provider: object) -> bool:
        return provider in self._plugins

    def __iter__(self) -> Iterator[Plugin]:
        return iter(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)


__all__ = ["PluginRegistry"]
