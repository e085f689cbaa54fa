"""
Provider configuration classes.

Captured once at plugin construction; never read again during a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ProviderConfig:
    """Settings shared by every provider plugin."""

    timeout_ms: int = 60_000
    item_concurrency: int | None = None

    def __post_init__(self):
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if self.item_concurrency is not None and self.item_concurrency < 1:
            raise ValueError("item_concurrency must be positive")


@dataclass
class TranslateGemmaConfig(ProviderConfig):
    """Ollama-served TranslateGemma model."""

    base_url: str = "http://127.0.0.1:11434"
    model: str = "translategemma:12b"
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class VduKirciuoklisConfig(ProviderConfig):
    """VDU accentuation endpoint."""

    endpoint: str = "https://kalbu.vdu.lt/ajax-call"
    nonce: str = "880129de2d"
    timeout_ms: int = 30_000


__all__ = ["ProviderConfig", "TranslateGemmaConfig", "VduKirciuoklisConfig"]
