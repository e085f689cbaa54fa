"""
Configuration system for bank-processing.

This package provides typed configuration classes with:
- Dataclass-based settings with validation
- Environment variable loading
- TOML/JSON file loading
- Sensible defaults with override capability
"""

from .logging import LogFormat, LoggingConfig, LogLevel
from .provider import ProviderConfig, TranslateGemmaConfig, VduKirciuoklisConfig
from .run import DEFAULT_FEATURE_CONCURRENCY, PathsConfig, RunDefaults
from .settings import Settings, load_env

__all__ = [
    # Types
    "LogLevel",
    "LogFormat",
    # Sections
    "LoggingConfig",
    "PathsConfig",
    "RunDefaults",
    "DEFAULT_FEATURE_CONCURRENCY",
    # Provider configs
    "ProviderConfig",
    "TranslateGemmaConfig",
    "VduKirciuoklisConfig",
    # Master config
    "Settings",
    "load_env",
]
