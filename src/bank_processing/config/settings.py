"""
Settings master configuration.
"""

from __future__ import annotations

import dataclasses
import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
from dotenv import find_dotenv, load_dotenv

from ..schemas import CONFIG_SCHEMA
from .logging import LoggingConfig
from .provider import TranslateGemmaConfig, VduKirciuoklisConfig
from .run import PathsConfig, RunDefaults


@dataclass
class Settings:
    """
    Master configuration for a processing run.

    Aggregates every configuration section into one object that is passed
    explicitly to the runtime. It can be loaded from environment variables,
    from a TOML/JSON file, or constructed programmatically.
    """

    paths: PathsConfig = field(default_factory=PathsConfig)
    defaults: RunDefaults = field(default_factory=RunDefaults)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    translategemma: TranslateGemmaConfig = field(default_factory=TranslateGemmaConfig)
    vdu_kirciuoklis: VduKirciuoklisConfig = field(default_factory=VduKirciuoklisConfig)

    @classmethod
    def from_env(cls, prefix: str = "BANK_") -> Settings:
        """
        Load settings from environment variables.

        Example:
            BANK_IN_DIR=../databanks/sources
            BANK_REPLAY_POLICY=REPLAY_ONLY
            BANK_OLLAMA_BASE_URL=http://gpu-box:11434
        """
        settings = cls()

        if in_dir := os.getenv(f"{prefix}IN_DIR"):
            settings.paths.in_dir = Path(in_dir)
        if out_dir := os.getenv(f"{prefix}OUT_DIR"):
            settings.paths.out_dir = Path(out_dir)

        if replay_policy := os.getenv(f"{prefix}REPLAY_POLICY"):
            settings.defaults = dataclasses.replace(settings.defaults, replay_policy=replay_policy.upper())
        if error_policy := os.getenv(f"{prefix}ERROR_POLICY"):
            settings.defaults = dataclasses.replace(settings.defaults, error_policy=error_policy.upper())
        if parallelism := os.getenv(f"{prefix}FEATURE_PARALLELISM"):
            settings.defaults = dataclasses.replace(settings.defaults, feature_parallelism=int(parallelism))
        if concurrency := os.getenv(f"{prefix}FEATURE_CONCURRENCY"):
            settings.defaults = dataclasses.replace(settings.defaults, feature_concurrency=int(concurrency))

        if level := os.getenv(f"{prefix}LOG_LEVEL"):
            settings.logging = dataclasses.replace(settings.logging, level=level.upper())
        if log_format := os.getenv(f"{prefix}LOG_FORMAT"):
            settings.logging = dataclasses.replace(settings.logging, format=log_format.lower())
        if log_file := os.getenv(f"{prefix}LOG_FILE"):
            settings.logging = dataclasses.replace(settings.logging, log_file=Path(log_file))

        if base_url := os.getenv(f"{prefix}OLLAMA_BASE_URL"):
            settings.translategemma.base_url = base_url
        if model := os.getenv(f"{prefix}TRANSLATEGEMMA_MODEL"):
            settings.translategemma.model = model
        if nonce := os.getenv(f"{prefix}VDU_NONCE"):
            settings.vdu_kirciuoklis.nonce = nonce

        return settings

    @classmethod
    def from_file(cls, path: str | Path) -> Settings:
        """
        Load settings from a TOML or JSON file.
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()
        if suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
        elif suffix == ".json":
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        else:
            raise ValueError(f"Unsupported config file format: {suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Settings:
        """
        Create Settings from a dictionary validated against the configuration schema.
        """
        try:
            jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e.message}") from e

        return cls(
            paths=PathsConfig(**data.get("paths", {})),
            defaults=RunDefaults(**data.get("defaults", {})),
            logging=LoggingConfig(**data.get("logging", {})),
            translategemma=TranslateGemmaConfig(**data.get("translategemma", {})),
            vdu_kirciuoklis=VduKirciuoklisConfig(**data.get("vdu_kirciuoklis", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary."""

        def convert(obj):
            if dataclasses.is_dataclass(obj):
                return {f.name: convert(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
            if isinstance(obj, Path):
                return str(obj)
            if hasattr(obj, "value"):
                return obj.value
            return obj

        return convert(self)


def load_env(path: str | None = None, *, override: bool = False) -> bool:
    """
    Load environment variables from a .env file.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    env_path = path or find_dotenv(usecwd=True)
    if not env_path:
        return False
    return load_dotenv(env_path, override=override)


__all__ = ["Settings", "load_env"]
