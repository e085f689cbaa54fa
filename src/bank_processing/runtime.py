"""
Run orchestrator: load banks, run the executor, write output banks.

Each bank file is processed independently: its own preflight, its own call
log namespace under ``<out_dir>/logs/<bankId>`` and its own output file.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import aiofiles
import jsonschema
import orjson

from .calllog import open_bank_call_log
from .config.run import PathsConfig, RunDefaults
from .config.settings import Settings
from .errors import (
    BatchFailedError,
    ConfigError,
    InvalidBankError,
    InvalidOptionsError,
    describe_error,
)
from .executor import ExecuteBankResult, Executor, ProgressObserver
from .gateway import ExternalCallGateway
from .logging import StructuredLogger, get_logger, timed
from .models import InputBank, OutputBank, OutputBankFeature, OutputBankItem
from .plugins.base import Plugin
from .plugins.registry import PluginRegistry
from .resolver import resolve_feature_ids
from .schemas import INPUT_BANK_SCHEMA
from .serialization import pretty_json_dumps
from .transport import HttpTransport, Transport

OUTPUT_SUFFIX = ".bank.json"


@dataclass
class ProcessingConfig:
    """
    Everything one processing run needs, passed explicitly.

    Attributes:
        paths: Input and output directories.
        plugins: Active plugin instances, resolved by provider name.
        defaults: Replay policy, parallelism and error policy.
        on_item_progress: Observer of item progress events.
        compact_logs: Rewrite each bank's call log after a successful run.
        transport_factory: Builds the transport of one bank run.
    """

    paths: PathsConfig = field(default_factory=PathsConfig)
    plugins: Sequence[Plugin] = ()
    defaults: RunDefaults = field(default_factory=RunDefaults)
    on_item_progress: ProgressObserver | None = None
    compact_logs: bool = False
    transport_factory: Callable[[], Transport] = HttpTransport

    @classmethod
    def from_settings(cls, settings: Settings, plugins: Sequence[Plugin], **kwargs) -> ProcessingConfig:
        return cls(paths=settings.paths, plugins=plugins, defaults=settings.defaults, **kwargs)


def bank_id_for(path: Path) -> str:
    return path.stem


def build_output_bank(
    bank: InputBank,
    result: ExecuteBankResult,
    generated_at: str | None = None,
) -> OutputBank:
    """
    Assemble the output bank from successful outputs only.

    Items are matched by position, so repeated inputs keep their own outputs.
    """
    items = [OutputBankItem(input=input) for input in bank.data]
    features = []
    for feature, feature_result in zip(bank.features, result.feature_results):
        features.append(
            OutputBankFeature(
                id=feature_result.feature_id,
                type=feature_result.kind.value,
                provider=feature_result.provider,
                version=feature_result.version,
                group=(feature.group or "").strip() or None,
            )
        )
        for index, item in enumerate(feature_result.outputs):
            if item.error is not None or not item.has_output:
                continue
            items[index].features[feature_result.feature_id] = {"output": item.output}

    return OutputBank(
        schema_version=bank.schema_version,
        title=bank.title,
        description=bank.description,
        author=bank.author,
        source_language=bank.source_language,
        generated_at=generated_at or _utc_now(),
        features=features,
        data=items,
    )


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ProcessingRuntime:
    """
    Processes every ``*.json`` bank of ``paths.in_dir``.

    Example:
        ```python
        runtime = ProcessingRuntime(ProcessingConfig(paths=paths, plugins=[plugin]))
        written = await runtime.run()
        ```
    """

    def __init__(self, config: ProcessingConfig, *, logger: StructuredLogger | None = None) -> None:
        self.config = config
        self.registry = PluginRegistry(config.plugins)
        self.logger = logger or get_logger()

    def source_files(self) -> list[Path]:
        in_dir = Path(self.config.paths.in_dir)
        if not in_dir.is_dir():
            raise ConfigError(f"Input directory not found: {in_dir}")
        return sorted(path for path in in_dir.iterdir() if path.is_file() and path.suffix.lower() == ".json")

    async def run(self) -> int:
        """
        Process all bank files.

        Returns:
            The number of output banks written

        Raises:
            BatchFailedError: If any bank failed; the other banks still ran
        """
        out_dir = Path(self.config.paths.out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)

        failures: dict[str, BaseException] = {}
        written = 0
        for path in self.source_files():
            bank_id = bank_id_for(path)
            try:
                await self.process_bank_file(path)
            except Exception as exc:
                failures[bank_id] = exc
                with self.logger.bank_context(bank_id):
                    self.logger.log_error(exc, f"[{bank_id}] {describe_error(exc)}")
                continue
            written += 1

        if failures:
            raise BatchFailedError(failures)
        return written

    async def load_bank(self, path: Path) -> InputBank:
        async with aiofiles.open(path, "rb") as f:
            raw = await f.read()
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise InvalidBankError(f"Invalid JSON in {path.name}: {exc}", cause=exc) from exc

        try:
            jsonschema.validate(instance=data, schema=INPUT_BANK_SCHEMA)
        except jsonschema.ValidationError as exc:
            raise InvalidBankError(
                f"Invalid bank schema in {path.name}. Expected InputBank format: {exc.message}",
                cause=exc,
            ) from exc
        return InputBank.from_dict(data)

    def preflight(self, bank: InputBank) -> None:
        """
        Checks that must pass before any plugin runs.

        Raises:
            MissingProviderError: Listing every provider without a plugin
            DuplicateFeatureIdError: Listing every repeated feature id
            InvalidOptionsError: For the first feature whose options are rejected
        """
        self.registry.ensure_available(feature.provider for feature in bank.features)
        resolve_feature_ids(bank.features)

        for index, feature in enumerate(bank.features):
            plugin = self.registry.resolve(feature.provider)
            try:
                plugin.validate_options(feature.options)
            except Exception as exc:
                raise InvalidOptionsError(feature.provider, index, describe_error(exc), cause=exc) from exc

    async def process_bank_file(self, path: str | Path) -> Path:
        """Run one bank file end to end and return the output path."""
        path = Path(path)
        bank_id = bank_id_for(path)
        defaults = self.config.defaults
        out_dir = Path(self.config.paths.out_dir)

        with self.logger.bank_context(bank_id):
            bank = await self.load_bank(path)
            self.preflight(bank)
            self.logger.info(
                "Processing bank",
                features=len(bank.features),
                items=len(bank.data),
                replay_policy=defaults.replay_policy.value,
            )

            call_log = await open_bank_call_log(out_dir / "logs" / bank_id)
            transport = self.config.transport_factory()
            try:
                gateway = ExternalCallGateway(
                    call_log,
                    transport,
                    replay_policy=defaults.replay_policy,
                    logger=self.logger,
                )
                executor = Executor(
                    self.registry,
                    gateway,
                    feature_parallelism=defaults.feature_parallelism,
                    feature_concurrency=defaults.feature_concurrency,
                    error_policy=defaults.error_policy,
                    on_item_progress=self.config.on_item_progress,
                    logger=self.logger,
                )
                with timed() as timer:
                    result = await executor.execute_bank(bank)
            finally:
                await transport.close()

            output = build_output_bank(bank, result)
            output_path = out_dir / f"{bank_id}{OUTPUT_SUFFIX}"
            async with aiofiles.open(output_path, "w", encoding="utf-8") as f:
                await f.write(pretty_json_dumps(output.to_dict()))

            if self.config.compact_logs:
                lines = await call_log.compact()
                self.logger.debug("Compacted call log", path=str(call_log.file_path), lines=lines)

            self.logger.info(f"[{bank_id}] Done: {output_path}", duration_ms=round(timer.elapsed_ms))
        return output_path


async def run_processing(config: ProcessingConfig) -> int:
    """Convenience wrapper around ``ProcessingRuntime(config).run()``."""
    return await ProcessingRuntime(config).run()


__all__ = [
    "OUTPUT_SUFFIX",
    "ProcessingConfig",
    "ProcessingRuntime",
    "bank_id_for",
    "build_output_bank",
    "run_processing",
]
