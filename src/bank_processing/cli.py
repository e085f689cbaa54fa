"""
Command-line entry point: ``python -m bank_processing``.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys
from pathlib import Path

from .config import Settings, load_env
from .errors import BankProcessingError, BatchFailedError
from .logging import configure_logging
from .models import ErrorPolicy, ReplayPolicy
from .plugins import TranslateGemmaPlugin, VduKirciuoklisPlugin
from .progress import ProgressRenderer
from .runtime import ProcessingConfig, ProcessingRuntime


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bank_processing",
        description="Enrich input banks with provider outputs, replaying recorded external calls",
    )
    parser.add_argument("--in-dir", type=Path, help="Directory with input bank JSON files")
    parser.add_argument("--out-dir", type=Path, help="Directory for output banks and call logs")
    parser.add_argument("--config", type=Path, help="TOML or JSON settings file (default: BANK_* environment)")
    parser.add_argument(
        "--replay-policy",
        choices=[p.value for p in ReplayPolicy],
        help="How external calls use the call log",
    )
    parser.add_argument(
        "--error-policy",
        choices=[p.value for p in ErrorPolicy],
        help="FAIL aborts a bank on the first item error; SKIP_ITEM records it and continues",
    )
    parser.add_argument("--feature-parallelism", type=int, help="Fallback chains run in parallel (default: all)")
    parser.add_argument("--feature-concurrency", type=int, help="Item concurrency of plugins without their own")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default from settings)",
    )
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    parser.add_argument("--compact-logs", action="store_true", help="Rewrite call logs keeping one line per key")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Settings from ``--config`` or the environment, then command-line overrides."""
    settings = Settings.from_file(args.config) if args.config else Settings.from_env()

    if args.in_dir is not None:
        settings.paths.in_dir = args.in_dir
    if args.out_dir is not None:
        settings.paths.out_dir = args.out_dir

    overrides = {}
    if args.replay_policy:
        overrides["replay_policy"] = args.replay_policy
    if args.error_policy:
        overrides["error_policy"] = args.error_policy
    if args.feature_parallelism is not None:
        overrides["feature_parallelism"] = args.feature_parallelism
    if args.feature_concurrency is not None:
        overrides["feature_concurrency"] = args.feature_concurrency
    if overrides:
        settings.defaults = dataclasses.replace(settings.defaults, **overrides)

    if args.log_level:
        settings.logging = dataclasses.replace(settings.logging, level=args.log_level)
    return settings


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    load_env()

    try:
        settings = load_settings(args)
    except (OSError, ValueError) as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    logger = configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        log_file=settings.logging.log_file,
    )
    progress = ProgressRenderer(enabled=False if args.no_progress else None)
    config = ProcessingConfig.from_settings(
        settings,
        [
            TranslateGemmaPlugin(settings.translategemma),
            VduKirciuoklisPlugin(settings.vdu_kirciuoklis),
        ],
        on_item_progress=progress.update,
        compact_logs=args.compact_logs,
    )

    try:
        written = asyncio.run(ProcessingRuntime(config, logger=logger).run())
    except BatchFailedError as e:
        print(f"{len(e.failures)} bank(s) failed:\n{e}", file=sys.stderr)
        return 1
    except BankProcessingError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        progress.stop()

    logger.info(f"Processed {written} bank(s)")
    return 0


__all__ = ["build_parser", "load_settings", "main"]
