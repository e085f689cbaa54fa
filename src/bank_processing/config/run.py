"""
Run configuration: input/output paths and execution defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..models import ErrorPolicy, ReplayPolicy

DEFAULT_FEATURE_CONCURRENCY = 4


@dataclass
class PathsConfig:
    """Input and output directories for bank source files and generated results."""

    in_dir: Path = field(default_factory=lambda: Path("databanks/sources"))
    out_dir: Path = field(default_factory=lambda: Path("databanks/dist"))

    def __post_init__(self):
        self.in_dir = Path(self.in_dir)
        self.out_dir = Path(self.out_dir)

    @property
    def logs_dir(self) -> Path:
        return self.out_dir / "logs"


@dataclass
class RunDefaults:
    """
    Global execution defaults.

    Attributes:
        replay_policy: How external calls use the call log.
        feature_parallelism: Fallback chains processed in parallel; None means all of them.
        feature_concurrency: Item concurrency of a plugin that does not declare its own.
        error_policy: Fail the whole bank, or skip failed items.
    """

    replay_policy: ReplayPolicy = ReplayPolicy.REPLAY_THEN_LIVE
    feature_parallelism: int | None = None
    feature_concurrency: int = DEFAULT_FEATURE_CONCURRENCY
    error_policy: ErrorPolicy = ErrorPolicy.FAIL

    def __post_init__(self):
        self.replay_policy = ReplayPolicy(self.replay_policy)
        self.error_policy = ErrorPolicy(self.error_policy)
        if self.feature_parallelism is not None and self.feature_parallelism < 1:
            raise ValueError("feature_parallelism must be positive")
        if self.feature_concurrency < 1:
            raise ValueError("feature_concurrency must be positive")


__all__ = ["DEFAULT_FEATURE_CONCURRENCY", "PathsConfig", "RunDefaults"]
