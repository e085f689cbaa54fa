"""
Logging section of the settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, get_args

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["text", "json"]


@dataclass
class LoggingConfig:
    """
    Attributes:
        level: Minimum level emitted by the ``bank_processing`` logger.
        format: ``text`` for terminals, ``json`` for one object per line.
        log_file: Also append log lines to this file.
    """

    level: LogLevel = "INFO"
    format: LogFormat = "text"
    log_file: Path | None = None

    def __post_init__(self):
        if self.level not in get_args(LogLevel):
            raise ValueError(f"Invalid log level: {self.level}. Must be one of {get_args(LogLevel)}")
        if self.format not in get_args(LogFormat):
            raise ValueError(f"Invalid log format: {self.format}. Must be one of {get_args(LogFormat)}")
        if self.log_file is not None:
            self.log_file = Path(self.log_file)

    @property
    def json_output(self) -> bool:
        return self.format == "json"


__all__ = ["LogLevel", "LogFormat", "LoggingConfig"]
