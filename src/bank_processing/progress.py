"""
Terminal progress for a processing run: one tqdm bar per feature.
"""

from __future__ import annotations

import os
import sys
import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import IO, Any

from tqdm import tqdm

from .executor import ItemProgressEvent
from .models import ItemOutcome

DEFAULT_MIN_RENDER_INTERVAL = 1.0


@dataclass
class _FeatureRow:
    label: str
    total: int
    position: int
    done: int = 0
    outcomes: Counter = field(default_factory=Counter)
    bar: Any = None


def progress_enabled_from_env() -> bool:
    return os.getenv("NO_PROGRESS") != "1"


class ProgressRenderer:
    """
    Consumes item progress events and draws a bar per feature id.

    Every frame redraws all bars. Frames are throttled to
    ``min_render_interval`` seconds; the first and the final event of a
    feature always get one.

    Example:
        ```python
        progress = ProgressRenderer()
        config = ProcessingConfig(..., on_item_progress=progress.update)
        try:
            await ProcessingRuntime(config).run()
        finally:
            progress.stop()
        ```
    """

    def __init__(
        self,
        *,
        enabled: bool | None = None,
        min_render_interval: float = DEFAULT_MIN_RENDER_INTERVAL,
        now: Callable[[], float] = time.monotonic,
        file: IO[str] | None = None,
        bar_factory: Callable[..., Any] = tqdm,
    ) -> None:
        self.enabled = progress_enabled_from_env() if enabled is None else enabled
        self.min_render_interval = min_render_interval
        self._now = now
        self._file = file or sys.stderr
        self._bar_factory = bar_factory
        self._rows: dict[str, _FeatureRow] = {}
        self._last_render_at: float | None = None
        self.render_count = 0

    def update(self, event: ItemProgressEvent) -> None:
        if not self.enabled:
            return

        row = self._rows.get(event.feature_id)
        is_new = row is None
        if row is None:
            row = _FeatureRow(
                label=event.feature_id or event.plugin_name,
                total=event.total,
                position=len(self._rows),
            )
            self._rows[event.feature_id] = row

        row.total = event.total
        row.done = max(row.done, event.done)
        row.outcomes[ItemOutcome(event.outcome).value] += 1

        # A new feature or a finished one always gets a frame.
        force = is_new or event.done >= event.total
        now = self._now()
        if (
            not force
            and self._last_render_at is not None
            and now - self._last_render_at < self.min_render_interval
        ):
            return
        self._last_render_at = now
        self._render()

    def _render(self) -> None:
        for row in self._rows.values():
            if row.bar is None:
                row.bar = self._bar_factory(
                    total=row.total,
                    desc=row.label,
                    position=row.position,
                    leave=True,
                    file=self._file,
                    dynamic_ncols=True,
                )
            row.bar.total = row.total
            row.bar.n = row.done
            row.bar.set_postfix({k: v for k, v in sorted(row.outcomes.items())}, refresh=False)
            row.bar.refresh()
        self.render_count += 1

    def stop(self) -> None:
        """Close every bar and forget all features."""
        for row in self._rows.values():
            if row.bar is not None:
                row.bar.close()
        self._rows.clear()
        self._last_render_at = None


__all__ = ["DEFAULT_MIN_RENDER_INTERVAL", "ProgressRenderer", "progress_enabled_from_env"]
