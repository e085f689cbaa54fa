"""Tests for the terminal progress renderer."""

from __future__ import annotations

from typing import Any

import pytest

from bank_processing.executor import ItemProgressEvent
from bank_processing.models import ItemOutcome
from bank_processing.progress import ProgressRenderer, progress_enabled_from_env


class FakeBar:
    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.total = kwargs["total"]
        self.n = 0
        self.postfix: dict[str, int] = {}
        self.refreshes = 0
        self.closed = False

    def set_postfix(self, postfix: dict[str, int], refresh: bool = True) -> None:
        self.postfix = postfix

    def refresh(self) -> None:
        self.refreshes += 1

    def close(self) -> None:
        self.closed = True


class Clock:
    def __init__(self) -> None:
        self.value = 0.0

    def __call__(self) -> float:
        return self.value


def event(feature_id: str, done: int, total: int = 3, outcome: ItemOutcome = ItemOutcome.PASSED) -> ItemProgressEvent:
    return ItemProgressEvent(
        feature_id=feature_id,
        plugin_name="stub",
        total=total,
        index=done - 1,
        done=done,
        outcome=outcome,
    )


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def bars() -> list[FakeBar]:
    return []


@pytest.fixture
def renderer(clock: Clock, bars: list[FakeBar]) -> ProgressRenderer:
    def factory(**kwargs: Any) -> FakeBar:
        bar = FakeBar(**kwargs)
        bars.append(bar)
        return bar

    return ProgressRenderer(enabled=True, min_render_interval=1.0, now=clock, bar_factory=factory)


class TestThrottling:
    def test_second_event_within_interval_is_not_rendered(self, renderer: ProgressRenderer, clock: Clock) -> None:
        renderer.update(event("a-1", 1))
        clock.value = 0.5
        renderer.update(event("a-1", 2))

        assert renderer.render_count == 1

    def test_final_event_is_always_rendered(
        self, renderer: ProgressRenderer, clock: Clock, bars: list[FakeBar]
    ) -> None:
        renderer.update(event("a-1", 1))
        clock.value = 0.1
        renderer.update(event("a-1", 2))
        clock.value = 0.2
        renderer.update(event("a-1", 3, outcome=ItemOutcome.REPLAYED))

        assert renderer.render_count == 2
        (bar,) = bars
        assert bar.n == 3
        assert bar.postfix == {"PASSED": 2, "REPLAYED": 1}

    def test_renders_again_after_interval(self, renderer: ProgressRenderer, clock: Clock) -> None:
        renderer.update(event("a-1", 1))
        clock.value = 1.5
        renderer.update(event("a-1", 2))
        assert renderer.render_count == 2


class TestBars:
    def test_one_bar_per_feature(self, renderer: ProgressRenderer, clock: Clock, bars: list[FakeBar]) -> None:
        renderer.update(event("a-1", 1, total=1))
        renderer.update(event("b-1", 1, total=2))

        assert [bar.kwargs["desc"] for bar in bars] == ["a-1", "b-1"]
        assert [bar.kwargs["position"] for bar in bars] == [0, 1]
        assert bars[1].total == 2

    def test_every_frame_refreshes_all_bars(
        self, renderer: ProgressRenderer, clock: Clock, bars: list[FakeBar]
    ) -> None:
        renderer.update(event("a-1", 1))
        renderer.update(event("b-1", 1))
        clock.value = 0.5
        renderer.update(event("b-1", 2))
        clock.value = 1.5
        renderer.update(event("a-1", 2))

        a_bar, b_bar = bars
        assert a_bar.n == 2
        assert b_bar.n == 2
        assert b_bar.refreshes == 2

    def test_stop_closes_bars(self, renderer: ProgressRenderer, bars: list[FakeBar]) -> None:
        renderer.update(event("a-1", 3))
        renderer.stop()
        assert bars[0].closed

    def test_disabled_renderer_draws_nothing(self, bars: list[FakeBar]) -> None:
        renderer = ProgressRenderer(enabled=False, bar_factory=lambda **kw: bars.append(kw))
        renderer.update(event("a-1", 3))
        assert bars == []
        assert renderer.render_count == 0


class TestEnvironment:
    def test_no_progress_disables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_PROGRESS", "1")
        assert progress_enabled_from_env() is False
        assert ProgressRenderer().enabled is False

    def test_enabled_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_PROGRESS", raising=False)
        assert progress_enabled_from_env() is True
