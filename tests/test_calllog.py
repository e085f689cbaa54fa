"""Tests for the JSONL call log."""

from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from bank_processing.calllog import DEFAULT_LOG_FILE_NAME, ApiCallLog, JsonlCallLog, open_bank_call_log


def make_record(key: str, *, status: str = "ok", response: object = None, error: object = None) -> ApiCallLog:
    return ApiCallLog(
        key=key,
        ts="2026-01-01T00:00:00.000Z",
        input="in",
        status=status,  # type: ignore[arg-type]
        duration_ms=5,
        provider="p",
        operation="op",
        request={"url": "http://x"},
        response=response,
        error=error,
    )


class TestApiCallLog:
    def test_ok_record_writes_response_not_error(self) -> None:
        d = make_record("k", response={"a": 1}).to_dict()
        assert d["response"] == {"a": 1}
        assert "error" not in d
        assert d["durationMs"] == 5

    def test_error_record_writes_error_not_response(self) -> None:
        d = make_record("k", status="error", error={"name": "E", "message": "m"}).to_dict()
        assert d["error"] == {"name": "E", "message": "m"}
        assert "response" not in d

    def test_round_trip_through_dict(self) -> None:
        record = make_record("k", response=[1, 2])
        record.cache_schema = "v1"
        record.cache_identity = {"input": "in"}
        assert ApiCallLog.from_dict(record.to_dict()) == record


class TestJsonlCallLog:
    async def test_open_creates_directory(self, tmp_path: Path) -> None:
        log = await open_bank_call_log(tmp_path / "logs" / "bank")
        assert log.file_path == tmp_path / "logs" / "bank" / DEFAULT_LOG_FILE_NAME
        assert log.file_path.parent.is_dir()
        assert len(log) == 0

    async def test_put_then_reopen(self, tmp_path: Path) -> None:
        path = tmp_path / "calls.jsonl"
        log = await JsonlCallLog.open(path)
        await log.put(make_record("a", response={"v": 1}))
        await log.put(make_record("b", status="error", error={"name": "E", "message": "m"}))

        reopened = await JsonlCallLog.open(path)
        a = await reopened.get("a")
        b = await reopened.get("b")
        assert a is not None and a.is_ok and a.response == {"v": 1}
        assert b is not None and not b.is_ok
        assert await reopened.get("missing") is None

    async def test_failed_append_is_not_visible(self, tmp_path: Path) -> None:
        path = tmp_path / "calls.jsonl"
        log = await JsonlCallLog.open(path)
        path.unlink(missing_ok=True)
        path.mkdir()

        with pytest.raises(OSError):
            await log.put(make_record("a", response={"v": 1}))

        assert await log.get("a") is None
        assert len(log) == 0

    async def test_last_write_wins(self, tmp_path: Path) -> None:
        path = tmp_path / "calls.jsonl"
        log = await JsonlCallLog.open(path)
        await log.put(make_record("a", status="error", error={"name": "E", "message": "m"}))
        await log.put(make_record("a", response="second"))

        assert len(path.read_text(encoding="utf-8").splitlines()) == 2
        reopened = await JsonlCallLog.open(path)
        record = await reopened.get("a")
        assert record is not None and record.response == "second"

    async def test_malformed_lines_are_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "calls.jsonl"
        good = orjson.dumps(make_record("good", response=1).to_dict()).decode()
        path.write_text(
            "\n".join(
                [
                    "{not json",
                    "[1, 2]",
                    '{"status": "ok"}',
                    '{"key": ""}',
                    good,
                    "",
                ]
            ),
            encoding="utf-8",
        )

        log = await JsonlCallLog.open(path)
        assert log.skipped_lines == 4
        assert log.keys() == ["good"]

    async def test_compact_keeps_one_line_per_key(self, tmp_path: Path) -> None:
        path = tmp_path / "calls.jsonl"
        log = await JsonlCallLog.open(path)
        for i in range(3):
            await log.put(make_record("a", response=i))
        await log.put(make_record("b", response="b"))

        assert await log.compact() == 2
        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert orjson.loads(lines[0])["response"] == 2

        reopened = await JsonlCallLog.open(path)
        record = await reopened.get("a")
        assert record is not None and record.response == 2
