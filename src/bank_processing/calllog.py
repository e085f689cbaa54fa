"""
Append-only call log used for replaying external calls.

One JSON document per line; an in-memory index (last write wins) is rebuilt
from the file when the log is opened.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Protocol, runtime_checkable

import aiofiles
import orjson

from .logging import get_logger
from .serialization import json_line

DEFAULT_LOG_FILE_NAME = "api-calls.log.jsonl"

CallStatus = Literal["ok", "error"]


@dataclass
class ApiCallLog:
    """One recorded external call."""

    key: str
    ts: str
    input: str
    status: CallStatus
    duration_ms: int
    provider: str | None = None
    operation: str | None = None
    cache_schema: str | None = None
    cache_identity: dict[str, Any] | None = None
    request: Any = None
    response: Any = None
    error: Any = None

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApiCallLog:
        return cls(
            key=data["key"],
            ts=data.get("ts", ""),
            input=data.get("input", ""),
            status=data.get("status", "error"),
            duration_ms=data.get("durationMs", 0),
            provider=data.get("provider"),
            operation=data.get("operation"),
            cache_schema=data.get("cacheSchema"),
            cache_identity=data.get("cacheIdentity"),
            request=data.get("request"),
            response=data.get("response"),
            error=data.get("error"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"key": self.key, "ts": self.ts}
        if self.provider is not None:
            d["provider"] = self.provider
        d["input"] = self.input
        if self.operation is not None:
            d["operation"] = self.operation
        if self.cache_schema is not None:
            d["cacheSchema"] = self.cache_schema
        if self.cache_identity is not None:
            d["cacheIdentity"] = self.cache_identity
        d["status"] = self.status
        if self.request is not None:
            d["request"] = self.request
        if self.status == "ok":
            d["response"] = self.response
        else:
            d["error"] = self.error
        d["durationMs"] = self.duration_ms
        return d


@runtime_checkable
class CallLog(Protocol):
    """Durable key -> record store consulted by the gateway."""

    async def get(self, key: str) -> ApiCallLog | None: ...

    async def put(self, record: ApiCallLog) -> None: ...


class JsonlCallLog:
    """
    File-backed call log.

    The file is never rewritten during a run; repeated puts for a key append
    new lines and only the latest is visible through ``get``.
    """

    def __init__(self, file_path: Path, index: dict[str, ApiCallLog], *, skipped_lines: int = 0) -> None:
        self.file_path = file_path
        self._index = index
        self.skipped_lines = skipped_lines
        self._write_lock = asyncio.Lock()

    @classmethod
    async def open(cls, file_path: str | Path) -> JsonlCallLog:
        """Open (creating directories as needed) and index an existing log."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        index: dict[str, ApiCallLog] = {}
        skipped = 0
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
        except FileNotFoundError:
            content = ""

        for line in content.splitlines():
            if not line.strip():
                continue
            record = _parse_line(line)
            if record is None:
                skipped += 1
                continue
            index[record.key] = record

        if skipped:
            get_logger().warning("Skipped malformed call log lines", path=str(path), skipped=skipped)

        return cls(path, index, skipped_lines=skipped)

    def __len__(self) -> int:
        return len(self._index)

    def keys(self) -> list[str]:
        return list(self._index)

    async def get(self, key: str) -> ApiCallLog | None:
        return self._index.get(key)

    async def put(self, record: ApiCallLog) -> None:
        """Append ``record``; it becomes visible to ``get`` once the line is written."""
        line = json_line(record.to_dict())
        async with self._write_lock:
            async with aiofiles.open(self.file_path, "a", encoding="utf-8") as f:
                await f.write(line)
            self._index[record.key] = record

    async def compact(self) -> int:
        """
        Rewrite the file keeping only the visible record of each key.

        Returns the number of lines written.
        """
        tmp_path = self.file_path.with_name(f".{self.file_path.name}.{uuid.uuid4().hex}.tmp")
        payload = "".join(json_line(record.to_dict()) for record in self._index.values())
        async with self._write_lock:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            os.replace(tmp_path, self.file_path)
        return len(self._index)


def _parse_line(line: str) -> ApiCallLog | None:
    try:
        data = orjson.loads(line)
    except orjson.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    key = data.get("key")
    if not isinstance(key, str) or not key:
        return None
    return ApiCallLog.from_dict(data)


async def open_bank_call_log(bank_log_dir: str | Path, file_name: str = DEFAULT_LOG_FILE_NAME) -> JsonlCallLog:
    """Open the call log namespaced to one bank."""
    return await JsonlCallLog.open(Path(bank_log_dir) / file_name)


__all__ = [
    "DEFAULT_LOG_FILE_NAME",
    "ApiCallLog",
    "CallLog",
    "JsonlCallLog",
    "open_bank_call_log",
]
