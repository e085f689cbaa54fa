"""
Shared test fixtures and fakes for bank-processing tests.

This module provides:
- Stub plugins with scripted behaviour
- An in-memory call log
- A fake transport that never touches the network
- Input bank factories
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import orjson
import pytest

from bank_processing.calllog import ApiCallLog
from bank_processing.errors import ExternalCallError, NoResultError
from bank_processing.models import FeatureKind
from bank_processing.plugins.base import CacheIdentity, ExternalCallRequest, Plugin, PluginContext
from bank_processing.transport import HttpJsonRequest

# =============================================================================
# Call log / transport fakes
# =============================================================================


class InMemoryCallLog:
    """Dict-backed call log that keeps every put for inspection."""

    def __init__(self, records: list[ApiCallLog] | None = None) -> None:
        self._index: dict[str, ApiCallLog] = {}
        self.puts: list[ApiCallLog] = []
        for record in records or []:
            self._index[record.key] = record

    async def get(self, key: str) -> ApiCallLog | None:
        return self._index.get(key)

    async def put(self, record: ApiCallLog) -> None:
        self._index[record.key] = record
        self.puts.append(record)

    def __len__(self) -> int:
        return len(self._index)


class FakeTransport:
    """
    Answers requests with ``responder(request)``; by default echoes the
    request body's ``text`` as ``{"text": ...}``.
    """

    def __init__(self, responder: Callable[[Any], Any] | None = None) -> None:
        self.responder = responder or (lambda request: {"text": (request.body or {}).get("text")})
        self.sent: list[Any] = []
        self.closed = False

    async def send(self, request: Any) -> Any:
        self.sent.append(request)
        return self.responder(request)

    async def close(self) -> None:
        self.closed = True


def failing_responder(status: int = 500, body: str = "boom") -> Callable[[Any], Any]:
    def respond(request: Any) -> Any:
        raise ExternalCallError(f"External call failed: {status} {body}", http_status=status, body=body)

    return respond


# =============================================================================
# Stub plugins
# =============================================================================

Handler = Callable[[str, dict[str, Any], PluginContext], Awaitable[Any]]


class StubPlugin(Plugin):
    """Plugin whose ``run`` is a scripted coroutine; every call is recorded."""

    def __init__(
        self,
        provider: str,
        *,
        kind: FeatureKind = FeatureKind.TRANSLATION,
        version: str = "1.0.0",
        handler: Handler | None = None,
        item_concurrency: int | None = None,
        validator: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.provider = provider
        self.kind = kind
        self.version = version
        self.item_concurrency = item_concurrency
        self._handler = handler or _upper
        self._validator = validator
        self.calls: list[str] = []
        self.validated: list[dict[str, Any]] = []

    def validate_options(self, options: dict[str, Any]) -> None:
        self.validated.append(options)
        if self._validator is not None:
            self._validator(options)

    async def run(self, input: str, options: dict[str, Any], ctx: PluginContext) -> Any:
        self.calls.append(input)
        return await self._handler(input, options, ctx)


async def _upper(input: str, options: dict[str, Any], ctx: PluginContext) -> str:
    return input.upper()


def outputs_from(mapping: dict[str, Any]) -> Handler:
    """Handler answering from ``mapping``; missing inputs (or None values) mean no result."""

    async def handler(input: str, options: dict[str, Any], ctx: PluginContext) -> Any:
        value = mapping.get(input)
        if value is None:
            raise NoResultError()
        if isinstance(value, Exception):
            raise value
        return value

    return handler


def external_echo(*, with_identity: bool = True, operation: str = "echo.call") -> Handler:
    """Handler that performs one external call per item and returns its ``text``."""

    async def handler(input: str, options: dict[str, Any], ctx: PluginContext) -> Any:
        response = await ctx.call_external(
            ExternalCallRequest(
                operation=operation,
                input=input,
                request=HttpJsonRequest(url="http://echo.test/call", body={"text": input}),
                cache_identity=CacheIdentity(value={"input": input}) if with_identity else None,
            )
        )
        return response["text"]

    return handler


# =============================================================================
# Bank factories
# =============================================================================


def make_bank_dict(
    features: list[dict[str, Any]],
    data: list[str],
    *,
    title: str = "Test bank",
    source_language: str = "lt",
) -> dict[str, Any]:
    return {
        "schemaVersion": "1.0.0",
        "title": title,
        "sourceLanguage": source_language,
        "features": features,
        "data": data,
    }


def write_bank(directory: Path, bank_id: str, bank: dict[str, Any]) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{bank_id}.json"
    path.write_bytes(orjson.dumps(bank))
    return path


def read_json(path: Path) -> Any:
    return orjson.loads(path.read_bytes())


# =============================================================================
# Pytest Fixtures
# =============================================================================


@pytest.fixture
def call_log() -> InMemoryCallLog:
    return InMemoryCallLog()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def in_dir(tmp_path: Path) -> Path:
    path = tmp_path / "sources"
    path.mkdir()
    return path


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    return tmp_path / "dist"
