"""
Transport descriptions for external calls and the aiohttp sender.

Plugins describe a call as one of the tagged request variants; only the
gateway performs it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, ClassVar, Protocol, Union

import aiohttp
import orjson

from .errors import ExternalCallError, UnsupportedRequestError
from .serialization import fast_json_dumps, fast_json_loads


@dataclass(frozen=True)
class HttpJsonRequest:
    """HTTP call with a JSON body."""

    kind: ClassVar[str] = "http_json"

    url: str
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
    timeout_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"url": self.url, "method": self.method}
        if self.headers:
            d["headers"] = dict(self.headers)
        if self.body is not None:
            d["body"] = self.body
        if self.timeout_ms is not None:
            d["timeoutMs"] = self.timeout_ms
        return d


@dataclass(frozen=True)
class HttpFormRequest:
    """HTTP call with a form-encoded body."""

    kind: ClassVar[str] = "http_form"

    url: str
    form: dict[str, str] = field(default_factory=dict)
    method: str = "POST"
    timeout_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"url": self.url, "method": self.method, "form": dict(self.form)}
        if self.timeout_ms is not None:
            d["timeoutMs"] = self.timeout_ms
        return d


TransportRequest = Union[HttpJsonRequest, HttpFormRequest]


class Transport(Protocol):
    async def send(self, request: TransportRequest) -> Any: ...

    async def close(self) -> None: ...


class HttpTransport:
    """
    Sends transport requests with a shared aiohttp session.

    Example:
        ```python
        async with HttpTransport() as transport:
            body = await transport.send(HttpJsonRequest(url=...))
        ```
    """

    def __init__(self, session: aiohttp.ClientSession | None = None) -> None:
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send(self, request: TransportRequest) -> Any:
        if isinstance(request, HttpJsonRequest):
            headers = {"Content-Type": "application/json", **request.headers}
            data: Any = None if request.body is None else fast_json_dumps(request.body)
        elif isinstance(request, HttpFormRequest):
            headers = {}
            data = aiohttp.FormData()
            for key, value in request.form.items():
                data.add_field(key, value)
        else:
            raise UnsupportedRequestError()

        timeout = aiohttp.ClientTimeout(total=request.timeout_ms / 1000) if request.timeout_ms else None
        session = self._get_session()
        try:
            async with session.request(
                request.method,
                request.url,
                data=data,
                headers=headers or None,
                timeout=timeout,
            ) as response:
                text = await response.text()
                if not 200 <= response.status < 300:
                    raise ExternalCallError(
                        f"External call failed: {response.status} {response.reason or ''} {text}".strip(),
                        http_status=response.status,
                        body=text,
                    )
        except asyncio.TimeoutError as exc:
            raise ExternalCallError(
                f"External call timed out after {request.timeout_ms}ms: {request.url}",
                cause=exc,
            ) from exc
        except aiohttp.ClientError as exc:
            raise ExternalCallError(f"External call failed: {exc}", cause=exc) from exc

        try:
            return fast_json_loads(text)
        except orjson.JSONDecodeError as exc:
            raise ExternalCallError(
                "External call returned a non-JSON body",
                http_status=response.status,
                body=text,
                cause=exc,
            ) from exc


__all__ = [
    "HttpJsonRequest",
    "HttpFormRequest",
    "TransportRequest",
    "Transport",
    "HttpTransport",
]
