"""Tests for the aiohttp transport against a local aiohttp server."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest
from aiohttp import web

from bank_processing.errors import ExternalCallError, UnsupportedRequestError
from bank_processing.transport import HttpFormRequest, HttpJsonRequest, HttpTransport


async def echo_json(request: web.Request) -> web.Response:
    body = await request.json()
    return web.json_response({"received": body, "contentType": request.content_type})


async def echo_form(request: web.Request) -> web.Response:
    form = await request.post()
    return web.json_response({"form": dict(form)})


async def failing(request: web.Request) -> web.Response:
    return web.Response(status=503, text="busy")


async def not_json(request: web.Request) -> web.Response:
    return web.Response(text="<html></html>")


async def slow(request: web.Request) -> web.Response:
    await asyncio.sleep(1)
    return web.json_response({})


@pytest.fixture
async def base_url() -> AsyncIterator[str]:
    app = web.Application()
    app.router.add_post("/json", echo_json)
    app.router.add_post("/form", echo_form)
    app.router.add_post("/fail", failing)
    app.router.add_post("/html", not_json)
    app.router.add_post("/slow", slow)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    try:
        yield f"http://{host}:{port}"
    finally:
        await runner.cleanup()


@pytest.fixture
async def transport() -> AsyncIterator[HttpTransport]:
    async with HttpTransport() as http:
        yield http


class TestHttpTransport:
    async def test_json_request(self, base_url: str, transport: HttpTransport) -> None:
        body = await transport.send(HttpJsonRequest(url=f"{base_url}/json", body={"prompt": "labas"}))

        assert body == {"received": {"prompt": "labas"}, "contentType": "application/json"}

    async def test_form_request(self, base_url: str, transport: HttpTransport) -> None:
        body = await transport.send(
            HttpFormRequest(url=f"{base_url}/form", form={"action": "text_accents", "body": "ačiū"})
        )

        assert body == {"form": {"action": "text_accents", "body": "ačiū"}}

    async def test_non_success_status(self, base_url: str, transport: HttpTransport) -> None:
        with pytest.raises(ExternalCallError) as exc_info:
            await transport.send(HttpJsonRequest(url=f"{base_url}/fail", body={}))

        assert exc_info.value.http_status == 503
        assert exc_info.value.body == "busy"
        assert "503" in str(exc_info.value)

    async def test_non_json_body(self, base_url: str, transport: HttpTransport) -> None:
        with pytest.raises(ExternalCallError, match="non-JSON body"):
            await transport.send(HttpJsonRequest(url=f"{base_url}/html", body={}))

    async def test_timeout(self, base_url: str, transport: HttpTransport) -> None:
        with pytest.raises(ExternalCallError, match="timed out after 50ms"):
            await transport.send(HttpJsonRequest(url=f"{base_url}/slow", body={}, timeout_ms=50))

    async def test_unsupported_request(self, transport: HttpTransport) -> None:
        with pytest.raises(UnsupportedRequestError):
            await transport.send({"url": "http://example.test"})

    async def test_close_is_idempotent(self) -> None:
        http = HttpTransport()
        await http.close()
        await http.close()


class TestRequestDescriptions:
    def test_json_request_to_dict(self) -> None:
        request = HttpJsonRequest(url="http://ollama.test/api/generate", body={"model": "m"}, timeout_ms=1000)

        assert request.to_dict() == {
            "url": "http://ollama.test/api/generate",
            "method": "POST",
            "body": {"model": "m"},
            "timeoutMs": 1000,
        }

    def test_form_request_to_dict(self) -> None:
        request = HttpFormRequest(url="http://vdu.test", form={"body": "ačiū"})

        assert request.to_dict() == {"url": "http://vdu.test", "method": "POST", "form": {"body": "ačiū"}}
