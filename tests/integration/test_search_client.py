"""Tests for ElasticsearchClient against an in-process aiohttp server."""

import asyncio
import ssl
from pathlib import Path
from typing import Any, Awaitable, Callable

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as BackendServer

from es_exporter.config import ExporterConfig
from es_exporter.errors import BackendError, ConfigError, TransportError
from es_exporter.search.client import ElasticsearchClient, build_ssl_context

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


async def _search(handler: Handler, body: dict[str, Any], **kwargs: Any) -> Any:
    app = web.Application()
    app.router.add_post("/_search", handler)
    server = BackendServer(app)
    await server.start_server()
    try:
        async with ElasticsearchClient(str(server.make_url("/")), **kwargs) as client:
            return await client.execute(body)
    finally:
        await server.close()


class TestExecute:
    """Tests for ElasticsearchClient.execute()."""

    def test_posts_body_and_returns_document(self) -> None:
        seen: dict[str, Any] = {}

        async def handler(request: web.Request) -> web.Response:
            seen["query"] = dict(request.query)
            seen["body"] = await request.json()
            seen["auth"] = request.headers.get("Authorization")
            return web.json_response({"hits": {"total": {"value": 3}}})

        result = asyncio.run(_search(handler, {"size": 0}))

        assert result == {"hits": {"total": {"value": 3}}}
        assert seen["body"] == {"size": 0}
        assert seen["query"] == {"track_total_hits": "true"}
        assert seen["auth"] is None

    def test_sends_basic_auth(self) -> None:
        seen: dict[str, Any] = {}

        async def handler(request: web.Request) -> web.Response:
            seen["auth"] = request.headers.get("Authorization")
            return web.json_response({})

        asyncio.run(_search(handler, {}, username="elastic", password="changeme"))
        assert seen["auth"] == "Basic ZWxhc3RpYzpjaGFuZ2VtZQ=="

    def test_error_status_carries_reason(self) -> None:
        async def handler(request: web.Request) -> web.Response:
            return web.json_response(
                {"error": {"type": "parsing_exception", "reason": "unknown query"}},
                status=400,
            )

        with pytest.raises(BackendError) as info:
            asyncio.run(_search(handler, {}))
        assert info.value.status == 400
        assert "unknown query" in str(info.value)

    def test_error_status_with_plain_body(self) -> None:
        async def handler(request: web.Request) -> web.Response:
            return web.Response(text="bad gateway", status=502)

        with pytest.raises(BackendError) as info:
            asyncio.run(_search(handler, {}))
        assert info.value.status == 502

    def test_undecodable_body(self) -> None:
        async def handler(request: web.Request) -> web.Response:
            return web.Response(text="<html>", status=200)

        with pytest.raises(BackendError):
            asyncio.run(_search(handler, {}))

    def test_non_utf8_body(self) -> None:
        async def handler(request: web.Request) -> web.Response:
            return web.Response(body=b'{"x":"\xff"}', status=200)

        with pytest.raises(BackendError):
            asyncio.run(_search(handler, {}))

    def test_timeout_is_transport_error(self) -> None:
        async def handler(request: web.Request) -> web.Response:
            await asyncio.sleep(0.5)
            return web.json_response({})

        with pytest.raises(TransportError):
            asyncio.run(_search(handler, {}, timeout_s=0.05))

    def test_unreachable_backend(self) -> None:
        async def scenario() -> None:
            async with ElasticsearchClient("http://127.0.0.1:1", timeout_s=2) as client:
                await client.execute({})

        with pytest.raises(TransportError):
            asyncio.run(scenario())

    def test_requires_context_manager(self) -> None:
        client = ElasticsearchClient("http://127.0.0.1:1")
        with pytest.raises(RuntimeError):
            asyncio.run(client.execute({}))


class TestBuildSslContext:
    """Tests for build_ssl_context()."""

    def _config(self, **kwargs: Any) -> ExporterConfig:
        return ExporterConfig(
            elasticsearch_url="https://es:9200", queries=(), **kwargs
        )

    def test_default_verification(self) -> None:
        assert build_ssl_context(self._config()) is None

    def test_insecure_skip_verify(self) -> None:
        assert build_ssl_context(self._config(insecure_skip_verify=True)) is False

    def test_valid_ca_bundle_builds_context(self) -> None:
        ca = Path(__file__).resolve().parents[1] / "fixtures" / "ca.pem"
        context = build_ssl_context(
            self._config(
                elasticsearch_ca_cert_path=str(ca), insecure_skip_verify=True
            )
        )
        assert isinstance(context, ssl.SSLContext)
        assert context.verify_mode == ssl.CERT_REQUIRED
        assert context.cert_store_stats()["x509_ca"] == 1

    def test_unreadable_ca_is_config_error(self, tmp_path) -> None:
        config = self._config(elasticsearch_ca_cert_path=str(tmp_path / "ca.pem"))
        with pytest.raises(ConfigError):
            build_ssl_context(config)

    def test_invalid_ca_is_config_error(self, tmp_path) -> None:
        ca = tmp_path / "ca.pem"
        ca.write_text("not a certificate", encoding="utf-8")
        config = self._config(elasticsearch_ca_cert_path=str(ca))
        with pytest.raises(ConfigError):
            build_ssl_context(config)
