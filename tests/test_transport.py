"""Tests for URL building, HTTP requests and the SSE parser."""

from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from neuphonic_sdk.config import build_settings
from neuphonic_sdk.errors import TransportError
from neuphonic_sdk.transport import Transport


def make_transport(
    handler: Callable[[httpx.Request], httpx.Response] | None = None, **settings
) -> Transport:
    settings.setdefault("base_url", "api.test")
    client = None
    if handler is not None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return Transport(build_settings(**settings), client=client)


class TestUrls:
    def test_url_encodes_query_and_drops_none(self) -> None:
        transport = make_transport()

        url = transport.url("wss", "speak/en", {"voice_id": "a b/c", "speed": None, "x": 1})

        assert url == "wss://api.test/speak/en?voice_id=a%20b%2Fc&x=1"

    def test_base_http_downgrades_secure_protocols(self) -> None:
        transport = make_transport(base_http=True)

        assert transport.url("https", "/voices") == "http://api.test/voices"
        assert transport.url("wss", "speak/en") == "ws://api.test/speak/en"

    def test_auth_query_prefers_api_key(self) -> None:
        assert make_transport(api_key="k", jwt_token="t").auth_query() == {"api_key": "k"}
        assert make_transport(jwt_token="t").auth_query() == {"jwt_token": "t"}
        assert make_transport().auth_query() == {}

    def test_headers_include_api_key(self) -> None:
        headers = make_transport(api_key="k").headers

        assert headers == {"Content-Type": "application/json", "x-api-key": "k"}


class TestRequest:
    @pytest.mark.asyncio
    async def test_request_sends_json_and_returns_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"ok": True}})

        transport = make_transport(handler, api_key="k")
        result = await transport.request("agents", method="POST", body={"name": "bot"})

        assert result == {"data": {"ok": True}}
        assert seen[0].method == "POST"
        assert str(seen[0].url) == "https://api.test/agents"
        assert seen[0].headers["x-api-key"] == "k"
        assert json.loads(seen[0].content) == {"name": "bot"}

    @pytest.mark.asyncio
    async def test_error_status_returns_envelope_without_raising(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"detail": "missing"})

        transport = make_transport(handler)

        assert await transport.request("voices/x") == {"detail": "missing"}

    @pytest.mark.asyncio
    async def test_non_json_body_returns_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>bad gateway</html>")

        assert await make_transport(handler).request("voices") is None

    @pytest.mark.asyncio
    async def test_network_failure_raises_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(TransportError) as excinfo:
            await make_transport(handler).request("voices")

        assert excinfo.value.status_code == 502

    @pytest.mark.asyncio
    async def test_jwt_only_config_adds_token_to_query(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        await make_transport(handler, jwt_token="tok").request("voices")

        assert seen[0].url.params["jwt_token"] == "tok"
        assert "x-api-key" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_upload_sends_multipart_without_json_content_type(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {}})

        transport = make_transport(handler, api_key="k")
        await transport.upload(
            "voices",
            {"voice_name": "Ann"},
            {"voice_file": ("ann.wav", b"RIFF", "audio/wav")},
        )

        request = seen[0]
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert request.url.params["voice_name"] == "Ann"
        assert b'filename="ann.wav"' in request.content
        assert b"Content-Type: audio/wav" in request.content


class TestStreamEvents:
    @pytest.mark.asyncio
    async def test_parses_events_and_comments(self) -> None:
        body = (
            ": keep-alive\n"
            "data: first\n"
            "\n"
            "event: custom\n"
            "id: 7\n"
            "data: part one\n"
            "data: part two\n"
            "\n"
            "data: trailing"
        )

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["accept"] == "text/event-stream"
            return httpx.Response(200, text=body)

        transport = make_transport(handler)
        events = [event async for event in transport.stream_events("sse/speak/en", {"text": "hi"})]

        assert [(e.event, e.event_id, e.data) for e in events] == [
            ("message", None, "first"),
            ("custom", "7", "part one\npart two"),
            ("message", None, "trailing"),
        ]

    @pytest.mark.asyncio
    async def test_error_status_raises_with_detail(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"detail": "Invalid API key"})

        transport = make_transport(handler)

        with pytest.raises(TransportError) as excinfo:
            async for _ in transport.stream_events("sse/speak/en", {"text": "hi"}):
                pass

        assert excinfo.value.status_code == 401
        assert excinfo.value.detail == "Invalid API key"

    @pytest.mark.asyncio
    async def test_speech_and_error_events_keep_their_payloads(self) -> None:
        body = (
            'data: {"data": {"audio": "AAE=", "stop": false}}\n'
            ": ping\n"
            "\n"
            "event: error\n"
            'data:{"detail": "Voice not found"}\n'
            "\n"
        )
        transport = make_transport(lambda request: httpx.Response(200, text=body))

        events = [event async for event in transport.stream_events("sse/speak/en", {"text": "hi"})]

        assert [(e.event, e.data) for e in events] == [
            ("message", '{"data": {"audio": "AAE=", "stop": false}}'),
            ("error", '{"detail": "Voice not found"}'),
        ]

    @pytest.mark.asyncio
    async def test_error_body_without_detail_is_kept_whole(self) -> None:
        transport = make_transport(
            lambda request: httpx.Response(500, json={"message": "upstream down"})
        )

        with pytest.raises(TransportError) as excinfo:
            async for _ in transport.stream_events("sse/speak/en", {"text": "hi"}):
                pass

        assert excinfo.value.detail == {"message": "upstream down"}


class TestClientLifecycle:
    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        transport = Transport(build_settings(base_url="api.test"), client=client)

        await transport.aclose()

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_is_created_lazily_and_closed(self) -> None:
        transport = make_transport()

        client = await transport._get_http_client()  # type: ignore[attr-defined]
        assert await transport._get_http_client() is client  # type: ignore[attr-defined]
        await transport.aclose()

        assert client.is_closed
