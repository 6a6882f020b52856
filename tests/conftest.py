from __future__ import annotations

import asyncio
import base64
import json
import pathlib
import sys
from typing import Any, Callable, Optional

import httpx
import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

_ENV_VARS = (
    "NEUPHONIC_BASE_URL",
    "BASE_URL",
    "NEUPHONIC_API_KEY",
    "API_KEY",
    "NEUPHONIC_JWT_TOKEN",
    "JWT_TOKEN",
    "NEUPHONIC_BASE_HTTP",
    "BASE_HTTP",
    "NEUPHONIC_TIMEOUT",
)

_CLOSED = object()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's credentials out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class FakeWebSocket:
    """In-memory stand-in for a websockets client connection.

    Frames queued with ``push`` are yielded by async iteration; ``drop``
    ends the iteration like a clean remote close and ``fail`` raises from it.
    """

    def __init__(self, responder: Optional[Callable[["FakeWebSocket", Any], None]] = None):
        self.sent: list[Any] = []
        self.closed = False
        self.close_calls = 0
        self.close_error: Optional[BaseException] = None
        self.send_error: Optional[BaseException] = None
        self._responder = responder
        self._incoming: asyncio.Queue[Any] = asyncio.Queue()

    def push(self, frame: Any) -> None:
        self._incoming.put_nowait(frame)

    def drop(self) -> None:
        self._incoming.put_nowait(_CLOSED)

    def fail(self, exc: BaseException) -> None:
        self._incoming.put_nowait(exc)

    async def send(self, frame: Any) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(frame)
        if self._responder is not None:
            self._responder(self, frame)

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True
        self._incoming.put_nowait(_CLOSED)
        if self.close_error is not None:
            raise self.close_error

    def __aiter__(self) -> "FakeWebSocket":
        return self

    async def __anext__(self) -> Any:
        item = await self._incoming.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item


def speech_frame(
    audio: bytes = b"",
    text: str = "",
    *,
    stop: bool = False,
    sampling_rate: int = 22050,
) -> str:
    return json.dumps(
        {
            "data": {
                "audio": base64.b64encode(audio).decode("ascii"),
                "text": text,
                "sampling_rate": sampling_rate,
                "stop": stop,
            }
        }
    )


@pytest.fixture
def fake_websocket_cls() -> type[FakeWebSocket]:
    return FakeWebSocket


@pytest.fixture
def make_frame() -> Callable[..., str]:
    return speech_frame


class FakeApi:
    """Route requests by ``(method, path)`` to canned JSON responses."""

    def __init__(self, routes: dict[tuple[str, str], tuple[int, Any]]):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, payload = self.routes.get(
            (request.method, request.url.path), (404, {"detail": "Not Found"})
        )
        return httpx.Response(status, json=payload)

    def transport(self, **settings: Any) -> "Transport":
        from neuphonic_sdk.config import build_settings
        from neuphonic_sdk.transport import Transport

        settings.setdefault("base_url", "api.test")
        settings.setdefault("api_key", "k")
        client = httpx.AsyncClient(transport=httpx.MockTransport(self))
        return Transport(build_settings(**settings), client=client)


@pytest.fixture
def fake_api() -> Callable[[dict[tuple[str, str], tuple[int, Any]]], FakeApi]:
    return FakeApi
