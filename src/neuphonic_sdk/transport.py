"""HTTP transport and URL helpers shared by every API surface."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Iterable, Mapping, Optional
from urllib.parse import quote

import httpx

from .config import Settings
from .errors import TransportError

logger = logging.getLogger(__name__)

QueryParams = Mapping[str, Any]

_PLAIN_PROTOCOLS = {"https": "http", "wss": "ws"}
_BAD_GATEWAY = 502


@dataclass
class ServerSentEvent:
    """Represents a parsed Server-Sent Event."""

    data: str
    event: str = "message"
    event_id: Optional[str] = None

    def json(self) -> Any:
        return json.loads(self.data)


class Transport:
    """Issue HTTP requests/uploads and build protocol URLs for the API."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client
        self._owns_client = client is None
        self._client_lock = asyncio.Lock()

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client

        async with self._client_lock:
            if self._client is None:
                timeout = httpx.Timeout(self.settings.request_timeout, connect=10.0)
                limits = httpx.Limits(max_connections=20, max_keepalive_connections=10)
                self._client = httpx.AsyncClient(timeout=timeout, limits=limits)
                logger.debug("Created httpx.AsyncClient for %s", self.settings.base_url)
        return self._client

    async def aclose(self) -> None:
        if not self._owns_client:
            return
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        headers.update(self._auth_headers())
        return headers

    def _auth_headers(self) -> dict[str, str]:
        api_key = self.settings.api_key_value
        return {"x-api-key": api_key} if api_key else {}

    def auth_query(self) -> dict[str, str]:
        """Credentials in query form, as required by sockets and push streams."""

        api_key = self.settings.api_key_value
        if api_key:
            return {"api_key": api_key}
        jwt_token = self.settings.jwt_token_value
        if jwt_token:
            return {"jwt_token": jwt_token}
        return {}

    @staticmethod
    def params_to_qs(params: QueryParams | None) -> str:
        if not params:
            return ""
        parts = [
            f"{key}={quote(str(value), safe='')}"
            for key, value in params.items()
            if value is not None
        ]
        return f"?{'&'.join(parts)}" if parts else ""

    def url(self, protocol: str, path: str, query: QueryParams | None = None) -> str:
        if self.settings.base_http:
            protocol = _PLAIN_PROTOCOLS.get(protocol, protocol)
        path = path.lstrip("/")
        return f"{protocol}://{self.settings.base_url}/{path}{self.params_to_qs(query)}"

    def _rest_query(self, query: QueryParams | None) -> dict[str, Any]:
        merged = dict(query or {})
        # Browser clients only hold a JWT, which travels in the query string
        if not self.settings.api_key_value and self.settings.jwt_token_value:
            merged.setdefault("jwt_token", self.settings.jwt_token_value)
        return merged

    async def request(
        self,
        path: str,
        *,
        method: str = "GET",
        query: QueryParams | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send a JSON request and return the decoded body (``None`` if not JSON).

        Error statuses are not raised: the API reports failures through a
        ``{"detail": ...}`` envelope that callers validate themselves.
        """

        url = self.url("https", path, self._rest_query(query))
        client = await self._get_http_client()
        logger.debug("%s %s", method, path)
        try:
            response = await client.request(
                method,
                url,
                headers=self.headers,
                json=dict(body) if body is not None else None,
            )
        except httpx.HTTPError as exc:
            raise TransportError(_BAD_GATEWAY, str(exc)) from exc

        return self._decode_json(response)

    async def upload(
        self,
        path: str,
        query: QueryParams | None,
        files: Mapping[str, tuple[str, bytes, str]],
        data: Mapping[str, Any] | None = None,
        *,
        method: str = "POST",
    ) -> Any:
        """Send a multipart request; the client sets the multipart content type."""

        url = self.url("https", path, self._rest_query(query))
        client = await self._get_http_client()
        logger.debug("%s %s (multipart, %d file(s))", method, path, len(files))
        try:
            response = await client.request(
                method,
                url,
                headers=self._auth_headers(),
                files=dict(files) if files else None,
                data=dict(data) if data else None,
            )
        except httpx.HTTPError as exc:
            raise TransportError(_BAD_GATEWAY, str(exc)) from exc

        return self._decode_json(response)

    async def stream_events(
        self,
        path: str,
        body: Mapping[str, Any],
        *,
        query: QueryParams | None = None,
    ) -> AsyncGenerator[ServerSentEvent, None]:
        """POST ``body`` and yield the server-sent events of the response."""

        url = self.url("https", path, query)
        headers = dict(self.headers)
        headers["Accept"] = "text/event-stream"

        client = await self._get_http_client()
        try:
            async with client.stream(
                "POST", url, headers=headers, json=dict(body)
            ) as response:
                if response.status_code >= 400:
                    raw = await response.aread()
                    raise TransportError(
                        response.status_code, self._extract_error_detail(raw)
                    )
                async for event in self._iter_events(response):
                    yield event
        except httpx.HTTPError as exc:
            raise TransportError(_BAD_GATEWAY, str(exc)) from exc

    @staticmethod
    def _decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            logger.debug(
                "Non-JSON response (status %s) from %s",
                response.status_code,
                response.request.url.path,
            )
            return None

    async def _iter_events(
        self, response: httpx.Response
    ) -> AsyncGenerator[ServerSentEvent, None]:
        """Split the ``/sse/speak`` body into events.

        The server separates events with a blank line and sends ``:`` keep-alive
        comments between them; a final event without a trailing blank line is
        still emitted.
        """

        pending: list[str] = []
        async for line in response.aiter_lines():
            if line.startswith(":"):
                continue
            if line:
                pending.append(line)
            elif pending:
                yield self._parse_event(pending)
                pending = []
        if pending:
            yield self._parse_event(pending)

    @staticmethod
    def _parse_event(lines: Iterable[str]) -> ServerSentEvent:
        """Build one event from its ``field: value`` lines.

        Synthesis chunks arrive as unnamed events whose ``data`` is a
        ``{"data": {"audio": ..., "stop": ...}}`` document, so a missing
        ``event`` field means ``message``. The server names failures ``error``.
        Multi-line ``data`` is rejoined with newlines.
        """

        fields: dict[str, Optional[str]] = {"event": None, "id": None}
        data: list[str] = []
        for line in lines:
            name, _, value = line.partition(":")
            value = value[1:] if value.startswith(" ") else value
            if name == "data":
                data.append(value)
            elif name in fields:
                fields[name] = value or None
        return ServerSentEvent(
            data="\n".join(data), event=fields["event"] or "message", event_id=fields["id"]
        )

    @staticmethod
    def _extract_error_detail(raw: bytes) -> Any:
        """Pull ``detail`` out of an error body such as ``{"detail": "Invalid API key"}``.

        Bodies that are not a JSON object are returned as decoded text or as
        the parsed value.
        """

        if not raw:
            return "Server returned an empty error response."
        text = raw.decode("utf-8", errors="ignore")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            return text
        if isinstance(payload, dict) and payload.get("detail"):
            return payload["detail"]
        return payload


__all__ = ["ServerSentEvent", "Transport"]
