"""A single duplex websocket connection with uniform error reporting."""

from __future__ import annotations

import asyncio
import logging
import re
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, WebSocketException

from .errors import CloseError, ConnectError, WebSocketRuntimeError

logger = logging.getLogger(__name__)

Frame = Union[str, bytes]
MessageHandler = Callable[[Frame], None]
ErrorHandler = Callable[[WebSocketRuntimeError], None]
CloseHandler = Callable[[], None]
Connector = Callable[..., Awaitable[Any]]

_SECRET_PARAMS = re.compile(r"((?:api_key|jwt_token)=)[^&]+")


def redact_url(url: str) -> str:
    """Hide credentials carried in the query string before logging a URL."""

    return _SECRET_PARAMS.sub(r"\1***", url)


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class Connection:
    """Wrap one physical websocket.

    A background task reads frames and hands them to the single registered
    message handler. The close handler fires exactly once, whether the socket
    was closed locally, by the server, or by a transport fault.
    """

    def __init__(self, websocket: Optional[Any], url: str):
        self.url = url
        self.state = ConnectionState.CONNECTING
        self._ws: Optional[Any] = None
        self._reader: Optional[asyncio.Task[None]] = None
        self._on_message: Optional[MessageHandler] = None
        self._on_error: Optional[ErrorHandler] = None
        self._on_close: Optional[CloseHandler] = None
        self._close_notified = False
        self._close_started = False
        self._closed: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        if websocket is not None:
            self._attach(websocket)

    @classmethod
    async def open(
        cls,
        url: str,
        *,
        connect: Optional[Connector] = None,
        **options: Any,
    ) -> "Connection":
        """Open ``url``; raise `ConnectError` if the handshake never completes."""

        connector = connect or websockets.connect
        connection = cls(None, url)
        logger.info("Connecting to %s", redact_url(url))
        try:
            websocket = await connector(url, **options)
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            connection.state = ConnectionState.CLOSED
            logger.warning("Websocket connect to %s failed: %s", redact_url(url), exc)
            raise ConnectError("Can't connect to websocket", exc) from exc
        connection._attach(websocket)
        return connection

    def _attach(self, websocket: Any) -> None:
        self._ws = websocket
        self.state = ConnectionState.OPEN
        self._reader = asyncio.create_task(self._read_loop())

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    def on_message(self, handler: MessageHandler) -> None:
        self._on_message = handler

    def on_error(self, handler: ErrorHandler) -> None:
        self._on_error = handler

    def on_close(self, handler: CloseHandler) -> None:
        self._on_close = handler
        if self.state is ConnectionState.CLOSED:
            self._notify_close()

    async def send(self, frame: Frame) -> None:
        """Transmit ``frame``; frames sent while closing are dropped."""

        if self.state is not ConnectionState.OPEN:
            logger.debug("Dropping frame on %s connection", self.state.value)
            return
        try:
            await self._ws.send(frame)
        except ConnectionClosed:
            # The reader task observes the close and reports it
            logger.debug("Send raced with connection close")
        except (OSError, WebSocketException) as exc:
            self._report_error(exc)

    async def close(self) -> None:
        """Close the socket. Concurrent and repeated calls share one outcome."""

        if not self._close_started:
            self._close_started = True
            if self._ws is None:
                self.state = ConnectionState.CLOSING
                self._finish(None)
            elif self.state is not ConnectionState.CLOSED:
                self.state = ConnectionState.CLOSING
                try:
                    await self._ws.close()
                except (OSError, WebSocketException) as exc:
                    if self.state is ConnectionState.CLOSED:
                        # The reader already settled the outcome
                        logger.warning(
                            "Websocket close on %s failed after the stream ended: %s",
                            redact_url(self.url),
                            exc,
                        )
                    else:
                        self._finish(exc)
                else:
                    self._finish(None)
        await asyncio.shield(self._closed)

    async def wait_closed(self) -> None:
        await asyncio.shield(self._closed)

    async def _read_loop(self) -> None:
        cause: Optional[BaseException] = None
        try:
            async for frame in self._ws:
                self._dispatch(frame)
        except ConnectionClosedError as exc:
            cause = exc
        except Exception as exc:  # any other fault ends the connection
            cause = exc
        finally:
            self._finish(cause)

    def _dispatch(self, frame: Frame) -> None:
        handler = self._on_message
        if handler is None:
            logger.debug("No message handler registered; dropping frame")
            return
        try:
            handler(frame)
        except Exception:
            logger.exception("Message handler failed for %s", redact_url(self.url))

    def _report_error(self, cause: BaseException) -> None:
        error = WebSocketRuntimeError("Websocket error", cause)
        logger.warning("Websocket error on %s: %s", redact_url(self.url), cause)
        if self._on_error is not None:
            self._on_error(error)

    def _finish(self, cause: Optional[BaseException]) -> None:
        if self.state is ConnectionState.CLOSED:
            return
        closing = self.state is ConnectionState.CLOSING
        self.state = ConnectionState.CLOSED

        if cause is not None and closing:
            logger.warning("Websocket close failed: %s", cause)
            self._closed.set_exception(CloseError("Can't close websocket", cause))
        else:
            if cause is not None:
                self._report_error(cause)
            logger.info(
                "Connection to %s closed%s",
                redact_url(self.url),
                "" if closing else " by remote",
            )
            self._closed.set_result(None)
        self._notify_close()

    def _notify_close(self) -> None:
        if self._close_notified or self._on_close is None:
            return
        self._close_notified = True
        try:
            self._on_close()
        except Exception:
            logger.exception("Close handler failed for %s", redact_url(self.url))


__all__ = ["Connection", "ConnectionState", "Frame", "redact_url"]
