"""Request/response correlation for streaming speech synthesis.

The speak socket carries no request identifiers: the server answers requests
in the order it received them and marks the last frame of each answer with
``stop``. A session therefore keeps a FIFO queue of pending requests and hands
every inbound frame to the oldest one. If the server ever finished concurrent
requests out of order, chunks would be attributed to the wrong request; that
ordering is a property of the remote protocol and is not corrected here.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional

from .connection import Connection, Frame
from .errors import SocketClosedError, StillReceivingError, WebSocketError, WebSocketRuntimeError
from .schemas.tts import TtsChunk, TtsFrame

logger = logging.getLogger(__name__)

STOP_SENTINEL = "<STOP>"

# Liveness timeout: 10 ms per input character on top of 3 s, capped at 15 min
TIMEOUT_PER_CHAR = 0.010
TIMEOUT_BASE = 3.0
TIMEOUT_MAX = 900.0

ConnectionFactory = Callable[[], Awaitable[Connection]]
ErrorObserver = Callable[[WebSocketError], None]


def request_timeout(text: str) -> float:
    """Seconds to wait for a request to finish before giving up on it."""

    return min(TIMEOUT_PER_CHAR * len(text) + TIMEOUT_BASE, TIMEOUT_MAX)


class FlightPolicy(str, Enum):
    SINGLE = "single"
    MULTI = "multi"


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    CLOSED = "closed"


class RequestState(str, Enum):
    AWAITING = "awaiting"
    FULFILLING = "fulfilling"
    COMPLETED = "completed"


class PendingRequest:
    """Placeholder for one send, resolved by its position in the FIFO queue.

    A request completes when its stop chunk arrives, or earlier when it times
    out, is stopped, or is abandoned. An early completion releases the consumer
    but the placeholder keeps its queue slot until the server's stop frame
    drains it, so later requests still line up with their frames. A request
    that times out before any frame arrived is treated as never answered and
    gives up its slot at once.
    """

    def __init__(self, text: str):
        loop = asyncio.get_running_loop()
        self.text = text
        self.state = RequestState.AWAITING
        self.drained = False
        self._chunks: asyncio.Queue[Optional[TtsChunk]] = asyncio.Queue()
        self._done: asyncio.Future[bool] = loop.create_future()
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def completed(self) -> bool:
        return self.state is RequestState.COMPLETED

    def arm_timer(self, delay: float, on_expire: Callable[["PendingRequest"], None]) -> None:
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, on_expire, self)

    def deliver(self, chunk: TtsChunk) -> None:
        if chunk.stop:
            self.drained = True
        if self.completed:
            return
        self.state = RequestState.FULFILLING
        self._chunks.put_nowait(chunk)
        if chunk.stop:
            self.finish(True)

    def finish(self, ok: bool, *, discard: bool = False) -> None:
        """Resolve the completion signal and end the consumer's sequence.

        ``discard`` drops chunks that arrived but were not consumed yet.
        """

        if self.completed:
            return
        self.state = RequestState.COMPLETED
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if discard:
            while not self._chunks.empty():
                self._chunks.get_nowait()
        self._chunks.put_nowait(None)
        if not self._done.done():
            self._done.set_result(ok)

    async def next_chunk(self) -> Optional[TtsChunk]:
        return await self._chunks.get()

    async def wait(self) -> bool:
        return await asyncio.shield(self._done)


class SpeechStream:
    """Lazy, finite sequence of chunks answering one ``send``.

    Iterate it with ``async for``; the sequence ends after the stop chunk, or
    silently when the request fails. ``wait()`` tells which of the two
    happened.
    """

    def __init__(self, request: PendingRequest):
        self._request = request
        self._exhausted = False

    @property
    def text(self) -> str:
        return self._request.text

    @property
    def state(self) -> RequestState:
        return self._request.state

    def __aiter__(self) -> AsyncIterator[TtsChunk]:
        return self

    async def __anext__(self) -> TtsChunk:
        if self._exhausted:
            raise StopAsyncIteration
        chunk = await self._request.next_chunk()
        if chunk is None:
            self._exhausted = True
            raise StopAsyncIteration
        return chunk

    async def wait(self) -> bool:
        """Resolve True once the stop chunk arrived, False if the request failed."""

        return await self._request.wait()

    async def collect(self) -> bytes:
        """Concatenate the audio of every remaining chunk."""

        audio = bytearray()
        async for chunk in self:
            audio.extend(chunk.audio)
        return bytes(audio)


class SpeechSession:
    """Streaming synthesis over a reconnecting websocket.

    ``send`` accepts text and returns a `SpeechStream`. Under the multi-flight
    policy several sends may be in flight and complete in issue order; the
    single-flight policy rejects a send while a response is still streaming.

    When the server drops an idle connection the next ``send`` opens a new one.
    A drop while requests are streaming abandons them and closes the session.
    """

    def __init__(
        self,
        connect: ConnectionFactory,
        *,
        policy: FlightPolicy = FlightPolicy.MULTI,
        timeout: Callable[[str], float] = request_timeout,
    ):
        self._connect = connect
        self._policy = policy
        self._timeout = timeout
        self._connection: Optional[Connection] = None
        self._pending: deque[PendingRequest] = deque()
        self._lock = asyncio.Lock()
        self._closed = False
        self._close_task: Optional[asyncio.Future[None]] = None
        self._on_error: Optional[ErrorObserver] = None
        self.last_error: Optional[WebSocketError] = None

    @property
    def policy(self) -> FlightPolicy:
        return self._policy

    @property
    def connection(self) -> Optional[Connection]:
        return self._connection

    @property
    def state(self) -> SessionState:
        if self._closed:
            return SessionState.CLOSED
        if self._in_flight():
            return SessionState.AWAITING_RESPONSE
        return SessionState.IDLE

    @property
    def pending_count(self) -> int:
        """Queue slots held, including released requests still draining."""

        return len(self._pending)

    def on_error(self, observer: ErrorObserver) -> None:
        self._on_error = observer

    def _in_flight(self) -> bool:
        return any(not request.completed for request in self._pending)

    def _check_sendable(self) -> None:
        if self._closed:
            raise SocketClosedError()
        if self._policy is FlightPolicy.SINGLE and self._in_flight():
            raise StillReceivingError()

    async def connect(self) -> None:
        """Open the connection now instead of on the first send."""

        async with self._lock:
            if self._closed:
                raise SocketClosedError()
            await self._ensure_connection()

    async def _ensure_connection(self) -> Connection:
        connection = self._connection
        if connection is not None and connection.is_open:
            return connection

        connection = await self._connect()
        if self._closed:
            # close() ran while the factory was connecting
            logger.debug("Session closed during connect; discarding new connection")
            await connection.close()
            raise SocketClosedError()
        connection.on_message(self._handle_frame)
        connection.on_error(self._handle_error)
        connection.on_close(lambda: self._handle_close(connection))
        self._connection = connection
        return connection

    async def send(self, text: str, *, autocomplete: bool = True) -> SpeechStream:
        """Queue ``text`` for synthesis and return the stream of its chunks.

        ``autocomplete`` appends the stop sentinel so the server flushes and
        terminates the response for this text.
        """

        self._check_sendable()
        async with self._lock:
            self._check_sendable()
            connection = await self._ensure_connection()

            # Enqueue before transmitting so a fast reply finds its placeholder
            request = PendingRequest(text)
            self._pending.append(request)
            request.arm_timer(self._timeout(text), self._expire)
            frame = f"{text} {STOP_SENTINEL}" if autocomplete else text
            logger.debug("Sending %d chars (%d in queue)", len(text), len(self._pending))
            await connection.send(frame)
        return SpeechStream(request)

    def stop(self) -> None:
        """Release every in-flight stream without closing the connection."""

        for request in self._pending:
            request.finish(False, discard=True)

    async def close(self) -> None:
        """Close the session for good; repeated calls share one outcome."""

        if self._close_task is None:
            self._closed = True
            self._close_task = asyncio.ensure_future(self._shutdown())
        await asyncio.shield(self._close_task)

    async def _shutdown(self) -> None:
        self._abandon_pending()
        connection, self._connection = self._connection, None
        if connection is not None:
            await connection.close()

    async def __aenter__(self) -> "SpeechSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _abandon_pending(self) -> int:
        abandoned = 0
        while self._pending:
            request = self._pending.popleft()
            if not request.completed:
                abandoned += 1
            request.finish(False, discard=True)
        return abandoned

    def _handle_frame(self, raw: Frame) -> None:
        try:
            frame = TtsFrame.model_validate_json(raw)
            chunk = TtsChunk.from_frame(frame.data)
        except ValueError as exc:
            logger.warning("Ignoring malformed speech frame: %s", exc)
            return

        if not self._pending:
            logger.debug("Dropping frame with no pending request")
            return

        self._pending[0].deliver(chunk)
        self._release_drained()

    def _release_drained(self) -> None:
        while self._pending and self._pending[0].drained:
            self._pending.popleft()

    def _handle_error(self, error: WebSocketRuntimeError) -> None:
        self._report(error)

    def _handle_close(self, connection: Connection) -> None:
        if connection is not self._connection:
            return
        self._connection = None

        if not self._in_flight():
            # Idle-timeout drop; leftover placeholders can no longer be answered
            self._pending.clear()
            logger.info("Connection dropped while idle; reconnecting on next send")
            return

        abandoned = self._abandon_pending()
        self._closed = True
        logger.warning("Connection closed with %d request(s) in flight", abandoned)
        self._report(WebSocketRuntimeError("Websocket closed while receiving messages"))

    def _expire(self, request: PendingRequest) -> None:
        if request.completed:
            return
        logger.warning(
            "Speech request timed out after %.1fs (%d chars)",
            self._timeout(request.text),
            len(request.text),
        )
        answered = request.state is RequestState.FULFILLING
        request.finish(False)
        if not answered:
            # No stop frame will come for it; keep it from absorbing later replies
            request.drained = True
            self._release_drained()

    def _report(self, error: WebSocketError) -> None:
        self.last_error = error
        if self._on_error is not None:
            self._on_error(error)


__all__ = [
    "FlightPolicy",
    "PendingRequest",
    "RequestState",
    "STOP_SENTINEL",
    "SessionState",
    "SpeechSession",
    "SpeechStream",
    "request_timeout",
]
