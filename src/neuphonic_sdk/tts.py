"""Speech synthesis entry points: streaming websocket sessions and one-shot SSE."""

from __future__ import annotations

import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, Optional

from .connection import Connection
from .schemas.tts import TtsChunk, TtsConfig, TtsFrame
from .session import FlightPolicy, SpeechSession
from .transport import Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SseResult:
    """Concatenated output of one push-stream synthesis."""

    audio: bytes
    text: str
    sampling_rate: Optional[int] = None


class SseSpeaker:
    """Synthesize whole utterances over a server-sent event stream.

    Each ``send`` opens its own stream. The server ends it by closing the
    response (or with an ``error`` event); both count as the normal end.
    """

    def __init__(self, transport: Transport, config: TtsConfig):
        self._transport = transport
        self.config = config

    @property
    def path(self) -> str:
        return f"sse/speak/{self.config.language}"

    async def send(self, text: str) -> SseResult:
        body: dict[str, Any] = {**self.config.to_query(), "text": text}
        audio = bytearray()
        parts: list[str] = []
        sampling_rate: Optional[int] = None

        events = self._transport.stream_events(
            self.path, body, query=self._transport.auth_query()
        )
        async with aclosing(events):
            async for event in events:
                if event.event == "error":
                    logger.debug("SSE stream ended with error event: %s", event.data)
                    break
                if event.event != "message" or not event.data:
                    continue
                try:
                    frame = TtsFrame.model_validate_json(event.data)
                    chunk = TtsChunk.from_frame(frame.data)
                except ValueError as exc:
                    logger.warning("Ignoring malformed SSE event: %s", exc)
                    continue
                audio.extend(chunk.audio)
                parts.append(chunk.text)
                if chunk.sampling_rate is not None:
                    sampling_rate = chunk.sampling_rate
                if chunk.stop:
                    break

        logger.debug("SSE synthesis produced %d bytes", len(audio))
        return SseResult(audio=bytes(audio), text="".join(parts), sampling_rate=sampling_rate)


class Tts:
    def __init__(self, transport: Transport):
        self._transport = transport

    def speak_url(self, config: TtsConfig) -> str:
        query: dict[str, Any] = {**config.to_query(), **self._transport.auth_query()}
        return self._transport.url("wss", f"speak/{config.language}", query)

    async def websocket(
        self,
        config: Optional[TtsConfig] = None,
        *,
        policy: FlightPolicy = FlightPolicy.MULTI,
        **connect_options: Any,
    ) -> SpeechSession:
        """Open a streaming session; the first connection is made eagerly.

        Later connections reuse the same URL when the server drops an idle one.
        """

        url = self.speak_url(config or TtsConfig())

        async def connect() -> Connection:
            return await Connection.open(url, **connect_options)

        session = SpeechSession(connect, policy=policy)
        await session.connect()
        return session

    def sse(self, config: Optional[TtsConfig] = None) -> SseSpeaker:
        return SseSpeaker(self._transport, config or TtsConfig())


__all__ = ["SseResult", "SseSpeaker", "Tts"]
