"""Live conversation with a hosted voice agent over a websocket."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from .connection import Connection, Frame
from .errors import AgentAlreadyRunningError, ProtocolError
from .playback import PlaybackScheduler
from .schemas.agents import AgentConfig, AgentFrame, AudioResponse, StopAudioResponse
from .schemas.tts import TtsConfig
from .transport import Transport

logger = logging.getLogger(__name__)

AgentObserver = Callable[[AgentFrame], None]


class AgentSession:
    """Connect a microphone stream to an agent and receive its replies.

    Frames pushed by the agent are parsed into `AgentFrame` objects and handed
    to the ``on_message`` observer. With a playback scheduler attached, audio
    replies are played as they arrive and ``stop_audio_response`` (the user
    barged in) interrupts playback.
    """

    def __init__(
        self,
        transport: Transport,
        agent_config: AgentConfig,
        tts_config: Optional[TtsConfig] = None,
        playback: Optional[PlaybackScheduler] = None,
        **connect_options: Any,
    ):
        self._transport = transport
        self.agent_config = agent_config
        self.tts_config = tts_config or TtsConfig()
        self.playback = playback
        self._connect_options = connect_options
        self._connection: Optional[Connection] = None
        self._on_message: Optional[AgentObserver] = None

    @property
    def running(self) -> bool:
        return self._connection is not None

    @property
    def url(self) -> str:
        query: dict[str, Any] = {
            **self.agent_config.to_query(),
            **self.tts_config.to_query(),
            **self._transport.auth_query(),
        }
        return self._transport.url("wss", "agents", query)

    def on_message(self, observer: AgentObserver) -> None:
        self._on_message = observer

    async def start(self) -> None:
        if self._connection is not None:
            raise AgentAlreadyRunningError()

        connection = await Connection.open(self.url, **self._connect_options)
        connection.on_message(self._handle_frame)
        connection.on_close(lambda: self._handle_close(connection))
        self._connection = connection
        logger.info("Agent %s started", self.agent_config.agent_id)

    async def send(self, data: Union[str, bytes]) -> None:
        """Forward text or a chunk of microphone audio to the agent."""

        if self._connection is None:
            raise ProtocolError("Agent is not running")
        await self._connection.send(data)

    async def stop(self) -> None:
        connection, self._connection = self._connection, None
        if connection is None:
            return
        if self.playback is not None:
            self.playback.interrupt()
        await connection.close()
        logger.info("Agent %s stopped", self.agent_config.agent_id)

    async def __aenter__(self) -> "AgentSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    def _handle_close(self, connection: Connection) -> None:
        if connection is self._connection:
            logger.info("Agent connection closed by remote")
            self._connection = None

    def _handle_frame(self, raw: Frame) -> None:
        try:
            frame = AgentFrame.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring malformed agent frame: %s", exc)
            return

        if self.playback is not None:
            self._route_audio(self.playback, frame)
        if self._on_message is not None:
            self._on_message(frame)

    def _route_audio(self, playback: PlaybackScheduler, frame: AgentFrame) -> None:
        message = frame.data
        if isinstance(message, StopAudioResponse):
            playback.interrupt()
        elif isinstance(message, AudioResponse):
            try:
                audio = base64.b64decode(message.audio)
            except (binascii.Error, ValueError) as exc:
                logger.warning("Ignoring undecodable agent audio: %s", exc)
                return
            playback.play(audio)


__all__ = ["AgentSession"]
