"""Async client for the Neuphonic speech synthesis, voice and agent APIs."""

from .agent_session import AgentSession
from .audio import create_wav_header, pcm16_to_float32, to_wav
from .client import Client, create_client, create_public_client
from .config import Settings
from .errors import (
    AgentAlreadyRunningError,
    AlreadyExistsError,
    ApiError,
    CloseError,
    ConnectError,
    InvalidRequestError,
    NeuphonicError,
    NotFoundError,
    ProtocolError,
    SocketClosedError,
    StillReceivingError,
    TransportError,
    WebSocketError,
    WebSocketRuntimeError,
)
from .logging_config import configure_logging
from .playback import AudioSink, PlaybackScheduler
from .schemas import AgentConfig, TtsChunk, TtsConfig
from .session import FlightPolicy, SessionState, SpeechSession, SpeechStream, request_timeout
from .tts import SseResult, Tts

__all__ = [
    "AgentAlreadyRunningError",
    "AgentConfig",
    "AgentSession",
    "AlreadyExistsError",
    "ApiError",
    "AudioSink",
    "Client",
    "CloseError",
    "ConnectError",
    "FlightPolicy",
    "InvalidRequestError",
    "NeuphonicError",
    "NotFoundError",
    "PlaybackScheduler",
    "ProtocolError",
    "SessionState",
    "Settings",
    "SocketClosedError",
    "SpeechSession",
    "SpeechStream",
    "SseResult",
    "StillReceivingError",
    "TransportError",
    "Tts",
    "TtsChunk",
    "TtsConfig",
    "WebSocketError",
    "WebSocketRuntimeError",
    "configure_logging",
    "create_client",
    "create_public_client",
    "create_wav_header",
    "pcm16_to_float32",
    "request_timeout",
    "to_wav",
]
