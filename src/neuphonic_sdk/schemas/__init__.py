"""Pydantic models for API records, envelopes and socket frames."""

from .agents import Agent, AgentConfig, AgentFrame, AgentMessage
from .common import Err, Ok, parse_envelope
from .restorations import RestoreJob, RestoreJobStatus
from .tts import TtsChunk, TtsConfig, TtsFrame
from .voices import Voice

__all__ = [
    "Agent",
    "AgentConfig",
    "AgentFrame",
    "AgentMessage",
    "Err",
    "Ok",
    "RestoreJob",
    "RestoreJobStatus",
    "TtsChunk",
    "TtsConfig",
    "TtsFrame",
    "Voice",
    "parse_envelope",
]
