"""Agent records and the frames exchanged on a live agent socket."""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Agent(BaseModel):
    name: str
    agent_id: str
    greeting: Optional[str] = None
    prompt: Optional[str] = None


class AgentList(BaseModel):
    agents: list[Agent] = Field(default_factory=list)


class AgentDetail(BaseModel):
    agent: Agent


class AgentCreated(BaseModel):
    message: str
    agent_id: str


class AgentDeleted(BaseModel):
    message: str
    agent_id: str


class AgentConfig(BaseModel):
    """Query parameters identifying the agent a live session talks to."""

    model_config = ConfigDict(extra="allow")

    agent_id: str
    incoming_mode: str = Field(
        default="bytes",
        description="How microphone audio is sent to the agent.",
    )
    return_sampling_rate: Optional[int] = None
    incoming_encoding: Optional[str] = None
    return_encoding: Optional[str] = None

    def to_query(self) -> dict[str, object]:
        return self.model_dump(exclude_none=True)


class UserTranscript(BaseModel):
    type: Literal["user_transcript"]
    text: str


class LlmResponse(BaseModel):
    type: Literal["llm_response"]
    text: str


class AudioResponse(BaseModel):
    type: Literal["audio_response"]
    audio: str = Field(description="Base64 encoded PCM audio.")


class StopAudioResponse(BaseModel):
    type: Literal["stop_audio_response"]


AgentMessage = Annotated[
    Union[UserTranscript, LlmResponse, AudioResponse, StopAudioResponse],
    Field(discriminator="type"),
]


class AgentFrame(BaseModel):
    """One JSON frame pushed by the agent socket."""

    data: AgentMessage


__all__ = [
    "Agent",
    "AgentConfig",
    "AgentCreated",
    "AgentDeleted",
    "AgentDetail",
    "AgentFrame",
    "AgentList",
    "AgentMessage",
    "AudioResponse",
    "LlmResponse",
    "StopAudioResponse",
    "UserTranscript",
]
