"""Speech synthesis configuration, wire frames and decoded chunks."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_LANG_CODE = "en"


class TtsConfig(BaseModel):
    """Synthesis options sent as query parameters or in the request body."""

    model_config = ConfigDict(extra="allow")

    voice_id: Optional[str] = None
    speed: Optional[float] = Field(default=None, gt=0)
    temperature: Optional[float] = Field(default=None, ge=0)
    lang_code: Optional[str] = None
    sampling_rate: Optional[int] = Field(default=None, ge=8000, le=48000)
    encoding: Optional[str] = None
    model: Optional[str] = None

    @property
    def language(self) -> str:
        return self.lang_code or DEFAULT_LANG_CODE

    def to_query(self) -> dict[str, object]:
        return self.model_dump(exclude_none=True)


class TtsFrameData(BaseModel):
    audio: str = Field(default="", description="Base64 encoded audio bytes.")
    text: str = ""
    sampling_rate: Optional[int] = None
    stop: bool = False

    @field_validator("audio", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class TtsFrame(BaseModel):
    """``{"data": {"audio", "text", "sampling_rate", "stop"}}`` as pushed by the server."""

    data: TtsFrameData


class JwtToken(BaseModel):
    jwt_token: str


@dataclass(frozen=True)
class TtsChunk:
    """One decoded unit of synthesized audio plus the text it was produced from."""

    audio: bytes
    text: str
    sampling_rate: Optional[int]
    stop: bool = False

    @classmethod
    def from_frame(cls, frame: TtsFrameData) -> "TtsChunk":
        try:
            audio = base64.b64decode(frame.audio, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"Invalid base64 audio payload: {exc}") from exc
        return cls(
            audio=audio,
            text=frame.text,
            sampling_rate=frame.sampling_rate,
            stop=frame.stop,
        )


__all__ = [
    "DEFAULT_LANG_CODE",
    "JwtToken",
    "TtsChunk",
    "TtsConfig",
    "TtsFrame",
    "TtsFrameData",
]
