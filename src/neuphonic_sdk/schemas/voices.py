"""Voice records returned by the voices endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class Voice(BaseModel):
    """A stock or cloned voice."""

    id: str
    name: str
    tags: Optional[list[str]] = None
    model_availability: Optional[list[str]] = None
    created_at: str
    updated_at: str
    type: str
    lang_code: str
    voice_id: str


class VoiceList(BaseModel):
    voices: list[Voice] = Field(default_factory=list)


class VoiceDetail(BaseModel):
    voice: Voice


class VoiceCloned(BaseModel):
    message: str
    voice_id: str


class VoiceMessage(BaseModel):
    """Acknowledgement returned by update and delete."""

    message: str


__all__ = ["Voice", "VoiceCloned", "VoiceDetail", "VoiceList", "VoiceMessage"]
