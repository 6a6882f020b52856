"""Voice listing, cloning, updating and deletion."""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from ..errors import AlreadyExistsError, ApiError, InvalidRequestError, NotFoundError
from ..schemas.common import Err, Ok, parse_envelope
from ..schemas.voices import Voice, VoiceCloned, VoiceDetail, VoiceList, VoiceMessage
from ..transport import Transport
from .files import FilePart, FileSource, voice_file

logger = logging.getLogger(__name__)

VOICE_NAME_EXISTS = r"This voice name already exists"
VOICE_ID_MISSING = r"This voice_id does not exist"
VOICE_ID_INVALID = r"Provided `voice_id` is invalid"
AUDIO_TOO_SHORT = r"Audio file must be longer than 6 seconds"
VOICE_UPDATED = r"Voice has successfully been updated"


def _join_tags(tags: Optional[Sequence[str]]) -> Optional[str]:
    return ", ".join(tags) if tags else None


class Voices:
    """Client for the ``voices`` endpoints.

    Voices can be addressed by ``id`` or by ``name``. The API has no name index,
    so every name-based call lists all voices first; cache ids if that matters.
    """

    def __init__(self, transport: Transport):
        self._transport = transport

    async def _resolve_id(self, id: Optional[str], name: Optional[str]) -> Optional[str]:
        if id is not None and name is None:
            return id
        if name is not None and id is None:
            return await self.get_id(name)
        raise ValueError("Provide exactly one of 'id' or 'name'")

    async def get_id(self, name: str) -> Optional[str]:
        """Return the id of the voice called ``name``, or None."""

        for voice in await self.list():
            if voice.name == name:
                return voice.id
        return None

    async def list(self) -> list[Voice]:
        response = await self._transport.request("voices")
        result = parse_envelope(response, VoiceList)
        if isinstance(result, Ok):
            return result.data.voices
        raise ApiError.unknown("list voice")

    async def get(self, *, id: Optional[str] = None, name: Optional[str] = None) -> Voice:
        voice_id = await self._resolve_id(id, name)
        if voice_id is None:
            raise NotFoundError("Can not find a voice by name", operation="get voice")

        response = await self._transport.request(f"voices/{voice_id}")
        result = parse_envelope(response, VoiceDetail)
        if isinstance(result, Ok):
            return result.data.voice
        raise ApiError.unknown("get voice")

    async def clone(
        self,
        voice_name: str,
        voice_file_source: FileSource,
        *,
        voice_tags: Optional[Sequence[str]] = None,
        voice_file_name: Optional[str] = None,
    ) -> str:
        """Create a voice from a sample recording and return its id."""

        files = {"voice_file": voice_file(voice_file_source, voice_file_name)}
        query = {"voice_name": voice_name, "voice_tags": _join_tags(voice_tags)}

        response = await self._transport.upload("voices", query, files)
        result = parse_envelope(response, VoiceCloned)
        if isinstance(result, Ok):
            logger.info("Cloned voice %r as %s", voice_name, result.data.voice_id)
            return result.data.voice_id
        if isinstance(result, Err) and result.matches(VOICE_NAME_EXISTS):
            raise AlreadyExistsError(result.message, operation="clone voice")
        raise ApiError.unknown("clone voice")

    async def update(
        self,
        *,
        id: Optional[str] = None,
        name: Optional[str] = None,
        new_voice_file: Optional[FileSource] = None,
        new_voice_name: Optional[str] = None,
        new_voice_tags: Optional[Sequence[str]] = None,
        new_voice_file_name: Optional[str] = None,
    ) -> bool:
        voice_id = await self._resolve_id(id, name)
        if voice_id is None:
            raise NotFoundError("Can not find a voice by name", operation="update voice")

        if new_voice_tags is not None and not new_voice_tags:
            raise ValueError("Nothing to update")
        if new_voice_file is None and new_voice_tags is None and new_voice_name is None:
            raise ValueError("Nothing to update")

        files: dict[str, FilePart] = {}
        if new_voice_file is not None:
            files["new_voice_file"] = voice_file(new_voice_file, new_voice_file_name)
        query = {
            "new_voice_name": new_voice_name,
            "new_voice_tags": _join_tags(new_voice_tags),
        }

        response = await self._transport.upload(
            f"voices/{voice_id}", query, files, method="PATCH"
        )
        result = parse_envelope(response, VoiceMessage)
        if isinstance(result, Ok):
            return re.search(VOICE_UPDATED, result.data.message) is not None
        if isinstance(result, Err):
            if result.matches(VOICE_ID_INVALID):
                raise NotFoundError("Voice does not exist", operation="update voice")
            if result.matches(AUDIO_TOO_SHORT):
                raise InvalidRequestError(result.message, operation="update voice")
        raise ApiError.unknown("update voice")

    async def delete(self, *, id: Optional[str] = None, name: Optional[str] = None) -> bool:
        """Delete a voice; returns False when it does not exist."""

        voice_id = await self._resolve_id(id, name)
        if voice_id is None:
            logger.info("No voice named %r to delete", name)
            return False

        response = await self._transport.request(f"voices/{voice_id}", method="DELETE")
        result = parse_envelope(response, VoiceMessage)
        if isinstance(result, Ok):
            return True
        if isinstance(result, Err) and result.matches(VOICE_ID_MISSING):
            return False
        raise ApiError.unknown("delete voice")


__all__ = ["Voices"]
