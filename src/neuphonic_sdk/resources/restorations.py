"""Audio restoration jobs."""

from __future__ import annotations

import logging
from typing import Optional

from ..errors import ApiError
from ..schemas.common import Ok, parse_envelope
from ..schemas.restorations import (
    RestoreJob,
    RestoreJobCreated,
    RestoreJobDeleted,
    RestoreJobList,
    RestoreJobStatus,
)
from ..transport import Transport
from .files import FilePart, FileSource, transcript_file, voice_file

logger = logging.getLogger(__name__)

DEFAULT_RESTORE_LANG_CODE = "eng-us"
# Statuses reported for a job that was cancelled or removed successfully
_DELETED_STATUSES = frozenset({"Finished", "Not Finished"})


class Restorations:
    """Submit, inspect and delete audio restoration jobs."""

    def __init__(self, transport: Transport):
        self._transport = transport

    async def restore(
        self,
        audio: FileSource,
        *,
        transcript: Optional[FileSource] = None,
        lang_code: str = DEFAULT_RESTORE_LANG_CODE,
        is_transcript_file: bool = False,
        audio_file_name: Optional[str] = None,
        transcript_file_name: Optional[str] = None,
    ) -> str:
        """Submit a restoration job and return its id.

        ``transcript`` is sent as a query parameter, unless ``is_transcript_file``
        is set, in which case it is read and uploaded as a text file.
        """

        query: dict[str, str] = {"lang_code": lang_code}
        files: dict[str, FilePart] = {"audio_file": voice_file(audio, audio_file_name)}

        if is_transcript_file and transcript is not None:
            files["transcript"] = transcript_file(transcript, transcript_file_name)
        elif isinstance(transcript, str):
            query["transcript"] = transcript
        elif transcript is None:
            query["transcript"] = ""
        else:
            raise ValueError("A non-text transcript requires is_transcript_file=True")

        response = await self._transport.upload("restore", query, files)
        result = parse_envelope(response, RestoreJobCreated)
        if isinstance(result, Ok):
            logger.info("Submitted restoration job %s", result.data.job_id)
            return result.data.job_id
        raise ApiError.unknown("restore audio")

    async def get(self, job_id: str) -> RestoreJobStatus:
        response = await self._transport.request(f"restore/{job_id}")
        result = parse_envelope(response, RestoreJobStatus)
        if isinstance(result, Ok):
            return result.data
        raise ApiError.unknown("audio restorations get")

    async def list(self) -> list[RestoreJob]:
        response = await self._transport.request("restore")
        result = parse_envelope(response, RestoreJobList)
        if isinstance(result, Ok):
            return result.data.jobs
        raise ApiError.unknown("audio restorations list")

    async def delete(self, job_id: str) -> bool:
        response = await self._transport.request(f"restore/{job_id}", method="DELETE")
        result = parse_envelope(response, RestoreJobDeleted)
        if isinstance(result, Ok):
            return result.data.status in _DELETED_STATUSES
        raise ApiError.unknown("audio restorations delete")


__all__ = ["DEFAULT_RESTORE_LANG_CODE", "Restorations"]
