"""Turn paths or binary streams into multipart file parts."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO, Union

FileSource = Union[str, "os.PathLike[str]", BinaryIO, bytes]
FilePart = tuple[str, bytes, str]


def _read(source: FileSource, file_name: str | None, default_name: str) -> tuple[str, bytes]:
    if isinstance(source, bytes):
        return file_name or default_name, source
    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        return file_name or path.name, path.read_bytes()

    content = source.read()
    if isinstance(content, str):
        content = content.encode("utf-8")
    if not file_name:
        stream_name = getattr(source, "name", None)
        file_name = Path(stream_name).name if isinstance(stream_name, str) else default_name
    return file_name, content


def audio_mime_type(file_name: str) -> str:
    return "audio/wav" if file_name.lower().endswith(".wav") else "audio/mpeg"


def voice_file(source: FileSource, file_name: str | None = None) -> FilePart:
    """Return ``(file_name, bytes, mime)`` for an audio upload."""

    name, content = _read(source, file_name, "audio.wav")
    return name, content, audio_mime_type(name)


def transcript_file(source: FileSource, file_name: str | None = None) -> FilePart:
    name, content = _read(source, file_name, "transcript.txt")
    return name, content, "text/plain"


__all__ = ["FilePart", "FileSource", "audio_mime_type", "transcript_file", "voice_file"]
