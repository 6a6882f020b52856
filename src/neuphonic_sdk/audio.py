"""WAV container and PCM sample helpers."""

from __future__ import annotations

import struct
from typing import Optional

import numpy as np

WAV_HEADER_SIZE = 44
UNKNOWN_SIZE = 0xFFFFFFFF
DEFAULT_SAMPLE_RATE = 22050

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def create_wav_header(
    sample_rate: int,
    data_size: Optional[int] = None,
    num_channels: int = 1,
    bits_per_sample: int = 16,
) -> bytes:
    """Build a 44-byte RIFF/PCM header.

    When ``data_size`` is unknown (a stream being written as it arrives) both
    size fields carry the 0xFFFFFFFF placeholder.
    """

    byte_rate = sample_rate * num_channels * bits_per_sample // 8
    block_align = num_channels * bits_per_sample // 8
    riff_size = UNKNOWN_SIZE if data_size is None else data_size + 36
    chunk_size = UNKNOWN_SIZE if data_size is None else data_size

    return _HEADER.pack(
        b"RIFF",
        riff_size,
        b"WAVE",
        b"fmt ",
        16,
        1,  # PCM
        num_channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        chunk_size,
    )


def to_wav(pcm: bytes, sample_rate: int = DEFAULT_SAMPLE_RATE) -> bytes:
    """Wrap mono 16-bit PCM in a WAV container."""

    return create_wav_header(sample_rate, len(pcm)) + bytes(pcm)


def pcm16_to_float32(pcm: bytes) -> np.ndarray:
    """Convert 16-bit little-endian PCM to float32 samples in [-1.0, 1.0)."""

    if len(pcm) % 2:
        # Truncated trailing sample
        pcm = pcm[:-1]
    samples = np.frombuffer(pcm, dtype="<i2")
    return samples.astype(np.float32) / 32768.0


__all__ = [
    "DEFAULT_SAMPLE_RATE",
    "WAV_HEADER_SIZE",
    "create_wav_header",
    "pcm16_to_float32",
    "to_wav",
]
