"""Ordered playback of synthesized chunks with interrupt support."""

from __future__ import annotations

import logging
from typing import AsyncIterable, Callable, Optional, Protocol, Union

import numpy as np

from .audio import DEFAULT_SAMPLE_RATE, pcm16_to_float32
from .schemas.tts import TtsChunk

logger = logging.getLogger(__name__)

Decoder = Callable[[bytes], np.ndarray]
PlayingObserver = Callable[[bool], None]
Playable = Union[TtsChunk, bytes]


class AudioSink(Protocol):
    """Output device or buffer that accepts decoded frames."""

    def write(self, samples: np.ndarray, sampling_rate: int) -> None: ...

    def clear(self) -> None: ...


class PlaybackScheduler:
    """Forward chunks to a sink strictly in arrival order.

    ``interrupt()`` halts any ``consume`` loop in progress and clears the sink;
    the scheduler itself never touches the session that produced the chunks.

    ``playing`` and ``scheduled_duration`` describe scheduling, not device
    output: they cover the span from the first written chunk until the stream
    of chunks ends. Audio already handed to the sink may still be sounding
    after that; a sink that needs the device's idle moment reports it itself.
    """

    def __init__(
        self,
        sink: AudioSink,
        decoder: Decoder = pcm16_to_float32,
        *,
        sampling_rate: int = DEFAULT_SAMPLE_RATE,
    ):
        self._sink = sink
        self._decoder = decoder
        self.sampling_rate = sampling_rate
        self.scheduled_duration = 0.0
        self._playing = False
        self._generation = 0
        self._on_playing: Optional[PlayingObserver] = None

    @property
    def playing(self) -> bool:
        return self._playing

    def on_playing(self, observer: PlayingObserver) -> None:
        self._on_playing = observer

    def _set_playing(self, playing: bool) -> None:
        if playing == self._playing:
            return
        self._playing = playing
        if self._on_playing is not None:
            self._on_playing(playing)

    def play(self, chunk: Playable) -> float:
        """Schedule one chunk and return its duration in seconds."""

        if isinstance(chunk, TtsChunk):
            audio = chunk.audio
            rate = chunk.sampling_rate or self.sampling_rate
        else:
            audio, rate = chunk, self.sampling_rate
        if not audio:
            return 0.0

        samples = self._decoder(audio)
        if samples.size == 0:
            return 0.0
        self._set_playing(True)
        self._sink.write(samples, rate)
        duration = samples.size / rate
        self.scheduled_duration += duration
        return duration

    async def consume(self, chunks: AsyncIterable[Playable]) -> bool:
        """Write every chunk of ``chunks`` to the sink, then call `finish`.

        Returns False if interrupted midway. Written audio is left in the sink
        to drain.
        """

        generation = self._generation
        async for chunk in chunks:
            if generation != self._generation:
                logger.debug("Playback interrupted; dropping remaining chunks")
                return False
            self.play(chunk)
        if generation != self._generation:
            return False
        self.finish()
        return True

    def finish(self) -> None:
        """Mark that scheduling has ended; the sink is not cleared."""

        self.scheduled_duration = 0.0
        self._set_playing(False)

    def interrupt(self) -> None:
        self._generation += 1
        self._sink.clear()
        self.finish()


__all__ = ["AudioSink", "PlaybackScheduler"]
