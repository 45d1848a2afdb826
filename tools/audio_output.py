# tools/audio_output.py
from __future__ import annotations

import asyncio
import io
import wave
from dataclasses import dataclass
from typing import Any, Callable, Optional

from tools.logger import get_logger

logger = get_logger("audio")

# Gemini TTS returns headerless 16-bit little-endian mono PCM at 24 kHz.
TTS_SAMPLE_RATE = 24000
TTS_CHANNELS = 1
TTS_SAMPLE_WIDTH = 2


@dataclass(frozen=True)
class PcmAudio:
    frames: bytes
    rate: int = TTS_SAMPLE_RATE
    channels: int = TTS_CHANNELS
    sample_width: int = TTS_SAMPLE_WIDTH

    @property
    def frame_size(self) -> int:
        return self.channels * self.sample_width

    @property
    def duration_s(self) -> float:
        return len(self.frames) / float(self.frame_size * self.rate)


def decode_audio(buffer: bytes) -> PcmAudio:
    """
    WAV container -> its PCM frames and format; anything else is treated as
    raw TTS PCM. Raises ValueError for empty or unreadable audio.
    """
    if not buffer:
        raise ValueError("empty audio buffer")

    if buffer[:4] == b"RIFF" and buffer[8:12] == b"WAVE":
        try:
            with wave.open(io.BytesIO(buffer), "rb") as w:
                audio = PcmAudio(
                    frames=w.readframes(w.getnframes()),
                    rate=w.getframerate(),
                    channels=w.getnchannels(),
                    sample_width=w.getsampwidth(),
                )
        except (wave.Error, EOFError) as e:
            raise ValueError(f"unreadable WAV: {e}") from e
    else:
        usable = len(buffer) - (len(buffer) % (TTS_CHANNELS * TTS_SAMPLE_WIDTH))
        audio = PcmAudio(frames=bytes(buffer[:usable]))

    if not audio.frames:
        raise ValueError("audio buffer has no frames")
    return audio


class _StreamHandle:
    def __init__(self, stream: Any, on_ended: Callable[[], None]) -> None:
        self._stream = stream
        self._on_ended = on_ended
        self._closed = False

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._stream.stop_stream()
        self._stream.close()

    def finished(self) -> None:
        # natural end, runs on the event loop
        if self._closed:
            return
        self._close()
        self._on_ended()

    def stop(self) -> None:
        self._close()


class PyAudioDevice:
    """
    One PortAudio output owned by one reading session.

    The device starts suspended: PortAudio is only initialised by resume(),
    which the playback engine calls before the first narration.

    Playback runs in PortAudio's callback thread; the end-of-playback
    notification is handed back to the event loop that started it.
    """

    def __init__(self) -> None:
        try:
            import pyaudio  # type: ignore
        except ImportError as e:
            raise RuntimeError(
                "pyaudio not installed. Install with:\n"
                "  pip install 'livingbook[audio]'\n"
            ) from e

        self._pyaudio = pyaudio
        self._pa: Optional[Any] = None
        self._closed = False

    @property
    def suspended(self) -> bool:
        return self._pa is None

    async def resume(self) -> None:
        if self._closed or self._pa is not None:
            return
        # PortAudio probes every host API on init, keep that off the loop
        self._pa = await asyncio.to_thread(self._pyaudio.PyAudio)

    def start(self, buffer: bytes, on_ended: Callable[[], None]) -> _StreamHandle:
        if self._closed:
            raise RuntimeError("audio device already closed")
        if self._pa is None:
            raise RuntimeError("audio device suspended; call resume() first")

        audio = decode_audio(buffer)
        loop = asyncio.get_running_loop()
        pa = self._pyaudio
        frames = audio.frames
        pos = 0
        handle: Optional[_StreamHandle] = None

        def callback(in_data, frame_count, time_info, status):
            nonlocal pos
            n = frame_count * audio.frame_size
            chunk = frames[pos : pos + n]
            pos += n
            if pos < len(frames):
                return chunk, pa.paContinue
            if handle is not None:
                loop.call_soon_threadsafe(handle.finished)
            return chunk, pa.paComplete

        stream = self._pa.open(
            format=self._pa.get_format_from_width(audio.sample_width),
            channels=audio.channels,
            rate=audio.rate,
            output=True,
            start=False,
            stream_callback=callback,
        )
        handle = _StreamHandle(stream, on_ended)
        stream.start_stream()
        logger.debug(f"playing {audio.duration_s:.1f}s of audio")
        return handle

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._pa is not None:
            self._pa.terminate()


def to_wav(buffer: bytes) -> bytes:
    """Wraps narration in a WAV container for players that need one (st.audio)."""
    audio = decode_audio(buffer)
    out = io.BytesIO()
    with wave.open(out, "wb") as w:
        w.setnchannels(audio.channels)
        w.setsampwidth(audio.sample_width)
        w.setframerate(audio.rate)
        w.writeframes(audio.frames)
    return out.getvalue()
