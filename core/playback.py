# core/playback.py
from __future__ import annotations

from typing import Callable, List, Optional, Protocol

from tools.logger import get_logger

logger = get_logger("playback")


class PlaybackHandle(Protocol):
    def stop(self) -> None:
        ...


class AudioDevice(Protocol):
    @property
    def suspended(self) -> bool:
        ...

    async def resume(self) -> None:
        ...

    def start(self, buffer: bytes, on_ended: Callable[[], None]) -> PlaybackHandle:
        ...

    def close(self) -> None:
        ...


class PlaybackEngine:
    """
    Single-flight narration output: at most one handle is sounding, because
    play() always stops the previous one before starting.
    """

    def __init__(self, device: AudioDevice) -> None:
        self.device = device
        self._handle: Optional[PlaybackHandle] = None
        # identifies the current playback so a late end-callback from an
        # older one cannot clear the flag
        self._token: Optional[object] = None
        self._playing = False
        self._listeners: List[Callable[[bool], None]] = []

    @property
    def playing(self) -> bool:
        return self._playing

    def on_change(self, cb: Callable[[bool], None]) -> None:
        self._listeners.append(cb)

    def _set_playing(self, value: bool) -> None:
        if value == self._playing:
            return
        self._playing = value
        for cb in list(self._listeners):
            cb(value)

    async def play(self, buffer: bytes) -> bool:
        """Returns whether playback started."""
        if self.device.suspended:
            await self.device.resume()

        self.stop()

        token = object()
        self._token = token

        def _ended() -> None:
            if self._token is token:
                self._token = None
                self._handle = None
                self._set_playing(False)

        self._set_playing(True)
        try:
            handle = self.device.start(buffer, _ended)
        except ValueError as e:
            logger.warning(f"narration not playable: {e}")
            self._token = None
            self._set_playing(False)
            return False
        except Exception:
            self._token = None
            self._set_playing(False)
            raise

        if self._token is not token:
            # ended synchronously inside start()
            return False
        self._handle = handle
        return True

    def stop(self) -> None:
        handle = self._handle
        self._handle = None
        self._token = None
        if handle is not None:
            handle.stop()
        self._set_playing(False)
