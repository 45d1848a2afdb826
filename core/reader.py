# core/reader.py
from __future__ import annotations

import asyncio
from typing import Callable, Literal, Optional, Set

from core.playback import AudioDevice, PlaybackEngine
from core.schemas import Page, Story
from tools.logger import get_logger

logger = get_logger("reader")

Direction = Literal["next", "previous", "game"]

# Devices currently owned by an open session.
_DEVICES_IN_USE: Set[int] = set()


class ReadingSession:
    """
    The reading view: pages 0..N-1 then the mini-game at index N.

    Every navigation stops narration first; if the page landed on has audio,
    it starts after a short delay so the sound does not glitch during the
    page-turn.
    """

    def __init__(
        self,
        story: Story,
        device_factory: Callable[[], AudioDevice],
        *,
        autoplay_delay: float = 0.5,
    ) -> None:
        self.story = story
        self.autoplay_delay = autoplay_delay
        self._device_factory = device_factory
        self._device: Optional[AudioDevice] = None
        self.engine: Optional[PlaybackEngine] = None
        self.page_index = 0
        self._autoplay: Optional[asyncio.Task] = None
        self.selected_answer: Optional[int] = None

    # ----------------------------
    # Lifetime
    # ----------------------------
    async def __aenter__(self) -> "ReadingSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.exit()

    @property
    def is_open(self) -> bool:
        return self._device is not None

    async def open(self) -> None:
        if self._device is not None:
            raise RuntimeError("reading session already open")
        device = self._device_factory()
        if id(device) in _DEVICES_IN_USE:
            raise RuntimeError("audio device is already owned by another reading session")
        _DEVICES_IN_USE.add(id(device))
        self._device = device
        self.engine = PlaybackEngine(device)
        self._schedule_autoplay()

    async def exit(self) -> None:
        if self._device is None:
            return
        self._halt()
        await self._drain_autoplay()
        device = self._device
        self._device = None
        _DEVICES_IN_USE.discard(id(device))
        device.close()

    # ----------------------------
    # View state
    # ----------------------------
    @property
    def total_pages(self) -> int:
        return len(self.story.pages)

    @property
    def is_game_page(self) -> bool:
        return self.page_index == self.total_pages

    @property
    def current_page(self) -> Optional[Page]:
        if self.is_game_page:
            return None
        return self.story.pages[self.page_index]

    @property
    def progress(self) -> float:
        return min(1.0, (self.page_index + 1) / max(1, self.total_pages))

    @property
    def playing(self) -> bool:
        return bool(self.engine and self.engine.playing)

    # ----------------------------
    # Navigation
    # ----------------------------
    def _halt(self) -> None:
        if self.engine is not None:
            self.engine.stop()
        if self._autoplay is not None and not self._autoplay.done():
            self._autoplay.cancel()

    async def _drain_autoplay(self) -> None:
        task, self._autoplay = self._autoplay, None
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _schedule_autoplay(self) -> None:
        page = self.current_page
        if self.engine is None or page is None or not page.audio_data:
            return
        self._autoplay = asyncio.create_task(self._play_after_delay(page.audio_data))

    async def _play_after_delay(self, buffer: bytes) -> None:
        await asyncio.sleep(self.autoplay_delay)
        if self.engine is not None:
            await self.engine.play(buffer)

    async def _go_to(self, index: int) -> None:
        self._halt()
        await self._drain_autoplay()
        self.page_index = max(0, min(index, self.total_pages))
        self._schedule_autoplay()

    async def next(self) -> None:
        await self._go_to(self.page_index + 1)

    async def previous(self) -> None:
        await self._go_to(self.page_index - 1)

    async def jump_to_game(self) -> None:
        await self._go_to(self.total_pages)

    async def navigate(self, direction: Direction) -> None:
        if direction == "next":
            await self.next()
        elif direction == "previous":
            await self.previous()
        elif direction == "game":
            await self.jump_to_game()
        else:
            raise ValueError(f"Unknown direction: {direction!r}")

    # ----------------------------
    # Explicit narration controls
    # ----------------------------
    async def play_page_audio(self) -> bool:
        page = self.current_page
        if self.engine is None or page is None or not page.audio_data:
            return False
        return await self.engine.play(page.audio_data)

    def stop_page_audio(self) -> None:
        if self.engine is not None:
            self.engine.stop()

    # ----------------------------
    # Live updates while media is still generating
    # ----------------------------
    async def update_story(self, story: Story) -> None:
        """
        Swap in a newer snapshot of the same story. If the page on screen was
        replaced (its media just arrived), it is treated like landing on it.
        """
        before = self.current_page
        self.story = story
        if self.current_page is not before:
            await self._go_to(self.page_index)

    # ----------------------------
    # Mini-game
    # ----------------------------
    def answer(self, index: int) -> bool:
        """First answer counts; later taps are ignored."""
        if not 0 <= index < len(self.story.game.options):
            raise IndexError(f"No option {index}")
        if self.selected_answer is None:
            self.selected_answer = index
        return self.story.game.is_correct(self.selected_answer)
