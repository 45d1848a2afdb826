# core/feed.py
from __future__ import annotations

from typing import Callable, List, Optional

from core.schemas import Story

SnapshotCB = Callable[[Story, int], None]


class StoryFeed:
    """
    Holds the authoritative Story snapshot for the presentation layer.

    Every publish bumps a version counter; subscribers get (snapshot, version)
    and re-render from it. Snapshots are immutable-by-convention (pages are
    replaced, never edited in place), so handing out the reference is safe.
    """

    def __init__(self) -> None:
        self._latest: Optional[Story] = None
        self._version = 0
        self._subscribers: List[SnapshotCB] = []

    @property
    def latest(self) -> Optional[Story]:
        return self._latest

    @property
    def version(self) -> int:
        return self._version

    def subscribe(self, cb: SnapshotCB) -> Callable[[], None]:
        self._subscribers.append(cb)

        def _unsubscribe() -> None:
            if cb in self._subscribers:
                self._subscribers.remove(cb)

        return _unsubscribe

    def publish(self, story: Story) -> int:
        self._latest = story
        self._version += 1
        for cb in list(self._subscribers):
            cb(story, self._version)
        return self._version
