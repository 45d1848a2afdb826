# core/library.py
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional, Protocol

from pydantic import TypeAdapter, ValidationError

from core.errors import PersistenceFailure
from core.schemas import Story
from tools.logger import get_logger

logger = get_logger("library")

_STORIES = TypeAdapter(List[Story])


class StoryLibrary(Protocol):
    def load(self) -> List[Story]:
        ...

    def save(self, stories: List[Story]) -> None:
        ...

    def find(self, story_id: str) -> Optional[Story]:
        ...


def dump_stories(stories: List[Story]) -> str:
    payload = _STORIES.dump_python(stories, mode="json")
    return json.dumps(payload, ensure_ascii=False, indent=2)


class JsonFileLibrary:
    """
    Most-recent-first list of finished stories in a single JSON file.

    load() is best-effort: a missing, unreadable or corrupt file is an empty
    library. save() replaces the whole file atomically.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> List[Story]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"library unreadable at {self.path}: {e}")
            return []
        if not raw:
            return []
        try:
            return _STORIES.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"library corrupt at {self.path}, starting empty ({e.error_count()} errors)")
            return []

    def save(self, stories: List[Story]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(dump_stories(stories), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise PersistenceFailure(f"Could not save library to {self.path}: {e}") from e

    def find(self, story_id: str) -> Optional[Story]:
        for story in self.load():
            if story.id == story_id:
                return story
        return None
