# core/errors.py
from __future__ import annotations


class StoryError(RuntimeError):
    pass


# ----------------------------
# Generation stages (fatal to one creation attempt)
# ----------------------------
class GenerationFailure(StoryError):
    stage: str = "generation"


class PlanningFailure(GenerationFailure):
    stage = "plan"


class WritingFailure(GenerationFailure):
    stage = "writer"


class GameFailure(GenerationFailure):
    stage = "game"


# ----------------------------
# Non-fatal / boundary failures
# ----------------------------
class MediaFailure(StoryError):
    """One page's image or narration could not be produced. Recovered locally."""

    def __init__(self, kind: str, page_number: int, message: str) -> None:
        super().__init__(f"{kind} failed for page {page_number}: {message}")


class ServiceFailure(StoryError):
    """Transport / availability failure from the generative service."""


class PersistenceFailure(StoryError):
    pass


class InvalidTransition(StoryError):
    pass
