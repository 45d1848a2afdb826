"""
Shared fakes for the generation pipeline and audio output.
"""

import io
from typing import Any, Callable, Dict, List, Optional

import pytest
from PIL import Image

from core.errors import ServiceFailure
from core.schemas import PlanResponse, StoryParameters, StoryPlan

VISUAL = "A small silver robot with a red antenna and round blue eyes"


def png_bytes(color=(200, 120, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buf, format="PNG")
    return buf.getvalue()


def plan_payload() -> Dict[str, Any]:
    return {
        "title": "Robo and the Moon Map",
        "moral": "Friends help each other.",
        "visual_description": VISUAL,
        "plot_outline": [
            "Robo finds a map.",
            "The map leads to a dark crater.",
            "Robo counts the stars to find the way.",
            "Robo shares the treasure with friends.",
        ],
    }


def pages_payload(count: int = 4, anchored: bool = True) -> Dict[str, Any]:
    pages = []
    for n in range(1, count + 1):
        prompt = f"{VISUAL} on page {n}" if anchored else f"A robot scene number {n}"
        pages.append({"page_number": n, "text": f"Page {n} text.", "image_prompt": prompt})
    return {"pages": pages}


def game_payload(index: int = 1) -> Dict[str, Any]:
    return {
        "type": "math_challenge",
        "question": "Robo saw 2 stars and then 3 more. How many stars?",
        "options": ["4", "5", "6"],
        "correct_answer_index": index,
        "explanation": "2 + 3 = 5",
    }


class FakeService:
    """
    In-memory GenerativeService. Every request is appended to `calls`
    as (kind, detail) so tests can check ordering.
    """

    def __init__(
        self,
        *,
        plan: Optional[Dict[str, Any]] = None,
        pages: Optional[Dict[str, Any]] = None,
        game: Optional[Dict[str, Any]] = None,
        fail: Optional[Dict[str, Exception]] = None,
        image_fails_on: Optional[List[int]] = None,
        speech_fails_on: Optional[List[int]] = None,
    ) -> None:
        self.plan = plan if plan is not None else plan_payload()
        self.pages = pages if pages is not None else pages_payload()
        self.game = game if game is not None else game_payload()
        self.fail = fail or {}
        self.image_fails_on = image_fails_on or []
        self.speech_fails_on = speech_fails_on or []
        self.calls: List[tuple] = []
        self.prompts: Dict[str, str] = {}

    def _maybe_fail(self, kind: str) -> None:
        if kind in self.fail:
            raise self.fail[kind]

    async def request_structured_plan(self, *, system, prompt, schema):
        self.calls.append(("plan", schema.__name__))
        self.prompts["plan"] = system
        self._maybe_fail("plan")
        return self.plan

    async def request_structured_content(self, *, system, prompt, schema):
        kind = "pages" if schema.__name__ == "PagesResponse" else "game"
        self.calls.append((kind, schema.__name__))
        self.prompts[kind] = prompt
        self._maybe_fail(kind)
        return self.pages if kind == "pages" else self.game

    async def request_image(self, prompt: str) -> bytes:
        n = _page_of(prompt)
        self.calls.append(("image", n))
        if n in self.image_fails_on:
            raise ServiceFailure(f"image quota for page {n}")
        return png_bytes()

    async def request_speech(self, text: str, language: str) -> bytes:
        n = _page_of(text)
        self.calls.append(("speech", n))
        if n in self.speech_fails_on:
            raise ServiceFailure(f"tts down for page {n}")
        return b"\x01\x00" * 2400


def _page_of(text: str) -> int:
    # "Page 3 text." / "... on page 3"
    digits = [c for c in text if c.isdigit()]
    return int(digits[-1]) if digits else 0


class FakeHandle:
    def __init__(self, device: "FakeDevice", buffer: bytes, on_ended: Callable[[], None]) -> None:
        self.device = device
        self.buffer = buffer
        self.on_ended = on_ended
        self.stopped = 0

    def stop(self) -> None:
        self.stopped += 1
        self.device.events.append(("stop", self.buffer))

    def finish(self) -> None:
        self.on_ended()


class FakeDevice:
    def __init__(self, *, suspended: bool = False) -> None:
        self.suspended = suspended
        self.resumed = 0
        self.closed = 0
        self.handles: List[FakeHandle] = []
        self.events: List[tuple] = []

    async def resume(self) -> None:
        self.resumed += 1
        self.suspended = False

    def start(self, buffer: bytes, on_ended: Callable[[], None]) -> FakeHandle:
        if not buffer:
            raise ValueError("empty audio buffer")
        handle = FakeHandle(self, buffer, on_ended)
        self.handles.append(handle)
        self.events.append(("start", buffer))
        return handle

    def close(self) -> None:
        self.closed += 1

    @property
    def active(self) -> List[FakeHandle]:
        return [h for h in self.handles if not h.stopped]


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def params() -> StoryParameters:
    return StoryParameters(character="Robot", setting="Space", theme="Adventure", subject="math", language="en")


@pytest.fixture
def plan() -> StoryPlan:
    return StoryPlan.model_validate(PlanResponse.model_validate(plan_payload()).model_dump())
