# core/director.py
from __future__ import annotations

import time
import uuid
from typing import Callable, List, Optional

from core.agents import game_designer, planner, writer
from core.errors import PersistenceFailure
from core.feed import StoryFeed
from core.library import StoryLibrary
from core.media import MediaFanout
from core.messages import message
from core.schemas import GenerationStatus, MiniGame, Page, PageDraft, Story, StoryParameters, StoryPlan
from core.status import GenerationState
from tools.genai_client import GenerativeService
from tools.logger import get_logger
from tools.progress import ProgressTracker

logger = get_logger("director")

StatusCB = Callable[[GenerationStatus, float, str], None]


def _now_id() -> str:
    return time.strftime("%Y%m%d_%H%M%S") + "_" + uuid.uuid4().hex[:6]


def _now_ms() -> int:
    return int(time.time() * 1000)


def assemble_story(
    params: StoryParameters,
    plan: StoryPlan,
    drafts: List[PageDraft],
    game: MiniGame,
) -> Story:
    """Text-ready, media-pending Story."""
    return Story(
        id=_now_id(),
        created_at=_now_ms(),
        title=plan.title,
        moral=plan.moral,
        theme=params.theme,
        subject=params.subject,
        language=params.language,
        pages=[Page.from_draft(d) for d in drafts],
        game=game,
    )


class StoryDirector:
    """
    Runs one creation attempt at a time:
    plan -> pages -> game -> publish text -> per-page media -> persist.
    """

    def __init__(
        self,
        client: GenerativeService,
        library: StoryLibrary,
        *,
        on_status: Optional[StatusCB] = None,
        feed: Optional[StoryFeed] = None,
        fanout: Optional[MediaFanout] = None,
    ) -> None:
        self.client = client
        self.library = library
        self.feed = feed or StoryFeed()
        self.fanout = fanout or MediaFanout(client)
        self._on_status = on_status
        self._state = GenerationState()
        self._message = ""

    @property
    def status(self) -> GenerationStatus:
        return self._state.status

    @property
    def message(self) -> str:
        return self._message

    def _emit(self, progress: float, msg: str) -> None:
        self._message = msg
        if self._on_status:
            self._on_status(self._state.status, progress, msg)

    async def create(self, params: StoryParameters) -> Story:
        """
        Runs the whole pipeline. Returns the finished Story; on a fatal failure
        the status ends at error, the notice is emitted and the exception is
        re-raised. Nothing is saved unless every page finished.
        """
        lang = params.language
        self._state.reset()
        self._state.advance(GenerationStatus.WRITING)
        tracker = ProgressTracker(cb=self._emit)

        try:
            tracker.start("plan", message("planning", lang))
            plan = await planner.run(self.client, params)
            tracker.done("plan")

            tracker.start("writer", message("writing", lang))
            drafts = await writer.run(self.client, plan, params)
            tracker.done("writer")

            tracker.start("game", message("game", lang))
            full_text = " ".join(d.text for d in drafts)
            game = await game_designer.run(self.client, full_text, params)
            tracker.done("game")

            story = assemble_story(params, plan, drafts, game)

            self._state.advance(GenerationStatus.ILLUSTRATING)
            self.feed.publish(story)

            def on_page(i: int, total: int) -> None:
                tracker.update("media", i / max(1, total), message("painting", lang, page=i + 1))

            story = await self.fanout.run(story, publish=self.feed.publish, on_page=on_page)
            tracker.done("media")

            self._state.advance(GenerationStatus.READY)
        except Exception as e:
            self._state.fail()
            logger.error(f"creation failed ({type(e).__name__}): {e}", exc_info=True)
            self._emit(0.0, message("error", lang))
            raise

        self._emit(1.0, message("ready", lang))
        self._persist(story)
        return story

    def _persist(self, story: Story) -> None:
        # read-modify-write of the whole collection, newest first
        try:
            self.library.save([story, *self.library.load()])
            logger.info(f"saved story {story.id} ({story.title!r})")
        except PersistenceFailure as e:
            logger.error(f"story {story.id} finished but was not saved: {e}")

    def select_from_library(self, story_id: str) -> Optional[Story]:
        story = self.library.find(story_id)
        if story is None:
            logger.warning(f"story {story_id} not in library")
            return None
        self.feed.publish(story)
        return story
