# core/schemas.py
from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, conint, constr, model_validator

# Structural constant of the plot-outline contract: one outline beat per page.
PAGE_COUNT = 4

Subject = Literal["story", "math", "history", "science"]
Language = Literal["id", "en"]
GameType = Literal["quiz", "math_challenge"]

NonBlank = constr(strip_whitespace=True, min_length=1)


class GenerationStatus(str, Enum):
    IDLE = "idle"
    WRITING = "writing"
    ILLUSTRATING = "illustrating"
    READY = "ready"
    ERROR = "error"


# ----------------------------
# Input
# ----------------------------
class StoryParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    character: str = ""
    setting: str = ""
    theme: str = ""
    subject: Subject = "story"
    language: Language = "en"
    custom_prompt: Optional[str] = None

    @model_validator(mode="after")
    def _require_fields_without_override(self) -> "StoryParameters":
        if self.custom_prompt and self.custom_prompt.strip():
            return self
        missing = [name for name in ("character", "setting", "theme") if not getattr(self, name).strip()]
        if missing:
            raise ValueError(f"Missing {', '.join(missing)} (required when no custom prompt is given)")
        return self

    @classmethod
    def from_choices(
        cls,
        *,
        character: str = "",
        setting: str = "",
        subject: Subject = "story",
        language: Language = "en",
        custom_prompt: str = "",
    ) -> "StoryParameters":
        """
        Wizard-style construction: blank picks fall back to the defaults the
        starter screen uses, and an empty custom prompt means "no override".
        """
        return cls(
            character=character.strip() or "Friend",
            setting=setting.strip() or "Fun Place",
            theme="Adventure",
            subject=subject,
            language=language,
            custom_prompt=custom_prompt.strip() or None,
        )


# ----------------------------
# Service response shapes (sent as response schemas, validated on return)
# ----------------------------
class PlanResponse(BaseModel):
    title: NonBlank
    moral: NonBlank
    # consistency anchor for every later illustration prompt
    visual_description: NonBlank = Field(
        description="Detailed visual description of the hero for image generation consistency."
    )
    plot_outline: List[NonBlank] = Field(
        min_length=PAGE_COUNT,
        max_length=PAGE_COUNT,
        description="4 sentences outlining the 4 pages.",
    )


class PageResponse(BaseModel):
    page_number: conint(ge=1)
    text: NonBlank
    image_prompt: NonBlank


class PagesResponse(BaseModel):
    pages: List[PageResponse]


class GameResponse(BaseModel):
    type: GameType
    question: NonBlank
    options: List[NonBlank] = Field(min_length=2)
    correct_answer_index: conint(ge=0)
    explanation: str = ""


# ----------------------------
# Domain entities
# ----------------------------
class StoryPlan(PlanResponse):
    pass


class PageDraft(BaseModel):
    page_number: conint(ge=1)
    text: str
    image_prompt: str


class Page(PageDraft):
    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    image_data: Optional[str] = None
    audio_data: Optional[bytes] = None
    media_pending: bool = True

    @classmethod
    def from_draft(cls, draft: PageDraft) -> "Page":
        return cls(**draft.model_dump(), media_pending=True)


class MiniGame(BaseModel):
    type: GameType
    question: str
    options: List[str] = Field(min_length=1)
    correct_answer_index: int
    explanation: str = ""

    @model_validator(mode="after")
    def _index_in_range(self) -> "MiniGame":
        if not 0 <= self.correct_answer_index < len(self.options):
            raise ValueError(
                f"correct_answer_index {self.correct_answer_index} out of range for {len(self.options)} options"
            )
        return self

    def is_correct(self, index: int) -> bool:
        return index == self.correct_answer_index


class Story(BaseModel):
    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    id: str
    created_at: int
    title: str
    moral: str = ""
    theme: str
    subject: Subject
    language: Language
    pages: List[Page] = Field(min_length=PAGE_COUNT, max_length=PAGE_COUNT)
    game: MiniGame

    @model_validator(mode="after")
    def _pages_numbered_by_position(self) -> "Story":
        for idx, page in enumerate(self.pages, start=1):
            if page.page_number != idx:
                raise ValueError(f"Page at position {idx} has page_number {page.page_number}")
        return self

    @property
    def media_complete(self) -> bool:
        return not any(p.media_pending for p in self.pages)

    @property
    def full_text(self) -> str:
        return " ".join(p.text for p in self.pages)

    def with_page(self, index: int, page: Page) -> "Story":
        """
        Copy-on-write page replacement. The returned Story shares nothing mutable
        with self at the page-list level, so readers of an older snapshot never
        observe the change.
        """
        if page.page_number != index + 1:
            raise ValueError(f"Page number {page.page_number} does not match index {index}")
        pages = list(self.pages)
        pages[index] = page
        return self.model_copy(update={"pages": pages})
