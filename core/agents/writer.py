# core/agents/writer.py
from __future__ import annotations

import json
from typing import List

from pydantic import ValidationError

from core.errors import ServiceFailure, WritingFailure
from core.schemas import PAGE_COUNT, PageDraft, PagesResponse, StoryParameters, StoryPlan
from core.story_options import language_name
from tools.genai_client import GenerativeService
from tools.json_utils import parse_error
from tools.logger import log_agent_action

ILLUSTRATION_STYLE = "3D Pixar style, cute, vibrant, 4k render"

SYSTEM_PROMPT = """
You are the 'Writer & Illustrator Agent'.

Input Plan:
- Title: {title}
- Character Visuals: "{visual}" (MUST be used in every image prompt)
- Plot: {outline}

Instructions:
1. Write story text in {language}.
2. Write exactly {pages} pages based on the plot outline, numbered 1 to {pages}.
3. For 'image_prompt', write a detailed stable-diffusion style prompt.
   CRITICAL: You MUST include "{visual}" in EVERY image prompt to ensure the character looks the same.
   Style: "{style}".

Output JSON.
"""

USER_PROMPT = "Write the book pages."


def build_system_prompt(plan: StoryPlan, params: StoryParameters) -> str:
    return SYSTEM_PROMPT.format(
        title=plan.title,
        visual=plan.visual_description,
        outline=json.dumps(plan.plot_outline, ensure_ascii=False),
        language=language_name(params.language),
        pages=PAGE_COUNT,
        style=ILLUSTRATION_STYLE,
    ).strip()


def anchor_visual_description(image_prompt: str, visual_description: str) -> str:
    """
    Guarantees the canonical description appears verbatim in the prompt.
    Prompts that already carry it are returned unchanged.
    """
    if visual_description in image_prompt:
        return image_prompt
    return f"{visual_description}. {image_prompt}".strip()


async def run(client: GenerativeService, plan: StoryPlan, params: StoryParameters) -> List[PageDraft]:
    """
    Stage 2: plan -> exactly PAGE_COUNT page drafts.
    """
    try:
        data = await client.request_structured_content(
            system=build_system_prompt(plan, params),
            prompt=USER_PROMPT,
            schema=PagesResponse,
        )
    except ServiceFailure as e:
        log_agent_action("writer", "pages", str(e), success=False)
        raise WritingFailure(f"Writer Agent failed: {e}") from e

    if not data:
        raise WritingFailure("Writer Agent failed: empty response.")

    err = parse_error(data)
    if err:
        raise WritingFailure(f"Writer Agent returned non-JSON output: {err}")

    try:
        resp = PagesResponse.model_validate(data)
    except ValidationError as e:
        raise WritingFailure(f"Writer Agent returned invalid pages: {e}") from e

    pages = sorted(resp.pages, key=lambda p: p.page_number)
    if len(pages) != PAGE_COUNT:
        log_agent_action("writer", "pages", f"got {len(pages)} pages", success=False)
        raise WritingFailure(f"Writer Agent returned {len(pages)} pages, expected {PAGE_COUNT}.")

    numbers = [p.page_number for p in pages]
    if numbers != list(range(1, PAGE_COUNT + 1)):
        raise WritingFailure(f"Writer Agent returned page numbers {numbers}.")

    drafts = [
        PageDraft(
            page_number=p.page_number,
            text=p.text,
            image_prompt=anchor_visual_description(p.image_prompt, plan.visual_description),
        )
        for p in pages
    ]
    log_agent_action("writer", "pages", f"{len(drafts)} pages")
    return drafts
