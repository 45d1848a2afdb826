# core/agents/planner.py
from __future__ import annotations

from pydantic import ValidationError

from core.errors import PlanningFailure, ServiceFailure
from core.safety_policy import rules_block
from core.schemas import PAGE_COUNT, PlanResponse, StoryParameters, StoryPlan
from core.story_options import language_name
from tools.genai_client import GenerativeService
from tools.json_utils import parse_error
from tools.logger import log_agent_action

SYSTEM_PROMPT = """
You are the 'Story Planning Agent' for a children's book app.
Target Audience: Kids 5-9 years old.
Language: {language}.

Task:
1. Create a title.
2. Define a clear moral message.
3. Create a 'Visual Style Guide' for the main character to ensure they look the same
   in every picture (e.g. 'A cute blue robot with round eyes and a yellow antenna').
   Put it in visual_description.
4. Outline a {pages}-part plot (Beginning, Conflict, Climax, Resolution), one sentence each.

Theme: {theme}
Subject: {subject}
Character Type: {character}
Setting: {setting}
Custom Idea: {custom}

Kid-safe rules:
{rules}
"""

USER_PROMPT = "Create the story plan."


def build_system_prompt(params: StoryParameters) -> str:
    return SYSTEM_PROMPT.format(
        language=language_name(params.language),
        pages=PAGE_COUNT,
        theme=params.theme or "None",
        subject=params.subject,
        character=params.character or "None",
        setting=params.setting or "None",
        custom=params.custom_prompt or "None",
        rules=rules_block(),
    ).strip()


async def run(client: GenerativeService, params: StoryParameters) -> StoryPlan:
    """
    Stage 1: parameters -> committed StoryPlan. No retry at this layer.
    """
    try:
        data = await client.request_structured_plan(
            system=build_system_prompt(params),
            prompt=USER_PROMPT,
            schema=PlanResponse,
        )
    except ServiceFailure as e:
        log_agent_action("planner", "plan", str(e), success=False)
        raise PlanningFailure(f"Planning Agent failed: {e}") from e

    if not data:
        log_agent_action("planner", "plan", "empty response", success=False)
        raise PlanningFailure("Planning Agent failed: empty response.")

    err = parse_error(data)
    if err:
        log_agent_action("planner", "plan", err, success=False)
        raise PlanningFailure(f"Planning Agent returned non-JSON output: {err}")

    try:
        plan = StoryPlan.model_validate(data)
    except ValidationError as e:
        log_agent_action("planner", "plan", "invalid shape", success=False)
        raise PlanningFailure(f"Planning Agent returned an invalid plan: {e}") from e

    log_agent_action("planner", "plan", f"title={plan.title!r}")
    return plan
