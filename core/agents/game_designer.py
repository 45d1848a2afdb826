# core/agents/game_designer.py
from __future__ import annotations

from pydantic import ValidationError

from core.errors import GameFailure, ServiceFailure
from core.schemas import GameResponse, MiniGame, StoryParameters
from core.story_options import get_subject_pack, language_name
from tools.genai_client import GenerativeService
from tools.json_utils import parse_error
from tools.logger import log_agent_action

# Bounded prefix of the story text sent as context.
STORY_CONTEXT_LIMIT = 1000

SYSTEM_PROMPT = """
You are the 'Game Interaction Agent'.
Context: A children's story has just been read.
Subject: {subject}
Language: {language}

Task: Create 1 multiple-choice question to test {focus}.
Use the type "{game_type}". Give 3 or 4 short options and the 0-based index of the correct one,
plus a one-sentence explanation a child can understand.

Example: "{example}"
"""


def build_system_prompt(params: StoryParameters) -> str:
    pack = get_subject_pack(params.subject)
    return SYSTEM_PROMPT.format(
        subject=params.subject,
        language=language_name(params.language),
        focus=pack.question_focus,
        game_type=pack.game_type,
        example=pack.example,
    ).strip()


def build_user_prompt(story_text: str) -> str:
    return f"Story Context: {story_text[:STORY_CONTEXT_LIMIT]}... Create the game."


async def run(client: GenerativeService, story_text: str, params: StoryParameters) -> MiniGame:
    """
    Stage 3: story text -> one MiniGame with an in-range answer index.
    """
    try:
        data = await client.request_structured_content(
            system=build_system_prompt(params),
            prompt=build_user_prompt(story_text),
            schema=GameResponse,
        )
    except ServiceFailure as e:
        log_agent_action("game", "design", str(e), success=False)
        raise GameFailure(f"Game Agent failed: {e}") from e

    if not data:
        raise GameFailure("Game Agent failed: empty response.")

    err = parse_error(data)
    if err:
        raise GameFailure(f"Game Agent returned non-JSON output: {err}")

    try:
        resp = GameResponse.model_validate(data)
        game = MiniGame.model_validate(resp.model_dump())
    except ValidationError as e:
        raise GameFailure(f"Game Agent returned an invalid game: {e}") from e

    log_agent_action("game", "design", f"type={game.type} options={len(game.options)}")
    return game
