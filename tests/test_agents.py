import pytest

from conftest import VISUAL, FakeService, game_payload, pages_payload, plan_payload
from core.agents import game_designer, planner, writer
from core.errors import GameFailure, PlanningFailure, ServiceFailure, WritingFailure
from core.schemas import StoryParameters


# ----------------------------
# Planner
# ----------------------------
async def test_plan_carries_parameters_into_prompt(service, params):
    plan = await planner.run(service, params)
    assert plan.visual_description == VISUAL
    assert len(plan.plot_outline) == 4
    assert "Robot" in service.prompts["plan"]
    assert "English" in service.prompts["plan"]


async def test_plan_transport_failure_is_planning_failure(params):
    service = FakeService(fail={"plan": ServiceFailure("503")})
    with pytest.raises(PlanningFailure):
        await planner.run(service, params)


async def test_plan_with_three_beats_is_rejected(params):
    bad = plan_payload()
    bad["plot_outline"] = bad["plot_outline"][:3]
    with pytest.raises(PlanningFailure):
        await planner.run(FakeService(plan=bad), params)


async def test_plan_non_json_is_rejected(params):
    service = FakeService(plan={"error": "No JSON object found in model output.", "raw": "sorry"})
    with pytest.raises(PlanningFailure, match="non-JSON"):
        await planner.run(service, params)


async def test_plan_empty_is_rejected(params):
    with pytest.raises(PlanningFailure):
        await planner.run(FakeService(plan={}), params)


async def test_custom_prompt_reaches_planner():
    service = FakeService()
    params = StoryParameters(custom_prompt="A turtle who wants to fly", language="id")
    await planner.run(service, params)
    assert "A turtle who wants to fly" in service.prompts["plan"]
    assert "Indonesian" in service.prompts["plan"]


# ----------------------------
# Writer
# ----------------------------
async def test_writer_returns_four_ordered_pages(service, plan, params):
    payload = pages_payload()
    payload["pages"].reverse()
    drafts = await writer.run(FakeService(pages=payload), plan, params)
    assert [d.page_number for d in drafts] == [1, 2, 3, 4]


async def test_writer_three_pages_is_writing_failure(plan, params):
    with pytest.raises(WritingFailure):
        await writer.run(FakeService(pages=pages_payload(count=3)), plan, params)


async def test_writer_duplicate_page_numbers_rejected(plan, params):
    payload = pages_payload()
    payload["pages"][3]["page_number"] = 3
    with pytest.raises(WritingFailure):
        await writer.run(FakeService(pages=payload), plan, params)


async def test_every_image_prompt_contains_visual_description(plan, params):
    drafts = await writer.run(FakeService(pages=pages_payload(anchored=False)), plan, params)
    for d in drafts:
        assert plan.visual_description in d.image_prompt


def test_anchor_leaves_anchored_prompt_alone():
    prompt = f"{VISUAL} flying past Saturn"
    assert writer.anchor_visual_description(prompt, VISUAL) == prompt


async def test_writer_transport_failure(plan, params):
    service = FakeService(fail={"pages": ServiceFailure("timeout")})
    with pytest.raises(WritingFailure):
        await writer.run(service, plan, params)


# ----------------------------
# Game designer
# ----------------------------
async def test_game_in_range(service, params):
    game = await game_designer.run(service, "Robo counted stars.", params)
    assert game.type == "math_challenge"
    assert 0 <= game.correct_answer_index < len(game.options)
    assert game.is_correct(1)


async def test_game_out_of_range_index_is_game_failure(params):
    with pytest.raises(GameFailure):
        await game_designer.run(FakeService(game=game_payload(index=3)), "text", params)


async def test_game_context_is_truncated(service, params):
    text = "a" * 1500
    await game_designer.run(service, text, params)
    sent = service.prompts["game"]
    assert "a" * game_designer.STORY_CONTEXT_LIMIT in sent
    assert "a" * (game_designer.STORY_CONTEXT_LIMIT + 1) not in sent


def test_game_prompt_follows_subject():
    history = StoryParameters(character="a", setting="b", theme="c", subject="history")
    assert "quiz" in game_designer.build_system_prompt(history)
