from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.director import StoryDirector  # noqa: E402
from core.library import JsonFileLibrary  # noqa: E402
from core.media import is_placeholder_image  # noqa: E402
from core.reader import ReadingSession  # noqa: E402
from core.schemas import Story, StoryParameters  # noqa: E402
from core.story_options import SUBJECTS  # noqa: E402
from tools.audio_output import PyAudioDevice  # noqa: E402
from tools.genai_client import GeminiClient  # noqa: E402
from tools.logger import setup_logger  # noqa: E402
from tools.settings import Settings  # noqa: E402


async def read_aloud(story: Story, delay: float) -> None:
    async with ReadingSession(story, PyAudioDevice, autoplay_delay=delay) as session:
        while not session.is_game_page:
            page = session.current_page
            print(f"\n[{page.page_number}] {page.text}")
            await asyncio.to_thread(input, "  (enter = next page) ")
            await session.next()

        game = story.game
        print(f"\n{game.question}")
        for i, option in enumerate(game.options):
            print(f"  {i}) {option}")
        try:
            choice = int((await asyncio.to_thread(input, "Your answer: ")).strip())
            print("Correct!" if session.answer(choice) else f"The answer was {game.correct_answer_index}.")
        except (ValueError, IndexError):
            print("Skipped.")


async def main() -> int:
    ap = argparse.ArgumentParser(description="Generate one Living Book story from the command line.")
    ap.add_argument("--character", default="Robot")
    ap.add_argument("--setting", default="Space")
    ap.add_argument("--subject", choices=SUBJECTS, default="story")
    ap.add_argument("--language", choices=["en", "id"], default="en")
    ap.add_argument("--prompt", default="", help="free-text idea; overrides the picks above")
    ap.add_argument("--read", action="store_true", help="read the story aloud afterwards (needs pyaudio)")
    args = ap.parse_args()

    settings = Settings.from_env()
    setup_logger(settings.log_dir or None)

    params = StoryParameters.from_choices(
        character=args.character,
        setting=args.setting,
        subject=args.subject,
        language=args.language,
        custom_prompt=args.prompt,
    )
    director = StoryDirector(
        GeminiClient.from_settings(settings),
        JsonFileLibrary(settings.library_path),
        on_status=lambda status, p, msg: print(f"{int(p * 100):>3}%  [{status.value}] {msg}"),
    )

    story = await director.create(params)

    print(f"\n{story.title} ({story.id})")
    for page in story.pages:
        image = "placeholder" if is_placeholder_image(page.image_data) else "generated"
        audio = f"{len(page.audio_data)} bytes" if page.audio_data else "none"
        print(f"  page {page.page_number}: image={image} audio={audio}")

    if args.read:
        await read_aloud(story, settings.autoplay_delay_s)
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
