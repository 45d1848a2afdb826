# app.py
from __future__ import annotations

import asyncio
import traceback
from typing import Dict, List

import streamlit as st

from core.director import StoryDirector
from core.errors import ServiceFailure
from core.library import JsonFileLibrary
from core.media import is_placeholder_image
from core.messages import message
from core.schemas import GenerationStatus, Story, StoryParameters
from core.story_options import CHARACTERS, SETTINGS, SUBJECTS, get_subject_pack
from tools.audio_output import to_wav
from tools.genai_client import GeminiClient
from tools.logger import get_logger, setup_logger
from tools.settings import Settings

settings = Settings.from_env()
setup_logger(settings.log_dir or None)
logger = get_logger("app")

LANGUAGES = {"en": "English", "id": "Bahasa Indonesia"}

st.set_page_config(page_title="Living Book", layout="centered")

st.markdown(
    """
    <div style="text-align:center; margin-bottom: 1.2rem;">
        <div style="font-size:38px;">📖</div>
        <div style="font-size:32px; font-weight:800;">Living Book</div>
        <div style="opacity:0.75; font-size:16px;">
            Your idea → a 4-page picture book that reads itself aloud
        </div>
    </div>
    """,
    unsafe_allow_html=True,
)

library = JsonFileLibrary(settings.library_path)

try:
    client = GeminiClient.from_settings(settings)
    config_error = ""
except ServiceFailure as e:
    client = None
    config_error = str(e)


# ----------------------------
# Rendering
# ----------------------------
def render_page(slot, story: Story, index: int) -> None:
    page = story.pages[index]
    with slot.container():
        st.markdown(f"**{index + 1} / {len(story.pages)}**")
        if page.media_pending:
            st.info(message("painting", story.language, page=page.page_number))
        else:
            st.image(page.image_data, width="stretch")
            if is_placeholder_image(page.image_data):
                st.caption("(placeholder picture)")
        st.write(page.text)
        if page.audio_data:
            try:
                st.audio(to_wav(page.audio_data), format="audio/wav")
            except ValueError as e:
                logger.warning(f"narration for page {page.page_number} not playable: {e}")


def render_game(story: Story) -> None:
    game = story.game
    st.subheader("🎲 Mini-game")
    st.write(game.question)
    key = f"answer_{story.id}"
    choice = st.radio("Answer", list(range(len(game.options))), format_func=lambda i: game.options[i],
                      key=f"radio_{story.id}", label_visibility="collapsed")
    if st.button("Check answer", key=f"check_{story.id}") and key not in st.session_state:
        # first answer counts
        st.session_state[key] = choice
    if key in st.session_state:
        if game.is_correct(st.session_state[key]):
            st.success("🎉 Correct!")
        else:
            st.error(f"Not quite. The answer was: {game.options[game.correct_answer_index]}")
        if game.explanation:
            st.caption(game.explanation)


def render_story(story: Story) -> None:
    st.divider()
    st.header(story.title)
    if story.moral:
        st.caption(f"✨ {story.moral}")
    for i in range(len(story.pages)):
        render_page(st.empty(), story, i)
    render_game(story)


# ----------------------------
# Library (sidebar)
# ----------------------------
with st.sidebar:
    st.subheader("📚 My stories")
    saved: List[Story] = library.load()
    if not saved:
        st.caption("No stories yet.")
    for s in saved:
        if st.button(s.title, key=f"lib_{s.id}", width="stretch"):
            picked = StoryDirector(client, library).select_from_library(s.id)
            if picked is None:
                st.warning("That story is no longer in the library.")
            else:
                st.session_state["story"] = picked


# ----------------------------
# Wizard
# ----------------------------
st.subheader("Who is the hero?")
character = st.selectbox("Character", CHARACTERS, index=0, label_visibility="collapsed")

st.subheader("Where does it happen?")
setting = st.selectbox("Setting", SETTINGS, index=1, label_visibility="collapsed")

col1, col2 = st.columns(2)
with col1:
    language = st.selectbox("Language", list(LANGUAGES), format_func=LANGUAGES.get)
with col2:
    subject = st.selectbox("Subject", SUBJECTS, format_func=lambda s: get_subject_pack(s).display_name(language))

custom = st.text_area("Or describe your own idea (optional)", value="")

st.divider()
generate = st.button("✨ Make my book", type="primary", width="stretch")


if generate:
    params = StoryParameters.from_choices(
        character=character,
        setting=setting,
        subject=subject,
        language=language,
        custom_prompt=custom,
    )

    if client is None:
        st.error(f"App is not configured: {config_error}")
        st.stop()

    progress_bar = st.progress(0, text=message("starting", language))
    status_box = st.empty()
    title_box = st.empty()
    slots: Dict[int, object] = {}

    def on_status(status: GenerationStatus, progress: float, msg: str) -> None:
        progress_bar.progress(int(progress * 100), text=msg)
        status_box.markdown(f"**{msg}**")

    def on_snapshot(story: Story, version: int) -> None:
        title_box.header(story.title)
        for i in range(len(story.pages)):
            if i not in slots:
                slots[i] = st.empty()
            render_page(slots[i], story, i)

    director = StoryDirector(client, library, on_status=on_status)
    director.feed.subscribe(on_snapshot)

    try:
        story = asyncio.run(director.create(params))
    except Exception as e:
        progress_bar.progress(0, text="Failed ❌")
        st.error(director.message or "Something went wrong.")
        with st.expander("Advanced (backend logs)", expanded=False):
            st.code(f"{type(e).__name__}: {e}", language="text")
            st.code(traceback.format_exc(), language="text")
        st.stop()

    st.session_state["story"] = story
    st.rerun()

elif st.session_state.get("story") is not None:
    render_story(st.session_state["story"])
