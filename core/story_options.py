# core/story_options.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from core.schemas import GameType, Language, Subject


LANGUAGE_NAMES: Dict[str, str] = {"id": "Indonesian", "en": "English"}

# Starter-screen picks (free text is still accepted anywhere a pick is).
CHARACTERS: List[str] = ["Robot", "Dragon", "Kitty", "Alien", "Hero", "Dino"]
SETTINGS: List[str] = ["Candy Land", "Space", "Jungle", "Underwater", "Castle", "School"]


@dataclass(frozen=True)
class SubjectPack:
    subject: Subject
    name_en: str
    name_id: str
    # What the single mini-game question should exercise
    question_focus: str
    # Type tag suggested to the game designer
    game_type: GameType
    example: str

    def display_name(self, language: Language) -> str:
        return self.name_id if language == "id" else self.name_en


_PACKS: Dict[str, SubjectPack] = {
    "story": SubjectPack(
        subject="story",
        name_en="Story",
        name_id="Cerita",
        question_focus="Reading Comprehension (Why did X happen?)",
        game_type="quiz",
        example="Why was the robot sad in the beginning?",
    ),
    "math": SubjectPack(
        subject="math",
        name_en="Math",
        name_id="Matematika",
        question_focus="math skills related to the story",
        game_type="math_challenge",
        example="If the hero found 2 apples and 3 oranges, how many fruits total?",
    ),
    "history": SubjectPack(
        subject="history",
        name_en="History",
        name_id="Sejarah",
        question_focus="history skills related to the story",
        game_type="quiz",
        example="Long ago, what did people use to light their homes before electricity?",
    ),
    "science": SubjectPack(
        subject="science",
        name_en="Science",
        name_id="Sains",
        question_focus="science skills related to the story",
        game_type="quiz",
        example="Why does the spaceship need fuel to fly?",
    ),
}

SUBJECTS: List[str] = list(_PACKS)


def get_subject_pack(subject: str) -> SubjectPack:
    """
    Returns the SubjectPack for a subject id. Unknown ids fall back to 'story'
    so an odd value never blocks game design.
    """
    return _PACKS.get((subject or "").strip().lower(), _PACKS["story"])


def language_name(language: str) -> str:
    return LANGUAGE_NAMES.get(language, "English")
