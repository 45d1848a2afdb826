# core/messages.py
from __future__ import annotations

from typing import Dict

MESSAGES: Dict[str, Dict[str, str]] = {
    "starting": {
        "en": "✨ Starting magic...",
        "id": "✨ Memulai keajaiban...",
    },
    "planning": {
        "en": "🤖 Planning adventure...",
        "id": "🤖 Merencanakan petualangan...",
    },
    "writing": {
        "en": "✍️ Writing the pages...",
        "id": "✍️ Menulis halaman cerita...",
    },
    "game": {
        "en": "🎲 Designing a mini-game...",
        "id": "🎲 Menyiapkan permainan...",
    },
    "painting": {
        "en": "🎨 Painting page {page}...",
        "id": "🎨 Menggambar halaman {page}...",
    },
    "ready": {
        "en": "📖 Your story is ready!",
        "id": "📖 Ceritamu sudah siap!",
    },
    "error": {
        "en": "Oops! The magic sprites got confused. Please try again.",
        "id": "Ups! Peri ajaibnya kebingungan. Coba lagi, ya.",
    },
}


def message(key: str, language: str, **kwargs: object) -> str:
    table = MESSAGES[key]
    text = table.get(language) or table["en"]
    return text.format(**kwargs) if kwargs else text
