# tools/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


# ----------------------------
# Dotenv loading (Streamlit-safe)
# ----------------------------
def load_env_safely() -> None:
    """
    Streamlit sometimes breaks python-dotenv's find_dotenv() (frame assertions).
    So we load .env explicitly from the working dir or the project root.
    Values already in the process environment always win.
    """
    from dotenv import load_dotenv

    candidates = [
        Path(os.getcwd()) / ".env",
        Path(__file__).resolve().parents[1] / ".env",
    ]
    for p in candidates:
        if p.exists():
            load_dotenv(dotenv_path=str(p), override=False)
            return


def _env(name: str, default: str) -> str:
    return (os.getenv(name) or default).strip()


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    model: str = "gemini-2.5-flash"
    image_model: str = "imagen-4.0-generate-001"
    tts_model: str = "gemini-2.5-flash-preview-tts"
    tts_voice: str = "Kore"
    library_path: str = "runs/library.json"
    log_dir: str = "logs"
    autoplay_delay_s: float = 0.5

    @classmethod
    def from_env(cls, *, load_dotenv: bool = True) -> "Settings":
        if load_dotenv:
            load_env_safely()

        try:
            delay = float(_env("LIVINGBOOK_AUTOPLAY_DELAY", "0.5"))
        except ValueError:
            delay = 0.5

        return cls(
            api_key=_env("GEMINI_API_KEY", "") or _env("API_KEY", ""),
            model=_env("GEMINI_MODEL", cls.model),
            image_model=_env("GEMINI_IMAGE_MODEL", cls.image_model),
            tts_model=_env("GEMINI_TTS_MODEL", cls.tts_model),
            tts_voice=_env("GEMINI_TTS_VOICE", cls.tts_voice),
            library_path=_env("LIVINGBOOK_LIBRARY_PATH", cls.library_path),
            log_dir=_env("LIVINGBOOK_LOG_DIR", cls.log_dir),
            autoplay_delay_s=max(0.0, delay),
        )
