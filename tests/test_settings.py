from types import SimpleNamespace

import pytest

from core.errors import ServiceFailure
from core.messages import MESSAGES, message
from tools.genai_client import GeminiClient
from tools.settings import Settings


def test_settings_from_env(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("API_KEY", "fallback-key")
    monkeypatch.setenv("GEMINI_TTS_VOICE", "Puck")
    monkeypatch.setenv("LIVINGBOOK_AUTOPLAY_DELAY", "not a number")

    s = Settings.from_env(load_dotenv=False)
    assert s.api_key == "fallback-key"
    assert s.tts_voice == "Puck"
    assert s.model == "gemini-2.5-flash"
    assert s.autoplay_delay_s == 0.5


def test_client_requires_key():
    with pytest.raises(ServiceFailure, match="GEMINI_API_KEY"):
        GeminiClient(api_key="")


def test_every_message_has_both_languages():
    for key, table in MESSAGES.items():
        assert set(table) == {"en", "id"}, key


def test_message_formatting_and_fallback():
    assert message("painting", "id", page=2) == "🎨 Menggambar halaman 2..."
    assert message("ready", "fr") == MESSAGES["ready"]["en"]


async def test_undecodable_speech_is_service_failure(monkeypatch):
    client = GeminiClient(api_key="test-key")
    part = SimpleNamespace(inline_data=SimpleNamespace(data="not base64!!"))
    resp = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])

    async def fake_generate(**kwargs):
        return resp

    monkeypatch.setattr(client, "_generate_content", fake_generate)
    with pytest.raises(ServiceFailure, match="undecodable"):
        await client.request_speech("hello", "en")
