# tools/genai_client.py
from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Type

from pydantic import BaseModel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.errors import ServiceFailure
from core.safety_policy import BLOCK_THRESHOLD, HARM_CATEGORIES
from tools.json_utils import safe_json_loads
from tools.logger import get_logger
from tools.settings import Settings

logger = get_logger("genai")

SPEECH_LANGUAGE_CODES = {"en": "en-US", "id": "id-ID"}


class GenerativeService(Protocol):
    """The request/response boundary the pipeline talks to."""

    async def request_structured_plan(self, *, system: str, prompt: str, schema: Type[BaseModel]) -> Dict[str, Any]:
        ...

    async def request_structured_content(self, *, system: str, prompt: str, schema: Type[BaseModel]) -> Dict[str, Any]:
        ...

    async def request_image(self, prompt: str) -> bytes:
        ...

    async def request_speech(self, text: str, language: str) -> bytes:
        ...


_transport_retry = retry(
    retry=retry_if_exception_type(ServiceFailure),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
)


# ----------------------------
# Gemini wrapper (google-genai, async surface)
# ----------------------------
@dataclass
class GeminiClient:
    api_key: str
    model: str = "gemini-2.5-flash"
    image_model: str = "imagen-4.0-generate-001"
    tts_model: str = "gemini-2.5-flash-preview-tts"
    voice: str = "Kore"

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ServiceFailure(
                "Missing GEMINI_API_KEY. Put it in .env as GEMINI_API_KEY=... "
                "and make sure the app is running inside the SAME venv."
            )

        # Lazy import so the rest of the package stays importable without the SDK
        try:
            from google import genai  # type: ignore
            from google.genai import types  # type: ignore
        except ImportError as e:
            raise RuntimeError(
                "google-genai not installed. Install with:\n"
                "  pip install google-genai\n"
            ) from e

        self._types = types
        self._client = genai.Client(api_key=self.api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiClient":
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            image_model=settings.image_model,
            tts_model=settings.tts_model,
            voice=settings.tts_voice,
        )

    @classmethod
    def from_env(cls) -> "GeminiClient":
        return cls.from_settings(Settings.from_env())

    def _safety_settings(self) -> list:
        return [
            self._types.SafetySetting(category=c, threshold=BLOCK_THRESHOLD)
            for c in HARM_CATEGORIES
        ]

    # ----------------------------
    # Raw transport calls (retried)
    # ----------------------------
    @_transport_retry
    async def _generate_content(self, *, model: str, contents: Any, config: Any) -> Any:
        try:
            return await self._client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except Exception as e:
            # Surface the real exception message (instead of Tenacity RetryError hiding it)
            logger.warning(f"generate_content on {model} failed: {e}")
            raise ServiceFailure(f"Gemini generate_content failed: {e}") from e

    @_transport_retry
    async def _generate_images(self, *, prompt: str) -> Any:
        try:
            return await self._client.aio.models.generate_images(
                model=self.image_model,
                prompt=prompt,
                config=self._types.GenerateImagesConfig(
                    number_of_images=1,
                    output_mime_type="image/jpeg",
                    aspect_ratio="1:1",
                ),
            )
        except Exception as e:
            logger.warning(f"generate_images on {self.image_model} failed: {e}")
            raise ServiceFailure(f"Gemini generate_images failed: {e}") from e

    # ----------------------------
    # Structured output
    # ----------------------------
    async def _generate_json(self, *, system: str, prompt: str, schema: Type[BaseModel]) -> Dict[str, Any]:
        """
        Asks for JSON under a response schema but still parses from text, so a
        fenced or slightly broken body degrades to {"error": ...} instead of
        raising here. Callers validate the shape.
        """
        config = self._types.GenerateContentConfig(
            system_instruction=system,
            safety_settings=self._safety_settings(),
            response_mime_type="application/json",
            response_schema=schema,
        )
        resp = await self._generate_content(model=self.model, contents=prompt, config=config)
        text = (getattr(resp, "text", None) or "").strip()
        if not text:
            return {}
        return safe_json_loads(text)

    async def request_structured_plan(self, *, system: str, prompt: str, schema: Type[BaseModel]) -> Dict[str, Any]:
        return await self._generate_json(system=system, prompt=prompt, schema=schema)

    async def request_structured_content(self, *, system: str, prompt: str, schema: Type[BaseModel]) -> Dict[str, Any]:
        return await self._generate_json(system=system, prompt=prompt, schema=schema)

    # ----------------------------
    # Media
    # ----------------------------
    async def request_image(self, prompt: str) -> bytes:
        resp = await self._generate_images(prompt=prompt)
        images = getattr(resp, "generated_images", None) or []
        image = getattr(images[0], "image", None) if images else None
        data = getattr(image, "image_bytes", None) if image is not None else None
        if not data:
            raise ServiceFailure("Gemini returned no image data")
        return _as_bytes(data)

    async def request_speech(self, text: str, language: str) -> bytes:
        """
        Returns raw 16-bit mono PCM (24 kHz) as produced by the TTS model.
        """
        types = self._types
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                language_code=SPEECH_LANGUAGE_CODES.get(language, "en-US"),
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=self.voice),
                ),
            ),
        )
        resp = await self._generate_content(model=self.tts_model, contents=text, config=config)
        try:
            data = _first_inline_data(resp)
        except ValueError as e:
            raise ServiceFailure(f"Gemini returned undecodable audio: {e}") from e
        if not data:
            raise ServiceFailure("Gemini returned no audio data")
        return data


def _as_bytes(data: Any) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    # some SDK paths hand back base64 text
    return base64.b64decode(data)


def _first_inline_data(resp: Any) -> Optional[bytes]:
    for cand in getattr(resp, "candidates", None) or []:
        content = getattr(cand, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and getattr(inline, "data", None):
                return _as_bytes(inline.data)
    return None
