# core/media.py
from __future__ import annotations

import asyncio
import base64
import io
from typing import Callable, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from core.errors import MediaFailure, ServiceFailure
from core.schemas import Language, Page, Story
from tools.genai_client import GenerativeService
from tools.logger import get_logger

logger = get_logger("media")

PLACEHOLDER_HOST = "https://picsum.photos/seed/"

PublishCB = Callable[[Story], None]
PageCB = Callable[[int, int], None]


def placeholder_image_url(story_id: str, page_number: int) -> str:
    return f"{PLACEHOLDER_HOST}{story_id}-{page_number}/800/800"


def is_placeholder_image(ref: Optional[str]) -> bool:
    return bool(ref) and ref.startswith(PLACEHOLDER_HOST)


def image_data_url(data: bytes) -> str:
    """
    Identifies the image with Pillow and wraps it as a data URL.
    Raises ValueError for bytes that are not a decodable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"not an image: {e}") from e

    mime = Image.MIME.get(fmt or "", "image/jpeg")
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


class MediaFanout:
    """
    Per page: illustration and narration requested together and joined.
    Across pages: strictly left to right, each page published before the
    next page's requests go out.
    """

    def __init__(self, client: GenerativeService) -> None:
        self.client = client

    async def _illustrate(self, story_id: str, page: Page) -> str:
        try:
            data = await self.client.request_image(page.image_prompt)
            return image_data_url(data)
        except (ServiceFailure, ValueError) as e:
            failure = MediaFailure("image", page.page_number, str(e))
            logger.warning(f"{failure}; using placeholder")
            return placeholder_image_url(story_id, page.page_number)

    async def _narrate(self, page: Page, language: Language) -> Optional[bytes]:
        try:
            audio = await self.client.request_speech(page.text, language)
        except (ServiceFailure, ValueError) as e:
            failure = MediaFailure("speech", page.page_number, str(e))
            logger.warning(f"{failure}; page stays silent")
            return None
        return audio or None

    async def _page_media(self, story: Story, page: Page) -> Tuple[str, Optional[bytes]]:
        image, audio = await asyncio.gather(
            self._illustrate(story.id, page),
            self._narrate(page, story.language),
        )
        return image, audio

    async def run(
        self,
        story: Story,
        *,
        publish: PublishCB,
        on_page: Optional[PageCB] = None,
    ) -> Story:
        total = len(story.pages)
        for i in range(total):
            page = story.pages[i]
            if on_page:
                on_page(i, total)

            image, audio = await self._page_media(story, page)

            updated = page.model_copy(
                update={"image_data": image, "audio_data": audio, "media_pending": False}
            )
            story = story.with_page(i, updated)
            publish(story)
            logger.info(
                f"page {page.page_number}/{total} ready "
                f"(image={'placeholder' if is_placeholder_image(image) else 'generated'}, "
                f"audio={'yes' if audio else 'no'})"
            )
        return story
