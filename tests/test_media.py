import asyncio

import pytest

from conftest import FakeService
from core.media import MediaFanout, image_data_url, is_placeholder_image, placeholder_image_url
from core.schemas import Page, Story
from test_schemas import make_story


async def run_fanout(service: FakeService):
    published = []

    def publish(story: Story) -> None:
        published.append(story)
        service.calls.append(("publish", len(published)))

    story = make_story()
    final = await MediaFanout(service).run(story, publish=publish)
    return story, final, published


async def test_pages_are_processed_in_order(service):
    _, final, published = await run_fanout(service)

    assert len(published) == 4
    assert final is published[-1]
    # page k+1's requests never go out before page k is published
    for k in range(1, 4):
        publish_at = service.calls.index(("publish", k))
        next_requests = [i for i, c in enumerate(service.calls) if c[0] in ("image", "speech") and c[1] == k + 1]
        assert min(next_requests) > publish_at


async def test_each_snapshot_completes_one_more_page(service):
    original, final, published = await run_fanout(service)

    for k, snapshot in enumerate(published, start=1):
        done = [not p.media_pending for p in snapshot.pages]
        assert done == [True] * k + [False] * (4 - k)
    assert all(p.media_pending for p in original.pages)
    assert final.media_complete


async def test_image_failure_uses_placeholder_and_keeps_audio():
    service = FakeService(image_fails_on=[2])
    _, final, _ = await run_fanout(service)

    page = final.pages[1]
    assert page.image_data == placeholder_image_url(final.id, 2)
    assert page.audio_data
    assert not page.media_pending
    assert final.pages[0].image_data.startswith("data:image/png;base64,")


async def test_speech_failure_leaves_page_silent():
    service = FakeService(speech_fails_on=[3])
    _, final, _ = await run_fanout(service)

    assert final.pages[2].audio_data is None
    assert not is_placeholder_image(final.pages[2].image_data)
    assert final.media_complete


async def test_page_callback_counts_pages(service):
    seen = []
    await MediaFanout(service).run(make_story(), publish=lambda s: None, on_page=lambda i, n: seen.append((i, n)))
    assert seen == [(0, 4), (1, 4), (2, 4), (3, 4)]


def test_image_data_url_rejects_garbage():
    with pytest.raises(ValueError):
        image_data_url(b"definitely not an image")


def test_placeholder_is_deterministic():
    assert placeholder_image_url("abc", 1) == placeholder_image_url("abc", 1)
    assert is_placeholder_image(placeholder_image_url("abc", 1))
    assert not is_placeholder_image(None)


class UndecodableSpeech(FakeService):
    async def request_speech(self, text: str, language: str) -> bytes:
        self.calls.append(("speech", 0))
        raise ValueError("Incorrect padding")


async def test_undecodable_speech_leaves_page_silent():
    service = UndecodableSpeech()
    _, final, published = await run_fanout(service)

    assert len(published) == 4
    assert all(p.audio_data is None for p in final.pages)
    assert all(p.image_data.startswith("data:image/png") for p in final.pages)


class SlowService(FakeService):
    """Every media request takes a moment; tracks how many overlap."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.inflight = 0
        self.peak = 0

    async def _slow(self, result):
        self.inflight += 1
        self.peak = max(self.peak, self.inflight)
        try:
            await asyncio.sleep(0.01)
        finally:
            self.inflight -= 1
        return result

    async def request_image(self, prompt: str) -> bytes:
        return await self._slow(await super().request_image(prompt))

    async def request_speech(self, text: str, language: str) -> bytes:
        return await self._slow(await super().request_speech(text, language))


async def test_image_and_speech_overlap_within_a_page_only():
    service = SlowService()
    await run_fanout(service)
    assert service.peak == 2
