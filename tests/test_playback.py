from conftest import FakeDevice
from core.playback import PlaybackEngine


async def test_play_starts_and_flags():
    device = FakeDevice()
    engine = PlaybackEngine(device)
    assert await engine.play(b"aa")
    assert engine.playing
    assert len(device.handles) == 1


async def test_at_most_one_handle_sounding():
    device = FakeDevice()
    engine = PlaybackEngine(device)
    await engine.play(b"first")
    await engine.play(b"second")

    assert device.events == [("start", b"first"), ("stop", b"first"), ("start", b"second")]
    assert [h.buffer for h in device.active] == [b"second"]


async def test_stop_is_idempotent():
    device = FakeDevice()
    engine = PlaybackEngine(device)
    engine.stop()
    await engine.play(b"aa")
    engine.stop()
    engine.stop()
    assert device.handles[0].stopped == 1
    assert not engine.playing


async def test_natural_end_clears_flag():
    device = FakeDevice()
    engine = PlaybackEngine(device)
    changes = []
    engine.on_change(changes.append)

    await engine.play(b"aa")
    device.handles[0].finish()

    assert not engine.playing
    assert changes == [True, False]


async def test_late_end_of_replaced_playback_is_ignored():
    device = FakeDevice()
    engine = PlaybackEngine(device)
    await engine.play(b"old")
    await engine.play(b"new")

    device.handles[0].finish()
    assert engine.playing

    engine.stop()
    assert device.handles[1].stopped == 1


async def test_resumes_suspended_device():
    device = FakeDevice(suspended=True)
    engine = PlaybackEngine(device)
    await engine.play(b"aa")
    assert device.resumed == 1
    assert engine.playing


async def test_unplayable_buffer_is_not_an_error():
    device = FakeDevice()
    engine = PlaybackEngine(device)
    assert not await engine.play(b"")
    assert not engine.playing
