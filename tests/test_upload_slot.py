"""Tests for the async upload-slot driver with in-process fake transports."""
import asyncio

import pytest

from inkpad.domain.exceptions import (
    FileTooLargeError,
    NoUrlReturnedError,
    TooManyFilesError,
    TransportError,
    UploadFunctionNotConfiguredError,
)
from inkpad.upload.files import SelectedFile, SlotStatus
from inkpad.upload.slot import UploadSlot
from inkpad.upload.transport import FunctionTransport
from inkpad.upload.validator import SlotConfig

MB = 1024 * 1024
CONFIG = SlotConfig(max_size=5 * MB)


def _file(name: str = "photo.jpg", size: int = 2 * MB) -> SelectedFile:
    return SelectedFile(name=name, data=b"\xff\xd8", mime_type="image/jpeg", size=size)


class RecordingTransport:
    """Counts calls; reports the given progress steps and returns ``url``."""

    def __init__(self, url="/uploads/image.webp", steps=(25, 50, 100)) -> None:
        self.url = url
        self.steps = steps
        self.calls = 0

    async def upload(self, file, on_progress, token):
        self.calls += 1
        for step in self.steps:
            on_progress(step)
            await asyncio.sleep(0)
        return self.url


def _slot(transport, **kwargs):
    events = {"success": [], "error": [], "states": []}
    slot = UploadSlot(
        kwargs.pop("config", CONFIG),
        transport,
        on_success=events["success"].append,
        on_error=events["error"].append,
        on_change=lambda item: events["states"].append(item.status if item else SlotStatus.IDLE),
        **kwargs,
    )
    return slot, events


def test_successful_upload_walks_idle_uploading_success():
    transport = RecordingTransport()
    slot, events = _slot(transport)
    assert slot.status is SlotStatus.IDLE

    url = asyncio.run(slot.select([_file()]))

    assert url == "/uploads/image.webp"
    assert slot.status is SlotStatus.SUCCESS
    assert slot.item.progress == 100
    assert slot.item.url == url
    assert events["states"][0] is SlotStatus.UPLOADING
    assert events["states"][-1] is SlotStatus.SUCCESS
    assert events["success"] == [url]
    assert events["error"] == []


def test_progress_is_recorded_while_uploading():
    seen = []
    transport = RecordingTransport(steps=(10, 55, 90))
    slot = UploadSlot(CONFIG, transport, on_change=lambda item: seen.append(item.progress if item else None))
    asyncio.run(slot.select([_file()]))
    assert seen[:4] == [0, 10, 55, 90]
    assert seen[-1] == 100


def test_oversized_file_errors_without_network_call():
    transport = RecordingTransport()
    slot, events = _slot(transport)

    url = asyncio.run(slot.select([_file("big.png", size=6 * MB)]))

    assert url is None
    assert transport.calls == 0
    assert slot.status is SlotStatus.ERROR
    assert len(events["error"]) == 1
    assert isinstance(events["error"][0], FileTooLargeError)
    assert events["error"][0].message == "File size exceeds maximum allowed (5MB)"


def test_dropping_three_files_on_single_file_slot():
    transport = RecordingTransport()
    slot, events = _slot(transport)

    asyncio.run(slot.select([_file("a.png"), _file("b.png"), _file("c.png")]))

    assert transport.calls == 0
    assert slot.item.file.name == "a.png"
    assert isinstance(events["error"][0], TooManyFilesError)
    assert events["error"][0].message == "Maximum 1 file allowed"
    # one preview for the one FileItem, none for files 2-3
    assert len(slot.previews) == 1


def test_missing_transport_is_configuration_error():
    slot, events = _slot(None)
    url = asyncio.run(slot.select([_file()]))
    assert url is None
    assert slot.status is SlotStatus.ERROR
    assert isinstance(events["error"][0], UploadFunctionNotConfiguredError)
    assert events["error"][0].message == "Upload function is not defined"


def test_empty_url_is_reported():
    slot, events = _slot(RecordingTransport(url=""))
    assert asyncio.run(slot.select([_file()])) is None
    assert isinstance(slot.item.error, NoUrlReturnedError)
    assert slot.item.progress == 0
    assert events["error"][0].message == "Upload failed: No URL returned"


def test_transport_exception_becomes_transport_error():
    async def broken(file, on_progress, token):
        on_progress(30)
        raise ConnectionError("connection reset")

    slot, events = _slot(FunctionTransport(broken))
    assert asyncio.run(slot.select([_file()])) is None
    assert slot.status is SlotStatus.ERROR
    assert slot.item.progress == 0
    assert isinstance(events["error"][0], TransportError)
    assert events["error"][0].message == "connection reset"


def test_cancel_mid_transfer_suppresses_late_success():
    async def scenario():
        halfway, release = asyncio.Event(), asyncio.Event()

        async def slow(file, on_progress, token):
            on_progress(50)
            halfway.set()
            await release.wait()
            return "/uploads/late.webp"

        slot, events = _slot(FunctionTransport(slow))
        task = asyncio.create_task(slot.select([_file()]))
        await halfway.wait()
        assert slot.item.progress == 50
        slot.cancel()
        release.set()
        return slot, events, await task

    slot, events, url = asyncio.run(scenario())

    assert url is None
    assert slot.item.aborted
    assert slot.item.url is None
    assert events["success"] == []
    assert events["error"] == []

    slot.clear()
    assert slot.status is SlotStatus.IDLE
    assert len(slot.previews) == 0


def test_cancel_mid_transfer_suppresses_late_failure():
    async def scenario():
        started, release = asyncio.Event(), asyncio.Event()

        async def flaky(file, on_progress, token):
            started.set()
            await release.wait()
            raise ConnectionError("lost")

        slot, events = _slot(FunctionTransport(flaky))
        task = asyncio.create_task(slot.select([_file()]))
        await started.wait()
        slot.cancel()
        release.set()
        await task
        return slot, events

    slot, events = asyncio.run(scenario())
    assert slot.item.aborted
    assert events["error"] == []


def test_progress_after_cancel_is_ignored():
    async def scenario():
        started, release = asyncio.Event(), asyncio.Event()

        async def chatty(file, on_progress, token):
            started.set()
            await release.wait()
            on_progress(90)
            return "/uploads/x.webp"

        slot, _ = _slot(FunctionTransport(chatty))
        task = asyncio.create_task(slot.select([_file()]))
        await started.wait()
        slot.cancel()
        release.set()
        await task
        return slot

    slot = asyncio.run(scenario())
    assert slot.item.progress == 0


def test_new_selection_cancels_in_flight_upload():
    async def scenario():
        started = asyncio.Event()
        tokens = []

        async def first_then_fast(file, on_progress, token):
            tokens.append(token)
            if file.name == "first.jpg":
                started.set()
                await token.wait()
                return "/uploads/first.webp"
            return "/uploads/second.webp"

        slot, events = _slot(FunctionTransport(first_then_fast))
        first = asyncio.create_task(slot.select([_file("first.jpg")]))
        await started.wait()
        second_url = await slot.select([_file("second.jpg")])
        first_url = await first
        return slot, events, tokens, first_url, second_url

    slot, events, tokens, first_url, second_url = asyncio.run(scenario())

    assert tokens[0].cancelled
    assert not tokens[1].cancelled
    assert first_url is None
    assert second_url == "/uploads/second.webp"
    assert slot.item.file.name == "second.jpg"
    assert slot.status is SlotStatus.SUCCESS
    assert events["success"] == ["/uploads/second.webp"]
    # the replaced attempt's preview was released
    assert len(slot.previews) == 1


def test_clear_after_success_releases_preview():
    slot, _ = _slot(RecordingTransport())
    asyncio.run(slot.select([_file()]))
    preview = slot.item.preview_url
    assert preview in slot.previews
    slot.clear()
    assert slot.item is None
    assert preview not in slot.previews


def test_clear_on_idle_slot_is_noop():
    slot, events = _slot(RecordingTransport())
    slot.clear()
    slot.cancel()
    assert slot.status is SlotStatus.IDLE
    assert events["states"] == []


def test_retry_is_a_fresh_selection():
    slot, events = _slot(RecordingTransport())
    asyncio.run(slot.select([_file(size=9 * MB)]))
    assert slot.status is SlotStatus.ERROR
    first_id = slot.item.id
    url = asyncio.run(slot.select([_file()]))
    assert url == "/uploads/image.webp"
    assert slot.item.id != first_id


@pytest.mark.parametrize("raw, shown", [(-5, 0), (42.4, 42), (250, 100)])
def test_transport_progress_is_clamped(raw, shown):
    seen = []

    async def wild(file, on_progress, token):
        on_progress(raw)
        seen.append(slot.item.progress)
        return "/uploads/ok.webp"

    slot = UploadSlot(CONFIG, FunctionTransport(wild))
    asyncio.run(slot.select([_file()]))
    assert seen == [shown]
