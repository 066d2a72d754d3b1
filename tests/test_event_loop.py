"""
Tests for the composer event loop

Tests cover:
- Ordered event processing and change notification
- Background submission and result delivery
- Clipboard reads off the event loop
- End-to-end posting against mocked endpoints
"""
import asyncio
import threading
from unittest.mock import AsyncMock, MagicMock

import pytest
import responses

from xeet.core.api_client import PostSubmitter
from xeet.core.models import ClipboardEmpty, ClipboardImage, ClipboardText, PostOutcome
from xeet.core.rate_limiter import TokenBucket
from xeet.features.compose.loop import ComposerLoop
from xeet.features.compose.state import Failed, Key, KeyPressed, Mode, Posted, ReadClipboard
from xeet.utils.config_manager import ApiConfig
from xeet.utils.errors import MediaUploadFailed

PNG = b"\x89PNG\r\n\x1a\nimage"


class Recorder:
    """Collects snapshots and lets a test wait for a given screen."""

    def __init__(self):
        self.snapshots = []

    def __call__(self, snapshot):
        self.snapshots.append(snapshot)

    async def wait_until(self, predicate, timeout: float = 5.0):
        async def poll():
            while not any(predicate(s) for s in self.snapshots):
                await asyncio.sleep(0.01)

        await asyncio.wait_for(poll(), timeout)

    async def wait_for(self, mode: Mode, timeout: float = 5.0):
        await self.wait_until(lambda s: s.mode is mode, timeout)


def type_text(loop: ComposerLoop, text: str) -> None:
    for char in text:
        loop.post(KeyPressed(Key.CHARACTER, char))


class TestStep:
    """Tests for single-event processing"""

    @pytest.mark.asyncio
    async def test_step_notifies_on_change(self):
        recorder = Recorder()
        loop = ComposerLoop(AsyncMock(), MagicMock(), on_change=recorder)

        loop.step(KeyPressed(Key.CHARACTER, "a"))
        loop.step(KeyPressed(Key.BACKSPACE))
        loop.step(KeyPressed(Key.BACKSPACE))

        assert [s.text for s in recorder.snapshots] == ["a", ""]

    @pytest.mark.asyncio
    async def test_paste_spawns_clipboard_read(self):
        read_clipboard = MagicMock(return_value=ClipboardText("pasted"))
        loop = ComposerLoop(AsyncMock(), read_clipboard)

        command = loop.step(KeyPressed(Key.PASTE))
        assert command == ReadClipboard()
        assert loop.pending_tasks == 1

        event = await asyncio.wait_for(loop.events.get(), 5)
        loop.step(event)

        assert loop.model.buffer.text == "pasted"
        read_clipboard.assert_called_once()

    @pytest.mark.asyncio
    async def test_clipboard_read_runs_off_the_loop_thread(self):
        seen = {}

        def read_clipboard():
            seen["thread"] = threading.current_thread()
            return ClipboardImage(PNG)

        loop = ComposerLoop(AsyncMock(), read_clipboard)
        loop.step(KeyPressed(Key.PASTE))
        loop.step(await asyncio.wait_for(loop.events.get(), 5))

        assert seen["thread"] is not threading.current_thread()
        assert loop.model.media == PNG

    @pytest.mark.asyncio
    async def test_clipboard_failure_reads_as_empty(self):
        loop = ComposerLoop(AsyncMock(), MagicMock(side_effect=OSError("no display")))
        loop.step(KeyPressed(Key.PASTE))

        event = await asyncio.wait_for(loop.events.get(), 5)
        assert event.payload == ClipboardEmpty()


class TestRun:
    """Tests for the full run loop"""

    @pytest.mark.asyncio
    async def test_submit_reaches_posted(self):
        submitter = AsyncMock(return_value=PostOutcome.success({"data": {"id": "1"}}))
        recorder = Recorder()
        loop = ComposerLoop(submitter, MagicMock(), on_change=recorder)

        task = asyncio.create_task(loop.run())
        type_text(loop, "hello")
        loop.post(KeyPressed(Key.SUBMIT))

        await recorder.wait_for(Mode.POSTED)
        loop.post(KeyPressed(Key.QUIT))
        model = await asyncio.wait_for(task, 5)

        submitter.assert_awaited_once_with("hello", None)
        assert isinstance(model.state, Posted)
        assert Mode.POSTING in [s.mode for s in recorder.snapshots]

    @pytest.mark.asyncio
    async def test_second_submit_while_posting_is_ignored(self):
        release = asyncio.Event()

        async def submitter(text, media):
            await release.wait()
            return PostOutcome.success()

        mock_submitter = AsyncMock(side_effect=submitter)
        recorder = Recorder()
        loop = ComposerLoop(mock_submitter, MagicMock(), on_change=recorder)

        task = asyncio.create_task(loop.run())
        type_text(loop, "once")
        loop.post(KeyPressed(Key.SUBMIT))
        loop.post(KeyPressed(Key.SUBMIT))

        await recorder.wait_for(Mode.POSTING)
        release.set()
        await recorder.wait_for(Mode.POSTED)
        loop.post(KeyPressed(Key.QUIT))
        await asyncio.wait_for(task, 5)

        assert mock_submitter.await_count == 1

    @pytest.mark.asyncio
    async def test_submitter_exception_becomes_failure(self):
        recorder = Recorder()
        loop = ComposerLoop(AsyncMock(side_effect=RuntimeError("boom")), MagicMock(), on_change=recorder)

        task = asyncio.create_task(loop.run())
        type_text(loop, "hi")
        loop.post(KeyPressed(Key.SUBMIT))

        await recorder.wait_for(Mode.FAILED)
        loop.post(KeyPressed(Key.QUIT))
        model = await asyncio.wait_for(task, 5)

        assert isinstance(model.state, Failed)
        assert "boom" in model.snapshot().error

    @pytest.mark.asyncio
    async def test_quit_does_not_wait_for_submission(self):
        never = asyncio.Event()

        async def submitter(text, media):
            await never.wait()

        loop = ComposerLoop(submitter, MagicMock())
        task = asyncio.create_task(loop.run())
        type_text(loop, "slow")
        loop.post(KeyPressed(Key.SUBMIT))
        loop.post(KeyPressed(Key.QUIT))

        model = await asyncio.wait_for(task, 5)

        assert model.state.mode is Mode.POSTING
        assert loop.pending_tasks == 1

        for pending in list(loop._background):
            pending.cancel()
        await asyncio.sleep(0)


class TestEndToEnd:
    """Tests driving the loop against mocked HTTP endpoints"""

    @pytest.mark.asyncio
    async def test_post_with_valid_credentials(self, saved_store):
        api = ApiConfig()
        submitter = PostSubmitter(saved_store, TokenBucket.unlimited(), api)
        recorder = Recorder()
        loop = ComposerLoop(submitter, MagicMock(), on_change=recorder)

        with responses.RequestsMock() as rsps:
            rsps.add(responses.POST, api.messages_url, json={"data": {"id": "99", "text": "hello"}}, status=201)

            task = asyncio.create_task(loop.run())
            type_text(loop, "hello")
            loop.post(KeyPressed(Key.SUBMIT))

            await recorder.wait_for(Mode.POSTED)
            loop.post(KeyPressed(Key.QUIT))
            model = await asyncio.wait_for(task, 5)

            assert len(rsps.calls) == 1

        assert isinstance(model.state, Posted)

    @pytest.mark.asyncio
    async def test_media_upload_failure_skips_post(self, saved_store):
        api = ApiConfig()
        submitter = PostSubmitter(saved_store, TokenBucket.unlimited(), api)
        recorder = Recorder()
        loop = ComposerLoop(submitter, MagicMock(return_value=ClipboardImage(PNG)), on_change=recorder)

        with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
            rsps.add(responses.POST, api.media_upload_url, body="internal error", status=500)
            rsps.add(responses.POST, api.messages_url, json={}, status=201)

            task = asyncio.create_task(loop.run())
            type_text(loop, "hello")
            loop.post(KeyPressed(Key.PASTE))
            await recorder.wait_until(lambda s: s.has_media)
            loop.post(KeyPressed(Key.SUBMIT))

            await recorder.wait_for(Mode.FAILED)
            loop.post(KeyPressed(Key.QUIT))
            model = await asyncio.wait_for(task, 5)

            message_calls = [c for c in rsps.calls if c.request.url == api.messages_url]
            assert len(message_calls) == 0

        assert isinstance(model.state, Failed)
        assert isinstance(model.state.reason, MediaUploadFailed)
        assert model.media == PNG
        assert model.buffer.text == "hello"
