"""Single-queue cooperative loop driving the composer state machine."""

import asyncio
from typing import Awaitable, Callable, Optional, Set

from xeet.core.models import ClipboardEmpty, ClipboardPayload, PostOutcome
from xeet.utils.errors import ErrorHandler, XeetError, safe_execute
from xeet.utils.logging import get_logger, log_event

from .state import (
    ClipboardRead,
    Command,
    ComposerModel,
    ComposerSnapshot,
    Event,
    Exit,
    PostCompleted,
    ReadClipboard,
    SubmitPost,
)

logger = get_logger(__name__)

Submitter = Callable[[str, Optional[bytes]], Awaitable[PostOutcome]]
ClipboardReader = Callable[[], ClipboardPayload]
ChangeListener = Callable[[ComposerSnapshot], None]


class ComposerLoop:
    """Applies events to the composer one at a time, in arrival order.

    Keystrokes, clipboard results and post results all arrive on one queue.
    Anything that blocks (clipboard probing, the network) runs in a
    background task that receives a snapshot of its inputs and posts its
    single result back onto the queue.
    """

    def __init__(
        self,
        submitter: Submitter,
        read_clipboard: ClipboardReader,
        model: Optional[ComposerModel] = None,
        on_change: Optional[ChangeListener] = None,
    ):
        self.submitter = submitter
        self.read_clipboard = read_clipboard
        self.model = model or ComposerModel()
        self.on_change = on_change
        self.events: asyncio.Queue = asyncio.Queue()
        self._background: Set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> int:
        return len(self._background)

    def post(self, event: Event) -> None:
        """Enqueue an event. Safe to call from key handlers and tasks."""
        self.events.put_nowait(event)

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.model.snapshot())

    def step(self, event: Event) -> Optional[Command]:
        """Apply one event and dispatch the resulting command."""
        previous = self.model
        self.model, command = self.model.handle(event)

        if self.model is not previous:
            self._notify()

        if command is not None and not isinstance(command, Exit):
            self._dispatch(command)

        return command

    async def run(self) -> ComposerModel:
        """Process events until a quit; returns the final model.

        Background tasks still in flight are left to finish on their own.
        """
        self._notify()

        while True:
            event = await self.events.get()
            command = self.step(event)
            if isinstance(command, Exit):
                break

        if self.pending_tasks:
            logger.info(f"Exiting with {self.pending_tasks} background task(s) still running")

        return self.model

    ## Background work

    def _dispatch(self, command: Command) -> None:
        if isinstance(command, SubmitPost):
            self._spawn(self._submit(command))
        elif isinstance(command, ReadClipboard):
            self._spawn(self._read_clipboard())

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _submit(self, command: SubmitPost) -> None:
        log_event("post_submitted", "Submitting post", length=len(command.text))

        try:
            outcome = await self.submitter(command.text, command.media)
        except XeetError as e:
            outcome = PostOutcome.failure(e)
        except Exception as e:
            ErrorHandler.handle(e, "Submission task")
            outcome = PostOutcome.failure(XeetError(f"Unexpected error: {e}"))

        self.post(PostCompleted(outcome))

    async def _read_clipboard(self) -> None:
        payload = await asyncio.to_thread(
            safe_execute, self.read_clipboard, default=ClipboardEmpty(), context="Clipboard read"
        )
        self.post(ClipboardRead(payload))
