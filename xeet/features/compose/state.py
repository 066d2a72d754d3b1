"""Composer state machine.

Every operation is a pure transition: it returns a new ``ComposerModel``
and at most one ``Command`` for the event loop to carry out. The model is
immutable, so transitions are the only way to change state.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import NamedTuple, Optional, Union

from xeet.core.constants import MAX_POST_LENGTH
from xeet.core.models import (
    ClipboardEmpty,
    ClipboardImage,
    ClipboardPayload,
    ClipboardText,
    PostOutcome,
)
from xeet.utils.errors import XeetError, format_error_message
from xeet.utils.logging import get_logger

logger = get_logger(__name__)


## States


class Mode(Enum):
    IDLE = "idle"
    POSTING = "posting"
    POSTED = "posted"
    FAILED = "failed"


@dataclass(frozen=True)
class Idle:
    mode = Mode.IDLE


@dataclass(frozen=True)
class Posting:
    mode = Mode.POSTING


@dataclass(frozen=True)
class Posted:
    mode = Mode.POSTED


@dataclass(frozen=True)
class Failed:
    reason: XeetError
    mode = Mode.FAILED


ComposerState = Union[Idle, Posting, Posted, Failed]


## Events


class Key(Enum):
    CHARACTER = "character"
    SUBMIT = "submit"
    NEWLINE = "newline"
    BACKSPACE = "backspace"
    LEFT = "left"
    RIGHT = "right"
    PASTE = "paste"
    QUIT = "quit"


@dataclass(frozen=True)
class KeyPressed:
    key: Key
    char: str = ""


@dataclass(frozen=True)
class ClipboardRead:
    payload: ClipboardPayload


@dataclass(frozen=True)
class PostCompleted:
    outcome: PostOutcome


@dataclass(frozen=True)
class Terminate:
    pass


Event = Union[KeyPressed, ClipboardRead, PostCompleted, Terminate]


## Commands


@dataclass(frozen=True)
class SubmitPost:
    text: str
    media: Optional[bytes] = None


@dataclass(frozen=True)
class ReadClipboard:
    pass


@dataclass(frozen=True)
class Exit:
    pass


Command = Union[SubmitPost, ReadClipboard, Exit]


## Buffer


@dataclass(frozen=True)
class ComposeBuffer:
    """Message text plus a cursor in ``[0, len(text)]``."""

    text: str = ""
    cursor: int = 0

    def __post_init__(self):
        if not 0 <= self.cursor <= len(self.text):
            raise ValueError(f"cursor {self.cursor} outside 0..{len(self.text)}")

    def __len__(self) -> int:
        return len(self.text)

    def insert(self, text: str) -> "ComposeBuffer":
        return ComposeBuffer(
            self.text[:self.cursor] + text + self.text[self.cursor:],
            self.cursor + len(text),
        )

    def delete_backward(self) -> "ComposeBuffer":
        if self.cursor == 0:
            return self
        return ComposeBuffer(
            self.text[:self.cursor - 1] + self.text[self.cursor:],
            self.cursor - 1,
        )

    def move(self, delta: int) -> "ComposeBuffer":
        return ComposeBuffer(self.text, max(0, min(len(self.text), self.cursor + delta)))


@dataclass(frozen=True)
class ComposerSnapshot:
    """Everything the display needs, taken after each transition."""

    text: str
    cursor: int
    mode: Mode
    has_media: bool
    error: Optional[str]
    max_length: int

    @property
    def length(self) -> int:
        return len(self.text)


class Transition(NamedTuple):
    model: "ComposerModel"
    command: Optional[Command] = None


## Model


@dataclass(frozen=True)
class ComposerModel:
    buffer: ComposeBuffer = field(default_factory=ComposeBuffer)
    media: Optional[bytes] = None
    state: ComposerState = field(default_factory=Idle)
    max_length: int = MAX_POST_LENGTH

    @property
    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    @property
    def is_finished(self) -> bool:
        return isinstance(self.state, (Posted, Failed))

    def _unchanged(self) -> Transition:
        return Transition(self)

    def _fits(self, text: str) -> bool:
        return len(self.buffer) + len(text) <= self.max_length

    ## Editing

    def insert(self, char: str) -> Transition:
        if len(char) != 1 or not char.isprintable():
            return self._unchanged()

        if self.is_finished:
            # Dismissing the result screen and typing are the same keystroke
            return Transition(ComposerModel(ComposeBuffer(char, 1), max_length=self.max_length))

        if not self.is_idle or not self._fits(char):
            return self._unchanged()

        return Transition(replace(self, buffer=self.buffer.insert(char)))

    def insert_newline(self) -> Transition:
        if not self.is_idle or not self._fits("\n"):
            return self._unchanged()
        return Transition(replace(self, buffer=self.buffer.insert("\n")))

    def delete_backward(self) -> Transition:
        if not self.is_idle or self.buffer.cursor == 0:
            return self._unchanged()
        return Transition(replace(self, buffer=self.buffer.delete_backward()))

    def move_cursor(self, delta: int) -> Transition:
        if not self.is_idle:
            return self._unchanged()
        moved = self.buffer.move(delta)
        if moved == self.buffer:
            return self._unchanged()
        return Transition(replace(self, buffer=moved))

    ## Clipboard

    def request_paste(self) -> Transition:
        if not self.is_idle:
            return self._unchanged()
        return Transition(self, ReadClipboard())

    def merge_clipboard(self, payload: ClipboardPayload) -> Transition:
        if not self.is_idle:
            return self._unchanged()

        if isinstance(payload, ClipboardImage):
            return Transition(replace(self, media=payload.data))

        if isinstance(payload, ClipboardText) and payload.text:
            if not self._fits(payload.text):
                logger.debug(
                    f"Dropped {len(payload.text)} character paste: would exceed {self.max_length}"
                )
                return self._unchanged()
            return Transition(replace(self, buffer=self.buffer.insert(payload.text)))

        return self._unchanged()

    ## Submission

    def submit(self) -> Transition:
        if not self.is_idle:
            return self._unchanged()

        if not self.buffer.text:
            logger.debug("Ignoring submit of an empty post")
            return self._unchanged()

        return Transition(
            replace(self, state=Posting()),
            SubmitPost(self.buffer.text, self.media),
        )

    def on_post_result(self, outcome: PostOutcome) -> Transition:
        if not isinstance(self.state, Posting):
            logger.warning("Ignoring post result that arrived outside of posting")
            return self._unchanged()

        if outcome.ok:
            return Transition(replace(self, state=Posted(), media=None))

        reason = outcome.error or XeetError("Post failed")
        return Transition(replace(self, state=Failed(reason)))

    def quit(self) -> Transition:
        return Transition(self, Exit())

    ## Dispatch

    def handle(self, event: Event) -> Transition:
        if isinstance(event, KeyPressed):
            return self._handle_key(event)
        if isinstance(event, ClipboardRead):
            return self.merge_clipboard(event.payload)
        if isinstance(event, PostCompleted):
            return self.on_post_result(event.outcome)
        if isinstance(event, Terminate):
            return self.quit()
        raise TypeError(f"Unknown composer event: {event!r}")

    def _handle_key(self, event: KeyPressed) -> Transition:
        key = event.key

        if key is Key.CHARACTER:
            return self.insert(event.char)
        if key is Key.SUBMIT:
            return self.submit()
        if key is Key.NEWLINE:
            return self.insert_newline()
        if key is Key.BACKSPACE:
            return self.delete_backward()
        if key is Key.LEFT:
            return self.move_cursor(-1)
        if key is Key.RIGHT:
            return self.move_cursor(1)
        if key is Key.PASTE:
            return self.request_paste()
        if key is Key.QUIT:
            return self.quit()

        return self._unchanged()

    def snapshot(self) -> ComposerSnapshot:
        error = None
        if isinstance(self.state, Failed):
            error = format_error_message(self.state.reason)

        return ComposerSnapshot(
            text=self.buffer.text,
            cursor=self.buffer.cursor,
            mode=self.state.mode,
            has_media=self.media is not None,
            error=error,
            max_length=self.max_length,
        )
