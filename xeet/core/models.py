"""Value objects passed between the composer and background tasks."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from xeet.utils.errors import XeetError


@dataclass(frozen=True)
class PostOutcome:
    """Result of one network operation.

    Failures carry the classified error; successes may carry the decoded
    response payload (the created post, or the verified identity).
    """

    ok: bool
    error: Optional[XeetError] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, data: Optional[Dict[str, Any]] = None) -> "PostOutcome":
        return cls(ok=True, data=data or {})

    @classmethod
    def failure(cls, error: XeetError) -> "PostOutcome":
        return cls(ok=False, error=error)


## Clipboard payloads


@dataclass(frozen=True)
class ClipboardImage:
    data: bytes


@dataclass(frozen=True)
class ClipboardText:
    text: str


@dataclass(frozen=True)
class ClipboardEmpty:
    pass


ClipboardPayload = Union[ClipboardImage, ClipboardText, ClipboardEmpty]
