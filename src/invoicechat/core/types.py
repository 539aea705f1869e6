"""Shared core dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from invoicechat.core.models import StructuredResult

Role = Literal["user", "assistant"]


class Disposition(str, Enum):
    """Classification of the buffered stream after one scan."""

    PENDING = "pending"
    LIST_RESULT = "list_result"
    RECORD_RESULT = "record_result"
    PLAIN_TEXT = "plain_text"


class TurnState(str, Enum):
    STREAMING = "streaming"
    RESOLVED_RESULT = "resolved_result"
    RESOLVED_NARRATION = "resolved_narration"
    RESOLVED_FALLBACK = "resolved_fallback"
    RESOLVED_ERROR = "resolved_error"


@dataclass(frozen=True)
class ChatMessage:
    """One history entry sent to the transport."""

    role: Role
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class Classification:
    disposition: Disposition
    result: StructuredResult | None = None

    @property
    def matched(self) -> bool:
        return self.result is not None


@dataclass(frozen=True)
class ScanResult:
    """Outcome of scanning the current buffer once."""

    complete: bool
    disposition: Disposition
    payload: str | None = None
    consumed_up_to: int | None = None
    result: StructuredResult | None = None
    saw_candidate: bool = False


@dataclass(frozen=True)
class TurnOutcome:
    """Terminal outcome of one user turn."""

    state: TurnState
    message: str
    disposition: Disposition = Disposition.PLAIN_TEXT
    error: str | None = None
