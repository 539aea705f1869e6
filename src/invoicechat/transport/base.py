"""Transport interface for streamed assistant replies."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Protocol, runtime_checkable

from invoicechat.core.types import ChatMessage


@runtime_checkable
class ChatTransport(Protocol):
    """Open one streamed reply for the given conversation history.

    Chunks are yielded in arrival order; exhaustion is the end-of-stream signal.
    Failures raise ``TransportFailure`` and are terminal for the turn.
    """

    def stream(self, history: Sequence[ChatMessage]) -> AsyncIterator[str]: ...
