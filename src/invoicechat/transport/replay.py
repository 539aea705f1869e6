"""Replay a recorded response stream in fixed-size chunks."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from pathlib import Path

from invoicechat.core.types import ChatMessage
from invoicechat.errors import TransportFailure

DEFAULT_CHUNK_SIZE = 16


class ReplayTransport:
    """Serve the same recorded text for every turn."""

    def __init__(self, text: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE, delay: float = 0.0) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self._text = text
        self._chunk_size = chunk_size
        self._delay = delay
        self.requests: list[list[ChatMessage]] = []

    @classmethod
    def from_file(cls, path: Path, **kwargs: float | int) -> ReplayTransport:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TransportFailure(f"cannot read recorded stream {path}: {exc}") from exc
        return cls(text, **kwargs)  # type: ignore[arg-type]

    def chunks(self) -> list[str]:
        size = self._chunk_size
        return [self._text[index : index + size] for index in range(0, len(self._text), size)]

    async def stream(self, history: Sequence[ChatMessage]) -> AsyncIterator[str]:
        self.requests.append(list(history))
        for chunk in self.chunks():
            if self._delay:
                await asyncio.sleep(self._delay)
            yield chunk
