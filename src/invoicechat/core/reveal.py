"""Simulated typing for finalized assistant text."""

from __future__ import annotations

import asyncio
import contextlib

from loguru import logger

from invoicechat.core.transcript import Transcript
from invoicechat.errors import RevealInProgressError

DEFAULT_INTERVAL_SECONDS = 0.01


class RevealHandle:
    """Handle to one running reveal."""

    def __init__(self, transcript: Transcript, text: str) -> None:
        self._transcript = transcript
        self._text = text
        self._cancelled = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def text(self) -> str:
        return self._text

    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def cancel(self) -> None:
        """Stop animating and show the full text at once."""
        self._cancelled.set()

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    def _start(self, interval: float) -> None:
        self._task = asyncio.create_task(self._run(interval), name="invoicechat.reveal")

    async def _run(self, interval: float) -> None:
        cursor = 0
        try:
            while cursor < len(self._text) and not self._cancelled.is_set():
                cursor += 1
                self._transcript.update_in_progress(self._text[:cursor])
                await self._tick(interval)
        finally:
            if self._transcript.in_progress_turn() is not None:
                self._transcript.update_in_progress(self._text, done=True)
        if cursor < len(self._text):
            logger.debug("reveal.cancelled shown={} total={}", cursor, len(self._text))

    async def _tick(self, interval: float) -> None:
        if interval <= 0:
            await asyncio.sleep(0)
            return
        # Wake early when cancelled.
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._cancelled.wait(), timeout=interval)


class TypingRenderer:
    """Reveal text into a single in-progress assistant turn, one character per tick."""

    def __init__(self, transcript: Transcript, interval: float = DEFAULT_INTERVAL_SECONDS) -> None:
        self._transcript = transcript
        self._interval = interval
        self._active: RevealHandle | None = None

    @property
    def active(self) -> RevealHandle | None:
        if self._active is not None and self._active.done():
            self._active = None
        return self._active

    def reveal(self, text: str) -> RevealHandle:
        if self.active is not None:
            raise RevealInProgressError("a reveal is already running")
        self._transcript.append("assistant", "", in_progress=True)
        handle = RevealHandle(self._transcript, text)
        handle._start(self._interval)
        self._active = handle
        return handle

    async def settle(self) -> None:
        """Wait for the running reveal, if any, to finish."""
        handle = self.active
        if handle is not None:
            await handle.wait()
