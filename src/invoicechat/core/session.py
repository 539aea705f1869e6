"""Turn controller for the invoice chat panel."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger

from invoicechat.core.buffer import StreamBuffer
from invoicechat.core.models import StructuredResult
from invoicechat.core.noise import NoiseFilter
from invoicechat.core.reveal import DEFAULT_INTERVAL_SECONDS, RevealHandle, TypingRenderer
from invoicechat.core.scanner import PayloadScanner
from invoicechat.core.transcript import Transcript
from invoicechat.core.types import Disposition, ScanResult, TurnOutcome, TurnState
from invoicechat.errors import SessionBusyError, TransportFailure
from invoicechat.transport.base import ChatTransport

INVOICE_NUMBER_RE = re.compile(
    r"\b(?:invoice|inv|doc(?:ument)?)\b[\s#:.-]*(?:(?:no|number|num)\b[\s#:.]*)?(\d+)|#\s*(\d+)",
    re.IGNORECASE,
)

CONFIRMATION_MESSAGE = "Tool called"
NOT_FOUND_TEMPLATE = "I couldn't find invoice {number}. Please check the number and try again."
NO_MATCH_MESSAGE = "The invoice tool was used, but it returned nothing that matches your request."
NO_TOOL_MESSAGE = "Either tool was called and there was an error or not called"
ERROR_MESSAGE = "Something went wrong while contacting the assistant. Please try again."

StructuredResultHandler = Callable[[StructuredResult], None]


@dataclass
class _TurnState:
    prompt: str
    buffer: StreamBuffer = field(default_factory=StreamBuffer)
    saw_candidate: bool = False
    delivered: bool = False


def match_invoice_number(text: str) -> str | None:
    match = INVOICE_NUMBER_RE.search(text)
    if match is None:
        return None
    return match.group(1) or match.group(2)


def select_fallback(prompt: str, narration: str, *, saw_candidate: bool) -> TurnOutcome:
    """Choose the terminal message for a stream that ended without a result."""

    number = match_invoice_number(prompt)
    if number is not None:
        return TurnOutcome(TurnState.RESOLVED_FALLBACK, NOT_FOUND_TEMPLATE.format(number=number))
    if narration:
        return TurnOutcome(TurnState.RESOLVED_NARRATION, narration)
    if saw_candidate:
        return TurnOutcome(TurnState.RESOLVED_FALLBACK, NO_MATCH_MESSAGE)
    return TurnOutcome(TurnState.RESOLVED_FALLBACK, NO_TOOL_MESSAGE)


class SessionController:
    """Own the transcript and drive one streamed assistant turn at a time."""

    def __init__(
        self,
        transport: ChatTransport,
        *,
        on_structured_result: StructuredResultHandler | None = None,
        on_turn_end: Callable[[], None] | None = None,
        transcript: Transcript | None = None,
        scanner: PayloadScanner | None = None,
        noise_filter: NoiseFilter | None = None,
        reveal_interval: float = DEFAULT_INTERVAL_SECONDS,
        confirmation_message: str = CONFIRMATION_MESSAGE,
    ) -> None:
        self._transport = transport
        self._on_structured_result = on_structured_result
        self._on_turn_end = on_turn_end
        self.transcript = transcript or Transcript()
        self._scanner = scanner or PayloadScanner()
        self._noise_filter = noise_filter or NoiseFilter()
        self._renderer = TypingRenderer(self.transcript, reveal_interval)
        self._confirmation_message = confirmation_message
        self._loading = False
        self._last_reveal: RevealHandle | None = None

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def last_reveal(self) -> RevealHandle | None:
        return self._last_reveal

    async def submit(self, text: str) -> TurnOutcome | None:
        """Run one user turn to its terminal state. Blank input is ignored."""

        if not text.strip():
            return None
        if self._loading:
            raise SessionBusyError("a turn is already in progress")

        self._loading = True
        try:
            await self._renderer.settle()
            self.transcript.append("user", text)
            logger.info("session.turn.start turns={}", len(self.transcript))
            outcome = await self._run_turn(_TurnState(prompt=text))
            self._last_reveal = self._renderer.reveal(outcome.message)
            logger.info("session.turn.finish state={} disposition={}", outcome.state.value, outcome.disposition.value)
            return outcome
        finally:
            self._loading = False
            if self._on_turn_end is not None:
                self._on_turn_end()

    async def wait_idle(self) -> None:
        await self._renderer.settle()

    async def _run_turn(self, state: _TurnState) -> TurnOutcome:
        try:
            scan = await self._read_stream(state)
        except TransportFailure as exc:
            logger.error("session.transport.failure error={}", exc)
            return TurnOutcome(TurnState.RESOLVED_ERROR, ERROR_MESSAGE, error=str(exc))
        except Exception as exc:
            logger.exception("session.stream.error")
            return TurnOutcome(TurnState.RESOLVED_ERROR, ERROR_MESSAGE, error=f"{type(exc).__name__}: {exc!s}")

        if scan is not None:
            return TurnOutcome(TurnState.RESOLVED_RESULT, self._confirmation_message, disposition=scan.disposition)

        narration = self._noise_filter.join(state.buffer.lines())
        outcome = select_fallback(state.prompt, narration, saw_candidate=state.saw_candidate)
        logger.debug(
            "session.stream.ended chunks={} saw_candidate={} state={}",
            state.buffer.chunk_count,
            state.saw_candidate,
            outcome.state.value,
        )
        return outcome

    async def _read_stream(self, state: _TurnState) -> ScanResult | None:
        stream = self._transport.stream(self.transcript.history())
        try:
            async for chunk in stream:
                state.buffer.append(chunk)
                scan = self._scan(state)
                if scan is not None:
                    return scan
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        return None

    def _scan(self, state: _TurnState) -> ScanResult | None:
        if state.delivered:
            return None
        scan = self._scanner.scan(state.buffer.text)
        state.saw_candidate = state.saw_candidate or scan.saw_candidate
        if not scan.complete or scan.result is None:
            return None

        state.delivered = True
        state.buffer.consume(scan.consumed_up_to or 0)
        result = scan.result
        if self._on_structured_result is not None:
            try:
                self._on_structured_result(result)
            except Exception:
                # A failing host handler does not turn a received result into a stream error.
                logger.exception("session.result.handler_failed disposition={}", scan.disposition.value)
        if scan.disposition is Disposition.LIST_RESULT:
            logger.info("session.result.delivered kind=list count={}", len(result))  # type: ignore[arg-type]
        else:
            logger.info("session.result.delivered kind=record")
        return scan
