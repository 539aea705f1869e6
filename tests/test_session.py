from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from invoicechat.core.models import InvoiceList, InvoiceRecord, StructuredResult
from invoicechat.core.session import (
    ERROR_MESSAGE,
    NO_MATCH_MESSAGE,
    NO_TOOL_MESSAGE,
    SessionController,
    match_invoice_number,
    select_fallback,
)
from invoicechat.core.types import ChatMessage, Disposition, TurnState
from invoicechat.errors import SessionBusyError, TransportFailure
from invoicechat.transport.replay import ReplayTransport


@dataclass
class _Host:
    results: list[StructuredResult] = field(default_factory=list)
    turn_ends: int = 0

    def on_result(self, result: StructuredResult) -> None:
        self.results.append(result)

    def on_turn_end(self) -> None:
        self.turn_ends += 1


@dataclass
class _FailingTransport:
    chunks: list[str]
    error: Exception

    async def stream(self, history: Sequence[ChatMessage]):
        for chunk in self.chunks:
            yield chunk
        raise self.error


def _controller(transport, host: _Host) -> SessionController:
    return SessionController(
        transport,
        on_structured_result=host.on_result,
        on_turn_end=host.on_turn_end,
        reveal_interval=0,
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("chunk_size", [1, 3, 8, 33, 10_000])
async def test_record_is_delivered_once_for_any_chunking(record_stream: str, chunk_size: int) -> None:
    host = _Host()
    controller = _controller(ReplayTransport(record_stream, chunk_size=chunk_size), host)

    outcome = await controller.submit("get invoice 130")
    await controller.wait_idle()

    assert outcome is not None
    assert outcome.state is TurnState.RESOLVED_RESULT
    assert outcome.disposition is Disposition.RECORD_RESULT
    assert len(host.results) == 1
    assert isinstance(host.results[0], InvoiceRecord)
    assert host.results[0].doc_number == "1037"
    assert controller.transcript.last is not None
    assert controller.transcript.last.text == "Tool called"
    assert host.turn_ends == 1


@pytest.mark.asyncio
async def test_duplicate_payload_is_delivered_at_most_once(list_stream: str) -> None:
    host = _Host()
    controller = _controller(ReplayTransport(list_stream + list_stream, chunk_size=5), host)

    outcome = await controller.submit("show my invoices")
    await controller.wait_idle()

    assert outcome is not None
    assert outcome.disposition is Disposition.LIST_RESULT
    assert len(host.results) == 1
    assert isinstance(host.results[0], InvoiceList)
    assert len(host.results[0]) == 2


@pytest.mark.asyncio
async def test_invoice_number_fallback_mentions_number(miss_stream: str) -> None:
    host = _Host()
    controller = _controller(ReplayTransport(miss_stream, chunk_size=4), host)

    outcome = await controller.submit("where is invoice 4521?")
    await controller.wait_idle()

    assert outcome is not None
    assert outcome.state is TurnState.RESOLVED_FALLBACK
    assert "4521" in outcome.message
    assert controller.transcript.last is not None
    assert "4521" in controller.transcript.last.text
    assert host.results == []
    assert host.turn_ends == 1


@pytest.mark.asyncio
async def test_unmatched_tool_payload_uses_no_match_message(miss_stream: str) -> None:
    controller = _controller(ReplayTransport(miss_stream), _Host())
    outcome = await controller.submit("show the overdue ones")
    assert outcome is not None
    assert outcome.message == NO_MATCH_MESSAGE


@pytest.mark.asyncio
async def test_empty_stream_uses_no_tool_message() -> None:
    controller = _controller(ReplayTransport('d:{"finishReason":"stop"}\n'), _Host())
    outcome = await controller.submit("hello")
    assert outcome is not None
    assert outcome.message == NO_TOOL_MESSAGE


@pytest.mark.asyncio
async def test_narration_reaches_transcript_without_metadata() -> None:
    metadata = [
        'e:{"finishReason":"stop","usage":{"promptTokens":12,"completionTokens":3}}',
        "toolName: getTop5InvoicesFromApi",
        '0:"fragment"',
    ]
    stream = "\n".join(["I could not reach the invoice service.", *metadata, "Please reconnect QuickBooks.", ""])
    controller = _controller(ReplayTransport(stream, chunk_size=6), _Host())

    outcome = await controller.submit("what do I owe?")
    await controller.wait_idle()

    assert outcome is not None
    assert outcome.state is TurnState.RESOLVED_NARRATION
    visible = [turn.text for turn in controller.transcript if turn.role == "assistant"]
    assert visible == ["I could not reach the invoice service. Please reconnect QuickBooks."]
    for line in metadata:
        assert all(line not in text for text in visible)


@pytest.mark.asyncio
async def test_transport_failure_resolves_with_error_turn() -> None:
    host = _Host()
    transport = _FailingTransport(["partial "], TransportFailure("connection reset"))
    controller = _controller(transport, host)

    outcome = await controller.submit("get invoice 12")
    await controller.wait_idle()

    assert outcome is not None
    assert outcome.state is TurnState.RESOLVED_ERROR
    assert outcome.error == "connection reset"
    assert controller.transcript.last is not None
    assert controller.transcript.last.text == ERROR_MESSAGE
    assert host.turn_ends == 1
    assert controller.loading is False


@pytest.mark.asyncio
async def test_unexpected_stream_error_is_terminal_too() -> None:
    controller = _controller(_FailingTransport([], RuntimeError("boom")), _Host())
    outcome = await controller.submit("hi")
    assert outcome is not None
    assert outcome.state is TurnState.RESOLVED_ERROR
    assert outcome.error == "RuntimeError: boom"


@pytest.mark.asyncio
async def test_history_includes_previous_turns(record_stream: str) -> None:
    transport = ReplayTransport(record_stream)
    controller = _controller(transport, _Host())

    await controller.submit("first")
    await controller.submit("second")
    await controller.wait_idle()

    assert [message.content for message in transport.requests[0]] == ["first"]
    assert [message.as_dict() for message in transport.requests[1]] == [
        {"role": "user", "content": "first"},
        {"role": "assistant", "content": "Tool called"},
        {"role": "user", "content": "second"},
    ]


@pytest.mark.asyncio
async def test_blank_input_is_ignored() -> None:
    host = _Host()
    controller = _controller(ReplayTransport(""), host)
    assert await controller.submit("   ") is None
    assert len(controller.transcript) == 0
    assert host.turn_ends == 0


@pytest.mark.asyncio
async def test_submit_while_loading_is_rejected(record_stream: str) -> None:
    @dataclass
    class _ReentrantTransport:
        controller: SessionController | None = None
        errors: list[Exception] = field(default_factory=list)

        async def stream(self, history: Sequence[ChatMessage]):
            assert self.controller is not None
            try:
                await self.controller.submit("again")
            except SessionBusyError as exc:
                self.errors.append(exc)
            yield record_stream

    transport = _ReentrantTransport()
    controller = _controller(transport, _Host())
    transport.controller = controller

    outcome = await controller.submit("first")

    assert outcome is not None
    assert outcome.state is TurnState.RESOLVED_RESULT
    assert len(transport.errors) == 1


def test_invoice_number_patterns() -> None:
    assert match_invoice_number("where is invoice 4521?") == "4521"
    assert match_invoice_number("get INV-001 please") == "001"
    assert match_invoice_number("invoice number 77") == "77"
    assert match_invoice_number("what about #9001") == "9001"
    assert match_invoice_number("show invoices from last year") is None
    assert match_invoice_number("show me 4521") is None
    assert match_invoice_number("invoices from 2024") is None


def test_select_fallback_priority() -> None:
    assert select_fallback("invoice 5", "some text", saw_candidate=True).state is TurnState.RESOLVED_FALLBACK
    narration = select_fallback("hello", "some text", saw_candidate=True)
    assert narration.state is TurnState.RESOLVED_NARRATION
    assert narration.message == "some text"
    assert select_fallback("hello", "", saw_candidate=True).message == NO_MATCH_MESSAGE
    assert select_fallback("hello", "", saw_candidate=False).message == NO_TOOL_MESSAGE


@pytest.mark.asyncio
async def test_failing_result_handler_keeps_the_result_turn(record_stream: str) -> None:
    calls: list[StructuredResult] = []

    def broken_handler(result: StructuredResult) -> None:
        calls.append(result)
        raise KeyError("panel")

    host = _Host()
    controller = SessionController(
        ReplayTransport(record_stream, chunk_size=7),
        on_structured_result=broken_handler,
        on_turn_end=host.on_turn_end,
        reveal_interval=0,
    )

    outcome = await controller.submit("get invoice 130")
    await controller.wait_idle()

    assert outcome is not None
    assert outcome.state is TurnState.RESOLVED_RESULT
    assert len(calls) == 1
    assert controller.transcript.last is not None
    assert controller.transcript.last.text == "Tool called"
    assert host.turn_ends == 1


@pytest.mark.asyncio
async def test_prose_with_embedded_payload_is_not_revealed() -> None:
    controller = _controller(ReplayTransport('I found this {"error":"Not Found","status":404}\n'), _Host())

    outcome = await controller.submit("hello")
    await controller.wait_idle()

    assert outcome is not None
    assert outcome.state is TurnState.RESOLVED_FALLBACK
    assert outcome.message == NO_MATCH_MESSAGE
    assert controller.transcript.last is not None
    assert "{" not in controller.transcript.last.text
