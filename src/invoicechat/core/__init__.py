"""Streaming response interpreter."""

from invoicechat.core.types import ChatMessage, Classification, Disposition, ScanResult, TurnOutcome, TurnState
from invoicechat.core.models import InvoiceLine, InvoiceList, InvoiceRecord, StructuredResult
from invoicechat.core.buffer import StreamBuffer
from invoicechat.core.classifier import classify
from invoicechat.core.noise import NoiseFilter, filter_lines, is_narration_line
from invoicechat.core.scanner import PayloadScanner, split_segments
from invoicechat.core.transcript import Transcript, Turn
from invoicechat.core.reveal import RevealHandle, TypingRenderer
from invoicechat.core.session import SessionController, select_fallback

__all__ = [
    "ChatMessage",
    "Classification",
    "Disposition",
    "InvoiceLine",
    "InvoiceList",
    "InvoiceRecord",
    "NoiseFilter",
    "PayloadScanner",
    "RevealHandle",
    "ScanResult",
    "SessionController",
    "StreamBuffer",
    "StructuredResult",
    "Transcript",
    "Turn",
    "TurnOutcome",
    "TurnState",
    "TypingRenderer",
    "classify",
    "filter_lines",
    "is_narration_line",
    "select_fallback",
    "split_segments",
]
