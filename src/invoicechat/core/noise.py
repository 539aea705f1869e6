"""Separate user-facing narration from transport and tool-call metadata."""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable

from invoicechat.core.scanner import Segment, find_candidate

# "d:{", "tool:{", "e{" style envelope markers.
TAGGED_ENVELOPE_RE = re.compile(r"^[A-Za-z_]{1,16}\s*:?\s*\{")
# "0:", "12:" index-prefixed stream fragments.
INDEX_PREFIX_RE = re.compile(r"^\d+\s*:")
METADATA_FIELDS = (
    "promptTokens",
    "completionTokens",
    "totalTokens",
    "finishReason",
    "toolCallId",
    "toolName",
    "isContinued",
    "prompt_tokens",
    "completion_tokens",
    "total_tokens",
    "finish_reason",
    "tool_call_id",
    "tool_name",
)

LinePredicate = Callable[[str], bool]


def is_narration_line(line: str) -> bool:
    """Return True when a line is prose meant for the transcript."""

    stripped = line.strip()
    if not stripped:
        return False
    if TAGGED_ENVELOPE_RE.match(stripped):
        return False
    if INDEX_PREFIX_RE.match(stripped):
        return False
    if any(field in stripped for field in METADATA_FIELDS):
        return False
    return not _is_structured(stripped)


def _is_structured(text: str) -> bool:
    if text[0] in "{[":
        return _decodes(text) or not _is_balanced(text)
    # Prose carrying an embedded object, e.g. 'I found this {"error": ...}'.
    candidate = find_candidate(Segment(text, 0))
    return candidate is not None and _decodes(candidate.text)


def _decodes(text: str) -> bool:
    try:
        value = json.loads(text)
    except ValueError:
        return False
    return isinstance(value, (dict, list))


def _is_balanced(text: str) -> bool:
    return text.count("{") == text.count("}") and text.count("[") == text.count("]")


class NoiseFilter:
    """Keep narration lines; the line rule can be swapped without touching the scanner."""

    def __init__(self, predicate: LinePredicate = is_narration_line) -> None:
        self._predicate = predicate

    def filter(self, lines: Iterable[str]) -> list[str]:
        return [line.strip() for line in lines if self._predicate(line)]

    def join(self, lines: Iterable[str]) -> str:
        return " ".join(self.filter(lines)).strip()


def filter_lines(lines: Iterable[str]) -> list[str]:
    return NoiseFilter().filter(lines)
