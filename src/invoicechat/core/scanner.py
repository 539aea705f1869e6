"""Locate structured payloads inside a partially delivered response stream."""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from loguru import logger

from invoicechat.core.classifier import classify, is_transport_metadata
from invoicechat.core.types import Classification, Disposition, ScanResult

# Newlines, or the gap after a "}" that is followed by a tagged line such as "d:" or "tool:".
SEGMENT_BOUNDARY_RE = re.compile(r"\r?\n|(?<=\})\s*(?=[A-Za-z_]\w*:)")


@dataclass(frozen=True)
class Segment:
    text: str
    start: int


@dataclass(frozen=True)
class Candidate:
    """Brace-delimited span of one segment."""

    text: str
    start: int
    end: int


def split_segments(text: str) -> list[Segment]:
    """Split buffered text into line-like segments, keeping absolute offsets."""

    segments: list[Segment] = []
    position = 0
    for match in SEGMENT_BOUNDARY_RE.finditer(text):
        if match.start() == position and match.end() == position:
            continue
        segments.append(Segment(text[position : match.start()], position))
        position = match.end()
    segments.append(Segment(text[position:], position))
    return [segment for segment in segments if segment.text]


def find_candidate(segment: Segment) -> Candidate | None:
    """Return the span from the first ``{`` to the last ``}`` of a segment.

    A span directly inside ``[`` is widened to the closing ``]`` so bare lists
    decode as lists. Returns None when the segment holds no complete span yet.
    """

    text = segment.text
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    end += 1

    prefix = text[:start].rstrip()
    if prefix.endswith("["):
        closing = text.find("]", end)
        if closing == -1 or text[end:closing].strip():
            return None
        start = len(prefix) - 1
        end = closing + 1
    return Candidate(text[start:end], segment.start + start, segment.start + end)


def decode_candidate(candidate: Candidate) -> tuple[bool, Any]:
    try:
        return True, json.loads(candidate.text)
    except ValueError:
        # Truncated or noisy span; more chunks may complete it.
        logger.trace("scanner.candidate.malformed start={} length={}", candidate.start, len(candidate.text))
        return False, None


class PayloadScanner:
    """Scan a buffer for the first recognizable invoice payload.

    The scan is a pure function of the buffer text: every call re-derives the
    segments and candidates, so identical text gives identical results no
    matter how it was chunked.
    """

    def __init__(self, classifier: Callable[[Any], Classification] = classify) -> None:
        self._classify = classifier

    def scan(self, text: str) -> ScanResult:
        saw_candidate = False
        for candidate in self.candidates(text):
            ok, decoded = decode_candidate(candidate)
            if not ok or is_transport_metadata(decoded):
                continue
            classification = self._classify(decoded)
            if not classification.matched:
                saw_candidate = True
                continue
            logger.debug(
                "scanner.payload.found disposition={} end={}",
                classification.disposition.value,
                candidate.end,
            )
            return ScanResult(
                complete=True,
                disposition=classification.disposition,
                payload=candidate.text,
                consumed_up_to=candidate.end,
                result=classification.result,
                saw_candidate=True,
            )
        return ScanResult(complete=False, disposition=Disposition.PENDING, saw_candidate=saw_candidate)

    def candidates(self, text: str) -> Iterator[Candidate]:
        for segment in split_segments(text):
            candidate = find_candidate(segment)
            if candidate is not None:
                yield candidate
