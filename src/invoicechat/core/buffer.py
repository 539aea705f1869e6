"""Per-turn accumulation of raw stream chunks."""

from __future__ import annotations


class StreamBuffer:
    """Concatenation of every chunk received for the current turn.

    The buffer only grows while a turn streams. ``consume`` drops leading text
    that a successful extraction has already used; offsets reported by the
    scanner are relative to ``text`` at scan time.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._text = ""
        self._consumed = 0
        self._chunks = 0

    def append(self, chunk: str) -> None:
        if not chunk:
            return
        self._parts.append(chunk)
        self._chunks += 1

    @property
    def text(self) -> str:
        if self._parts:
            self._text += "".join(self._parts)
            self._parts.clear()
        return self._text

    @property
    def chunk_count(self) -> int:
        return self._chunks

    @property
    def consumed(self) -> int:
        """Total characters dropped from the head of the buffer this turn."""
        return self._consumed

    def consume(self, index: int) -> str:
        """Drop text before ``index`` and return it."""
        text = self.text
        index = max(0, min(index, len(text)))
        head, self._text = text[:index], text[index:]
        self._consumed += index
        return head

    def lines(self) -> list[str]:
        return self.text.splitlines()

    def __len__(self) -> int:
        return len(self.text)

    def __bool__(self) -> bool:
        return bool(self._parts) or bool(self._text)
