"""In-memory conversation transcript."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace

from invoicechat.core.types import ChatMessage, Role
from invoicechat.errors import TranscriptInvariantError

TranscriptListener = Callable[["Transcript"], None]


@dataclass(frozen=True)
class Turn:
    role: Role
    text: str
    in_progress: bool = False


class Transcript:
    """Ordered turns of one session.

    At most one turn is in progress and it is always the last assistant turn.
    ``update_in_progress`` is the only way to change an existing turn.
    """

    def __init__(self) -> None:
        self._turns: list[Turn] = []
        self._listeners: list[TranscriptListener] = []

    def subscribe(self, listener: TranscriptListener) -> None:
        self._listeners.append(listener)

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def last(self) -> Turn | None:
        return self._turns[-1] if self._turns else None

    def in_progress_turn(self) -> Turn | None:
        last = self.last
        if last is not None and last.role == "assistant" and last.in_progress:
            return last
        return None

    def append(self, role: Role, text: str, *, in_progress: bool = False) -> Turn:
        if self.in_progress_turn() is not None:
            raise TranscriptInvariantError("cannot append while a turn is still being revealed")
        if in_progress and role != "assistant":
            raise TranscriptInvariantError("only assistant turns can be in progress")
        turn = Turn(role=role, text=text, in_progress=in_progress)
        self._turns.append(turn)
        self._notify()
        return turn

    def update_in_progress(self, text: str, *, done: bool = False) -> Turn:
        current = self.in_progress_turn()
        if current is None:
            raise TranscriptInvariantError("no assistant turn is in progress")
        updated = replace(current, text=text, in_progress=not done)
        self._turns[-1] = updated
        self._notify()
        return updated

    def history(self) -> list[ChatMessage]:
        return [ChatMessage(role=turn.role, content=turn.text) for turn in self._turns]

    def clear(self) -> None:
        if self.in_progress_turn() is not None:
            raise TranscriptInvariantError("cannot clear while a turn is still being revealed")
        self._turns.clear()
        self._notify()

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    def __len__(self) -> int:
        return len(self._turns)
