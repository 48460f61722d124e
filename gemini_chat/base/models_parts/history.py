"""
History: the ordered, mutable list of turns owned by the conversation engine.

Insertion order is conversational order. The engine writes a provisional
user turn with :meth:`History.append`, keeps the returned position, and on
failure calls :meth:`History.remove_at` with that position and the same
``Turn`` object. Removal is positional and identity-checked, never by
content, so repeated identical prompts are handled correctly.

Callers may :meth:`clear` the history at any time between calls; the engine
does not guard against concurrent calls on one instance.
"""
from __future__ import annotations

from typing import Iterator, List, Optional, Sequence, Tuple

from .turn import Role, Turn


class History:
    """Ordered sequence of :class:`Turn` objects."""

    def __init__(self, turns: Optional[Sequence[Turn]] = None) -> None:
        self._turns: List[Turn] = list(turns or ())

    def append(self, turn: Turn) -> int:
        """Append ``turn`` and return the index it was written to."""
        self._turns.append(turn)
        return len(self._turns) - 1

    def remove_at(self, index: int, expected: Turn) -> bool:
        """Remove ``expected`` from position ``index``.

        Falls back to an identity search when the position no longer holds
        ``expected`` (for example after a caller cleared and refilled the
        history mid-call). Returns ``False`` when the turn is no longer
        present, in which case nothing is removed.
        """
        if 0 <= index < len(self._turns) and self._turns[index] is expected:
            del self._turns[index]
            return True
        for pos in range(len(self._turns) - 1, -1, -1):
            if self._turns[pos] is expected:
                del self._turns[pos]
                return True
        return False

    def clear(self) -> None:
        self._turns.clear()

    def snapshot(self) -> Tuple[Turn, ...]:
        """Return an immutable copy of the current turns."""
        return tuple(self._turns)

    @property
    def last(self) -> Optional[Turn]:
        return self._turns[-1] if self._turns else None

    @property
    def turn_count(self) -> int:
        """Number of completed user/model exchanges."""
        return sum(1 for t in self._turns if t.role is Role.MODEL)

    def ends_with_provisional(self) -> bool:
        """True when the last entry is a user turn without a model reply."""
        last = self.last
        return last is not None and last.role is Role.USER

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    def __getitem__(self, index: int) -> Turn:
        return self._turns[index]

    def __bool__(self) -> bool:
        return bool(self._turns)

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"History({list(self._turns)!r})"


__all__ = ["History"]
