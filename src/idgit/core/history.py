"""Linear undo/redo history of invertible commands."""

import logging
from typing import Any, Generic, List, Optional, Protocol, Tuple, TypeVar

from idgit.exceptions import RedoEmpty, UndoEmpty

logger = logging.getLogger(__name__)


class Invertible(Protocol):
    """A command with a forward and an inverse action on some target."""

    def apply(self, target: Any) -> Any: ...

    def undo(self, target: Any) -> Any: ...


C = TypeVar("C", bound=Invertible)


class ChangeHistory(Generic[C]):
    """Applied commands plus a cursor separating them from redoable ones.

    The history never owns its target: every call receives it, so the
    caller keeps sole ownership of the object being mutated. Applying a new
    command after an undo discards the redo tail.

    If the target fails during undo or redo, the error propagates and the
    cursor stays where it moved to; history may then disagree with the
    target's real state.
    """

    def __init__(self, limit: Optional[int] = None):
        self._entries: List[C] = []
        self._cursor = 0
        self._limit = limit

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def entries(self) -> Tuple[C, ...]:
        return tuple(self._entries)

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def apply(self, target: Any, command: C) -> Any:
        """Run ``command`` forward and record it.

        A command whose forward action fails is not recorded.
        """
        result = command.apply(target)
        del self._entries[self._cursor :]
        self._entries.append(command)
        self._cursor += 1

        if self._limit is not None and len(self._entries) > self._limit:
            overflow = len(self._entries) - self._limit
            del self._entries[:overflow]
            self._cursor -= overflow

        logger.debug("Applied %s (%d/%d)", command, self._cursor, len(self._entries))
        return result

    def undo(self, target: Any) -> Any:
        if not self.can_undo:
            raise UndoEmpty()
        self._cursor -= 1
        command = self._entries[self._cursor]
        logger.debug("Undoing %s", command)
        return command.undo(target)

    def redo(self, target: Any) -> Any:
        if not self.can_redo:
            raise RedoEmpty()
        command = self._entries[self._cursor]
        self._cursor += 1
        logger.debug("Redoing %s", command)
        return command.apply(target)

    def clear(self) -> None:
        self._entries.clear()
        self._cursor = 0

    def display(self) -> str:
        """One line per entry, ``*`` marking the current position."""
        lines = [f"{'*' if self._cursor == 0 else ' '} 0 (start)"]
        for index, command in enumerate(self._entries, start=1):
            marker = "*" if index == self._cursor else " "
            lines.append(f"{marker} {index} {command}")
        return "\n".join(lines)
