"""
Edit History
============

Linear undo/redo history. A history value is immutable: ``push``, ``undo``
and ``redo`` return a new history. Pushing after an undo drops the redo tail.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from storefront.core.editor.geometry import Offset


@dataclass(frozen=True)
class MoveCommand:
    element_id: str
    before: Offset
    after: Offset
    type: str = "move"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.element_id, "from": self.before.to_dict(), "to": self.after.to_dict()}


@dataclass(frozen=True)
class TextCommand:
    element_id: str
    before: str
    after: str
    type: str = "text"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.element_id, "from": self.before, "to": self.after}


Command = Union[MoveCommand, TextCommand]


@dataclass(frozen=True)
class History:
    entries: Tuple[Command, ...] = ()
    cursor: int = 0

    @property
    def can_undo(self) -> bool:
        return self.cursor > 0

    @property
    def can_redo(self) -> bool:
        return self.cursor < len(self.entries)

    def push(self, command: Command) -> "History":
        return History(self.entries[: self.cursor] + (command,), self.cursor + 1)

    def undo(self) -> Tuple["History", Optional[Command]]:
        """Step back; the returned command's ``before`` side should be applied."""
        if not self.can_undo:
            return self, None
        return History(self.entries, self.cursor - 1), self.entries[self.cursor - 1]

    def redo(self) -> Tuple["History", Optional[Command]]:
        """Step forward; the returned command's ``after`` side should be applied."""
        if not self.can_redo:
            return self, None
        return History(self.entries, self.cursor + 1), self.entries[self.cursor]

    def __len__(self) -> int:
        return len(self.entries)
