from __future__ import annotations

from typing import Optional, Sequence

from .models import Change


class ChangeCursor:
    """Steps through a change list with wraparound at both ends."""

    def __init__(self, changes: Sequence[Change]) -> None:
        self.changes = tuple(changes)
        self.index = -1

    def __len__(self) -> int:
        return len(self.changes)

    @property
    def current(self) -> Optional[Change]:
        if 0 <= self.index < len(self.changes):
            return self.changes[self.index]
        return None

    @property
    def counter(self) -> str:
        return f"{self.index + 1 if self.index >= 0 else 0} / {len(self.changes)}"

    def next(self) -> Optional[Change]:
        if not self.changes:
            return None
        self.index = (self.index + 1) % len(self.changes)
        return self.current

    def previous(self) -> Optional[Change]:
        if not self.changes:
            return None
        # from the unset position (-1) this lands on the last change
        self.index = (self.index - 1 + len(self.changes)) % len(self.changes)
        return self.current

    def jump_to(self, position: int) -> Change:
        if not 0 <= position < len(self.changes):
            raise IndexError(f"no change at position {position} (have {len(self.changes)})")
        self.index = position
        return self.changes[position]

    def reset(self) -> None:
        self.index = -1
