"""
Bounded linear undo/redo history.

The manager never holds the live state itself; callers pass it in, which keeps
the timeline the single owner of the frames.
"""

from __future__ import annotations

from collections import deque
from typing import Generic, TypeVar

from spritesheet_editor.config import HISTORY_DEPTH

State = TypeVar("State")


class HistoryManager(Generic[State]):
    """Two stacks of snapshots, each capped at `depth` entries (oldest dropped first)."""

    def __init__(self, depth: int = HISTORY_DEPTH):
        if depth < 1:
            raise ValueError(f"depth must be positive, got {depth}")
        self.depth = depth
        self._undo: deque[State] = deque(maxlen=depth)
        self._redo: deque[State] = deque(maxlen=depth)

    def record(self, live_state: State) -> None:
        """Push the pre-mutation state. Any redo branch is discarded."""
        self._undo.append(live_state)
        self._redo.clear()

    def undo(self, live_state: State) -> State | None:
        """
        Step back one action.

        Returns:
            The state to restore, or None if there is nothing to undo (live_state
            is then left off the redo stack).
        """
        if not self._undo:
            return None
        self._redo.append(live_state)
        return self._undo.pop()

    def redo(self, live_state: State) -> State | None:
        """Mirror of undo()."""
        if not self._redo:
            return None
        self._undo.append(live_state)
        return self._redo.pop()

    def reset(self) -> None:
        self._undo.clear()
        self._redo.clear()

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)
