"""
history.py — Linear undo/redo history over immutable state snapshots.

Every entry is a complete copy of the tracked state (no deltas). The stack
is never empty: it is seeded with an initial snapshot, and the cursor always
points at a valid entry.

Two write modes:
  commit(state)     new undoable step; drops any redo entries first
  overwrite(state)  replace the entry under the cursor in place, used for
                    continuous interactions so one gesture is one undo step
"""

from __future__ import annotations

import copy
import logging
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

HistoryListener = Callable[[bool, bool], None]   # (can_undo, can_redo)


class HistoryStore(Generic[T]):
    """Navigable linear history of a single piece of state."""

    def __init__(self, initial_state: T) -> None:
        self._entries: List[T] = [copy.deepcopy(initial_state)]
        self._cursor = 0
        self._listeners: List[HistoryListener] = []

    # ── Reads ─────────────────────────────────────────────────────────────────

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def state(self) -> T:
        return self._entries[self._cursor]

    def current(self) -> T:
        return self._entries[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    # ── Writes ────────────────────────────────────────────────────────────────

    def commit(self, new_state: T) -> bool:
        """
        Record ``new_state`` as a new undoable step.

        Structurally equal states are ignored. Returns True if an entry was
        added.
        """
        if new_state == self.current():
            return False

        del self._entries[self._cursor + 1:]
        self._entries.append(copy.deepcopy(new_state))
        self._cursor = len(self._entries) - 1

        logger.debug("history commit (index: %d, total: %d)", self._cursor, len(self._entries))
        self._notify()
        return True

    def overwrite(self, new_state: T) -> bool:
        """Replace the entry under the cursor. Redo entries are kept."""
        if new_state == self.current():
            return False

        self._entries[self._cursor] = copy.deepcopy(new_state)
        self._notify()
        return True

    def pop(self) -> T:
        """Discard the newest entry when the cursor is on it. Not redoable."""
        if self.can_undo and not self.can_redo:
            self._entries.pop()
            self._cursor -= 1
            logger.debug("history pop (index: %d, total: %d)", self._cursor, len(self._entries))
            self._notify()
        return self.current()

    def undo(self) -> T:
        if self.can_undo:
            self._cursor -= 1
            logger.debug("history undo (index: %d)", self._cursor)
            self._notify()
        return self.current()

    def redo(self) -> T:
        if self.can_redo:
            self._cursor += 1
            logger.debug("history redo (index: %d)", self._cursor)
            self._notify()
        return self.current()

    def clear(self, initial_state: T) -> None:
        """Drop every entry and reseed with ``initial_state``."""
        self._entries = [copy.deepcopy(initial_state)]
        self._cursor = 0
        self._notify()

    # ── Listeners ─────────────────────────────────────────────────────────────

    def add_listener(self, callback: HistoryListener) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: HistoryListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self.can_undo, self.can_redo)
