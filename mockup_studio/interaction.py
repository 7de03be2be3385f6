"""
interaction.py — Pointer, touch and wheel input → layer edits + history.

Drag state machine (one active drag per canvas):

  Idle ──pointer_down over a layer──▶ Dragging ──pointer_up anywhere──▶ Idle

While dragging, move/up listeners live on the process-wide PointerEventHub
so the drag ends even when the pointer leaves the canvas; they are removed
again the moment the drag ends.

History granularity:
  add / remove / duplicate   one commit each
  drag                       first effective move commits, later moves
                             overwrite → one undo step per drag, none
                             if it ends where it started
  wheel zoom                 ticks on the same layer within
                             WHEEL_SESSION_GAP seconds form one session:
                             first tick commits, later ticks overwrite
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, List, Optional

from .history import HistoryStore
from .layers import (
    EMPTY_SNAPSHOT,
    PlacedLayer,
    Snapshot,
    append_layer,
    create_layer,
    find_layer,
    new_uid,
    remove_layer,
    replace_layer,
)

logger = logging.getLogger(__name__)

MOUSE_MOVE = "mousemove"
MOUSE_UP   = "mouseup"
TOUCH_MOVE = "touchmove"
TOUCH_END  = "touchend"

WHEEL_STEP        = 0.1
WHEEL_SESSION_GAP = 0.6    # seconds between ticks that still count as one scroll
DUPLICATE_OFFSET  = 5.0    # % nudge so a duplicate does not hide its source


# ── Global pointer events ─────────────────────────────────────────────────────

class PointerEventHub:
    """Process-wide pointer/touch event fan-out (the window, in browser terms)."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[Callable[..., None]]] = defaultdict(list)

    def add_listener(self, event: str, callback: Callable[..., None]) -> None:
        self._listeners[event].append(callback)

    def remove_listener(self, event: str, callback: Callable[..., None]) -> None:
        callbacks = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def dispatch(self, event: str, *args) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(*args)

    def listener_count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(v) for v in self._listeners.values())


# ── Canvas geometry ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CanvasBounds:
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


BoundsProvider = Callable[[], Optional[CanvasBounds]]


@dataclass(frozen=True)
class DragState:
    uid: str
    start_x: float
    start_y: float
    initial_x: float
    initial_y: float


# ── Controller ────────────────────────────────────────────────────────────────

class InteractionController:
    """Turns low-level input into layer edits with the right undo semantics."""

    def __init__(
        self,
        history: Optional[HistoryStore] = None,
        bounds: Optional[BoundsProvider] = None,
        hub: Optional[PointerEventHub] = None,
        clock: Callable[[], float] = time.monotonic,
        wheel_session_gap: float = WHEEL_SESSION_GAP,
    ) -> None:
        self.history: HistoryStore = history if history is not None else HistoryStore(EMPTY_SNAPSHOT)
        self.hub = hub if hub is not None else PointerEventHub()
        self._bounds = bounds or (lambda: None)
        self._clock = clock
        self._wheel_session_gap = wheel_session_gap

        self._drag: Optional[DragState] = None
        self._drag_committed = False
        self._drag_origin: Snapshot = EMPTY_SNAPSHOT

        self._wheel_uid: Optional[str] = None
        self._wheel_last = 0.0

    # ── State ─────────────────────────────────────────────────────────────────

    @property
    def layers(self) -> Snapshot:
        return self.history.current()

    @property
    def drag_state(self) -> Optional[DragState]:
        return self._drag

    @property
    def is_dragging(self) -> bool:
        return self._drag is not None

    def set_bounds_provider(self, bounds: BoundsProvider) -> None:
        self._bounds = bounds

    # ── Discrete edits ────────────────────────────────────────────────────────

    def add_layer(self, asset_id: str) -> PlacedLayer:
        self._end_gestures()
        layer = create_layer(asset_id)
        self.history.commit(append_layer(self.layers, layer))
        logger.debug("layer added: %s → asset %s", layer.uid, asset_id)
        return layer

    def remove_layer(self, uid: str) -> bool:
        self._end_gestures()
        return self.history.commit(remove_layer(self.layers, uid))

    def duplicate_layer(self, uid: str) -> Optional[PlacedLayer]:
        self._end_gestures()
        source = find_layer(self.layers, uid)
        if source is None:
            return None
        duplicate = PlacedLayer(
            uid=new_uid(),
            asset_id=source.asset_id,
            scale=source.scale,
            rotation=source.rotation,
        ).moved_to(source.x + DUPLICATE_OFFSET, source.y + DUPLICATE_OFFSET)
        self.history.commit(append_layer(self.layers, duplicate))
        return duplicate

    def undo(self) -> Snapshot:
        self._end_gestures()
        return self.history.undo()

    def redo(self) -> Snapshot:
        self._end_gestures()
        return self.history.redo()

    # ── Drag ──────────────────────────────────────────────────────────────────

    def pointer_down(self, uid: str, x: float, y: float) -> bool:
        """Start dragging layer ``uid`` from screen point (x, y)."""
        if self._drag is not None:
            return False
        layer = find_layer(self.layers, uid)
        if layer is None:
            return False

        self._end_wheel_session()
        self._drag = DragState(uid=uid, start_x=x, start_y=y, initial_x=layer.x, initial_y=layer.y)
        self._drag_committed = False
        self._drag_origin = self.layers

        self.hub.add_listener(MOUSE_MOVE, self.pointer_move)
        self.hub.add_listener(MOUSE_UP, self.pointer_up)
        self.hub.add_listener(TOUCH_MOVE, self.pointer_move)
        self.hub.add_listener(TOUCH_END, self.pointer_up)
        return True

    touch_start = pointer_down

    def pointer_move(self, x: float, y: float) -> bool:
        drag = self._drag
        if drag is None:
            return False

        bounds = self._bounds()
        if bounds is None or bounds.is_empty:
            return False

        current = self.layers
        layer = find_layer(current, drag.uid)
        if layer is None:
            return False

        delta_x_pct = (x - drag.start_x) / bounds.width * 100
        delta_y_pct = (y - drag.start_y) / bounds.height * 100
        updated = replace_layer(
            current,
            layer.moved_to(drag.initial_x + delta_x_pct, drag.initial_y + delta_y_pct),
        )
        if updated == current:
            return False

        if self._drag_committed:
            self.history.overwrite(updated)
        else:
            self.history.commit(updated)
            self._drag_committed = True
        return True

    def pointer_up(self, *_args) -> None:
        if self._drag is None:
            return
        self.hub.remove_listener(MOUSE_MOVE, self.pointer_move)
        self.hub.remove_listener(MOUSE_UP, self.pointer_up)
        self.hub.remove_listener(TOUCH_MOVE, self.pointer_move)
        self.hub.remove_listener(TOUCH_END, self.pointer_up)
        if self._drag_committed and self.layers == self._drag_origin:
            # dragged back to where it started
            self.history.pop()
        self._drag = None
        self._drag_committed = False
        self._drag_origin = EMPTY_SNAPSHOT

    touch_end = pointer_up

    # ── Wheel ─────────────────────────────────────────────────────────────────

    def wheel(self, uid: str, delta_y: float) -> bool:
        """Scroll over layer ``uid``: down shrinks, up grows, one step per tick."""
        current = self.layers
        layer = find_layer(current, uid)
        if layer is None:
            return False

        now = self._clock()
        step = -WHEEL_STEP if delta_y > 0 else WHEEL_STEP
        updated = replace_layer(current, layer.scaled_by(step))

        if updated == current:
            return False

        in_session = (
            self._wheel_uid == uid
            and now - self._wheel_last <= self._wheel_session_gap
        )
        if in_session:
            self.history.overwrite(updated)
        else:
            self.history.commit(updated)
        self._wheel_uid = uid
        self._wheel_last = now
        return True

    def _end_wheel_session(self) -> None:
        self._wheel_uid = None

    def _end_gestures(self) -> None:
        self.pointer_up()
        self._end_wheel_session()
