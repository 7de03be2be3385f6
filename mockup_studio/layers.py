"""
layers.py — Logo placements on the product canvas.

A PlacedLayer is one instance of a logo asset on the canvas. Positions are
percentages of the canvas box (0,0 = top-left), so they survive any canvas
resize. Layers are frozen; every edit returns a new copy, which keeps
history snapshots honest.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

POSITION_MIN = 0.0
POSITION_MAX = 100.0
SCALE_MIN    = 0.2
SCALE_MAX    = 3.0

DEFAULT_X        = 50.0
DEFAULT_Y        = 50.0
DEFAULT_SCALE    = 1.0
DEFAULT_ROTATION = 0.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def new_uid() -> str:
    return uuid.uuid4().hex[:9]


@dataclass(frozen=True)
class PlacedLayer:
    uid: str
    asset_id: str                        # weak reference, never validated on write
    x: float = DEFAULT_X                 # % of canvas width
    y: float = DEFAULT_Y                 # % of canvas height
    scale: float = DEFAULT_SCALE
    rotation: float = DEFAULT_ROTATION   # degrees

    def moved_to(self, x: float, y: float) -> "PlacedLayer":
        return replace(
            self,
            x=clamp(x, POSITION_MIN, POSITION_MAX),
            y=clamp(y, POSITION_MIN, POSITION_MAX),
        )

    def scaled_by(self, delta: float) -> "PlacedLayer":
        # Rounded so repeated 0.1 steps do not drift (1.2000000000000002).
        return replace(self, scale=round(clamp(self.scale + delta, SCALE_MIN, SCALE_MAX), 4))

    def to_dict(self) -> dict:
        return {
            "uid": self.uid,
            "assetId": self.asset_id,
            "x": self.x,
            "y": self.y,
            "scale": self.scale,
            "rotation": self.rotation,
        }


Snapshot = Tuple[PlacedLayer, ...]

EMPTY_SNAPSHOT: Snapshot = ()


def create_layer(asset_id: str, uid: Optional[str] = None) -> PlacedLayer:
    """New layer at the default centred placement."""
    return PlacedLayer(uid=uid or new_uid(), asset_id=asset_id)


def find_layer(layers: Snapshot, uid: str) -> Optional[PlacedLayer]:
    return next((l for l in layers if l.uid == uid), None)


def append_layer(layers: Snapshot, layer: PlacedLayer) -> Snapshot:
    return tuple(layers) + (layer,)


def remove_layer(layers: Snapshot, uid: str) -> Snapshot:
    return tuple(l for l in layers if l.uid != uid)


def replace_layer(layers: Snapshot, updated: PlacedLayer) -> Snapshot:
    """Swap in ``updated`` by uid. Unknown uids leave the snapshot unchanged."""
    return tuple(updated if l.uid == updated.uid else l for l in layers)


def filter_orphans(layers: Snapshot, asset_ids: Iterable[str]) -> Snapshot:
    """Drop layers whose asset no longer exists."""
    known = set(asset_ids)
    return tuple(l for l in layers if l.asset_id in known)
