"""
preview.py — Local rough composite of the current canvas (Pillow).

This is NOT the mockup: logos are pasted flat, with no warping or lighting.
It exists so the terminal front end can show what the canvas looks like, and
as the input image for the realism touch-up request, which asks Gemini to
blend the pasted logos into the scene.
"""

from __future__ import annotations

import io
from typing import Sequence, Tuple

import numpy as np
from PIL import Image

from .assets import Asset
from .layers import PlacedLayer

# Logo width at scale 1.0, as a fraction of the product width.
BASE_LOGO_FRACTION = 0.20

WHITE_CUTOFF = 240   # brightness at/above this becomes fully transparent
WHITE_RAMP   = 30    # brightness band below the cutoff that fades in


def knock_out_white(img: Image.Image) -> Image.Image:
    """Make a near-white background transparent (generated logos sit on white)."""
    arr = np.array(img.convert("RGBA")).astype(np.float32)
    br = 0.299 * arr[:, :, 0] + 0.587 * arr[:, :, 1] + 0.114 * arr[:, :, 2]
    alpha_scale = np.clip((WHITE_CUTOFF - br) / WHITE_RAMP, 0.0, 1.0)
    arr[:, :, 3] = (arr[:, :, 3] * alpha_scale).clip(0, 255)
    return Image.fromarray(arr.astype(np.uint8), "RGBA")


def _open(asset: Asset) -> Image.Image:
    img = Image.open(io.BytesIO(asset.payload))
    img.load()
    return img


def _place_logo(canvas: Image.Image, logo: Image.Image, layer: PlacedLayer) -> None:
    cw, ch = canvas.size
    lw, lh = logo.size
    target_w = max(1, int(cw * BASE_LOGO_FRACTION * layer.scale))
    target_h = max(1, int(lh * target_w / lw))
    logo = logo.resize((target_w, target_h), Image.LANCZOS)
    if layer.rotation:
        logo = logo.rotate(-layer.rotation, resample=Image.BICUBIC, expand=True)

    cx = int(cw * layer.x / 100)
    cy = int(ch * layer.y / 100)
    nw, nh = logo.size
    # paste() clips at the canvas edge, so logos dragged to 0/100% stay valid.
    canvas.paste(logo, (cx - nw // 2, cy - nh // 2), logo)


def render_preview(product: Asset, layers: Sequence[Tuple[Asset, PlacedLayer]]) -> bytes:
    """Paste every logo onto the product at its placement. Returns PNG bytes."""
    canvas = _open(product).convert("RGBA")
    for asset, layer in layers:
        _place_logo(canvas, knock_out_white(_open(asset)), layer)

    buf = io.BytesIO()
    canvas.convert("RGB").save(buf, format="PNG")
    return buf.getvalue()


def image_size(asset: Asset) -> Tuple[int, int]:
    with Image.open(io.BytesIO(asset.payload)) as img:
        return img.size
