"""
prompts.py — Prompt text for every Gemini request the studio makes.

The canvas placement is only a rough hint: it is turned into a coarse
zone description ("top-left area") plus the raw percentages, and the model
is told to favour realistic warping and lighting over exact positions.
"""

from __future__ import annotations

import math
from typing import List, Literal, Sequence, Tuple

from pydantic import BaseModel, Field

from .assets import Asset, AssetType
from .layers import PlacedLayer

# ── Options ───────────────────────────────────────────────────────────────────

TEMPERATURE_HIGH     = 1.0
TEMPERATURE_STANDARD = 0.4


class MockupOptions(BaseModel):
    """User-tunable settings for one mockup generation run."""
    count: int = Field(default=1, ge=1, le=3, description="Number of mockups to request (1-3)")
    creativity: Literal["standard", "high"] = Field(default="standard")
    vary_angles: bool = Field(default=False, description="Ask for a different camera angle per extra image")

    @property
    def temperature(self) -> float:
        return TEMPERATURE_HIGH if self.creativity == "high" else TEMPERATURE_STANDARD


ANGLE_VARIATIONS: Tuple[str, ...] = (
    "from a slightly higher three-quarter angle",
    "from a low angle looking up at the product",
    "from a side angle, rotated about 30 degrees",
    "as a close-up detail shot focused on the logo area",
)

CREATIVITY_PHRASE = (
    "Be creative: feel free to place the product in an appealing, stylised scene "
    "with dramatic lighting, while keeping every logo faithful to its original design."
)

# ── Placement hints ───────────────────────────────────────────────────────────

ZONE_LOW  = 33
ZONE_HIGH = 66


def vertical_zone(y: float) -> str:
    if y < ZONE_LOW:
        return "top"
    if y > ZONE_HIGH:
        return "bottom"
    return "center"


def horizontal_zone(x: float) -> str:
    if x < ZONE_LOW:
        return "left"
    if x > ZONE_HIGH:
        return "right"
    return "center"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _format_scale(scale: float) -> str:
    return f"{scale:g}"


def placement_hint(index: int, layer: PlacedLayer) -> str:
    """One guidance line per logo, numbered from 1."""
    return (
        f"- Logo {index + 1}: Place at {vertical_zone(layer.y)}-{horizontal_zone(layer.x)} area "
        f"(approx coords: {_round_half_up(layer.x)}% x, {_round_half_up(layer.y)}% y). "
        f"Scale: {_format_scale(layer.scale)}."
    )


def layout_hints(placements: Sequence[PlacedLayer]) -> str:
    return "\n".join(placement_hint(i, layer) for i, layer in enumerate(placements))


# ── Prompt builders ───────────────────────────────────────────────────────────

def angle_phrase(options: MockupOptions, index: int) -> str:
    """Angle-variation sentence for request ``index``; empty for the first request."""
    if not options.vary_angles or index == 0:
        return ""
    descriptor = ANGLE_VARIATIONS[index % len(ANGLE_VARIATIONS)]
    return f"Show the product {descriptor}."


def user_instruction_block(instruction: str, options: MockupOptions, index: int) -> str:
    parts: List[str] = []
    if instruction.strip():
        parts.append(instruction.strip())
    angle = angle_phrase(options, index)
    if angle:
        parts.append(angle)
    if options.creativity == "high":
        parts.append(CREATIVITY_PHRASE)
    return " ".join(parts)


def build_mockup_prompt(
    instruction: str,
    placements: Sequence[PlacedLayer],
    options: MockupOptions,
    index: int = 0,
) -> str:
    """Trailing text part for mockup request ``index`` (0-based)."""
    n_logos = len(placements)
    logo_range = "image 2" if n_logos == 1 else f"images 2-{n_logos + 1}"
    return f"""\
User Instructions: {user_instruction_block(instruction, options, index)}

Layout Guidance based on user's rough placement on canvas:
{layout_hints(placements)}

System Task: Composite the provided logo images ({logo_range}) onto the first image (the product) to create a realistic product mockup.
Follow the Layout Guidance for positioning if provided, but prioritize realistic surface warping, lighting, and perspective blending.
Output ONLY the resulting image.
"""


def build_asset_prompt(prompt: str, asset_type: AssetType) -> str:
    if AssetType(asset_type) == AssetType.LOGO:
        return (
            f"A high-quality, professional vector-style logo design of a {prompt}. "
            "Isolated on a pure white background. Minimalist and clean, single distinct logo."
        )
    return (
        f"Professional studio product photography of a single {prompt}. "
        "Ghost mannequin style or flat lay. Front view, isolated on neutral background. "
        "High resolution, photorealistic. Single object only, no stacks, no duplicates."
    )


DEFAULT_TOUCHUP_PROMPT = "Make this look like a real photo"


def build_touchup_prompt(prompt: str = DEFAULT_TOUCHUP_PROMPT) -> str:
    return f"""\
Input is a rough AR composite. Task: {prompt or DEFAULT_TOUCHUP_PROMPT}.
Render the overlaid object naturally into the scene.
Match the lighting, shadows, reflections, and perspective of the background.
Keep the background largely as is, but blend the object seamlessly.
Output ONLY the resulting image."""


CONNECTION_IMAGE_PROMPT = "A small red dot"
CONNECTION_TEXT_PROMPT  = "Say hello"


def layer_pairs_summary(pairs: Sequence[Tuple[Asset, PlacedLayer]]) -> str:
    """Short human-readable description of what will be composited."""
    return ", ".join(f"{asset.name}@{horizontal_zone(l.x)}/{vertical_zone(l.y)}" for asset, l in pairs)
