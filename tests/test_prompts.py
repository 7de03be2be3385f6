"""Tests for prompt text: placement zones, option phrases and templates."""
import pytest
from pydantic import ValidationError

from mockup_studio.assets import AssetType
from mockup_studio.layers import PlacedLayer
from mockup_studio.prompts import (
    ANGLE_VARIATIONS,
    CREATIVITY_PHRASE,
    MockupOptions,
    angle_phrase,
    build_asset_prompt,
    build_mockup_prompt,
    build_touchup_prompt,
    horizontal_zone,
    placement_hint,
    user_instruction_block,
    vertical_zone,
)


# ── Zones ───────────────────────────────────────────────────────────────

class TestZones:

    @pytest.mark.parametrize("y, zone", [(10, "top"), (50, "center"), (90, "bottom")])
    def test_vertical(self, y, zone):
        assert vertical_zone(y) == zone

    @pytest.mark.parametrize("x, zone", [(10, "left"), (50, "center"), (90, "right")])
    def test_horizontal(self, x, zone):
        assert horizontal_zone(x) == zone

    @pytest.mark.parametrize("value, v_zone, h_zone", [
        (32, "top", "left"),
        (33, "center", "center"),
        (66, "center", "center"),
        (67, "bottom", "right"),
    ])
    def test_boundaries(self, value, v_zone, h_zone):
        assert vertical_zone(value) == v_zone
        assert horizontal_zone(value) == h_zone


class TestPlacementHint:

    def test_hint_text(self):
        layer = PlacedLayer(uid="u", asset_id="a", x=10, y=90, scale=2.0)
        assert placement_hint(0, layer) == (
            "- Logo 1: Place at bottom-left area (approx coords: 10% x, 90% y). Scale: 2."
        )

    def test_percentages_round_half_up(self):
        layer = PlacedLayer(uid="u", asset_id="a", x=12.5, y=40.49, scale=1.25)
        hint = placement_hint(2, layer)
        assert hint.startswith("- Logo 3:")
        assert "13% x, 40% y" in hint
        assert "Scale: 1.25." in hint


# ── Options ─────────────────────────────────────────────────────────────

class TestMockupOptions:

    def test_defaults(self):
        opts = MockupOptions()
        assert (opts.count, opts.creativity, opts.vary_angles) == (1, "standard", False)
        assert opts.temperature == 0.4

    def test_high_creativity_temperature(self):
        assert MockupOptions(creativity="high").temperature == 1.0

    @pytest.mark.parametrize("count", [0, 4])
    def test_count_out_of_range(self, count):
        with pytest.raises(ValidationError):
            MockupOptions(count=count)

    def test_unknown_creativity(self):
        with pytest.raises(ValidationError):
            MockupOptions(creativity="wild")


class TestInstructionBlock:

    def test_no_angle_on_first_request(self):
        assert angle_phrase(MockupOptions(count=3, vary_angles=True), 0) == ""

    def test_angle_cycles_by_index(self):
        opts = MockupOptions(count=3, vary_angles=True)
        assert angle_phrase(opts, 1) == f"Show the product {ANGLE_VARIATIONS[1]}."
        assert angle_phrase(opts, len(ANGLE_VARIATIONS) + 2) == f"Show the product {ANGLE_VARIATIONS[2]}."

    def test_no_angle_when_disabled(self):
        assert angle_phrase(MockupOptions(count=3), 2) == ""

    def test_creativity_phrase_only_when_high(self):
        assert CREATIVITY_PHRASE in user_instruction_block("on a desk", MockupOptions(creativity="high"), 0)
        assert CREATIVITY_PHRASE not in user_instruction_block("on a desk", MockupOptions(), 0)

    def test_blank_instruction_is_dropped(self):
        assert user_instruction_block("   ", MockupOptions(), 0) == ""


# ── Templates ───────────────────────────────────────────────────────────

class TestTemplates:

    def test_mockup_prompt_single_logo(self):
        text = build_mockup_prompt("studio light", [PlacedLayer(uid="u", asset_id="a")], MockupOptions())
        assert text.startswith("User Instructions: studio light")
        assert "- Logo 1: Place at center-center area" in text
        assert "(image 2)" in text
        assert "Output ONLY the resulting image." in text

    def test_mockup_prompt_logo_range(self):
        placements = [PlacedLayer(uid=str(i), asset_id="a") for i in range(3)]
        assert "(images 2-4)" in build_mockup_prompt("", placements, MockupOptions())

    def test_logo_asset_prompt(self):
        text = build_asset_prompt("fox head", AssetType.LOGO)
        assert "logo design of a fox head" in text
        assert "pure white background" in text

    def test_product_asset_prompt(self):
        text = build_asset_prompt("white t-shirt", AssetType.PRODUCT)
        assert "product photography of a single white t-shirt" in text

    def test_touchup_default(self):
        assert "Task: Make this look like a real photo." in build_touchup_prompt("")
