"""Tests for the terminal shell: command parsing and session wiring."""
import pytest

from conftest import image_response, make_png
from mockup_studio.main import StudioShell, parse_args


@pytest.fixture
def shell(session, tmp_path):
    return StudioShell(session, tmp_path / "out")


@pytest.fixture
def canvas(shell, tmp_path):
    """Shell with a 200x100 product uploaded and one logo placed."""
    product = tmp_path / "shirt.png"
    product.write_bytes(make_png((200, 100), (250, 250, 250, 255)))
    logo = tmp_path / "logo.png"
    logo.write_bytes(make_png((40, 40), (0, 0, 0, 255)))
    shell.execute(f"upload product {product}")
    shell.execute(f"upload logo {logo}")
    (logo_asset,) = [a for a in shell.session.assets if a.type.value == "logo"]
    shell.execute(f"add {logo_asset.id}")
    return shell


def only_layer(shell):
    (layer,) = shell.session.placed_layers()
    return layer


class TestExecute:

    def test_quit(self, shell):
        assert shell.execute("quit") is False
        assert shell.execute("Q") is False

    def test_blank_and_unknown(self, shell):
        assert shell.execute("") is True
        assert shell.execute("frobnicate") is True

    def test_bad_quoting_is_reported(self, shell):
        assert shell.execute('prompt "unterminated') is True

    def test_missing_argument_is_reported(self, shell):
        assert shell.execute("add") is True

    def test_help(self, shell):
        assert shell.execute("help") is True


class TestCanvasCommands:

    def test_upload_selects_first_product(self, canvas):
        assert canvas.session.selected_product is not None
        assert canvas.session.selected_product.name == "shirt.png"

    def test_drag_then_undo(self, canvas):
        uid = only_layer(canvas).uid
        canvas.execute(f"drag {uid} 20 10")
        layer = only_layer(canvas)
        assert (layer.x, layer.y) == pytest.approx((60.0, 60.0))
        canvas.execute("undo")
        assert (only_layer(canvas).x, only_layer(canvas).y) == (50.0, 50.0)
        canvas.execute("redo")
        assert only_layer(canvas).x == pytest.approx(60.0)

    def test_drag_unknown_layer(self, canvas):
        canvas.execute("drag nope 5 5")
        assert not canvas.session.controller.is_dragging

    def test_zoom_is_one_step(self, canvas):
        uid = only_layer(canvas).uid
        canvas.execute(f"zoom {uid} 3")
        assert only_layer(canvas).scale == 1.3
        canvas.execute("undo")
        assert only_layer(canvas).scale == 1.0

    def test_dup_and_rm(self, canvas):
        uid = only_layer(canvas).uid
        canvas.execute(f"dup {uid}")
        assert len(canvas.session.placed_layers()) == 2
        canvas.execute(f"rm {uid}")
        assert uid not in [l.uid for l in canvas.session.placed_layers()]

    def test_preview_writes_png(self, canvas):
        canvas.execute("preview")
        files = list(canvas.output_dir.glob("preview-*.png"))
        assert len(files) == 1


class TestOptionsAndGeneration:

    def test_options(self, shell):
        shell.execute("options count=2 creativity=HIGH angles=on")
        opts = shell.session.options
        assert (opts.count, opts.creativity, opts.vary_angles) == (2, "high", True)

    def test_invalid_option_keeps_previous(self, shell):
        shell.execute("options count=2")
        shell.execute("options count=9")
        shell.execute("options colour=red")
        assert shell.session.options.count == 2

    def test_prompt(self, shell):
        shell.execute('prompt "on a marble counter"')
        assert shell.session.instruction == "on a marble counter"

    def test_generate_and_save_all(self, canvas, fake_client):
        canvas.session.credentials.save("test-key-0123456789")
        fake_client.models.responses = [image_response(b"m1"), image_response(b"m2")]
        canvas.execute("options count=2")
        canvas.execute("generate")
        assert len(canvas.session.gallery) == 2
        canvas.execute("save all")
        saved = sorted(p.read_bytes() for p in canvas.output_dir.glob("mockup-*.png"))
        assert saved == [b"m1", b"m2"]

    def test_model_switch(self, shell):
        shell.execute("model gemini-2.0-flash-exp")
        assert shell.session.model_id == "gemini-2.0-flash-exp"


def test_parse_args():
    args = parse_args(["--model", "gemini-1.5-pro", "-v"])
    assert args.model == "gemini-1.5-pro"
    assert args.verbose is True
    assert args.output is None


class TestFileErrors:

    def test_upload_directory_is_reported(self, shell, tmp_path):
        folder = tmp_path / "not-a-file"
        folder.mkdir()
        assert shell.execute(f"upload logo {folder}") is True
        assert len(shell.session.assets) == 0

    def test_upload_missing_file_is_reported(self, shell, tmp_path):
        assert shell.execute(f"upload logo {tmp_path / 'missing.png'}") is True

    def test_save_into_file_path_is_reported(self, canvas, fake_client, tmp_path):
        canvas.session.credentials.save("test-key-0123456789")
        fake_client.models.responses = [image_response(b"m1")]
        canvas.execute("generate")
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        canvas.output_dir = blocker / "out"
        assert canvas.execute("save all") is True
