"""
Mockup Studio — interactive terminal front end.

Usage:
  python -m mockup_studio.main
  python -m mockup_studio.main --model gemini-2.5-flash-image --output outputs/run1
  mockup-studio --verbose

Type `help` at the prompt for the command list.
"""

from __future__ import annotations

import argparse
import logging
import shlex
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.rule import Rule
from rich.table import Table

from .assets import AssetType
from .config import MODEL_PRESETS, output_root
from .credentials import MIN_KEY_LENGTH, mask_key
from .errors import InvalidApiKeyError
from .interaction import MOUSE_MOVE, MOUSE_UP
from .prompts import horizontal_zone, layer_pairs_summary, vertical_zone
from .session import Outcome, OutcomeKind, StudioSession

console = Console()
logger = logging.getLogger(__name__)

HELP = [
    ("upload <logo|product> <path>", "Add an image file as an asset"),
    ("gen-logo <description>",       "Generate a logo with Gemini"),
    ("gen-product <description>",    "Generate a product base with Gemini"),
    ("assets",                       "List assets"),
    ("rm-asset <id>",                "Delete an asset (its layers are dropped)"),
    ("product <id>",                 "Select the product to place logos on"),
    ("add <logo-id>",                "Place a logo at the canvas centre"),
    ("dup <uid>",                    "Duplicate a placed logo"),
    ("rm <uid>",                     "Remove a placed logo"),
    ("layers",                       "List placed logos"),
    ("drag <uid> <dx> <dy>",         "Drag a logo by dx/dy product-image pixels"),
    ("zoom <uid> <ticks>",           "Scroll over a logo: +ticks grow, -ticks shrink"),
    ("undo / redo",                  "Step through canvas history"),
    ("options [count=N] [creativity=standard|high] [angles=on|off]", "Show or change mockup options"),
    ("prompt <text>",                "Set the instruction sent with the mockup"),
    ("generate",                     "Generate mockup(s)"),
    ("touchup [text]",               "Photoreal touch-up of the rough canvas composite"),
    ("preview",                      "Save the rough canvas composite as PNG"),
    ("gallery",                      "List generated mockups"),
    ("save <mockup-id|all>",         "Write mockup images to the output folder"),
    ("key / forget-key",             "Enter or remove the stored API key"),
    ("model [id]",                   "Show or change the Gemini model"),
    ("test",                         "Test the connection to the current model"),
    ("quit",                         "Exit"),
]


# ── CLI ───────────────────────────────────────────────────────────────────────

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mockup Studio — place logos on a product and let Gemini composite them"
    )
    parser.add_argument("--model", default=None, help="Gemini model id (default: MOCKUP_STUDIO_MODEL or gemini-2.5-flash-image)")
    parser.add_argument("--output", default=None, help="Output directory (default: outputs/<timestamp>)")
    parser.add_argument("--env-file", default=None, help="Extra .env file to load")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        format="%(asctime)s — %(levelname)s — %(name)s — %(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
    )


# ── Output helpers ────────────────────────────────────────────────────────────

def report(outcome: Outcome) -> None:
    if outcome.kind == OutcomeKind.OK:
        console.print(f"  [green]✓ {escape(outcome.message)}[/green]")
    elif outcome.kind == OutcomeKind.NEEDS_KEY:
        console.print(f"  [yellow]⚠ {escape(outcome.message)}[/yellow]")
    else:
        console.print(Panel(f"Operation failed: {escape(outcome.message)}", border_style="red"))


def prompt_for_key(session: StudioSession) -> bool:
    """Blocking key entry. Returns False if the user gives up (empty input)."""
    console.print(
        Panel(
            "To start generating AI mockups, please enter your Gemini API key.\n"
            f"It is stored locally in [bold]{session.credentials.path}[/bold].",
            title="[bold]Gemini API Key[/bold]",
            border_style="cyan",
        )
    )
    while True:
        raw = Prompt.ask("🔑 API key (Enter to cancel)", password=True, default="", show_default=False)
        if not raw.strip():
            return False
        try:
            session.credentials.save(raw)
        except InvalidApiKeyError as exc:
            console.print(f"  [red]{exc} (at least {MIN_KEY_LENGTH} characters)[/red]")
            continue
        console.print(f"  [green]✓ Key saved[/green] [dim]{mask_key(session.credentials.effective_key)}[/dim]")
        return True


def run_with_key(session: StudioSession, action: Callable[[], Outcome]) -> Outcome:
    """Run a generation action; on NEEDS_KEY ask for a key once and retry."""
    outcome = action()
    if outcome.kind == OutcomeKind.NEEDS_KEY:
        report(outcome)
        if prompt_for_key(session):
            outcome = action()
    report(outcome)
    return outcome


def print_assets(session: StudioSession) -> None:
    table = Table(box=box.SIMPLE, padding=(0, 1))
    table.add_column("ID", style="bold")
    table.add_column("Type")
    table.add_column("Name")
    table.add_column("MIME", style="dim")
    for asset in session.assets:
        marker = " ★" if asset.id == session.selected_product_id else ""
        table.add_row(asset.id + marker, asset.type.value, asset.name, asset.mime_type)
    if not len(session.assets):
        console.print("  [dim]No assets yet[/dim]")
        return
    console.print(table)


def print_layers(session: StudioSession) -> None:
    layers = session.placed_layers()
    if not layers:
        console.print("  [dim]Canvas is empty[/dim]")
        return
    table = Table(box=box.SIMPLE, padding=(0, 1))
    for col in ("UID", "Logo", "x %", "y %", "Scale", "Zone"):
        table.add_column(col)
    for layer in layers:
        asset = session.assets.get(layer.asset_id)
        table.add_row(
            layer.uid,
            asset.name if asset else layer.asset_id,
            f"{layer.x:.1f}",
            f"{layer.y:.1f}",
            f"{layer.scale:g}",
            f"{vertical_zone(layer.y)}-{horizontal_zone(layer.x)}",
        )
    console.print(table)
    h = session.history
    console.print(f"  [dim]history {h.cursor + 1}/{len(h)}  undo={'yes' if h.can_undo else 'no'}  redo={'yes' if h.can_redo else 'no'}[/dim]")


def print_gallery(session: StudioSession) -> None:
    if not session.gallery:
        console.print("  [dim]No mockups yet[/dim]")
        return
    for mockup in session.gallery:
        console.print(
            f"  [bold]{mockup.id}[/bold]  {mockup.created_at:%H:%M:%S}  "
            f"{len(mockup.layers)} logo(s)  [dim]{mockup.prompt[:60]}[/dim]"
        )


# ── Commands ──────────────────────────────────────────────────────────────────

class StudioShell:
    """Parses one command line at a time and drives a StudioSession."""

    def __init__(self, session: StudioSession, output_dir: Path) -> None:
        self.session = session
        self.output_dir = output_dir
        self.commands: Dict[str, Callable[[List[str]], None]] = {
            "upload": self.cmd_upload,
            "gen-logo": lambda a: self.cmd_generate_asset(a, AssetType.LOGO),
            "gen-product": lambda a: self.cmd_generate_asset(a, AssetType.PRODUCT),
            "assets": lambda a: print_assets(self.session),
            "rm-asset": self.cmd_remove_asset,
            "product": self.cmd_product,
            "add": self.cmd_add,
            "dup": self.cmd_duplicate,
            "rm": self.cmd_remove_layer,
            "layers": lambda a: print_layers(self.session),
            "drag": self.cmd_drag,
            "zoom": self.cmd_zoom,
            "undo": self.cmd_undo,
            "redo": self.cmd_redo,
            "options": self.cmd_options,
            "prompt": self.cmd_prompt,
            "generate": self.cmd_generate,
            "touchup": self.cmd_touchup,
            "preview": self.cmd_preview,
            "gallery": lambda a: print_gallery(self.session),
            "save": self.cmd_save,
            "key": lambda a: prompt_for_key(self.session),
            "forget-key": self.cmd_forget_key,
            "model": self.cmd_model,
            "test": lambda a: run_with_key(self.session, self.session.test_connection),
            "help": lambda a: self.cmd_help(),
        }

    def execute(self, line: str) -> bool:
        """Run one command line. Returns False when the user asked to quit."""
        try:
            tokens = shlex.split(line)
        except ValueError as exc:
            console.print(f"  [red]{exc}[/red]")
            return True
        if not tokens:
            return True

        name, args = tokens[0].lower(), tokens[1:]
        if name in {"q", "quit", "exit"}:
            return False

        handler = self.commands.get(name)
        if handler is None:
            console.print(f"  [yellow]⚠ Unknown command '{name}' — type help[/yellow]")
            return True
        try:
            handler(args)
        except (ValueError, IndexError, OSError, ValidationError) as exc:
            logger.debug("command %r failed", name, exc_info=True)
            console.print(f"  [red]✗ {escape(str(exc))}[/red]")
        return True

    # ── Assets ────────────────────────────────────────────────────────────────

    def cmd_upload(self, args: List[str]) -> None:
        if len(args) < 2:
            raise ValueError("usage: upload <logo|product> <path>")
        asset = self.session.upload(Path(args[1]).expanduser(), AssetType(args[0].lower()))
        console.print(f"  [green]✓ {asset.type.value} {asset.id}[/green] [dim]{asset.name} ({asset.mime_type})[/dim]")
        if asset.type == AssetType.PRODUCT and self.session.selected_product_id is None:
            self.session.select_product(asset.id)
            console.print("  [dim]selected as product[/dim]")

    def cmd_generate_asset(self, args: List[str], asset_type: AssetType) -> None:
        description = " ".join(args)
        console.print(f"  [dim]→ Generating {asset_type.value}...[/dim]")
        outcome = run_with_key(self.session, lambda: self.session.generate_asset(description, asset_type))
        if outcome.ok and outcome.asset and asset_type == AssetType.PRODUCT and self.session.selected_product_id is None:
            self.session.select_product(outcome.asset.id)

    def cmd_remove_asset(self, args: List[str]) -> None:
        if not self.session.remove_asset(args[0]):
            raise ValueError(f"No asset {args[0]}")
        console.print(f"  [green]✓ removed {args[0]}[/green]")

    def cmd_product(self, args: List[str]) -> None:
        product = self.session.select_product(args[0])
        console.print(f"  [green]✓ product: {product.name}[/green]")

    # ── Canvas ────────────────────────────────────────────────────────────────

    def cmd_add(self, args: List[str]) -> None:
        layer = self.session.add_logo(args[0])
        console.print(f"  [green]✓ placed {layer.uid}[/green]")

    def cmd_duplicate(self, args: List[str]) -> None:
        layer = self.session.controller.duplicate_layer(args[0])
        if layer is None:
            raise ValueError(f"No layer {args[0]}")
        console.print(f"  [green]✓ duplicated → {layer.uid}[/green]")

    def cmd_remove_layer(self, args: List[str]) -> None:
        if not self.session.controller.remove_layer(args[0]):
            raise ValueError(f"No layer {args[0]}")
        print_layers(self.session)

    def cmd_drag(self, args: List[str]) -> None:
        uid, dx, dy = args[0], float(args[1]), float(args[2])
        if self.session.canvas_bounds() is None:
            raise ValueError("Select a product first")
        controller = self.session.controller
        if not controller.pointer_down(uid, 0.0, 0.0):
            raise ValueError(f"No layer {uid}")
        controller.hub.dispatch(MOUSE_MOVE, dx, dy)
        controller.hub.dispatch(MOUSE_UP)
        print_layers(self.session)

    def cmd_undo(self, args: List[str]) -> None:
        self.session.controller.undo()
        print_layers(self.session)

    def cmd_redo(self, args: List[str]) -> None:
        self.session.controller.redo()
        print_layers(self.session)

    def cmd_zoom(self, args: List[str]) -> None:
        uid, ticks = args[0], int(args[1])
        delta_y = -1.0 if ticks > 0 else 1.0
        for _ in range(abs(ticks)):
            self.session.controller.wheel(uid, delta_y)
        print_layers(self.session)

    # ── Options ───────────────────────────────────────────────────────────────

    def cmd_options(self, args: List[str]) -> None:
        changes: Dict[str, object] = {}
        for arg in args:
            key, _, value = arg.partition("=")
            key = key.lower()
            if key == "count":
                changes["count"] = int(value)
            elif key == "creativity":
                changes["creativity"] = value.lower()
            elif key in {"angles", "vary_angles"}:
                changes["vary_angles"] = value.lower() in {"on", "true", "yes", "1"}
            else:
                raise ValueError(f"Unknown option '{key}'")
        opts = self.session.set_options(**changes) if changes else self.session.options
        console.print(
            f"  count=[bold]{opts.count}[/bold]  creativity=[bold]{opts.creativity}[/bold]  "
            f"angles=[bold]{'on' if opts.vary_angles else 'off'}[/bold]"
        )

    def cmd_prompt(self, args: List[str]) -> None:
        self.session.instruction = " ".join(args)
        console.print(f"  [dim]instruction: {self.session.instruction or '(empty)'}[/dim]")

    # ── Generation ────────────────────────────────────────────────────────────

    def cmd_generate(self, args: List[str]) -> None:
        n = self.session.options.count
        pairs = self.session.layer_pairs()
        if pairs:
            console.print(f"  [dim]{escape(layer_pairs_summary(pairs))}[/dim]")
        console.print(f"  [dim]→ Analyzing composite geometry... ({n} request{'s' if n > 1 else ''})[/dim]")
        outcome = run_with_key(self.session, self.session.generate_mockups)
        if outcome.ok:
            print_gallery(self.session)

    def cmd_touchup(self, args: List[str]) -> None:
        text = " ".join(args)
        console.print("  [dim]→ Rendering rough composite and blending...[/dim]")
        run_with_key(self.session, lambda: self.session.touch_up(text))

    def cmd_preview(self, args: List[str]) -> None:
        png = self.session.preview()
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"preview-{datetime.now():%H%M%S}.png"
        path.write_bytes(png)
        console.print(f"  [dim]Saved → {path}[/dim]")

    def cmd_save(self, args: List[str]) -> None:
        target = args[0] if args else "all"
        mockups = self.session.gallery if target == "all" else [self.session.find_mockup(target)]
        if not mockups or mockups[0] is None:
            raise ValueError(f"No mockup {target}")
        for mockup in mockups:
            path = self.session.save_mockup(mockup, self.output_dir)
            console.print(f"  [dim]Saved → {path}[/dim]")

    # ── Settings ──────────────────────────────────────────────────────────────

    def cmd_forget_key(self, args: List[str]) -> None:
        self.session.credentials.forget()
        console.print(f"  [dim]Stored key removed. Active source: {self.session.credentials.source or 'none'}[/dim]")

    def cmd_model(self, args: List[str]) -> None:
        if args:
            self.session.model_id = args[0]
        console.print(f"  Model: [bold]{self.session.model_id}[/bold]")
        for label, model_id in MODEL_PRESETS:
            console.print(f"    [dim]{model_id:<26} {label}[/dim]")

    def cmd_help(self) -> None:
        table = Table(box=box.SIMPLE, show_header=False, padding=(0, 1))
        table.add_column("Command", style="bold cyan")
        table.add_column("What it does")
        for usage, text in HELP:
            table.add_row(usage, text)
        console.print(table)


# ── Main ──────────────────────────────────────────────────────────────────────

def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    if args.env_file:
        load_dotenv(args.env_file, override=True)
    configure_logging(args.verbose)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = Path(args.output) if args.output else output_root() / timestamp

    session = StudioSession(model_id=args.model)
    shell = StudioShell(session, output_dir)

    console.print(Rule("[bold magenta]Mockup Studio[/bold magenta]"))
    console.print(
        f"  Model: [bold]{session.model_id}[/bold]  |  "
        f"Key: [bold]{session.credentials.source or 'missing'}[/bold]  |  "
        f"Output: [bold]{output_dir}[/bold]"
    )
    if not session.credentials.has_key:
        prompt_for_key(session)
    console.print("  [dim]Type 'help' for commands.[/dim]\n")

    while True:
        try:
            line = Prompt.ask("🎨")
        except (EOFError, KeyboardInterrupt):
            console.print()
            break
        if not shell.execute(line):
            break

    console.print("[dim]Session ended — unsaved mockups are discarded.[/dim]")


if __name__ == "__main__":
    main()
