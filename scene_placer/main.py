"""
Scene Placer — command-line front end

Usage:
  python -m scene_placer.main compose --product lamp.png --scene room.jpg --x 50 --y 70
  python -m scene_placer.main compose --product lamp.png --scene room.jpg --x 50 --y 70 \
      --shadow 80 --instructions "place it on the table" --debug
  python -m scene_placer.main rotate --product lamp.png --view back
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule

from .codec import RasterImage
from .composer import CompositionStage
from .config import Settings
from .errors import ScenePlacerError
from .export import save_debug_bundle, save_result
from .geometry import PercentPoint
from .prompts import ROTATION_VIEWS
from . import api

console = Console()

OUTPUTS_ROOT = Path("outputs")

_STAGE_LABELS = {
    CompositionStage.MEASURE:           "Measuring scene",
    CompositionStage.NORMALIZE:         "Resizing product and scene",
    CompositionStage.ANALYZE_LIGHTING:  "Analyzing scene lighting",
    CompositionStage.MARK:              "Marking drop point",
    CompositionStage.DESCRIBE_LOCATION: "Describing placement location",
    CompositionStage.SYNTHESIZE:        "Generating composite image",
    CompositionStage.RESTORE:           "Cropping to original aspect ratio",
    CompositionStage.DONE:              "Done",
}


# ── CLI ───────────────────────────────────────────────────────────────────────

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Scene Placer — place a product photo into a scene with Gemini"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    compose = sub.add_parser("compose", help="Place a product into a scene")
    compose.add_argument("--product", required=True, type=Path, help="Product image file")
    compose.add_argument("--scene", required=True, type=Path, help="Scene image file")
    compose.add_argument("--x", required=True, type=float, help="Drop point, percent of scene width (0–100)")
    compose.add_argument("--y", required=True, type=float, help="Drop point, percent of scene height (0–100)")
    compose.add_argument("--shadow", type=int, default=50, help="Shadow intensity 0–100 (default: 50)")
    compose.add_argument("--instructions", default="", help="Custom placement instructions (override)")
    compose.add_argument("--output", default=None, help="Output directory (default: outputs/<timestamp>)")
    compose.add_argument("--debug", action="store_true", help="Also save resized/marked inputs and the prompt")
    compose.add_argument("--zip", action="store_true", help="Bundle the debug files into a ZIP (implies --debug)")

    rotate = sub.add_parser("rotate", help="Re-render a product from another angle")
    rotate.add_argument("--product", required=True, type=Path, help="Product image file")
    view = rotate.add_mutually_exclusive_group(required=True)
    view.add_argument("--view", choices=sorted(ROTATION_VIEWS), help="Preset view")
    view.add_argument("--description", help="Free-text view, e.g. 'a view from above'")
    rotate.add_argument("--output", default=None, help="Output directory (default: outputs/<timestamp>)")

    return parser.parse_args(argv)


# ── Commands ──────────────────────────────────────────────────────────────────

def _progress(stage: CompositionStage) -> None:
    if stage is CompositionStage.DONE:
        return
    console.print(f"  [cyan]→[/cyan] {_STAGE_LABELS[stage]}…")


async def run_compose(args: argparse.Namespace, settings: Settings, output_dir: Path) -> Path:
    product = RasterImage.from_path(args.product)
    scene = RasterImage.from_path(args.scene)
    placement = PercentPoint(x_percent=args.x, y_percent=args.y)

    console.print(
        f"  Product: [bold]{product.filename}[/bold] ({product.width}×{product.height})  |  "
        f"Scene: [bold]{scene.filename}[/bold] ({scene.width}×{scene.height})"
    )

    result = await api.compose_image(
        product,
        scene,
        placement,
        custom_instructions=args.instructions,
        shadow_intensity=args.shadow,
        settings=settings,
        on_progress=_progress,
    )
    image_path = save_result(result, output_dir)
    if args.debug or args.zip:
        saved = save_debug_bundle(
            result.debug, output_dir / "debug", final_image=result.image, make_zip=args.zip
        )
        console.print(f"  [dim]Debug bundle → {saved}[/dim]")
    return image_path


async def run_rotate(args: argparse.Namespace, settings: Settings, output_dir: Path) -> Path:
    product = RasterImage.from_path(args.product)
    description = ROTATION_VIEWS[args.view] if args.view else args.description
    console.print(f"  [cyan]→[/cyan] Rotating [bold]{product.filename}[/bold] to \"{description}\"…")

    rotated = await api.rotate_product(product, description, settings=settings)
    return rotated.save(output_dir / rotated.filename)


# ── Main ──────────────────────────────────────────────────────────────────────

def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s — %(levelname)s — %(name)s — %(message)s",
        level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = Path(args.output) if args.output else OUTPUTS_ROOT / timestamp

    console.print(Rule("[bold magenta]Scene Placer[/bold magenta]"))
    t0 = time.time()
    try:
        settings = Settings.from_env()
        if args.command == "compose":
            saved = asyncio.run(run_compose(args, settings, output_dir))
        else:
            saved = asyncio.run(run_rotate(args, settings, output_dir))
    except (ScenePlacerError, ValidationError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1

    console.print(
        Panel(
            f"Saved to: [bold]{saved}[/bold]\nElapsed: [bold]{time.time() - t0:.1f}s[/bold]",
            title=f"[bold green]{args.command.title()} complete[/bold green]",
            border_style="green",
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
