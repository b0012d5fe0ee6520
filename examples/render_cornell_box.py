#!/usr/bin/env python3
"""Render a sample scene (or a JSON scene file) to an image.

Usage:
    python examples/render_cornell_box.py [samples] [width] [height] [options]

Positional arguments:
    samples             Samples per pixel (default: 100)
    width               Image width in pixels (default: 320)
    height              Image height in pixels (default: 240)

Options:
    --output OUTPUT     Output file; .png, .bmp or .tga (default: output.bmp)
    --scene SCENE       "cornell", "nextweek" or a path to a JSON scene file
    --seed SEED         Random seed (default: 0)
    --max-depth DEPTH   Maximum path length (default: 30)
    --sky               Use the sky gradient background instead of black
    --batch-size SIZE   Samples per progress update (default: 10)
    --arch ARCH         Taichi backend, "cpu" or "gpu" (default: cpu)
    --quiet             Suppress progress output

Example:
    python examples/render_cornell_box.py 50 640 480 --scene nextweek --output nextweek.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_cornell_box")

DEFAULT_SAMPLES = 100
DEFAULT_WIDTH = 320
DEFAULT_HEIGHT = 240


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene with the nextweek path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "samples",
        type=int,
        nargs="?",
        default=DEFAULT_SAMPLES,
        help=f"Samples per pixel (default: {DEFAULT_SAMPLES})",
    )
    parser.add_argument(
        "width",
        type=int,
        nargs="?",
        default=DEFAULT_WIDTH,
        help=f"Image width in pixels (default: {DEFAULT_WIDTH})",
    )
    parser.add_argument(
        "height",
        type=int,
        nargs="?",
        default=DEFAULT_HEIGHT,
        help=f"Image height in pixels (default: {DEFAULT_HEIGHT})",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="output.bmp",
        help="Output file path, .png/.bmp/.tga (default: output.bmp)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default="cornell",
        help='Sample scene name ("cornell", "nextweek") or JSON scene file',
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--max-depth",
        type=int,
        default=30,
        help="Maximum path length (default: 30)",
    )
    parser.add_argument(
        "--sky",
        action="store_true",
        help="Use the sky gradient background instead of black",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    args = parser.parse_args(argv)
    if args.samples <= 0:
        parser.error(f"samples must be positive, got {args.samples}")
    if args.width <= 0 or args.height <= 0:
        parser.error(f"image dimensions must be positive, got {args.width}x{args.height}")
    if not 0 <= args.seed < 2**31:
        parser.error(f"seed must be in [0, 2**31), got {args.seed}")
    return args


def load_scene(name: str, width: int, height: int):
    """Create a sample scene or load a JSON scene; the camera aspect follows the image."""
    from nextweek.scene.cornell_box import SCENES, create_scene
    from nextweek.scene.manager import load_scene_file

    aspect_ratio = width / height
    if name in SCENES:
        return create_scene(name, aspect_ratio=aspect_ratio)

    scene = load_scene_file(name)
    if abs(scene.camera.aspect_ratio - aspect_ratio) > 1e-6:
        logger.info(
            "Overriding camera aspect ratio %.4f with image aspect %.4f",
            scene.camera.aspect_ratio,
            aspect_ratio,
        )
        scene.camera.aspect_ratio = aspect_ratio
    return scene


def render_scene(args: argparse.Namespace) -> Path:
    """Render the requested scene and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi is initialized before fields are created
    from nextweek.core.progressive import ProgressiveRenderer

    quiet = args.quiet
    if not quiet:
        print(f"Creating scene '{args.scene}' ({args.width}x{args.height})...")

    scene = load_scene(args.scene, args.width, args.height)
    renderer = ProgressiveRenderer(
        scene,
        args.width,
        args.height,
        max_depth=args.max_depth,
        seed=args.seed,
        sky=args.sky,
    )

    if not quiet:
        print(f"Rendering {args.samples} samples per pixel...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(
        num_samples=args.samples,
        batch_size=args.batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print()

    output_file = Path(args.output)
    renderer.save_image(output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    arch = ti.gpu if args.arch == "gpu" else ti.cpu
    ti.init(arch=arch, random_seed=args.seed)

    try:
        render_scene(args)
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
