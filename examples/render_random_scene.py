#!/usr/bin/env python3
"""Render the random sphere scene with a live progress line.

This script builds the procedural sphere field, renders it band by band
and prints the progress of the render as rows complete. It is a thin,
chattier alternative to the ``pathtracer-render`` command.

Usage:
    python examples/render_random_scene.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 200)
    --samples SAMPLES   Number of samples per pixel (default: 20)
    --seed SEED         Scene and sampling seed (default: 0)
    --output OUTPUT     Output file path (default: random_scene.png)
    --motion-blur       Move the small diffuse spheres during the shutter
    --gpu               Render on the GPU backend
    --quiet             Suppress progress output

Example:
    python examples/render_random_scene.py --width 200 --height 100 --samples 8
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the random sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=200,
        help="Image height in pixels (default: 200)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=20,
        help="Number of samples per pixel (default: 20)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Scene and sampling seed (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="random_scene.png",
        help="Output file path (default: random_scene.png)",
    )
    parser.add_argument(
        "--motion-blur",
        action="store_true",
        help="Move the small diffuse spheres during the shutter",
    )
    parser.add_argument(
        "--gpu",
        action="store_true",
        help="Render on the GPU backend",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_random_scene(
    width: int = 400,
    height: int = 200,
    num_samples: int = 20,
    seed: int = 0,
    output_path: str = "random_scene.png",
    motion_blur: bool = False,
    quiet: bool = False,
) -> Path:
    """Render the random sphere scene and save it to a file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.config import RenderSettings
    from pathtracer.core.integrator import get_pixels_numpy
    from pathtracer.core.renderer import Renderer
    from pathtracer.output.export import save_image
    from pathtracer.scene.random_scene import create_random_scene

    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=num_samples,
        seed=seed,
    )

    if not quiet:
        print(f"Creating random scene ({width}x{height}, seed {seed})...")
    scene = create_random_scene(
        seed=seed, aspect_ratio=settings.aspect_ratio, motion_blur=motion_blur
    )
    if not quiet:
        print(f"  {scene.get_sphere_count()} spheres, {scene.get_material_count()} materials")

    renderer = Renderer(settings)
    start_time = time.time()

    for rows_done, total in renderer.render_bands(scene):
        if not quiet:
            elapsed = time.time() - start_time
            print(
                f"\r  Progress: {rows_done}/{total} rows "
                f"({100.0 * rows_done / total:.1f}%) - {elapsed:.1f}s",
                end="",
                flush=True,
            )

    if not quiet:
        print()

    output_file = Path(output_path)
    save_image(get_pixels_numpy(), output_file)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    from pathtracer.config import init_taichi

    init_taichi("gpu" if args.gpu else "cpu", seed=args.seed)

    try:
        render_random_scene(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            seed=args.seed,
            output_path=args.output,
            motion_blur=args.motion_blur,
            quiet=args.quiet,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
