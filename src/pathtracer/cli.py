"""Command-line entry point: render the random sphere scene to a file.

Usage:
    pathtracer-render OUTPUT [options]

Options:
    --width WIDTH         Image width in pixels (default: 1000)
    --height HEIGHT       Image height in pixels (default: 500)
    --samples SAMPLES     Samples per pixel (default: 100)
    --seed SEED           Seed for the scene and the random streams (default: 0)
    --max-depth DEPTH     Maximum scatter depth (default: 50)
    --arch ARCH           Taichi backend: cpu, gpu, cuda, vulkan (default: cpu)
    --no-bvh              Use a linear scan instead of the BVH
    --motion-blur         Move the small diffuse spheres during the shutter
    --texture PATH        Image for the textured feature sphere
    --log-level LEVEL     Logging level (default: INFO)

The output format is chosen from the file extension: .png, .jpg/.jpeg
or .bmp.

Example:
    pathtracer-render out.png --width 400 --height 200 --samples 20
"""

from __future__ import annotations

import argparse
import logging
import sys

from pathtracer.config import ARCHS, RenderSettings, init_taichi
from pathtracer.logging_config import setup_logging
from pathtracer.output.export import UnsupportedFormatError, get_image_format

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    defaults = RenderSettings()
    parser = argparse.ArgumentParser(
        prog="pathtracer-render",
        description="Render the random sphere scene with a Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "output",
        metavar="OUTPUT",
        help="Output image file (.png, .jpg/.jpeg or .bmp)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=defaults.width,
        help=f"Image width in pixels (default: {defaults.width})",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=defaults.height,
        help=f"Image height in pixels (default: {defaults.height})",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=defaults.samples_per_pixel,
        help=f"Samples per pixel (default: {defaults.samples_per_pixel})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=defaults.seed,
        help=f"Seed for the scene and the random streams (default: {defaults.seed})",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=defaults.max_depth,
        help=f"Maximum scatter depth (default: {defaults.max_depth})",
    )
    parser.add_argument(
        "--arch",
        choices=sorted(ARCHS),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--no-bvh",
        action="store_true",
        help="Use a linear scan instead of the BVH",
    )
    parser.add_argument(
        "--motion-blur",
        action="store_true",
        help="Move the small diffuse spheres during the shutter",
    )
    parser.add_argument(
        "--texture",
        type=str,
        default=None,
        help="Image for the textured feature sphere",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the renderer from the command line.

    Returns:
        Process exit status: 0 on success, 1 on a usage error the parser
        cannot catch (unsupported output format, invalid settings, missing
        texture file).
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    # Fail before spending time on the render
    try:
        get_image_format(args.output)
    except UnsupportedFormatError as e:
        logger.error("%s: %s", args.output, e)
        return 1

    settings = RenderSettings(
        width=args.width,
        height=args.height,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        seed=args.seed,
        use_bvh=not args.no_bvh,
    )

    init_taichi(args.arch, seed=args.seed)

    # Lazy imports to allow Taichi initialization first
    from pathtracer.core.renderer import Renderer
    from pathtracer.output.export import save_image
    from pathtracer.scene.random_scene import create_random_scene

    try:
        renderer = Renderer(settings)
        scene = create_random_scene(
            seed=args.seed,
            aspect_ratio=settings.aspect_ratio,
            motion_blur=args.motion_blur,
            texture_path=args.texture,
        )
    except (ValueError, FileNotFoundError) as e:
        logger.error("%s", e)
        return 1

    def progress(done: int, total: int) -> None:
        logger.debug("%d/%d rows", done, total)

    pixels = renderer.render(scene, callback=progress)
    save_image(pixels, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
