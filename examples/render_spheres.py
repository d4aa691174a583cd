#!/usr/bin/env python3
"""Render one of the preset sphere scenes.

This script builds a scene (a preset or a JSON scene file), points a camera
at it, renders it with the path tracer and writes the result as PNG or PPM.

Usage:
    python -m examples.render_spheres [options]

Options:
    --height HEIGHT       Vertical resolution in pixels (default: 240)
    --aspect W:H          Aspect ratio (default: 16:9)
    --samples SAMPLES     Samples per pixel (default: 100)
    --bounces BOUNCES     Maximum bounces per path (default: 50)
    --scene NAME          Preset scene: single_sphere, ten_spheres, mirror
    --scene-file PATH     Load the scene from a JSON file instead
    --eye X Y Z           Camera position (default depends on the scene)
    --target X Y Z        Camera look-at point
    --fov DEGREES         Vertical field of view
    --aperture APERTURE   Lens aperture for depth of field (default: 0)
    --gamma GAMMA         Gamma exponent applied before saving (default: 0.5)
    --precision P         single or double (default: single)
    --arch ARCH           Taichi backend (default: cpu)
    --seed SEED           Random seed
    --output OUTPUT       Output file, .png or .ppm (default: spheres.png)
    --show                Open a matplotlib preview after rendering
    --quiet               Suppress progress output
    --verbose             Enable debug logging

Example:
    python -m examples.render_spheres --height 360 --samples 64 --scene ten_spheres
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

# Camera used for each preset: (eye, target, vertical fov)
PRESET_CAMERAS = {
    "single_sphere": ((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 90.0),
    "ten_spheres": ((0.5, -0.3, 0.0), (0.1, -0.1, -1.0), 80.0),
    "mirror": ((0.0, 0.2, 1.0), (0.0, 0.0, -1.0), 60.0),
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with the Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--height", type=int, default=240, help="Vertical resolution (default: 240)")
    parser.add_argument("--aspect", type=str, default="16:9", help="Aspect ratio W:H (default: 16:9)")
    parser.add_argument("--samples", type=int, default=100, help="Samples per pixel (default: 100)")
    parser.add_argument("--bounces", type=int, default=50, help="Maximum bounces (default: 50)")
    parser.add_argument(
        "--scene",
        choices=sorted(PRESET_CAMERAS),
        default="ten_spheres",
        help="Preset scene (default: ten_spheres)",
    )
    parser.add_argument("--scene-file", type=str, default=None, help="JSON scene file")
    parser.add_argument("--eye", type=float, nargs=3, default=None, help="Camera position")
    parser.add_argument("--target", type=float, nargs=3, default=None, help="Camera look-at point")
    parser.add_argument("--fov", type=float, default=None, help="Vertical field of view in degrees")
    parser.add_argument("--aperture", type=float, default=0.0, help="Lens aperture (default: 0)")
    parser.add_argument("--gamma", type=float, default=0.5, help="Gamma exponent (default: 0.5)")
    parser.add_argument(
        "--precision",
        choices=["single", "double"],
        default="single",
        help="Floating point precision (default: single)",
    )
    parser.add_argument("--arch", type=str, default="cpu", help="Taichi backend (default: cpu)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--output", type=str, default="spheres.png", help="Output file (default: spheres.png)"
    )
    parser.add_argument("--show", action="store_true", help="Show a matplotlib preview")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def render_spheres(args: argparse.Namespace) -> Path:
    """Build the scene and camera, render and save.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera import Camera
    from pathtracer.core.renderer import Renderer, RenderSettings
    from pathtracer.image import AspectRatio
    from pathtracer.preview import save_image, show_preview
    from pathtracer.scene import Scene, build_preset

    aspect = AspectRatio.parse(args.aspect)
    settings = RenderSettings(
        samples=args.samples,
        max_bounces=args.bounces,
        height=args.height,
        aspect_ratio=aspect,
    )

    if args.scene_file:
        if not args.quiet:
            print(f"Loading scene from {args.scene_file}...")
        scene = Scene.load_json(args.scene_file)
    else:
        if not args.quiet:
            print(f"Creating {args.scene} scene ({settings.width}x{settings.height})...")
        scene = build_preset(args.scene)

    eye, target, fov = PRESET_CAMERAS[args.scene]
    camera = Camera.look_at(
        args.eye if args.eye is not None else eye,
        args.target if args.target is not None else target,
        args.fov if args.fov is not None else fov,
        aspect.as_float(),
    ).with_aperture(args.aperture)

    if not args.quiet:
        print(f"Rendering {settings.samples} samples per pixel, {settings.max_bounces} bounces...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not args.quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            pixels_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} pixels "
                f"({progress_pct:.1f}%) - {pixels_per_sec:.0f} px/s",
                end="",
                flush=True,
            )

    buffer = Renderer(camera, scene, settings).render(callback=progress_callback)

    if not args.quiet:
        print()  # Newline after progress

    buffer = buffer.apply_gamma(args.gamma)
    output_file = save_image(buffer, args.output)

    total_time = time.time() - start_time
    if not args.quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    if args.show:
        show_preview(buffer, title=f"{args.scene} - {settings.samples} spp")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from pathtracer.scalar import init_taichi

    try:
        init_taichi(args.precision, arch=args.arch, seed=args.seed)
        if not args.quiet:
            print(f"Using {args.arch} backend, {args.precision} precision")
        render_spheres(args)
        return 0
    except Exception as e:
        logging.getLogger(__name__).debug("Render failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
