#!/usr/bin/env python3
"""Render the demo scene or a JSON scene file.

Usage:
    python -m examples.render_scene [options]

Options:
    --width WIDTH         Image width in pixels (default: 400)
    --height HEIGHT       Image height in pixels (default: 400)
    --output OUTPUT       Output file path (default: render.png)
    --scene SCENE         JSON scene file (default: built-in demo scene)
    --with-volume         Add the synthetic voxel blob to the demo scene
    --gamma GAMMA         Gamma correction for the saved image (default: 1.0)
    --arch {cpu,gpu}      Taichi backend (default: cpu)
    --preview             Show the result in a Matplotlib window
    -v, --verbose         Enable debug logging

Example:
    python -m examples.render_scene --width 256 --height 256 --with-volume
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_scene")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the demo scene or a JSON scene file.",
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
        default=400,
        help="Image height in pixels (default: 400)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="render.png",
        help="Output file path (default: render.png)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file (default: built-in demo scene)",
    )
    parser.add_argument(
        "--with-volume",
        action="store_true",
        help="Add the synthetic voxel blob to the demo scene",
    )
    parser.add_argument(
        "--gamma",
        type=float,
        default=1.0,
        help="Gamma correction for the saved image (default: 1.0)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Show the result in a Matplotlib window",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args()


def render_scene(
    width: int = 400,
    height: int = 400,
    output_path: str = "render.png",
    scene_file: str | None = None,
    with_volume: bool = False,
    gamma: float = 1.0,
    preview: bool = False,
) -> Path:
    """Build a scene, render it and save the result.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        output_path: Output file path (PNG).
        scene_file: JSON scene file; the demo scene is used when None.
        with_volume: Add the synthetic voxel blob to the demo scene.
        gamma: Gamma correction applied to the saved and previewed image.
        preview: Show the result in a Matplotlib window.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from voxtrace.core.tracer import RayTracer
    from voxtrace.scene.demo import DemoSceneParams, create_demo_scene
    from voxtrace.scene.manager import SceneManager

    if scene_file is None:
        scene, camera = create_demo_scene(DemoSceneParams(include_volume=with_volume))
    else:
        scene = SceneManager()
        scene.load_json(scene_file)
        if scene.camera is None:
            raise ValueError(f"Scene file {scene_file} has no camera")
        camera = scene.camera

    logger.info("Scene: %r", scene)

    tracer = RayTracer(width, height)
    tracer.render(camera)

    output_file = Path(output_path)
    tracer.save_image(str(output_file), gamma=gamma)

    if preview:
        from voxtrace.preview.display import show_preview

        show_preview(tracer, gamma=gamma)

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ti.init(arch=ti.gpu if args.arch == "gpu" else ti.cpu)

    try:
        output = render_scene(
            width=args.width,
            height=args.height,
            output_path=args.output,
            scene_file=args.scene,
            with_volume=args.with_volume,
            gamma=args.gamma,
            preview=args.preview,
        )
    except (OSError, ValueError, RuntimeError) as e:
        logger.error("Rendering failed: %s", e)
        return 1

    logger.info("Saved to: %s", output.absolute())
    return 0


if __name__ == "__main__":
    sys.exit(main())
