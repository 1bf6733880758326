#!/usr/bin/env python3
"""Render a small scene of spheres lit by an area light.

This script drives the path tracer end to end: it builds a scene with the
SceneManager, generates pinhole camera rays with NumPy, traces one path per
pixel per sample, averages the samples and writes a tone mapped PNG.

Usage:
    python examples/render_spheres.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 320)
    --height HEIGHT     Image height in pixels (default: 240)
    --samples SAMPLES   Number of samples per pixel (default: 64)
    --max-depth DEPTH   Bounce limit of each path (default: 16)
    --seed SEED         Render seed (default: 0)
    --output OUTPUT     Output file path (default: spheres.png)
    --scene-json PATH   Also write the scene description as JSON
    --show              Display the result with Matplotlib
    --quiet             Only log warnings

Example:
    python examples/render_spheres.py --width 160 --height 120 --samples 16
"""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
import time
from pathlib import Path

import numpy as np
import numpy.typing as npt
import taichi as ti

logger = logging.getLogger("render_spheres")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene of spheres with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=320, help="Image width (default: 320)")
    parser.add_argument("--height", type=int, default=240, help="Image height (default: 240)")
    parser.add_argument(
        "--samples",
        type=int,
        default=64,
        help="Number of samples per pixel (default: 64)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=16,
        help="Bounce limit of each path (default: 16)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Render seed (default: 0)")
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path (default: spheres.png)",
    )
    parser.add_argument(
        "--scene-json",
        type=str,
        default=None,
        help="Also write the scene description to this JSON file",
    )
    parser.add_argument("--show", action="store_true", help="Display the result")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings")
    return parser.parse_args()


def build_scene():
    """Build the demo scene and return its SceneManager."""
    from lucent.scene.manager import SceneManager

    scene = SceneManager()
    scene.set_background((0.02, 0.02, 0.03))

    white = scene.add_lambertian_material((0.73, 0.73, 0.73))
    red = scene.add_lambertian_material((0.65, 0.05, 0.05))
    green = scene.add_lambertian_material((0.12, 0.45, 0.15))
    light = scene.add_emissive_material((1.0, 0.9, 0.75), intensity=12.0)
    gold = scene.add_metal_material((0.9, 0.7, 0.3), roughness=0.15)
    glass = scene.add_dielectric_material(ior=1.5)
    plastic = scene.add_phong_material(
        diffuse=(0.1, 0.2, 0.5), specular=(0.3, 0.3, 0.3), shininess=60.0
    )

    # Room: floor, ceiling, back and side walls
    scene.add_plane((0.0, 1.0, 0.0), -1.0, white)
    scene.add_plane((0.0, -1.0, 0.0), -2.0, white)
    scene.add_plane((0.0, 0.0, 1.0), -4.0, white)
    scene.add_plane((1.0, 0.0, 0.0), -2.0, red)
    scene.add_plane((-1.0, 0.0, 0.0), -2.0, green)

    scene.add_quad((-0.5, 1.99, -2.5), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0), light)

    scene.add_sphere((-1.0, -0.45, -2.6), 0.55, gold)
    scene.add_sphere((0.15, -0.5, -1.9), 0.5, glass)
    scene.add_cube((1.2, -0.6, -3.0), (0.8, 0.8, 0.8), plastic)
    scene.add_disc((0.0, -0.99, -3.2), (0.0, 1.0, 0.0), 0.6, red)

    return scene


def camera_rays(
    width: int,
    height: int,
    rng: np.random.Generator,
    origin: tuple[float, float, float] = (0.0, 0.3, 1.5),
    vfov: float = 55.0,
) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.float32]]:
    """Generate one jittered pinhole ray per pixel, looking down -z.

    Returns:
        Tuple of (origins, directions), each of shape (height * width, 3).
    """
    half_height = math.tan(math.radians(vfov) / 2.0)
    half_width = half_height * width / height

    j, i = np.meshgrid(np.arange(height), np.arange(width), indexing="ij")
    u = (i + rng.random(i.shape)) / width
    v = (j + rng.random(j.shape)) / height

    directions = np.stack(
        [
            (2.0 * u - 1.0) * half_width,
            (1.0 - 2.0 * v) * half_height,
            -np.ones_like(u),
        ],
        axis=-1,
    ).reshape(-1, 3)
    origins = np.broadcast_to(np.asarray(origin), directions.shape)
    return origins.astype(np.float32), directions.astype(np.float32)


def to_display(image: npt.NDArray[np.float32], gamma: float = 2.2) -> npt.NDArray[np.uint8]:
    """Reinhard tone map and gamma encode a linear image to 8 bits."""
    mapped = np.maximum(image, 0.0)
    mapped = mapped / (1.0 + mapped)
    mapped = np.power(np.clip(mapped, 0.0, 1.0), 1.0 / gamma)
    return (mapped * 255).astype(np.uint8)


def render(
    width: int,
    height: int,
    num_samples: int,
    max_depth: int = 16,
    seed: int = 0,
) -> npt.NDArray[np.float32]:
    """Render the current scene and return the mean radiance image (H, W, 3)."""
    from lucent.core.integrator import configure_integrator, trace_rays

    configure_integrator(max_depth=max_depth)
    rng = np.random.default_rng(seed)
    accum = np.zeros((height * width, 3), dtype=np.float64)

    start = time.time()
    for sample in range(num_samples):
        origins, directions = camera_rays(width, height, rng)
        # Distinct seed per sample keeps every pass an independent stream
        accum += trace_rays(origins, directions, seed=seed * num_samples + sample)
        if (sample + 1) % max(1, num_samples // 10) == 0:
            elapsed = time.time() - start
            logger.info(
                "Sample %d/%d (%.1f spp/s)", sample + 1, num_samples, (sample + 1) / elapsed
            )

    return (accum / num_samples).reshape(height, width, 3).astype(np.float32)


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
    except Exception:
        ti.init(arch=ti.cpu)

    from PIL import Image as PILImage

    try:
        scene = build_scene()
        logger.info(
            "Scene has %d objects and %d materials",
            scene.get_object_count(),
            scene.get_material_count(),
        )
        if args.scene_json:
            Path(args.scene_json).write_text(json.dumps(scene.to_dict(), indent=2))

        image = render(args.width, args.height, args.samples, args.max_depth, args.seed)
        pixels = to_display(image)

        output_file = Path(args.output)
        PILImage.fromarray(pixels, mode="RGB").save(output_file)
        logger.info("Saved to %s", output_file.absolute())
    except (ValueError, RuntimeError) as e:
        logger.error("Render failed: %s", e)
        return 1

    if args.show:
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(1, 1, figsize=(8, 6))
        ax.imshow(pixels)
        ax.set_title(f"{args.samples} spp")
        ax.axis("off")
        plt.tight_layout()
        plt.show()

    return 0


if __name__ == "__main__":
    sys.exit(main())
