"""Monte Carlo light transport core built on Taichi.

This package estimates the radiance arriving along rays through a scene of
surfaces with composable material effects, using GPU-accelerated path
tracing:
- Geometric primitives (spheres, planes, discs, quads, cubes)
- Materials composed of emission, diffuse and specular reflection and
  refraction effects
- An unbiased path tracer with Russian roulette termination

Subpackages:
    core: Rays, random streams, distributions and the integrator
    geometry: Shape primitives and intersection algorithms
    materials: Effects, per-hit surface response and material presets
    scene: Scene storage, nearest-hit queries and the scene manager

Call ti.init() before importing the subpackages; they allocate Taichi
fields at import time.
"""

__version__ = "0.1.0"
