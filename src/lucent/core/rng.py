"""Explicit per-path random number streams.

Sampling code never touches a global generator. Instead every path carries a
32-bit state that is threaded through each sampling call and returned
updated, so a render is reproducible from its seed and concurrent kernel
threads each own an independent stream.

The stream is the PCG hash applied repeatedly to the state
(https://jcgt.org/published/0009/03/02/paper.pdf). A stream is derived from a
(seed, index) pair, where index is usually the ray or sample number.

Example:
    >>> @ti.kernel
    ... def draw(out: ti.types.ndarray()):
    ...     for i in range(out.shape[0]):
    ...         state = seed_state(ti.u32(7), ti.cast(i, ti.u32))
    ...         u, state = next_float(state)
    ...         out[i] = u
"""

import taichi as ti

# 2^-24: maps the top 24 bits of a u32 onto [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def pcg_hash(value: ti.u32) -> ti.u32:
    """Hash a 32-bit value with the PCG output permutation."""
    state = value * ti.u32(747796405) + ti.u32(2891336453)
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(277803737)
    return (word >> ti.u32(22)) ^ word


@ti.func
def seed_state(seed: ti.u32, index: ti.u32) -> ti.u32:
    """Derive the initial stream state for one path.

    Args:
        seed: The render-level seed.
        index: The ray or sample index within the launch.

    Returns:
        A u32 state independent of the states of other indices.
    """
    return pcg_hash(index ^ pcg_hash(seed))


@ti.func
def next_float(state: ti.u32):
    """Draw a uniform float in [0, 1) and advance the stream.

    Returns:
        A tuple of (value, new_state).
    """
    new_state = pcg_hash(state)
    value = ti.cast(new_state >> ti.u32(8), ti.f32) * _INV_2_POW_24
    return value, new_state


def normalize_seed(seed: int) -> int:
    """Fold an arbitrary Python integer into the u32 seed range.

    Raises:
        ValueError: If seed is negative.
    """
    if seed < 0:
        raise ValueError(f"Seed must be non-negative, got {seed}")
    return int(seed) & 0xFFFFFFFF
