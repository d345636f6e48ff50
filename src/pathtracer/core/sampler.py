"""Per-worker random number streams for Monte Carlo sampling.

Every image row is rendered by an independent worker, and each worker owns
one private pseudo-random stream. A stream is a 32-bit xorshift state stored
in ``_rng_state[stream]``; only the worker that owns the index ever touches
it, so sampling needs no locks and renders are reproducible for a fixed seed
regardless of how the backend schedules rows.

Streams are seeded on the host with ``numpy.random.SeedSequence.spawn``,
which yields statistically independent child seeds from one master seed.

Example:
    >>> from pathtracer.core.sampler import seed_streams, random_real
    >>> seed_streams(seed=42, count=4)
    >>> # inside a kernel: xi = random_real(row)
"""

import numpy as np
import taichi as ti

from pathtracer.core.ray import length_squared, real, vec3

# One stream per image row, plus headroom for tooling and tests
MAX_STREAMS = 2048

# Rejection loops terminate almost surely; the cap only guards fuzzing
MAX_REJECTION_TRIES = 1000

# 24 random mantissa bits map onto [0, 1)
_INV_2_24 = 1.0 / 16777216.0

_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


def seed_streams(seed: int, count: int = MAX_STREAMS) -> None:
    """Seed the first ``count`` streams independently from a master seed.

    Args:
        seed: Master seed. The same seed always yields the same streams.
        count: Number of streams to seed (typically the image height).

    Raises:
        ValueError: If count is outside [1, MAX_STREAMS] or seed is negative.
    """
    if count < 1 or count > MAX_STREAMS:
        raise ValueError(f"Stream count {count} is outside [1, {MAX_STREAMS}]")
    if seed < 0:
        raise ValueError(f"Seed must be non-negative, got {seed}")

    children = np.random.SeedSequence(seed).spawn(count)
    states = np.ones(MAX_STREAMS, dtype=np.uint32)
    for i, child in enumerate(children):
        states[i] = child.generate_state(1, dtype=np.uint32)[0]
    # xorshift has a fixed point at zero
    states[states == 0] = 0x9E3779B9
    _rng_state.from_numpy(states)


def get_stream_state(stream: int) -> int:
    """Return the raw state of a stream (for debugging and tests)."""
    return int(_rng_state[stream])


@ti.func
def next_u32(stream: ti.i32) -> ti.u32:
    """Advance a stream with xorshift32 and return the new state."""
    x = _rng_state[stream]
    x ^= x << ti.cast(13, ti.u32)
    x ^= x >> ti.cast(17, ti.u32)
    x ^= x << ti.cast(5, ti.u32)
    _rng_state[stream] = x
    return x


@ti.func
def random_real(stream: ti.i32) -> real:
    """Draw a uniform sample in [0, 1) from the given stream."""
    bits = next_u32(stream) >> ti.cast(8, ti.u32)
    return ti.cast(bits, real) * _INV_2_24


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a uniformly distributed point strictly inside the unit sphere.

    Uses rejection sampling: draw a point in [-1, 1]^3 and retry while its
    squared length is >= 1.
    """
    # Start outside the sphere so at least one point is drawn
    p = vec3(1.0, 1.0, 1.0)
    tries = 0
    while length_squared(p) >= 1.0 and tries < MAX_REJECTION_TRIES:
        p = vec3(
            random_real(stream) * 2.0 - 1.0,
            random_real(stream) * 2.0 - 1.0,
            random_real(stream) * 2.0 - 1.0,
        )
        tries += 1
    return p


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a uniformly distributed point inside the unit disk (z = 0).

    Used by the thin-lens camera for defocus blur.
    """
    p = vec3(1.0, 1.0, 0.0)
    tries = 0
    while p.x * p.x + p.y * p.y >= 1.0 and tries < MAX_REJECTION_TRIES:
        p = vec3(
            random_real(stream) * 2.0 - 1.0,
            random_real(stream) * 2.0 - 1.0,
            0.0,
        )
        tries += 1
    return p
