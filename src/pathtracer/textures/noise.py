"""Perlin noise and the turbulence-driven marble texture.

Each noise texture owns its own Perlin state: three permutations of
[0, 256) and 256 random unit gradient vectors. The state is generated once
on the host with ``numpy.random.Generator`` and is read-only while kernels
run.

Noise at a point p is the trilinear blend of the dot products between the
gradients at the 8 surrounding lattice corners and the offsets from those
corners, using Hermite smoothing (3t^2 - 2t^3) on each axis. A corner's
gradient is selected by

    ranvec[perm_x[i & 255] ^ perm_y[j & 255] ^ perm_z[k & 255]]

Turbulence sums TURBULENCE_DEPTH octaves of noise with halving weight and
doubling frequency, then takes the absolute value. The marble color is

    0.5 * (1 + sin(scale * p.z + 10 * turb(p)))

in every channel.

Example:
    >>> from pathtracer.textures.noise import add_noise_texture
    >>> idx = add_noise_texture(scale=4.0, seed=7)
"""

from typing import Optional

import numpy as np
import taichi as ti

from pathtracer.core.ray import real, vec3

# Maximum number of noise textures in the scene
MAX_NOISE_TEXTURES = 64

# Size of the permutation and gradient tables
PERLIN_POINT_COUNT = 256

# Octaves summed by the turbulence function
TURBULENCE_DEPTH = 7

perlin_perm_x = ti.field(dtype=ti.i32, shape=(MAX_NOISE_TEXTURES, PERLIN_POINT_COUNT))
perlin_perm_y = ti.field(dtype=ti.i32, shape=(MAX_NOISE_TEXTURES, PERLIN_POINT_COUNT))
perlin_perm_z = ti.field(dtype=ti.i32, shape=(MAX_NOISE_TEXTURES, PERLIN_POINT_COUNT))
perlin_ranvec = ti.Vector.field(3, dtype=real, shape=(MAX_NOISE_TEXTURES, PERLIN_POINT_COUNT))
noise_scales = ti.field(dtype=real, shape=MAX_NOISE_TEXTURES)
num_noise_textures = ti.field(dtype=ti.i32, shape=())


def generate_perlin_tables(rng: np.random.Generator) -> dict[str, np.ndarray]:
    """Generate one set of Perlin tables.

    Args:
        rng: Source of randomness for the tables.

    Returns:
        A dict with keys "perm_x", "perm_y", "perm_z" (int32 permutations of
        [0, 256)) and "ranvec" (float64 unit vectors, shape (256, 3)).
    """
    ranvec = rng.uniform(-1.0, 1.0, size=(PERLIN_POINT_COUNT, 3))
    norms = np.linalg.norm(ranvec, axis=1)
    # Replace degenerate draws before normalizing
    degenerate = norms < 1e-12
    ranvec[degenerate] = (1.0, 0.0, 0.0)
    norms[degenerate] = 1.0
    ranvec = ranvec / norms[:, None]

    return {
        "perm_x": rng.permutation(PERLIN_POINT_COUNT).astype(np.int32),
        "perm_y": rng.permutation(PERLIN_POINT_COUNT).astype(np.int32),
        "perm_z": rng.permutation(PERLIN_POINT_COUNT).astype(np.int32),
        "ranvec": ranvec.astype(np.float64),
    }


@ti.kernel
def _upload_perlin_tables(
    idx: ti.i32,
    perm_x: ti.types.ndarray(),
    perm_y: ti.types.ndarray(),
    perm_z: ti.types.ndarray(),
    ranvec: ti.types.ndarray(),
):
    for k in range(PERLIN_POINT_COUNT):
        perlin_perm_x[idx, k] = perm_x[k]
        perlin_perm_y[idx, k] = perm_y[k]
        perlin_perm_z[idx, k] = perm_z[k]
        perlin_ranvec[idx, k] = vec3(ranvec[k, 0], ranvec[k, 1], ranvec[k, 2])


def clear_noise_textures() -> None:
    """Clear all noise textures."""
    num_noise_textures[None] = 0


def add_noise_texture(scale: float = 1.0, seed: Optional[int] = None) -> int:
    """Add a marble (Perlin turbulence) texture.

    Args:
        scale: Frequency of the marble bands along z. Must be positive.
        seed: Seed for the Perlin tables. None draws fresh OS entropy.

    Returns:
        The index of the texture within the noise registry.

    Raises:
        RuntimeError: If the maximum number of noise textures is exceeded.
        ValueError: If scale is not positive.
    """
    if scale <= 0.0:
        raise ValueError(f"Noise scale must be positive, got {scale}")

    idx = num_noise_textures[None]
    if idx >= MAX_NOISE_TEXTURES:
        raise RuntimeError(f"Maximum number of noise textures ({MAX_NOISE_TEXTURES}) exceeded")

    tables = generate_perlin_tables(np.random.default_rng(seed))
    _upload_perlin_tables(
        idx, tables["perm_x"], tables["perm_y"], tables["perm_z"], tables["ranvec"]
    )
    noise_scales[idx] = scale
    num_noise_textures[None] = idx + 1
    return idx


def get_noise_texture_count() -> int:
    """Get the number of noise textures in the registry."""
    return int(num_noise_textures[None])


def get_perlin_tables(idx: int) -> dict[str, np.ndarray]:
    """Read back the Perlin tables of a noise texture (for inspection)."""
    return {
        "perm_x": perlin_perm_x.to_numpy()[idx],
        "perm_y": perlin_perm_y.to_numpy()[idx],
        "perm_z": perlin_perm_z.to_numpy()[idx],
        "ranvec": perlin_ranvec.to_numpy()[idx],
    }


@ti.func
def perlin_noise(texture_idx: ti.i32, p: vec3) -> real:
    """Smoothed gradient noise at p, roughly in [-1, 1]."""
    fx = ti.floor(p.x)
    fy = ti.floor(p.y)
    fz = ti.floor(p.z)
    u = p.x - fx
    v = p.y - fy
    w = p.z - fz

    i = ti.cast(fx, ti.i32)
    j = ti.cast(fy, ti.i32)
    k = ti.cast(fz, ti.i32)

    # Hermite smoothing
    uu = u * u * (3.0 - 2.0 * u)
    vv = v * v * (3.0 - 2.0 * v)
    ww = w * w * (3.0 - 2.0 * w)

    accum = 0.0
    for di in ti.static(range(2)):
        for dj in ti.static(range(2)):
            for dk in ti.static(range(2)):
                corner = (
                    perlin_perm_x[texture_idx, (i + di) & 255]
                    ^ perlin_perm_y[texture_idx, (j + dj) & 255]
                    ^ perlin_perm_z[texture_idx, (k + dk) & 255]
                )
                gradient = perlin_ranvec[texture_idx, corner]
                offset = vec3(u - di, v - dj, w - dk)
                accum += (
                    (di * uu + (1 - di) * (1.0 - uu))
                    * (dj * vv + (1 - dj) * (1.0 - vv))
                    * (dk * ww + (1 - dk) * (1.0 - ww))
                    * gradient.dot(offset)
                )
    return accum


@ti.func
def perlin_turbulence(texture_idx: ti.i32, p: vec3) -> real:
    """Absolute sum of TURBULENCE_DEPTH noise octaves."""
    accum = 0.0
    temp_p = p
    weight = 1.0
    for _ in ti.static(range(TURBULENCE_DEPTH)):
        accum += weight * perlin_noise(texture_idx, temp_p)
        weight *= 0.5
        temp_p *= 2.0
    return ti.abs(accum)


@ti.func
def noise_value(texture_idx: ti.i32, p: vec3) -> vec3:
    """Marble color at world-space point p."""
    scale = noise_scales[texture_idx]
    intensity = 0.5 * (1.0 + ti.sin(scale * p.z + 10.0 * perlin_turbulence(texture_idx, p)))
    return vec3(intensity, intensity, intensity)
