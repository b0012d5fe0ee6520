"""Explicit, per-sample random number generation for Taichi kernels.

Every stochastic decision in the renderer (pixel jitter, lens sampling,
shutter time, scatter directions, Fresnel choice) draws from a small
generator state that is threaded through the ``@ti.func`` call chain
instead of a hidden global generator. The state for one camera sample is
derived by hashing ``(seed, pixel_index, sample_index)``, so:

- samples are statistically independent across pixels and samples;
- a render is bit-identical for a fixed seed regardless of how Taichi
  schedules pixels onto worker threads;
- no two threads ever contend for a shared generator.

The seed hash is Thomas Wang's 32-bit integer hash; the generator step is
Marsaglia's xorshift32. Both use only 32-bit unsigned arithmetic, which
wraps on overflow in Taichi exactly as it does in C.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.core.sampler import init_rng, random_float
    >>> # Within a Taichi kernel:
    >>> # state = init_rng(seed, pixel_index, sample_index)
    >>> # value, state = random_float(state)
"""

import taichi as ti

# 2^-24: converts the top 24 bits of a u32 into a float in [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def wang_hash(value: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer with Wang's hash.

    Args:
        value: The integer to hash.

    Returns:
        A well-mixed 32-bit hash of ``value``.
    """
    h = value
    h = (h ^ ti.u32(61)) ^ (h >> 16)
    h *= ti.u32(9)
    h = h ^ (h >> 4)
    h *= ti.u32(0x27D4EB2D)
    h = h ^ (h >> 15)
    return h


@ti.func
def init_rng(seed: ti.i32, pixel_index: ti.i32, sample_index: ti.i32) -> ti.u32:
    """Derive the generator state for one camera sample.

    Args:
        seed: The render-wide seed.
        pixel_index: Row-major pixel index (``j * width + i``).
        sample_index: Index of the sample within the pixel.

    Returns:
        A non-zero generator state.
    """
    state = wang_hash(ti.cast(seed, ti.u32))
    state = wang_hash(state ^ ti.cast(pixel_index, ti.u32))
    state = wang_hash(state ^ wang_hash(ti.cast(sample_index, ti.u32)))
    # xorshift has a fixed point at zero
    if state == 0:
        state = ti.u32(0x6D2B79F5)
    return state


@ti.func
def next_state(state: ti.u32) -> ti.u32:
    """Advance an xorshift32 generator state by one step."""
    s = state
    s ^= s << 13
    s ^= s >> 17
    s ^= s << 5
    return s


@ti.func
def random_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        state: The current generator state.

    Returns:
        A tuple of (value, new_state).
    """
    s = next_state(state)
    value = ti.cast(s >> 8, ti.f32) * _INV_2_POW_24
    return value, s


@ti.func
def random_range(lo: ti.f32, hi: ti.f32, state: ti.u32):
    """Draw a uniform float in [lo, hi).

    Returns:
        A tuple of (value, new_state).
    """
    r, s = random_float(state)
    return lo + (hi - lo) * r, s
