"""
MLX-facing functional API.

Each function converts its ``mx.array`` inputs to host buffers, runs the
split-radix transform or the block filters on them, and returns an
``mx.array``. Computation is in float64; results are returned as float32 or
complex64.

Transform plans are cached per thread, so repeated calls with the same
length reuse one node tree without sharing linked buffers across threads.
"""

from __future__ import annotations

import threading

import mlx.core as mx
import numpy as np

from ._profiler import log_cache_access, profile, tracked_mx_array, tracked_np_array
from ._validation import validate_positive, validate_power_of_two
from .cdft import CDFT, dft_product
from .interpolate import Interpolator
from .overlap_add import OverlapAdd

# Cache settings
_PLAN_CACHE_MAXSIZE = 16

# Block size used by interpolate() when none is given
_DEFAULT_INTERPOLATION_BLOCK = 1024

_plan_local = threading.local()


class _PlanCache:
    """
    LRU cache of transform instances keyed by size and precision.

    Each plan is linked to four scratch buffers of its own size, so a cached
    plan never holds on to a caller's arrays. The cache is bounded to prevent
    memory growth when many sizes are used.
    """

    def __init__(self, maxsize: int = _PLAN_CACHE_MAXSIZE):
        self._cache: dict[tuple[int, str], CDFT] = {}
        self._buffers: dict[tuple[int, str], tuple[np.ndarray, ...]] = {}
        self._access_order: list[tuple[int, str]] = []  # LRU tracking
        self._maxsize = maxsize

    def get(self, log2n: int, dft_class: type[CDFT] = CDFT) -> CDFT:
        """Return the cached plan, building it on a miss."""
        cache_key = (log2n, dft_class.dtype.name)
        plan = self._cache.get(cache_key)
        log_cache_access("plan", plan is not None)

        if plan is not None:
            self._access_order.remove(cache_key)
            self._access_order.append(cache_key)
            return plan

        # Evict oldest if at capacity
        while len(self._cache) >= self._maxsize and self._access_order:
            oldest = self._access_order.pop(0)
            self._cache.pop(oldest, None)
            self._buffers.pop(oldest, None)

        plan = dft_class(log2n)
        buffers = tuple(np.zeros(plan.size, dtype=plan.dtype) for _ in range(4))
        plan.link(*buffers)
        self._cache[cache_key] = plan
        self._buffers[cache_key] = buffers
        self._access_order.append(cache_key)
        return plan

    def buffers(
        self, log2n: int, dft_class: type[CDFT] = CDFT
    ) -> tuple[np.ndarray, ...]:
        """Scratch ``(xr, xi, yr, yi)`` a cached plan is linked to."""
        return self._buffers[(log2n, dft_class.dtype.name)]

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        """Clear the cache."""
        self._cache.clear()
        self._buffers.clear()
        self._access_order.clear()


def _plan_cache() -> _PlanCache:
    cache = getattr(_plan_local, "cache", None)
    if cache is None:
        cache = _PlanCache()
        _plan_local.cache = cache
    return cache


def clear_plan_cache() -> None:
    """Drop the transform plans cached for the calling thread."""
    _plan_cache().clear()


def _split_complex(x: mx.array, context: str) -> tuple[np.ndarray, np.ndarray, bool]:
    """Host real/imag float64 buffers of shape (batch, n); flag for 1-D input."""
    x_np = tracked_np_array(x, context)
    if x_np.ndim not in (1, 2):
        raise ValueError(f"Input must be 1-D or 2-D, got {x_np.ndim} dimensions")

    input_is_1d = x_np.ndim == 1
    if input_is_1d:
        x_np = x_np[None, :]

    xr = np.ascontiguousarray(x_np.real, dtype=np.float64)
    if np.iscomplexobj(x_np):
        xi = np.ascontiguousarray(x_np.imag, dtype=np.float64)
    else:
        xi = np.zeros_like(xr)
    return xr, xi, input_is_1d


def _to_mlx_complex(yr: np.ndarray, yi: np.ndarray, input_is_1d: bool, context: str):
    result = (yr + 1j * yi).astype(np.complex64)
    if input_is_1d:
        result = result[0]
    return tracked_mx_array(result, context)


def _transform(x: mx.array, inverse: bool, context: str) -> mx.array:
    xr, xi, input_is_1d = _split_complex(x, context)
    log2n = validate_power_of_two(xr.shape[-1], "Transform length")

    yr = np.empty_like(xr)
    yi = np.empty_like(xi)
    cache = _plan_cache()
    plan = cache.get(log2n)
    sr, si, dr, di = cache.buffers(log2n)
    evaluate = plan.evaluate_inverse if inverse else plan.evaluate
    for row in range(xr.shape[0]):
        sr[:] = xr[row]
        si[:] = xi[row]
        evaluate()
        yr[row] = dr
        yi[row] = di

    return _to_mlx_complex(yr, yi, input_is_1d, context)


@profile
def fft(x: mx.array) -> mx.array:
    """
    Complex DFT along the last axis using the split-radix algorithm.

    Parameters
    ----------
    x : mx.array
        Real or complex input. Shape: (n,) or (batch, n), with ``n`` a power
        of two >= 8.

    Returns
    -------
    mx.array
        Complex64 spectrum in natural order, same shape as ``x``.

    Raises
    ------
    ValueError
        If ``n`` is not a power of two >= 8.

    Examples
    --------
    >>> X = fft(mx.array(np.random.randn(1024).astype(np.float32)))
    >>> X.shape
    (1024,)
    """
    return _transform(x, inverse=False, context="fft")


@profile
def ifft(X: mx.array) -> mx.array:
    """
    Inverse complex DFT along the last axis, scaled by 1/n.

    Parameters
    ----------
    X : mx.array
        Spectrum in natural order. Shape: (n,) or (batch, n), with ``n`` a
        power of two >= 8.

    Returns
    -------
    mx.array
        Complex64 sequence, same shape as ``X``.
    """
    return _transform(X, inverse=True, context="ifft")


@profile
def spectral_product(X: mx.array, Y: mx.array, sign: int = 1) -> mx.array:
    """
    Element-wise product of two spectra.

    Parameters
    ----------
    X, Y : mx.array
        1-D spectra of equal length.
    sign : int, default=1
        +1 for ``X * Y`` (convolution), -1 for ``conj(X) * Y`` (correlation).

    Returns
    -------
    mx.array
        Complex64 product.

    Raises
    ------
    ValueError
        If lengths differ or sign is not +1 or -1.
    """
    xr, xi, _ = _split_complex(X, "spectral_product")
    yr, yi, _ = _split_complex(Y, "spectral_product")
    if xr.shape[0] != 1 or yr.shape[0] != 1:
        raise ValueError("spectral_product expects 1-D spectra")

    xr, xi, yr, yi = xr[0], xi[0], yr[0], yi[0]
    dft_product(xr, xi, yr, yi, sign)
    return _to_mlx_complex(yr[None, :], yi[None, :], True, "spectral_product")


def _default_block_size(kernel_length: int) -> int:
    block_size = 8
    while block_size < kernel_length:
        block_size *= 2
    return block_size


@profile
def overlap_add_convolve(
    y: mx.array,
    h: mx.array,
    block_size: int | None = None,
) -> mx.array:
    """
    Full linear convolution of a signal with an FIR kernel by overlap-add.

    The signal is fed through an :class:`OverlapAdd` filter in consecutive
    blocks and the tail is drained with ``flush``; the result equals
    ``np.convolve(y, h)``.

    Parameters
    ----------
    y : mx.array
        Real signal. Shape: (samples,) or (batch, samples).
    h : mx.array
        Real kernel. Shape: (taps,), or (batch, taps) for one kernel per
        batch row. Per-row kernels share one transform.
    block_size : int, optional
        Block length. Default: smallest power of two >= taps (at least 8).

    Returns
    -------
    mx.array
        Float32 convolution, shape (..., samples + taps - 1).

    Raises
    ------
    ValueError
        If shapes are inconsistent or ``block_size`` is not positive.
    """
    y_np = tracked_np_array(y, "overlap_add_convolve", dtype=np.float64)
    h_np = tracked_np_array(h, "overlap_add_convolve", dtype=np.float64)

    input_is_1d = y_np.ndim == 1
    if input_is_1d:
        y_np = y_np[None, :]
    if y_np.ndim != 2 or y_np.shape[1] == 0:
        raise ValueError("y must be a non-empty 1-D or 2-D signal")
    if h_np.ndim not in (1, 2) or h_np.shape[-1] == 0:
        raise ValueError("h must be a non-empty 1-D or 2-D kernel")
    if h_np.ndim == 2 and h_np.shape[0] != y_np.shape[0]:
        raise ValueError(
            f"Kernel batch ({h_np.shape[0]}) must match signal batch ({y_np.shape[0]})"
        )

    batch_size, n = y_np.shape
    taps = h_np.shape[-1]
    if block_size is None:
        block_size = _default_block_size(taps)
    validate_positive(block_size, "block_size")

    n_blocks = -(-n // block_size)
    n_flush = -(-(taps - 1) // block_size)
    out_length = n + taps - 1

    padded = np.zeros((batch_size, n_blocks * block_size), dtype=np.float64)
    padded[:, :n] = y_np
    out = np.zeros((batch_size, (n_blocks + n_flush) * block_size), dtype=np.float64)

    if h_np.ndim == 1:
        master = OverlapAdd(h_np, block_size)
        filters = [master] * batch_size
    else:
        master = OverlapAdd(h_np[0], block_size)
        filters = [master] + [
            OverlapAdd.from_master(h_np[row], master) for row in range(1, batch_size)
        ]

    for row, ola in enumerate(filters):
        ola.initialize()
        src, dst = padded[row], out[row]
        for b in range(n_blocks):
            ola.filter(src, dst, b * block_size, b * block_size)
        for b in range(n_blocks, n_blocks + n_flush):
            ola.flush(dst, b * block_size)

    result = out[:, :out_length].astype(np.float32)
    if input_is_1d:
        result = result[0]
    return tracked_mx_array(result, "overlap_add_convolve")


@profile
def interpolate(
    y: mx.array,
    rate: int,
    design_factor: int = 4,
    block_size: int | None = None,
) -> mx.array:
    """
    Up-sample a signal by an integer rate with a windowed-sinc FIR filter.

    The filter delay is removed, so ``result[..., k * rate] == y[..., k]``
    up to rounding.

    Parameters
    ----------
    y : mx.array
        Real signal. Shape: (samples,) or (batch, samples).
    rate : int
        Interpolation rate.
    design_factor : int, default=4
        Kernel half-length in input samples.
    block_size : int, optional
        Input samples per block. Default: min(samples, 1024).

    Returns
    -------
    mx.array
        Float32 signal of shape (..., samples * rate).

    Examples
    --------
    >>> y_up = interpolate(mx.array(np.random.randn(1000).astype(np.float32)), rate=4)
    >>> y_up.shape
    (4000,)
    """
    y_np = tracked_np_array(y, "interpolate", dtype=np.float64)
    input_is_1d = y_np.ndim == 1
    if input_is_1d:
        y_np = y_np[None, :]
    if y_np.ndim != 2 or y_np.shape[1] == 0:
        raise ValueError("y must be a non-empty 1-D or 2-D signal")

    batch_size, n = y_np.shape
    if block_size is None:
        block_size = min(n, _DEFAULT_INTERPOLATION_BLOCK)

    interpolator = Interpolator(rate, design_factor, block_size)
    out_block = interpolator.output_block_size
    delay = interpolator.delay

    n_blocks = -(-n // block_size)
    needed = delay + n * rate
    n_flush = max(0, -(-(needed - n_blocks * out_block) // out_block))

    padded = np.zeros((batch_size, n_blocks * block_size), dtype=np.float64)
    padded[:, :n] = y_np
    out = np.zeros((batch_size, (n_blocks + n_flush) * out_block), dtype=np.float64)

    for row in range(batch_size):
        interpolator.initialize()
        for b in range(n_blocks):
            interpolator.interpolate(
                padded[row, b * block_size : (b + 1) * block_size],
                out[row],
                b * out_block,
            )
        for b in range(n_blocks, n_blocks + n_flush):
            interpolator.flush(out[row], b * out_block)

    result = out[:, delay:needed].astype(np.float32)
    if input_is_1d:
        result = result[0]
    return tracked_mx_array(result, "interpolate")
