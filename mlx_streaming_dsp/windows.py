"""
Window functions for FIR kernel design.

Provides window functions compatible with scipy conventions, as host arrays
for kernel construction and as MLX arrays for the functional API.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache

import mlx.core as mx
import numpy as np

from ._profiler import log_cache_access


def _generalized_cosine_window(
    n: int,
    coefficients: tuple,
    clamp_non_negative: bool = False,
) -> np.ndarray:
    """
    Generalized cosine window with arbitrary coefficients.

    w[k] = a0 - a1*cos(2*pi*k/(n-1)) + a2*cos(4*pi*k/(n-1)) - ...

    Parameters
    ----------
    n : int
        Window length.
    coefficients : tuple
        Tuple of (a0, a1, a2, ...) coefficients.
    clamp_non_negative : bool
        If True, clamp window values to be non-negative.
    """
    if n <= 1:
        return np.ones(n, dtype=np.float64)

    k = np.arange(n, dtype=np.float64)
    denom = n - 1

    window = np.full(n, coefficients[0], dtype=np.float64)

    # Add cosine terms with alternating signs
    for i, coef in enumerate(coefficients[1:], 1):
        sign = -1 if i % 2 == 1 else 1
        window = window + sign * coef * np.cos(2 * i * np.pi * k / denom)

    if clamp_non_negative:
        window = np.maximum(window, 0.0)

    return window


# Generalized cosine window coefficients (a0, a1, a2, ...).
# Reference: Harris, F.J. (1978). "On the use of windows for harmonic analysis"
_COSINE_WINDOW_COEFFICIENTS = {
    "hann": (0.5, 0.5),
    "hamming": (0.54, 0.46),
    "blackman": (0.42, 0.5, 0.08),
}


def _hann(n: int) -> np.ndarray:
    """Hann window: w[k] = 0.5 - 0.5 * cos(2*pi*k/(n-1))."""
    return _generalized_cosine_window(n, _COSINE_WINDOW_COEFFICIENTS["hann"])


def _hamming(n: int) -> np.ndarray:
    """Hamming window: w[k] = 0.54 - 0.46 * cos(2*pi*k/(n-1))."""
    return _generalized_cosine_window(n, _COSINE_WINDOW_COEFFICIENTS["hamming"])


def _blackman(n: int) -> np.ndarray:
    """
    Blackman window.

    Clamped to non-negative since float64 can produce tiny negatives (~1e-17)
    at endpoints where theoretical value is exactly 0.
    """
    return _generalized_cosine_window(
        n, _COSINE_WINDOW_COEFFICIENTS["blackman"], clamp_non_negative=True
    )


def _bartlett(n: int) -> np.ndarray:
    """Bartlett (triangular) window: w[k] = 1 - |2*k/(n-1) - 1|"""
    if n <= 1:
        return np.ones(n, dtype=np.float64)

    k = np.arange(n, dtype=np.float64)
    return 1 - np.abs(2 * k / (n - 1) - 1)


def _rectangular(n: int) -> np.ndarray:
    """Rectangular (boxcar) window - all ones."""
    return np.ones(n, dtype=np.float64)


_WINDOW_FUNCTIONS: dict[str, Callable[[int], np.ndarray]] = {
    "hann": _hann,
    "hanning": _hann,  # Alias
    "hamming": _hamming,
    "blackman": _blackman,
    "bartlett": _bartlett,
    "triangular": _bartlett,  # Alias
    "rectangular": _rectangular,
    "boxcar": _rectangular,  # Alias
    "ones": _rectangular,  # Alias
}


# Secondary cache for MLX arrays (avoids host -> device conversion on hit)
_mlx_window_cache: dict[tuple[str, int, bool], mx.array] = {}


@lru_cache(maxsize=128)
def _get_window_cached(window_name: str, n: int, fftbins: bool) -> bytes:
    """
    Compute a float64 window with caching.

    Returns window data as bytes for efficient caching.
    """
    window_func = _WINDOW_FUNCTIONS.get(window_name)
    if window_func is None:
        supported = sorted(set(_WINDOW_FUNCTIONS.keys()))
        raise ValueError(
            f"Unknown window type: '{window_name}'. Supported: {', '.join(supported)}"
        )

    # For periodic (fftbins=True), compute n+1 points and drop the last.
    # This matches scipy behavior for DFT-even windows
    w = window_func(n + 1 if fftbins else n)
    return w[:n].tobytes()


def window_array(
    window: str,
    n: int,
    fftbins: bool = True,
    dtype: np.dtype = np.float64,
) -> np.ndarray:
    """
    Get a window function as a host array.

    Parameters
    ----------
    window : str
        Window name, see :func:`get_window`.
    n : int
        Length of the window.
    fftbins : bool, default=True
        If True, create a periodic window (DFT-even). If False, create a
        symmetric window, as used for FIR kernel design.
    dtype : np.dtype, default=np.float64
        Element type of the returned array.

    Returns
    -------
    np.ndarray
        New writeable array of shape (n,).

    Raises
    ------
    ValueError
        If the window name is not recognized.
    TypeError
        If window is not a string.
    """
    if not isinstance(window, str):
        raise TypeError(f"window must be str, got {type(window).__name__}")
    w = np.frombuffer(_get_window_cached(window.lower(), n, fftbins), dtype=np.float64)
    return w.astype(dtype)


def get_window(
    window: str | mx.array,
    n_fft: int,
    fftbins: bool = True,
) -> mx.array:
    """
    Get a window function.

    Results are cached for repeated calls with identical parameters.

    Parameters
    ----------
    window : str or mx.array
        Window specification. If string, one of:
        - 'hann' or 'hanning': Hann window
        - 'hamming': Hamming window
        - 'blackman': Blackman window
        - 'bartlett' or 'triangular': Bartlett (triangular) window
        - 'rectangular' or 'boxcar' or 'ones': Rectangular window (all ones)
        If mx.array, used directly (must have length n_fft).
    n_fft : int
        Length of the window.
    fftbins : bool, default=True
        If True, create a periodic window for use with FFT (DFT-even).
        If False, create a symmetric window.

    Returns
    -------
    mx.array
        Window of shape (n_fft,) with dtype float32.

    Raises
    ------
    ValueError
        If window string is not recognized or array has wrong length.

    Examples
    --------
    >>> window = get_window('hamming', 64, fftbins=False)
    >>> window.shape
    (64,)
    """
    if isinstance(window, mx.array):
        if window.shape[0] != n_fft:
            raise ValueError(
                f"Window array length ({window.shape[0]}) must match n_fft ({n_fft})"
            )
        return window.astype(mx.float32)

    if not isinstance(window, str):
        raise TypeError(f"window must be str or mx.array, got {type(window).__name__}")

    cache_key = (window.lower(), n_fft, fftbins)
    cached = _mlx_window_cache.get(cache_key)
    log_cache_access("window", cached is not None)
    if cached is not None:
        return cached

    result = mx.array(window_array(window, n_fft, fftbins, dtype=np.float32))
    _mlx_window_cache[cache_key] = result
    return result
