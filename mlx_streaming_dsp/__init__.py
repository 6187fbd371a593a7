"""
mlx-streaming-dsp: split-radix transforms and streaming FIR filters.

This library provides a length-specialized complex DFT built on the
split-radix algorithm and block-streaming FIR filtering by overlap-add, for
continuous or chunked sequence data (seismic, acoustic, audio) on host
buffers, with an MLX-facing functional layer.

Transforms
----------
CDFT : Double-precision complex DFT with linked buffers
CDFT32 : Single-precision complex DFT with linked buffers
dft_product : Element-wise product of two spectra (convolution/correlation)

Block Filtering
---------------
OverlapAdd : Double-precision overlap-add FIR filter for block streams
OverlapAdd32 : Single-precision overlap-add FIR filter
Interpolator : Integer-rate FIR interpolator for block streams
Interpolator32 : Single-precision FIR interpolator
interpolation_kernel : Hamming-windowed sinc interpolation kernel

Functional (MLX)
----------------
fft : Complex DFT of an mx.array
ifft : Inverse complex DFT of an mx.array
spectral_product : Element-wise spectrum product of mx.arrays
overlap_add_convolve : Full linear convolution by overlap-add
interpolate : Whole-signal integer-rate interpolation

Window Functions
----------------
get_window : Get a window function as an mx.array
window_array : Get a window function as a host array
"""

# Import MLX first so its library paths are set up before NumPy interop
import mlx.core as _mx  # noqa: F401

# Get version from package metadata (single source of truth in pyproject.toml)
try:
    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as _get_version

    __version__ = _get_version("mlx-streaming-dsp")
except (ImportError, PackageNotFoundError):
    __version__ = "0.1.0"  # Fallback for source checkouts

# Transforms
from .cdft import (
    CDFT,
    CDFT32,
    dft_product,
)

# Functional MLX API
from .functional import (
    clear_plan_cache,
    fft,
    ifft,
    interpolate,
    overlap_add_convolve,
    spectral_product,
)

# Interpolation
from .interpolate import (
    Interpolator,
    Interpolator32,
    interpolation_kernel,
)

# Block filtering
from .overlap_add import (
    OverlapAdd,
    OverlapAdd32,
    transform_size,
)

# Window functions
from .windows import get_window, window_array

__all__ = [
    # Version
    "__version__",
    # Transforms
    "CDFT",
    "CDFT32",
    "dft_product",
    # Block filtering
    "OverlapAdd",
    "OverlapAdd32",
    "transform_size",
    # Interpolation
    "Interpolator",
    "Interpolator32",
    "interpolation_kernel",
    # Functional
    "fft",
    "ifft",
    "spectral_product",
    "overlap_add_convolve",
    "interpolate",
    "clear_plan_cache",
    # Windows
    "get_window",
    "window_array",
]
