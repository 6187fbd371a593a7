"""
Integer-rate interpolation of block streams.

The sequence is zero-stuffed by the interpolation rate and filtered with a
Hamming-windowed sinc kernel through an overlap-add filter, so consecutive
blocks join without edge effects.
"""

from __future__ import annotations

import numpy as np

from ._validation import validate_positive
from .overlap_add import OverlapAdd, OverlapAdd32
from .windows import window_array


def interpolation_kernel(rate: int, design_factor: int) -> np.ndarray:
    """
    Windowed sinc kernel for interpolation by ``rate``.

    The kernel has length ``2*M + 1`` with ``M = rate * design_factor``:

        h[M +- i] = w[M + i] * sin(pi*i/rate) / (pi*i/rate)

    where ``w`` is a symmetric Hamming window. ``h[M] = 1`` and the kernel
    vanishes at every other multiple of ``rate``, so the input samples pass
    through unchanged.

    Parameters
    ----------
    rate : int
        Interpolation rate.
    design_factor : int
        Number of input samples on each side of the kernel centre; larger
        values give a sharper anti-imaging filter and a longer delay.

    Returns
    -------
    np.ndarray
        Float64 kernel of length ``2 * rate * design_factor + 1``.
    """
    validate_positive(rate, "rate")
    validate_positive(design_factor, "design_factor")

    half = rate * design_factor
    kernel = window_array("hamming", 2 * half + 1, fftbins=False)

    arg = np.pi * np.arange(1, half + 1) / rate
    kernel[half + 1 :] *= np.sin(arg) / arg
    kernel[:half] = kernel[half + 1 :][::-1]
    return kernel


class Interpolator:
    """
    Double-precision FIR interpolator for block streams.

    Parameters
    ----------
    rate : int
        Interpolation rate; each input block yields ``block_size * rate``
        output samples.
    design_factor : int
        Kernel half-length in input samples, see :func:`interpolation_kernel`.
    block_size : int
        Number of input samples per block; must not change between calls.

    Notes
    -----
    The output is delayed by :attr:`delay` samples (the kernel half-length).
    Call :meth:`flush` after the last block to obtain the delayed tail.
    """

    filter_class = OverlapAdd

    def __init__(self, rate: int, design_factor: int, block_size: int):
        validate_positive(block_size, "block_size")
        kernel = interpolation_kernel(rate, design_factor)

        self._rate = rate
        self._block_size = block_size
        self._delay = rate * design_factor
        self._overlap_add = self.filter_class(kernel, block_size * rate)
        self._buffer = np.zeros(block_size * rate, dtype=self._overlap_add.dtype)

    @property
    def rate(self) -> int:
        return self._rate

    @property
    def block_size(self) -> int:
        return self._block_size

    @property
    def output_block_size(self) -> int:
        return self._block_size * self._rate

    @property
    def delay(self) -> int:
        """Group delay in output samples."""
        return self._delay

    def interpolate(self, block, out: np.ndarray, out_offset: int = 0) -> None:
        """
        Interpolate one block.

        Parameters
        ----------
        block : array_like
            ``block_size`` input samples.
        out : np.ndarray
            Receives ``block_size * rate`` samples starting at ``out_offset``.

        Raises
        ------
        ValueError
            If the block is shorter than ``block_size`` or ``out`` is too short.
        """
        if len(block) < self._block_size:
            raise ValueError(
                f"Block length ({len(block)}) must be >= block_size ({self._block_size})"
            )
        self._buffer[:] = 0.0
        self._buffer[:: self._rate] = block[: self._block_size]
        self._overlap_add.filter(self._buffer, out, 0, out_offset)

    def flush(self, out: np.ndarray, out_offset: int = 0) -> None:
        """Emit one block of remaining output without new input."""
        self._overlap_add.flush(out, out_offset)

    def initialize(self) -> None:
        """Reset the interpolator state, keeping the kernel."""
        self._overlap_add.initialize()


class Interpolator32(Interpolator):
    """Single-precision FIR interpolator; same interface as Interpolator."""

    filter_class = OverlapAdd32
