"""
Hand-unrolled length-8 and length-16 complex DFT kernels.

These are the leaves of the split-radix recursion. Each kernel gathers its
strided inputs once, runs a fixed butterfly sequence built from length-2 and
length-4 DFTs, and writes its outputs contiguously. Twiddle rotations use the
closed-form constants below; arithmetic stays in the precision of the linked
buffers.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

import numpy as np

from ._twiddle import SQRT2BY2

# cos(pi/8) and sin(pi/8) for the length-16 rotations
COS_PI_8 = math.cos(math.pi / 8.0)
SIN_PI_8 = math.sin(math.pi / 8.0)


def _butterfly(Xr, Xi, ur, ui, k, n4, t1r, t1i, t3r, t3i):
    """
    Split-radix combination for one index ``k``.

    ``(t1r, t1i)`` and ``(t3r, t3i)`` are the already rotated quarter-length
    outputs ``W^k Z1[k]`` and ``W^3k Z3[k]``; ``ur, ui`` hold the half-length
    transform.
    """
    # R = T1 + T3,  S = i*(T1 - T3)
    rr = t1r + t3r
    ri = t1i + t3i
    sr = t3i - t1i
    si = t1r - t3r

    Xr[k] = ur[k] + rr
    Xi[k] = ui[k] + ri
    Xr[k + 2 * n4] = ur[k] - rr
    Xi[k + 2 * n4] = ui[k] - ri
    Xr[k + n4] = ur[k + n4] - sr
    Xi[k + n4] = ui[k + n4] - si
    Xr[k + 3 * n4] = ur[k + n4] + sr
    Xi[k + 3 * n4] = ui[k + n4] + si


def _dft2(xr, xi):
    """Length-2 DFT."""
    return (xr[0] + xr[1], xr[0] - xr[1]), (xi[0] + xi[1], xi[0] - xi[1])


def _dft4(xr, xi):
    """Length-4 DFT; the quarter-length pieces are single samples."""
    ur, ui = _dft2(xr[0::2], xi[0::2])
    Xr = [None] * 4
    Xi = [None] * 4
    _butterfly(Xr, Xi, ur, ui, 0, 1, xr[1], xi[1], xr[3], xi[3])
    return Xr, Xi


def _dft8(xr, xi):
    """Length-8 split-radix DFT in natural order."""
    ur, ui = _dft4(xr[0::2], xi[0::2])
    zr, zi = _dft2(xr[1::4], xi[1::4])
    yr, yi = _dft2(xr[3::4], xi[3::4])

    Xr = [None] * 8
    Xi = [None] * 8

    # k = 0
    _butterfly(Xr, Xi, ur, ui, 0, 2, zr[0], zi[0], yr[0], yi[0])

    # k = 1:  W = sqrt(2)/2 (1 - i),  W^3 = sqrt(2)/2 (-1 - i)
    t1r = SQRT2BY2 * (zr[1] + zi[1])
    t1i = SQRT2BY2 * (zi[1] - zr[1])
    t3r = SQRT2BY2 * (yi[1] - yr[1])
    t3i = -SQRT2BY2 * (yi[1] + yr[1])
    _butterfly(Xr, Xi, ur, ui, 1, 2, t1r, t1i, t3r, t3i)

    return Xr, Xi


def _dft16(xr, xi):
    """Length-16 split-radix DFT in natural order."""
    ur, ui = _dft8(xr[0::2], xi[0::2])
    zr, zi = _dft4(xr[1::4], xi[1::4])
    yr, yi = _dft4(xr[3::4], xi[3::4])

    Xr = [None] * 16
    Xi = [None] * 16

    # k = 0
    _butterfly(Xr, Xi, ur, ui, 0, 4, zr[0], zi[0], yr[0], yi[0])

    # k = 1:  W = cos(pi/8) - i sin(pi/8),  W^3 = sin(pi/8) - i cos(pi/8)
    t1r = COS_PI_8 * zr[1] + SIN_PI_8 * zi[1]
    t1i = COS_PI_8 * zi[1] - SIN_PI_8 * zr[1]
    t3r = SIN_PI_8 * yr[1] + COS_PI_8 * yi[1]
    t3i = SIN_PI_8 * yi[1] - COS_PI_8 * yr[1]
    _butterfly(Xr, Xi, ur, ui, 1, 4, t1r, t1i, t3r, t3i)

    # k = 2:  W^2 = sqrt(2)/2 (1 - i),  W^6 = sqrt(2)/2 (-1 - i)
    t1r = SQRT2BY2 * (zr[2] + zi[2])
    t1i = SQRT2BY2 * (zi[2] - zr[2])
    t3r = SQRT2BY2 * (yi[2] - yr[2])
    t3i = -SQRT2BY2 * (yi[2] + yr[2])
    _butterfly(Xr, Xi, ur, ui, 2, 4, t1r, t1i, t3r, t3i)

    # k = 3:  W^3 = sin(pi/8) - i cos(pi/8),  W^9 = -cos(pi/8) + i sin(pi/8)
    t1r = SIN_PI_8 * zr[3] + COS_PI_8 * zi[3]
    t1i = SIN_PI_8 * zi[3] - COS_PI_8 * zr[3]
    t3r = -COS_PI_8 * yr[3] - SIN_PI_8 * yi[3]
    t3i = SIN_PI_8 * yr[3] - COS_PI_8 * yi[3]
    _butterfly(Xr, Xi, ur, ui, 3, 4, t1r, t1i, t3r, t3i)

    return Xr, Xi


class _BaseNode(ABC):
    """Leaf of the recursion: a fixed-size kernel with hard-wired addressing."""

    size: int = 0

    def __init__(self, offset: int, stride: int, transform_offset: int):
        self.offset = offset
        self.stride = stride
        self.transform_offset = transform_offset
        self._positions = offset + stride * np.arange(self.size)
        self._end = transform_offset + self.size
        self._xr = self._xi = self._yr = self._yi = None

    def link(self, xr, xi, yr, yi) -> None:
        self._xr = xr
        self._xi = xi
        self._yr = yr
        self._yi = yi

    def node_count(self) -> int:
        return 1

    @abstractmethod
    def _kernel(self, xr, xi):
        """Length-``size`` DFT of the gathered inputs, as ``(Xr, Xi)``."""

    def evaluate(self) -> None:
        p = self._positions
        Xr, Xi = self._kernel(self._xr[p], self._xi[p])
        self._yr[self.transform_offset : self._end] = Xr
        self._yi[self.transform_offset : self._end] = Xi

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(offset={self.offset}, stride={self.stride}, "
            f"transform_offset={self.transform_offset})"
        )


class Base8Node(_BaseNode):
    """Length-8 complex DFT leaf."""

    size = 8

    def _kernel(self, xr, xi):
        return _dft8(xr, xi)


class Base16Node(_BaseNode):
    """Length-16 complex DFT leaf."""

    size = 16

    def _kernel(self, xr, xi):
        return _dft16(xr, xi)
