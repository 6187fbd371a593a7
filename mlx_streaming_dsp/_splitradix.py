"""
Recursive split-radix node for transform sizes >= 32.

A length-n DFT is split into one length-n/2 DFT of the even samples and two
length-n/4 DFTs of the samples at ``4m + 1`` and ``4m + 3``. Every child is
built with its own offset, stride and output offset, so evaluation never
computes an index: the children write their transforms directly into the
quarter/half sections of this node's output range, and the combination step
works on contiguous slices of it.

Reference: Sorensen, Heideman and Burrus, "On Computing the Split-Radix FFT",
IEEE Trans. ASSP-34, no. 1, 1986, pp. 152-156.
"""

from __future__ import annotations

from ._kernels import Base8Node, Base16Node
from ._twiddle import TwiddleTables

MIN_LOG2N = 3


class SplitRadixNode:
    """
    General split-radix node of size ``2**log2n`` (``log2n >= 5``).

    Parameters
    ----------
    offset : int
        Position of this node's first sample in the top-level sequence.
    stride : int
        Distance between consecutive samples of this node in the sequence.
    transform_offset : int
        Position of this node's first output bin in the top-level transform.
    log2n : int
        Base-2 logarithm of this node's size.
    tables : TwiddleTables
        Tables of the top-level transform, shared by the whole tree.
    """

    def __init__(
        self,
        offset: int,
        stride: int,
        transform_offset: int,
        log2n: int,
        tables: TwiddleTables,
    ):
        if log2n < 5:
            raise ValueError(
                f"SplitRadixNode requires log2n >= 5, got {log2n}; "
                f"use build_node() for smaller sizes"
            )

        self.size = 1 << log2n
        self.offset = offset
        self.stride = stride
        self.transform_offset = transform_offset

        n = self.size
        n2 = n // 2
        n4 = n // 4

        self.half = build_node(offset, 2 * stride, transform_offset, log2n - 1, tables)
        self.quarter1 = build_node(
            offset + stride, 4 * stride, transform_offset + n2, log2n - 2, tables
        )
        self.quarter3 = build_node(
            offset + 3 * stride, 4 * stride, transform_offset + n2 + n4, log2n - 2, tables
        )

        self._wr, self._wi, self._w3r, self._w3i = tables.twiddles(tables.n // n, n4)

        t = transform_offset
        self._u0 = slice(t, t + n4)
        self._u1 = slice(t + n4, t + n2)
        self._z1 = slice(t + n2, t + n2 + n4)
        self._z3 = slice(t + n2 + n4, t + n)

        self._yr = self._yi = None

    def link(self, xr, xi, yr, yi) -> None:
        self._yr = yr
        self._yi = yi
        self.half.link(xr, xi, yr, yi)
        self.quarter1.link(xr, xi, yr, yi)
        self.quarter3.link(xr, xi, yr, yi)

    def node_count(self) -> int:
        return (
            1
            + self.half.node_count()
            + self.quarter1.node_count()
            + self.quarter3.node_count()
        )

    def evaluate(self) -> None:
        self.half.evaluate()
        self.quarter1.evaluate()
        self.quarter3.evaluate()

        yr, yi = self._yr, self._yi
        wr, wi, w3r, w3i = self._wr, self._wi, self._w3r, self._w3i

        # T1 = W^k * Z1,  T3 = W^3k * Z3
        z1r, z1i = yr[self._z1], yi[self._z1]
        z3r, z3i = yr[self._z3], yi[self._z3]
        t1r = wr * z1r - wi * z1i
        t1i = wr * z1i + wi * z1r
        t3r = w3r * z3r - w3i * z3i
        t3i = w3r * z3i + w3i * z3r

        # R = T1 + T3,  S = i*(T1 - T3)
        rr = t1r + t3r
        ri = t1i + t3i
        sr = t3i - t1i
        si = t1r - t3r

        u0r, u0i = yr[self._u0], yi[self._u0]
        u1r, u1i = yr[self._u1], yi[self._u1]

        # every right-hand side is a fresh array, so the writes below
        # cannot clobber inputs that are still needed
        x0r, x0i = u0r + rr, u0i + ri
        x2r, x2i = u0r - rr, u0i - ri
        x1r, x1i = u1r - sr, u1i - si
        x3r, x3i = u1r + sr, u1i + si

        yr[self._u0], yi[self._u0] = x0r, x0i
        yr[self._z1], yi[self._z1] = x2r, x2i
        yr[self._u1], yi[self._u1] = x1r, x1i
        yr[self._z3], yi[self._z3] = x3r, x3i

    def __repr__(self) -> str:
        return (
            f"SplitRadixNode(size={self.size}, offset={self.offset}, "
            f"stride={self.stride}, transform_offset={self.transform_offset})"
        )


def build_node(
    offset: int,
    stride: int,
    transform_offset: int,
    log2n: int,
    tables: TwiddleTables,
):
    """
    Build the node for a sub-transform of size ``2**log2n``.

    Dispatches to the length-8 and length-16 kernels or to a
    :class:`SplitRadixNode`.

    Raises
    ------
    ValueError
        If ``log2n < 3``; there is no kernel below size 8.
    """
    if log2n < MIN_LOG2N:
        raise ValueError(f"DFT size must be >= 8, got 2**{log2n}")
    if log2n == 3:
        return Base8Node(offset, stride, transform_offset)
    if log2n == 4:
        return Base16Node(offset, stride, transform_offset)
    return SplitRadixNode(offset, stride, transform_offset, log2n, tables)
