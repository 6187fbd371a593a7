"""
Complex discrete Fourier transform using the split-radix algorithm.

Designed for many transforms of the same power-of-two length. The node tree
is built once per instance with hard-wired array addressing, so repeated
evaluations spend no time on index arithmetic or bit reversal; the price is
memory proportional to the transform size.

Buffers are caller-owned NumPy arrays. A transform is *linked* to four of
them (sequence real/imag, transform real/imag) before it can be evaluated:

>>> import numpy as np
>>> xr, xi = np.zeros(1024), np.zeros(1024)
>>> Xr, Xi = np.empty(1024), np.empty(1024)
>>> dft = CDFT(10, xr, xi, Xr, Xi)
>>> xr[0] = 1.0
>>> dft.evaluate()
>>> bool(np.allclose(Xr, 1.0))
True

For the inverse transform the roles are reversed: the linked input pair holds
the spectrum in natural order and the output pair receives the sequence.
"""

from __future__ import annotations

import logging

import numpy as np

from ._splitradix import MIN_LOG2N, build_node
from ._twiddle import build_twiddle_tables
from ._validation import validate_buffer, validate_equal_lengths

logger = logging.getLogger(__name__)


def dft_product(
    xr: np.ndarray,
    xi: np.ndarray,
    yr: np.ndarray,
    yi: np.ndarray,
    sign: int = 1,
) -> None:
    """
    Multiply two complex spectra element-wise, in place into the second.

    Parameters
    ----------
    xr, xi : np.ndarray
        Real and imaginary parts of the first transform.
    yr, yi : np.ndarray
        Real and imaginary parts of the second transform before the call,
        of the product after the call.
    sign : int, default=1
        +1 for a convolution-type product ``X * Y``, -1 for a
        correlation-type product ``conj(X) * Y``.

    Raises
    ------
    ValueError
        If the arrays differ in length or sign is not +1 or -1.
    """
    validate_equal_lengths(
        xr, xi, yr, yi, message="Transform array lengths are not equal"
    )
    if sign not in (1, -1):
        raise ValueError(f"sign must be +1 or -1, got {sign}")

    tmp = xr * yr - sign * (xi * yi)
    yi[:] = xr * yi + sign * (xi * yr)
    yr[:] = tmp


class CDFT:
    """
    Double-precision complex DFT of size ``2**log2n``.

    Parameters
    ----------
    log2n : int
        Base-2 logarithm of the transform size; must be >= 3.
    xr, xi, yr, yi : np.ndarray, optional
        Buffers to link at construction: input real/imag and output
        real/imag. Either all four or none.

    Raises
    ------
    ValueError
        If ``log2n < 3`` or only some buffers are given.

    Notes
    -----
    Instances hold references to the linked buffers and are not safe for
    concurrent use; give each thread its own instance.
    """

    dtype = np.dtype(np.float64)

    def __init__(
        self,
        log2n: int,
        xr: np.ndarray | None = None,
        xi: np.ndarray | None = None,
        yr: np.ndarray | None = None,
        yi: np.ndarray | None = None,
    ):
        if log2n < MIN_LOG2N:
            raise ValueError(f"DFT size must be >= 8, got log2n={log2n}")

        self._log2n = log2n
        self._n = 1 << log2n
        self._tables = build_twiddle_tables(self._n, self.dtype)
        self._root = build_node(0, 1, 0, log2n, self._tables)
        self._yr = self._yi = None
        self._linked = False

        logger.debug(
            "Built %s of size %d (%d nodes)",
            type(self).__name__,
            self._n,
            self._root.node_count(),
        )

        buffers = (xr, xi, yr, yi)
        if any(b is not None for b in buffers):
            if any(b is None for b in buffers):
                raise ValueError("Either all four buffers or none must be given")
            self.link(xr, xi, yr, yi)

    @property
    def size(self) -> int:
        """Transform size N."""
        return self._n

    @property
    def log2n(self) -> int:
        return self._log2n

    @property
    def linked(self) -> bool:
        """True once buffers have been bound to the node tree."""
        return self._linked

    def link(
        self, xr: np.ndarray, xi: np.ndarray, yr: np.ndarray, yi: np.ndarray
    ) -> None:
        """
        Bind input and output buffers to every node of the transform.

        Buffers may be longer than the transform size; only the first N
        elements are used. Output buffers must not overlap the inputs.

        Raises
        ------
        TypeError
            If a buffer is not a 1-D array of this instance's precision.
        ValueError
            If a buffer is too short, read-only, or an output overlaps an input.
        """
        n = self._n
        for array, name in ((xr, "xr"), (xi, "xi")):
            validate_buffer(array, name, self.dtype, n)
        for array, name in ((yr, "yr"), (yi, "yi")):
            validate_buffer(array, name, self.dtype, n, writeable=True)

        xr, xi, yr, yi = xr[:n], xi[:n], yr[:n], yi[:n]
        if np.may_share_memory(yr, yi):
            raise ValueError("Output buffers yr and yi must not overlap")
        for out in (yr, yi):
            if np.may_share_memory(out, xr) or np.may_share_memory(out, xi):
                raise ValueError("Output buffers must not overlap input buffers")

        self._yr = yr
        self._yi = yi
        self._root.link(xr, xi, yr, yi)
        self._linked = True

    def _require_linked(self) -> None:
        if not self._linked:
            raise RuntimeError("Sequence and transform arrays are not linked")

    def evaluate(
        self,
        xr: np.ndarray | None = None,
        xi: np.ndarray | None = None,
        yr: np.ndarray | None = None,
        yi: np.ndarray | None = None,
    ) -> None:
        """
        Evaluate the forward DFT.

        With no arguments the linked buffers are used. With four arguments
        they are linked first; ``(xr, xi)`` is the sequence and ``(yr, yi)``
        receives the transform in natural order (bin 0 is DC).

        Raises
        ------
        RuntimeError
            If called without arguments on an unlinked instance.
        """
        if xr is not None or xi is not None or yr is not None or yi is not None:
            self.link(xr, xi, yr, yi)
        self._require_linked()
        self._root.evaluate()

    def evaluate_inverse(
        self,
        xr: np.ndarray | None = None,
        xi: np.ndarray | None = None,
        yr: np.ndarray | None = None,
        yi: np.ndarray | None = None,
    ) -> None:
        """
        Evaluate the inverse DFT, including the 1/N scaling.

        With no arguments the linked buffers are used: the input pair holds
        the spectrum, the output pair receives the sequence. With four
        arguments ``(xr, xi)`` is the spectrum and ``(yr, yi)`` the sequence.

        Raises
        ------
        RuntimeError
            If called without arguments on an unlinked instance.
        """
        if xr is not None or xi is not None or yr is not None or yi is not None:
            self.link(xr, xi, yr, yi)
        self._require_linked()
        self._root.evaluate()

        # inverse(X)[i] = forward(X)[N - i] / N
        scale = 1.0 / self._n
        for y in (self._yr, self._yi):
            y[0] *= scale
            y[1:] = y[:0:-1] * scale

    dft_product = staticmethod(dft_product)

    def __repr__(self) -> str:
        state = "linked" if self._linked else "unlinked"
        return f"{type(self).__name__}(log2n={self._log2n}, {state})"


class CDFT32(CDFT):
    """
    Single-precision complex DFT.

    Same algorithm and interface as :class:`CDFT`; buffers must be float32.
    """

    dtype = np.dtype(np.float32)
