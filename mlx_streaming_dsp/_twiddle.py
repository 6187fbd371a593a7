"""
Twiddle-factor tables for the split-radix transform.

One set of tables is built per transform size and shared by every node of
the recursive decomposition. Nodes below the top level read the tables with
a stride, so a single length ``N/8`` table serves all sizes ``<= N``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from ._validation import validate_power_of_two

SQRT2BY2 = math.sqrt(2.0) / 2.0


@dataclass(frozen=True)
class TwiddleTables:
    """
    Cosine/sine tables for a length-``n`` split-radix transform.

    Attributes
    ----------
    n : int
        Transform size the tables were built for.
    c, c3 : np.ndarray
        ``cos(2*pi*i/n)`` and ``cos(6*pi*i/n)`` for ``i < n/8``.
    s, s3 : np.ndarray
        ``-sin(2*pi*i/n)`` and ``-sin(6*pi*i/n)`` for ``i < n/8``.
    """

    n: int
    c: np.ndarray
    c3: np.ndarray
    s: np.ndarray
    s3: np.ndarray
    _gathered: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    @property
    def dtype(self) -> np.dtype:
        return self.c.dtype

    def twiddles(
        self, stride: int, count: int
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Gather ``W^k`` and ``W^3k`` for a sub-transform of size ``n // stride``.

        Entries past the first octant are taken from the tables through the
        quarter-wave symmetries; the octant point itself is the exact
        ``sqrt(2)/2`` rotation. Results are memoized per ``(stride, count)``,
        so every node of one size shares a single read-only set.

        Parameters
        ----------
        stride : int
            Ratio of the table size to the sub-transform size.
        count : int
            Number of factors, ``k = 0 .. count - 1`` (a quarter of the
            sub-transform size).

        Returns
        -------
        tuple of np.ndarray
            ``(wr, wi, w3r, w3i)``, each of length ``count``.
        """
        key = (stride, count)
        cached = self._gathered.get(key)
        if cached is not None:
            return cached

        n8 = self.n // 8
        g = np.arange(count) * stride

        wr = np.empty(count, dtype=self.dtype)
        wi = np.empty(count, dtype=self.dtype)
        w3r = np.empty(count, dtype=self.dtype)
        w3i = np.empty(count, dtype=self.dtype)

        low = g < n8
        wr[low] = self.c[g[low]]
        wi[low] = self.s[g[low]]
        w3r[low] = self.c3[g[low]]
        w3i[low] = self.s3[g[low]]

        # W^k = -i * conj(W^(n/4 - k)),  W^3k = i * conj(W^3(n/4 - k))
        high = g > n8
        j = self.n // 4 - g[high]
        wr[high] = -self.s[j]
        wi[high] = -self.c[j]
        w3r[high] = self.s3[j]
        w3i[high] = self.c3[j]

        mid = g == n8
        wr[mid] = SQRT2BY2
        wi[mid] = -SQRT2BY2
        w3r[mid] = -SQRT2BY2
        w3i[mid] = -SQRT2BY2

        for table in (wr, wi, w3r, w3i):
            table.flags.writeable = False
        self._gathered[key] = (wr, wi, w3r, w3i)
        return wr, wi, w3r, w3i


def build_twiddle_tables(n: int, dtype: np.dtype = np.float64) -> TwiddleTables:
    """
    Build the four twiddle tables for a length-``n`` transform.

    Tables are computed in float64 and cast to ``dtype``.

    Parameters
    ----------
    n : int
        Transform size, a power of two >= 8.
    dtype : np.dtype, default=np.float64
        Precision of the returned tables.

    Returns
    -------
    TwiddleTables
        Read-only tables of length ``n // 8``.

    Raises
    ------
    ValueError
        If ``n`` is not a power of two >= 8.

    Examples
    --------
    >>> tables = build_twiddle_tables(32)
    >>> tables.c.shape
    (4,)
    """
    validate_power_of_two(n, "DFT size")

    i = np.arange(n // 8, dtype=np.float64)
    angle = 2.0 * np.pi * i / n

    arrays = {
        "c": np.cos(angle),
        "c3": np.cos(3.0 * angle),
        "s": -np.sin(angle),
        "s3": -np.sin(3.0 * angle),
    }
    for key, value in arrays.items():
        value = value.astype(dtype)
        value.flags.writeable = False
        arrays[key] = value

    return TwiddleTables(n=n, **arrays)
