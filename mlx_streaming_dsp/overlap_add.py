"""
FIR filtering of block streams with the overlap-add algorithm.

The filter kernel is transformed once. Each input block is zero-padded to the
transform size, transformed, multiplied by the kernel spectrum and inverse
transformed; the resulting convolution segment is added into a shift register
that carries the tails of earlier blocks. The first ``block_size`` samples of
the register are the finished output for the block, after which the register
shifts left by ``block_size``.

Blocks must be consecutive, contiguous and of the same size for the output
to equal the linear convolution of the whole stream. Apart from the optional
``checked`` mode this is not verified: out-of-order blocks give wrong output
without an error.

Reference: Oppenheim and Schafer, Digital Signal Processing, 1975.
"""

from __future__ import annotations

import logging
import weakref

import numpy as np

from ._validation import validate_positive
from .cdft import CDFT, CDFT32, dft_product

logger = logging.getLogger(__name__)


def transform_size(kernel_length: int, block_size: int) -> tuple[int, int]:
    """
    Smallest power-of-two transform that holds one block's linear convolution.

    Returns
    -------
    tuple[int, int]
        ``(nfft, log2nfft)`` with ``nfft >= kernel_length + block_size - 1``
        and ``nfft >= 8``.

    Raises
    ------
    ValueError
        If either argument is not positive.
    """
    validate_positive(kernel_length, "kernel_length")
    validate_positive(block_size, "block_size")
    clength = kernel_length + block_size - 1
    log2nfft = 3
    while (1 << log2nfft) < clength:
        log2nfft += 1
    return 1 << log2nfft, log2nfft


def _zero_shift(register: np.ndarray, shift: int) -> None:
    """Shift left by ``shift`` samples, zero-filling the vacated tail."""
    register[:-shift] = register[shift:]
    register[-shift:] = 0.0


class OverlapAdd:
    """
    Double-precision overlap-add FIR filter for block streams.

    Parameters
    ----------
    kernel : array_like
        FIR filter coefficients (convolution kernel). Must be non-empty.
    block_size : int
        Number of samples per input block; fixed for the life of the filter.
    dft : CDFT, optional
        Transform to use. Must have the size chosen for ``kernel`` and
        ``block_size`` and this filter's precision. By default the filter
        builds its own.
    checked : bool, default=False
        Enable debug checks on stream order: consecutive blocks taken from
        the same array must be contiguous, and filtering after :meth:`flush`
        requires :meth:`initialize`.

    Raises
    ------
    ValueError
        If the kernel is empty, ``block_size`` is not positive, or ``dft``
        has the wrong size.
    TypeError
        If ``dft`` has the wrong precision.

    Examples
    --------
    >>> ola = OverlapAdd([1.0, 2.0, 3.0], block_size=4)
    >>> x = np.zeros(8); x[5] = 1.0
    >>> out = np.zeros(12)
    >>> ola.filter(x, out, 0, 0); ola.filter(x, out, 4, 4); ola.flush(out, 8)
    >>> np.round(out[5:8], 12).tolist()
    [1.0, 2.0, 3.0]
    """

    dft_class = CDFT

    def __init__(
        self,
        kernel,
        block_size: int,
        *,
        dft: CDFT | None = None,
        checked: bool = False,
    ):
        validate_positive(block_size, "block_size")
        nfft, log2nfft = transform_size(self._kernel_length(kernel), block_size)

        if dft is None:
            dft = self.dft_class(log2nfft)
        else:
            if dft.dtype != self.dtype:
                raise TypeError(
                    f"dft precision ({dft.dtype}) must match filter precision ({self.dtype})"
                )
            if dft.size != nfft:
                raise ValueError(
                    f"dft size ({dft.size}) must equal the required transform size ({nfft})"
                )

        self._block_size = block_size
        self._nfft = nfft
        self._dft = dft
        self._master_ref = None
        self._setup(kernel, checked)

        logger.debug(
            "OverlapAdd: kernel_length=%d block_size=%d nfft=%d",
            self._kernel_len,
            block_size,
            nfft,
        )

    @classmethod
    def from_master(cls, kernel, master: OverlapAdd, *, checked: bool = False):
        """
        Build a filter that shares the transform of ``master``.

        Sharing is possible when kernels have the same length. The new filter
        takes its block size and transform from the master and holds only a
        weak reference to it; it must not outlive the master, and both must
        be used from the same thread.

        Raises
        ------
        ValueError
            If the kernel length differs from the master's.
        TypeError
            If ``master`` is not a filter of the same precision.
        """
        if not isinstance(master, OverlapAdd) or master.dtype != cls.dft_class.dtype:
            raise TypeError(
                f"master must be an overlap-add filter with dtype {cls.dft_class.dtype}"
            )
        if cls._kernel_length(kernel) != master.kernel_length:
            raise ValueError(
                "Slave kernel length inconsistent with master kernel length"
            )

        self = cls.__new__(cls)
        self._block_size = master.block_size
        self._nfft = master.nfft
        self._dft = None
        self._master_ref = weakref.ref(master)
        self._setup(kernel, checked)
        return self

    @property
    def dtype(self) -> np.dtype:
        return self.dft_class.dtype

    @staticmethod
    def _kernel_length(kernel) -> int:
        length = np.shape(kernel)[0] if np.ndim(kernel) == 1 else 0
        if length == 0:
            raise ValueError("kernel must be a non-empty 1-D sequence")
        return length

    def _setup(self, kernel, checked: bool) -> None:
        kernel = np.asarray(kernel, dtype=self.dtype)
        nfft = self._nfft
        self._kernel_len = kernel.shape[0]
        self._checked = checked
        self._flushed = False
        self._last_src = None
        self._last_offset = 0

        self._shift_register = np.zeros(nfft, dtype=self.dtype)
        self._segment_r = np.zeros(nfft, dtype=self.dtype)
        self._segment_i = np.zeros(nfft, dtype=self.dtype)
        self._transform_r = np.zeros(nfft, dtype=self.dtype)
        self._transform_i = np.zeros(nfft, dtype=self.dtype)

        self._kernel_r = np.zeros(nfft, dtype=self.dtype)
        self._kernel_i = np.zeros(nfft, dtype=self.dtype)
        self._segment_r[: self._kernel_len] = kernel
        self._fft().evaluate(
            self._segment_r, self._segment_i, self._kernel_r, self._kernel_i
        )
        self._kernel_r.flags.writeable = False
        self._kernel_i.flags.writeable = False

    def _fft(self) -> CDFT:
        if self._master_ref is None:
            return self._dft
        master = self._master_ref()
        if master is None:
            raise ReferenceError("Master OverlapAdd instance no longer exists")
        return master._fft()

    @property
    def block_size(self) -> int:
        return self._block_size

    @property
    def kernel_length(self) -> int:
        return self._kernel_len

    @property
    def nfft(self) -> int:
        """Transform size used for each block."""
        return self._nfft

    @property
    def is_master(self) -> bool:
        """True if this filter owns its transform."""
        return self._master_ref is None

    @property
    def kernel_spectrum(self) -> tuple[np.ndarray, np.ndarray]:
        """Read-only real and imaginary parts of the kernel transform."""
        return self._kernel_r, self._kernel_i

    def filter(
        self,
        src: np.ndarray,
        dst: np.ndarray,
        src_offset: int = 0,
        dst_offset: int = 0,
    ) -> None:
        """
        Filter one block and emit one block of output.

        Parameters
        ----------
        src : np.ndarray
            Input samples; the block is ``src[src_offset:src_offset + block_size]``.
        dst : np.ndarray
            Receives the output block at ``dst[dst_offset:dst_offset + block_size]``.
        src_offset, dst_offset : int, default=0
            Start positions in ``src`` and ``dst``.

        Raises
        ------
        ValueError
            If ``src`` or ``dst`` is too short for a block at the given offset.
        RuntimeError
            In checked mode, if ``src`` is the array of the previous call but
            the block does not follow the previous one, or if the stream was
            flushed without :meth:`initialize`.
        """
        bs = self._block_size
        if len(src) < src_offset + bs:
            raise ValueError("Source array length less than src_offset + block_size")
        self._check_dst(dst, dst_offset)
        if self._checked:
            self._check_stream(src, src_offset)

        fft = self._fft()
        self._segment_r[:] = 0.0
        self._segment_i[:] = 0.0
        self._segment_r[:bs] = src[src_offset : src_offset + bs]

        fft.evaluate(
            self._segment_r, self._segment_i, self._transform_r, self._transform_i
        )
        self._accumulate(fft, dst, dst_offset)

    def filter_transform(
        self,
        tr: np.ndarray,
        ti: np.ndarray,
        dst: np.ndarray,
        dst_offset: int = 0,
    ) -> None:
        """
        Emit one block of output from an already transformed input block.

        ``(tr, ti)`` is the length-``nfft`` transform of a zero-padded block,
        e.g. computed once and shared by several filters of the same size.
        The arrays are not modified.

        Raises
        ------
        ValueError
            If the transform arrays are not ``nfft`` long or ``dst`` is too short.
        """
        if len(tr) != self._nfft or len(ti) != self._nfft:
            raise ValueError(
                f"Transform arrays must have length nfft ({self._nfft})"
            )
        self._check_dst(dst, dst_offset)
        if self._checked:
            self._check_stream(None, 0)

        self._transform_r[:] = tr
        self._transform_i[:] = ti
        self._accumulate(self._fft(), dst, dst_offset)

    def _accumulate(self, fft: CDFT, dst: np.ndarray, dst_offset: int) -> None:
        dft_product(
            self._kernel_r, self._kernel_i, self._transform_r, self._transform_i, 1
        )
        fft.evaluate_inverse(
            self._transform_r, self._transform_i, self._segment_r, self._segment_i
        )
        self._shift_register += self._segment_r
        self._emit(dst, dst_offset)

    def _emit(self, dst: np.ndarray, dst_offset: int) -> None:
        bs = self._block_size
        dst[dst_offset : dst_offset + bs] = self._shift_register[:bs]
        _zero_shift(self._shift_register, bs)

    def flush(self, dst: np.ndarray, dst_offset: int = 0) -> None:
        """
        Emit one block of remaining output without new input.

        Call repeatedly after the last input block to drain the filter tail,
        ``ceil((kernel_length - 1) / block_size)`` times.

        Raises
        ------
        ValueError
            If ``dst`` is too short.
        """
        self._check_dst(dst, dst_offset)
        self._flushed = True
        self._emit(dst, dst_offset)

    def initialize(self) -> None:
        """Reset the filter state to zero, keeping the kernel."""
        self._shift_register[:] = 0.0
        self._flushed = False
        self._last_src = None
        self._last_offset = 0

    def _check_dst(self, dst: np.ndarray, dst_offset: int) -> None:
        if len(dst) < dst_offset + self._block_size:
            raise ValueError(
                "Destination array length less than dst_offset + block_size"
            )

    def _check_stream(self, src, src_offset: int) -> None:
        if self._flushed:
            raise RuntimeError("filter() called after flush(); call initialize() first")
        if src is None:
            self._last_src = None
            return

        previous = self._last_src() if self._last_src is not None else None
        if previous is src and src_offset != self._last_offset + self._block_size:
            raise RuntimeError(
                f"Non-contiguous block: expected src_offset "
                f"{self._last_offset + self._block_size}, got {src_offset}"
            )
        try:
            self._last_src = weakref.ref(src)
        except TypeError:
            # plain sequences cannot be tracked
            self._last_src = None
        self._last_offset = src_offset

    def __repr__(self) -> str:
        role = "master" if self.is_master else "slave"
        return (
            f"{type(self).__name__}(kernel_length={self._kernel_len}, "
            f"block_size={self._block_size}, nfft={self._nfft}, {role})"
        )


class OverlapAdd32(OverlapAdd):
    """Single-precision overlap-add FIR filter; same interface as OverlapAdd."""

    dft_class = CDFT32

