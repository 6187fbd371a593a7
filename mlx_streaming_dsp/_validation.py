"""
Shared validation utilities for parameter checking.

These utilities provide consistent error messages across the library.
"""

from __future__ import annotations

import numpy as np


def validate_positive(value: int, name: str) -> None:
    """
    Validate that a value is positive.

    Parameters
    ----------
    value : int
        Value to validate.
    name : str
        Parameter name for error message.

    Raises
    ------
    ValueError
        If value is not positive.
    """
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


def validate_power_of_two(value: int, name: str, minimum: int = 8) -> int:
    """
    Validate that a value is a power of two no smaller than ``minimum``.

    Returns
    -------
    int
        Base-2 logarithm of ``value``.

    Raises
    ------
    ValueError
        If value is not a power of two or is below ``minimum``.
    """
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    if value & (value - 1) != 0:
        raise ValueError(f"{name} must be a power of two, got {value}")
    return value.bit_length() - 1


def validate_equal_lengths(*arrays: np.ndarray, message: str) -> None:
    """
    Validate that all arrays have the same length.

    Raises
    ------
    ValueError
        With ``message`` if any two lengths differ.
    """
    lengths = {len(a) for a in arrays}
    if len(lengths) > 1:
        raise ValueError(f"{message}: got lengths {sorted(lengths)}")


def validate_buffer(
    array: np.ndarray,
    name: str,
    dtype: np.dtype,
    min_length: int,
    writeable: bool = False,
) -> None:
    """
    Validate a caller-owned sample buffer.

    Parameters
    ----------
    array : np.ndarray
        Buffer to validate.
    name : str
        Parameter name for error message.
    dtype : np.dtype
        Required element type.
    min_length : int
        Minimum number of elements.
    writeable : bool, default=False
        If True, the buffer must accept writes.

    Raises
    ------
    TypeError
        If the buffer is not a 1-D ndarray of the required dtype.
    ValueError
        If the buffer is too short or read-only when writes are needed.
    """
    if not isinstance(array, np.ndarray):
        raise TypeError(f"{name} must be np.ndarray, got {type(array).__name__}")
    if array.ndim != 1:
        raise TypeError(f"{name} must be 1-D, got {array.ndim} dimensions")
    if array.dtype != dtype:
        raise TypeError(f"{name} must have dtype {np.dtype(dtype)}, got {array.dtype}")
    if array.shape[0] < min_length:
        raise ValueError(
            f"{name} length ({array.shape[0]}) must be >= {min_length}"
        )
    if writeable and not array.flags.writeable:
        raise ValueError(f"{name} must be writeable")
