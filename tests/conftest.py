"""
Pytest configuration and shared fixtures for mlx-streaming-dsp tests.
"""
import numpy as np
import pytest


# Use np.random.Generator for better test isolation instead of global seed
_TEST_SEED = 42


@pytest.fixture
def direct_dft():
    """O(N^2) DFT from the definition, used as ground truth."""

    def dft(x: np.ndarray) -> np.ndarray:
        n = len(x)
        k = np.arange(n)
        w = np.exp(-2j * np.pi * np.outer(k, k) / n)
        return w @ x

    return dft


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(_TEST_SEED)


@pytest.fixture
def random_signal():
    """Generate a random seismic-like trace for testing."""
    rng = np.random.default_rng(_TEST_SEED)
    return rng.standard_normal(5000)


@pytest.fixture
def short_signal():
    """Generate a short signal for edge case testing."""
    rng = np.random.default_rng(_TEST_SEED)
    return rng.standard_normal(37)


@pytest.fixture
def batch_signals():
    """Generate a batch of random signals for testing."""
    rng = np.random.default_rng(_TEST_SEED)
    return rng.standard_normal((3, 2000))


@pytest.fixture
def lowpass_kernel():
    """31-tap windowed-sinc lowpass kernel."""
    n = np.arange(31) - 15
    return np.sinc(0.25 * n) * np.hamming(31) * 0.25


@pytest.fixture
def sine_signal():
    """Generate a pure sine wave for testing."""
    sr = 1000
    t = np.arange(2000) / sr
    return np.sin(2 * np.pi * 13.0 * t)
