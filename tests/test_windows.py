"""
Window functions test suite.

Tests cover:
- Scipy compatibility for Hann, Hamming, Blackman, Bartlett windows
- Periodic (DFT-even) vs symmetric window modes
- Host arrays (window_array) and MLX arrays (get_window)
- Custom window array passthrough
- Window aliases (hanning, triangular, boxcar, ones)
- Error handling for unknown window types
"""
import numpy as np
import pytest
import scipy.signal
import mlx.core as mx

from mlx_streaming_dsp import get_window, window_array


class TestWindowArray:
    """Tests for window_array function."""

    @pytest.mark.parametrize("window_type", ["hann", "hamming", "blackman", "bartlett"])
    @pytest.mark.parametrize("n", [9, 33, 256])
    @pytest.mark.parametrize("fftbins", [True, False])
    def test_matches_scipy(self, window_type, n, fftbins):
        """Float64 windows match scipy to rounding."""
        result = window_array(window_type, n, fftbins=fftbins)
        expected = scipy.signal.get_window(window_type, n, fftbins=fftbins)
        np.testing.assert_allclose(result, expected, rtol=1e-12, atol=1e-14)

    def test_symmetric_hamming_matches_numpy(self):
        """Symmetric Hamming is the kernel-design window."""
        np.testing.assert_allclose(
            window_array("hamming", 65, fftbins=False), np.hamming(65), atol=1e-15
        )

    def test_returns_writeable_copy(self):
        """Callers may modify the result without touching the cache."""
        first = window_array("hann", 16)
        first[:] = 0.0
        second = window_array("hann", 16)
        assert second.flags.writeable
        assert second.max() > 0.0

    def test_dtype(self):
        assert window_array("hann", 16).dtype == np.float64
        assert window_array("hann", 16, dtype=np.float32).dtype == np.float32

    def test_case_insensitive(self):
        np.testing.assert_array_equal(
            window_array("HAMMING", 32), window_array("hamming", 32)
        )

    @pytest.mark.parametrize("n", [0, 1])
    def test_degenerate_lengths(self, n):
        assert window_array("hann", n, fftbins=False).shape == (n,)

    def test_unknown_window_raises(self):
        with pytest.raises(ValueError, match="Unknown window type"):
            window_array("kaiser_bessel", 16)

    def test_non_string_raises(self):
        with pytest.raises(TypeError):
            window_array(np.ones(16), 16)


class TestGetWindow:
    """Tests for get_window function."""

    @pytest.mark.parametrize("window_type", ["hann", "hamming", "blackman", "bartlett"])
    @pytest.mark.parametrize("n_fft", [256, 1024])
    @pytest.mark.parametrize("fftbins", [True, False])
    def test_window_matches_scipy(self, window_type, n_fft, fftbins):
        """MLX windows match scipy at float32 precision."""
        mlx_window = get_window(window_type, n_fft, fftbins=fftbins)
        scipy_window = scipy.signal.get_window(window_type, n_fft, fftbins=fftbins)

        np.testing.assert_allclose(
            np.array(mlx_window), scipy_window, rtol=1e-5, atol=1e-5
        )

    def test_rectangular_window(self):
        """Test rectangular/boxcar window."""
        window = get_window("rectangular", 1024)
        np.testing.assert_allclose(np.array(window), np.ones(1024), rtol=1e-6)

    def test_window_array_passthrough(self):
        """Test that custom window arrays are passed through."""
        custom_window = mx.array(np.ones(1024, dtype=np.float32) * 0.5)
        result = get_window(custom_window, 1024)
        np.testing.assert_allclose(np.array(result), np.array(custom_window))

    def test_window_array_wrong_length_raises(self):
        """Test that wrong-length window arrays raise ValueError."""
        custom_window = mx.array(np.ones(512, dtype=np.float32))
        with pytest.raises(ValueError, match="must match n_fft"):
            get_window(custom_window, 1024)

    def test_unknown_window_raises(self):
        """Test that unknown window types raise ValueError."""
        with pytest.raises(ValueError, match="Unknown window type"):
            get_window("unknown_window", 1024)

    def test_window_shape_and_dtype(self):
        window = get_window("hann", 2048)
        assert window.shape == (2048,)
        assert window.dtype == mx.float32

    def test_cached(self):
        """Repeated calls return the cached array."""
        assert get_window("blackman", 128) is get_window("blackman", 128)

    def test_window_aliases(self):
        """Test window name aliases."""
        n_fft = 1024

        # hann/hanning should be the same
        hann = get_window("hann", n_fft)
        hanning = get_window("hanning", n_fft)
        np.testing.assert_allclose(np.array(hann), np.array(hanning))

        # bartlett/triangular should be the same
        bartlett = get_window("bartlett", n_fft)
        triangular = get_window("triangular", n_fft)
        np.testing.assert_allclose(np.array(bartlett), np.array(triangular))

        # rectangular/boxcar/ones should be the same
        rect = get_window("rectangular", n_fft)
        boxcar = get_window("boxcar", n_fft)
        ones = get_window("ones", n_fft)
        np.testing.assert_allclose(np.array(rect), np.array(boxcar))
        np.testing.assert_allclose(np.array(rect), np.array(ones))
