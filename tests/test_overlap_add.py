"""
Overlap-add block filter test suite.

Tests cover:
- Transform size selection
- Impulse response through the block stream
- Equivalence with direct linear convolution over many block sizes
- Flushing, re-initialization and offsets
- Master/slave transform sharing and master lifetime
- Filtering pre-transformed blocks
- Checked stream mode
- Single-precision variant and argument validation
"""
import gc

import numpy as np
import pytest
from scipy import signal

from mlx_streaming_dsp import CDFT, CDFT32, OverlapAdd, OverlapAdd32, transform_size


def stream(ola, x):
    """Push ``x`` through ``ola`` block by block, drain the tail."""
    bs = ola.block_size
    n_blocks = -(-len(x) // bs)
    n_flush = -(-(ola.kernel_length - 1) // bs)
    padded = np.zeros(n_blocks * bs, dtype=ola.dtype)
    padded[: len(x)] = x

    out = np.zeros((n_blocks + n_flush) * bs, dtype=ola.dtype)
    for b in range(n_blocks):
        ola.filter(padded, out, b * bs, b * bs)
    for f in range(n_flush):
        ola.flush(out, (n_blocks + f) * bs)
    return out[: len(x) + ola.kernel_length - 1]


class TestTransformSize:
    """Tests for transform_size()."""

    @pytest.mark.parametrize(
        "kernel_length,block_size,expected",
        [
            (3, 4, (8, 3)),
            (1, 1, (8, 3)),
            (31, 64, (128, 7)),
            (64, 65, (128, 7)),
            (65, 65, (256, 8)),
        ],
    )
    def test_sizes(self, kernel_length, block_size, expected):
        assert transform_size(kernel_length, block_size) == expected

    @pytest.mark.parametrize("kernel_length,block_size", [(0, 0), (0, 4), (4, 0), (-3, 8)])
    def test_non_positive_raises(self, kernel_length, block_size):
        with pytest.raises(ValueError, match="must be positive"):
            transform_size(kernel_length, block_size)


class TestImpulse:
    """Tests for the impulse response of the stream."""

    def test_shifted_kernel(self):
        """Impulse at position 5 of a length-20 stream reproduces the kernel."""
        ola = OverlapAdd([1.0, 2.0, 3.0], block_size=4)
        x = np.zeros(20)
        x[5] = 1.0

        out = np.zeros(24)
        for b in range(5):
            ola.filter(x, out, 4 * b, 4 * b)
        ola.flush(out, 20)

        expected = np.zeros(24)
        expected[5:8] = [1.0, 2.0, 3.0]
        np.testing.assert_allclose(out, expected, atol=1e-12)

    def test_identity_kernel(self, random_signal):
        ola = OverlapAdd([1.0], block_size=100)
        np.testing.assert_allclose(
            stream(ola, random_signal), random_signal, atol=1e-12
        )


class TestLinearConvolution:
    """Output of a full stream equals the linear convolution."""

    @pytest.mark.parametrize("block_size", [1, 3, 16, 31, 64, 250, 1000])
    def test_matches_convolve(self, random_signal, lowpass_kernel, block_size):
        ola = OverlapAdd(lowpass_kernel, block_size)
        result = stream(ola, random_signal)
        expected = np.convolve(random_signal, lowpass_kernel)
        np.testing.assert_allclose(result, expected, rtol=1e-9, atol=1e-10)

    def test_matches_scipy_oaconvolve(self, rng, random_signal):
        kernel = rng.standard_normal(200)
        result = stream(OverlapAdd(kernel, 128), random_signal)
        expected = signal.oaconvolve(random_signal, kernel)
        np.testing.assert_allclose(result, expected, rtol=1e-9, atol=1e-9)

    def test_kernel_longer_than_block(self, rng, short_signal):
        kernel = rng.standard_normal(50)
        result = stream(OverlapAdd(kernel, 8), short_signal)
        np.testing.assert_allclose(
            result, np.convolve(short_signal, kernel), rtol=1e-9, atol=1e-10
        )

    def test_list_input(self):
        ola = OverlapAdd([0.5, 0.5], block_size=4)
        out = np.zeros(4)
        ola.filter([1.0, 1.0, 1.0, 1.0], out)
        np.testing.assert_allclose(out, [0.5, 1.0, 1.0, 1.0], atol=1e-12)

    def test_offsets(self, rng, lowpass_kernel):
        """Blocks are read and written at arbitrary positions."""
        bs = 32
        x = rng.standard_normal(3 * bs)
        src = np.concatenate([np.full(7, np.nan), x])
        dst = np.zeros(11 + 4 * bs)

        ola = OverlapAdd(lowpass_kernel, bs)
        for b in range(3):
            ola.filter(src, dst, 7 + b * bs, 11 + b * bs)
        ola.flush(dst, 11 + 3 * bs)

        expected = np.convolve(x, lowpass_kernel)
        np.testing.assert_allclose(
            dst[11 : 11 + len(expected)], expected, rtol=1e-9, atol=1e-10
        )
        np.testing.assert_array_equal(dst[:11], 0.0)


class TestStreamState:
    """Tests for flush() and initialize()."""

    def test_flush_drains_tail(self):
        ola = OverlapAdd(np.ones(10), block_size=4)
        out = np.zeros(4)
        ola.filter(np.ones(4), out)

        tail = np.zeros(12)
        for f in range(3):
            ola.flush(tail, 4 * f)

        full = np.convolve(np.ones(4), np.ones(10))
        np.testing.assert_allclose(out, full[:4], atol=1e-12)
        np.testing.assert_allclose(tail[:9], full[4:], atol=1e-12)
        np.testing.assert_allclose(tail[9:], 0.0, atol=1e-12)

    def test_initialize_reuses_filter(self, rng, lowpass_kernel):
        ola = OverlapAdd(lowpass_kernel, 64)
        first = rng.standard_normal(500)
        second = rng.standard_normal(500)

        stream(ola, first)
        ola.initialize()
        result = stream(ola, second)

        np.testing.assert_allclose(
            result, np.convolve(second, lowpass_kernel), rtol=1e-9, atol=1e-10
        )

    def test_state_carries_between_blocks(self):
        """Without initialize() the previous tail leaks into the next block."""
        ola = OverlapAdd([1.0, 1.0], block_size=2)
        out = np.zeros(2)
        ola.filter(np.array([0.0, 1.0]), out)
        ola.filter(np.zeros(2), out)
        np.testing.assert_allclose(out, [1.0, 0.0], atol=1e-12)


class TestMasterSlave:
    """Tests for transform sharing with from_master()."""

    def test_slave_matches_independent_filter(self, rng, random_signal):
        h1 = rng.standard_normal(40)
        h2 = rng.standard_normal(40)
        master = OverlapAdd(h1, 128)
        slave = OverlapAdd.from_master(h2, master)

        assert master.is_master
        assert not slave.is_master
        assert slave.block_size == 128
        assert slave.nfft == master.nfft

        np.testing.assert_allclose(
            stream(slave, random_signal),
            np.convolve(random_signal, h2),
            rtol=1e-9,
            atol=1e-10,
        )

    def test_interleaved_streams(self, rng):
        """Master and slave keep separate state while sharing a transform."""
        bs = 16
        h1 = rng.standard_normal(9)
        h2 = rng.standard_normal(9)
        x1 = rng.standard_normal(4 * bs)
        x2 = rng.standard_normal(4 * bs)
        master = OverlapAdd(h1, bs)
        slave = OverlapAdd.from_master(h2, master)

        out1 = np.zeros(5 * bs)
        out2 = np.zeros(5 * bs)
        for b in range(4):
            master.filter(x1, out1, b * bs, b * bs)
            slave.filter(x2, out2, b * bs, b * bs)
        master.flush(out1, 4 * bs)
        slave.flush(out2, 4 * bs)

        np.testing.assert_allclose(
            out1[: 4 * bs + 8], np.convolve(x1, h1), rtol=1e-9, atol=1e-10
        )
        np.testing.assert_allclose(
            out2[: 4 * bs + 8], np.convolve(x2, h2), rtol=1e-9, atol=1e-10
        )

    def test_slave_of_slave(self, rng):
        h = rng.standard_normal(5)
        master = OverlapAdd(h, 8)
        slave = OverlapAdd.from_master(h, master)
        grandchild = OverlapAdd.from_master(h[::-1], slave)

        x = rng.standard_normal(8)
        out = np.zeros(8)
        grandchild.filter(x, out)
        np.testing.assert_allclose(out, np.convolve(x, h[::-1])[:8], atol=1e-12)

    def test_kernel_length_mismatch_raises(self):
        master = OverlapAdd(np.ones(10), 16)
        with pytest.raises(ValueError, match="inconsistent"):
            OverlapAdd.from_master(np.ones(11), master)

    def test_precision_mismatch_raises(self):
        master = OverlapAdd(np.ones(10), 16)
        with pytest.raises(TypeError):
            OverlapAdd32.from_master(np.ones(10), master)

    def test_non_filter_master_raises(self):
        with pytest.raises(TypeError):
            OverlapAdd.from_master(np.ones(10), CDFT(5))

    def test_dead_master_raises(self):
        master = OverlapAdd(np.ones(10), 16)
        slave = OverlapAdd.from_master(np.ones(10), master)
        del master
        gc.collect()

        with pytest.raises(ReferenceError, match="no longer exists"):
            slave.filter(np.ones(16), np.zeros(16))


class TestFilterTransform:
    """Tests for filter_transform()."""

    def test_shared_input_transform(self, rng):
        bs = 32
        h1 = rng.standard_normal(17)
        h2 = rng.standard_normal(17)
        x = rng.standard_normal(bs)

        f1 = OverlapAdd(h1, bs)
        f2 = OverlapAdd.from_master(h2, f1)
        padded = np.zeros(f1.nfft)
        padded[:bs] = x
        tr, ti = np.empty(f1.nfft), np.empty(f1.nfft)
        CDFT(f1.nfft.bit_length() - 1).evaluate(padded, np.zeros(f1.nfft), tr, ti)
        tr_copy = tr.copy()

        out1, out2 = np.zeros(bs), np.zeros(bs)
        f1.filter_transform(tr, ti, out1)
        f2.filter_transform(tr, ti, out2)

        np.testing.assert_allclose(out1, np.convolve(x, h1)[:bs], atol=1e-12)
        np.testing.assert_allclose(out2, np.convolve(x, h2)[:bs], atol=1e-12)
        np.testing.assert_array_equal(tr, tr_copy)

    def test_wrong_length_raises(self):
        ola = OverlapAdd(np.ones(5), 8)
        with pytest.raises(ValueError, match="nfft"):
            ola.filter_transform(np.zeros(8), np.zeros(8), np.zeros(8))


class TestCheckedMode:
    """Tests for the optional stream-order checks."""

    def test_contiguous_blocks_pass(self, random_signal, lowpass_kernel):
        ola = OverlapAdd(lowpass_kernel, 100, checked=True)
        np.testing.assert_allclose(
            stream(ola, random_signal),
            np.convolve(random_signal, lowpass_kernel),
            rtol=1e-9,
            atol=1e-10,
        )

    def test_skipped_block_raises(self):
        ola = OverlapAdd(np.ones(3), 4, checked=True)
        x = np.zeros(16)
        out = np.zeros(16)
        ola.filter(x, out, 0, 0)
        with pytest.raises(RuntimeError, match="Non-contiguous"):
            ola.filter(x, out, 8, 4)

    def test_repeated_block_raises(self):
        ola = OverlapAdd(np.ones(3), 4, checked=True)
        x = np.zeros(16)
        out = np.zeros(16)
        ola.filter(x, out, 4, 0)
        with pytest.raises(RuntimeError):
            ola.filter(x, out, 4, 4)

    def test_fresh_arrays_pass(self):
        """Blocks delivered in separate arrays are not compared."""
        ola = OverlapAdd(np.ones(3), 4, checked=True)
        out = np.zeros(4)
        for _ in range(3):
            ola.filter(np.ones(4), out)

    def test_filter_after_flush_raises(self):
        ola = OverlapAdd(np.ones(3), 4, checked=True)
        out = np.zeros(4)
        ola.filter(np.ones(4), out)
        ola.flush(out)
        with pytest.raises(RuntimeError, match="initialize"):
            ola.filter(np.ones(4), out)

        ola.initialize()
        ola.filter(np.ones(4), out)

    def test_unchecked_allows_misuse(self):
        ola = OverlapAdd(np.ones(3), 4)
        x = np.zeros(16)
        out = np.zeros(16)
        ola.filter(x, out, 8, 0)
        ola.filter(x, out, 0, 4)
        ola.flush(out, 8)
        ola.filter(x, out, 4, 12)


class TestSinglePrecision:
    """Tests for OverlapAdd32."""

    def test_matches_convolve(self, random_signal, lowpass_kernel):
        ola = OverlapAdd32(lowpass_kernel, 128)
        result = stream(ola, random_signal)

        assert result.dtype == np.float32
        expected = np.convolve(random_signal, lowpass_kernel)
        np.testing.assert_allclose(result, expected, rtol=1e-4, atol=1e-4)

    def test_default_transform_precision(self):
        assert OverlapAdd32(np.ones(3), 4).dtype == np.float32
        assert OverlapAdd(np.ones(3), 4).dtype == np.float64


class TestValidation:
    """Tests for construction and call validation."""

    def test_kernel_spectrum(self, lowpass_kernel):
        ola = OverlapAdd(lowpass_kernel, 64)
        kr, ki = ola.kernel_spectrum
        expected = np.fft.fft(lowpass_kernel, ola.nfft)
        np.testing.assert_allclose(kr + 1j * ki, expected, atol=1e-12)
        with pytest.raises(ValueError):
            kr[0] = 0.0

    @pytest.mark.parametrize("kernel", [[], np.ones((2, 3)), 1.0])
    def test_invalid_kernel_raises(self, kernel):
        with pytest.raises(ValueError, match="kernel"):
            OverlapAdd(kernel, 8)

    @pytest.mark.parametrize("block_size", [0, -4])
    def test_invalid_block_size_raises(self, block_size):
        with pytest.raises(ValueError, match="block_size"):
            OverlapAdd(np.ones(3), block_size)

    def test_supplied_dft(self, rng, short_signal):
        kernel = rng.standard_normal(4)
        nfft, log2nfft = transform_size(4, 8)
        ola = OverlapAdd(kernel, 8, dft=CDFT(log2nfft))
        assert ola.nfft == nfft
        np.testing.assert_allclose(
            stream(ola, short_signal),
            np.convolve(short_signal, kernel),
            rtol=1e-9,
            atol=1e-10,
        )

    def test_supplied_dft_wrong_size_raises(self):
        with pytest.raises(ValueError, match="dft size"):
            OverlapAdd(np.ones(4), 8, dft=CDFT(5))

    def test_supplied_dft_wrong_precision_raises(self):
        with pytest.raises(TypeError, match="precision"):
            OverlapAdd(np.ones(4), 8, dft=CDFT32(4))

    def test_short_source_raises(self):
        ola = OverlapAdd(np.ones(3), 8)
        with pytest.raises(ValueError, match="Source array length"):
            ola.filter(np.zeros(10), np.zeros(8), 4, 0)

    def test_short_destination_raises(self):
        ola = OverlapAdd(np.ones(3), 8)
        with pytest.raises(ValueError, match="Destination array length"):
            ola.filter(np.zeros(8), np.zeros(10), 0, 4)
        with pytest.raises(ValueError, match="Destination array length"):
            ola.flush(np.zeros(4))

    def test_repr(self):
        text = repr(OverlapAdd(np.ones(3), 4))
        assert "block_size=4" in text
        assert "master" in text
