from __future__ import annotations

import numpy as np

from rppg_stream.fusion import fuse_regions, snr_weights


def test_snr_weights_softmax_properties() -> None:
    w = snr_weights(np.array([10.0, 0.0, -10.0]), scale=0.35)
    assert abs(w.sum() - 1.0) < 1e-6
    assert w[0] > w[1] > w[2] > 0
    assert np.isclose(w[0] / w[1], np.exp(3.5))

    eq = snr_weights(np.array([3.0, 3.0, 3.0]))
    assert np.allclose(eq, 1.0 / 3.0)


def test_fusion_favours_region_with_pulse() -> None:
    fs = 30.0
    t = np.arange(0, 8.0, 1 / fs)
    pulse = 120 + np.sin(2 * np.pi * 1.2 * t)
    flat = np.full(t.size, 120.0)
    res = fuse_regions(pulse, flat, flat, dt=1 / fs)
    wf, wl, wr = res.weights
    assert abs(wf + wl + wr - 1.0) < 1e-6
    assert wf > 0.99
    assert wl > 0 and wr > 0
    assert res.snr[0] > res.snr[1]
    assert res.signal.shape == t.shape


def test_fusion_of_identical_regions_is_identity() -> None:
    fs = 30.0
    t = np.arange(0, 5.0, 1 / fs)
    x = 100 + np.sin(2 * np.pi * 1.0 * t) + 0.1 * np.random.RandomState(0).randn(t.size)
    res = fuse_regions(x, x, x, dt=1 / fs)
    assert np.allclose(res.weights, 1.0 / 3.0)
    assert np.allclose(res.signal, x)


def test_fusion_uses_common_tail_length() -> None:
    a = np.arange(100, dtype=float)
    b = np.arange(90, dtype=float)
    res = fuse_regions(a, b, b, dt=1 / 30)
    assert res.signal.size == 90
