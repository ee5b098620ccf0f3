from __future__ import annotations

import numpy as np

from rppg_stream.peaks import find_peaks


def test_peaks_and_ibis_on_sine() -> None:
    fs = 30.0
    t = np.arange(0, 10.0, 1 / fs)
    x = np.sin(2 * np.pi * 1.2 * t)
    res = find_peaks(x, dt=1 / fs)
    assert res.peaks.size == 12
    assert np.allclose(res.ibis, 25 / fs)


def test_refractory_period_suppresses_close_peaks() -> None:
    x = np.zeros(60)
    x[10] = 1.0
    x[13] = 0.9  # 0.1 s later, inside the 0.3 s refractory window
    x[40] = 1.0
    res = find_peaks(x, dt=1 / 30, refractory_sec=0.3)
    assert res.peaks.tolist() == [10, 40]
    assert np.allclose(res.ibis, [1.0])


def test_plateau_and_subthreshold_samples_are_not_peaks() -> None:
    x = np.zeros(60)
    x[10] = x[11] = 1.0  # plateau: not strictly greater than both neighbours
    x[30] = 1.0
    x[45] = 0.01  # local max below mean + 0.6 std
    res = find_peaks(x, dt=1 / 30)
    assert res.peaks.tolist() == [30]
    assert res.ibis.size == 0


def test_flat_signal_has_no_peaks() -> None:
    res = find_peaks(np.full(100, 2.0), dt=1 / 30)
    assert res.peaks.size == 0 and res.ibis.size == 0
