"""Beat peak detection with adaptive threshold and refractory period."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .preprocess import is_flat


@dataclass
class PeakResult:
    peaks: np.ndarray  # sample indices
    ibis: np.ndarray  # seconds


def find_peaks(
    x: np.ndarray,
    dt: float,
    refractory_sec: float = 0.3,
    k: float = 0.6,
) -> PeakResult:
    """Find heartbeat peaks and inter-beat intervals.

    A sample is a peak when it exceeds ``mean + k * std`` of the window, is
    strictly greater than both neighbours and at least ``refractory_sec`` has
    elapsed since the previously accepted peak.

    Args:
        x: filtered pulse signal.
        dt: sample spacing [s].
        refractory_sec: minimum spacing between peaks [s].
        k: threshold gain on the standard deviation.
    """
    x = np.asarray(x, dtype=np.float64)
    if x.size < 3 or dt <= 0 or is_flat(x):
        return PeakResult(np.zeros(0, dtype=np.int64), np.zeros(0, dtype=np.float64))
    thr = float(np.mean(x)) + k * float(np.std(x))
    min_gap = max(1, int(round(refractory_sec / dt)))
    mid = x[1:-1]
    cand = np.flatnonzero((mid > thr) & (mid > x[:-2]) & (mid > x[2:])) + 1
    accepted = []
    last = None
    for i in cand:
        if last is None or i - last >= min_gap:
            accepted.append(int(i))
            last = i
    peaks = np.asarray(accepted, dtype=np.int64)
    ibis = np.diff(peaks).astype(np.float64) * dt
    return PeakResult(peaks, ibis)
