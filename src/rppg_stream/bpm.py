"""Spectral heart-rate estimation."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .preprocess import is_flat


def power_spectrum(x: np.ndarray) -> np.ndarray:
    """Hamming-windowed power spectrum, first n // 2 bins."""
    x = np.asarray(x, dtype=np.float64)
    n = x.size
    if n < 2:
        return np.zeros(0, dtype=np.float64)
    X = np.fft.rfft(x * np.hamming(n))
    return (np.abs(X) ** 2)[: n // 2]


def pow2_tail(x: np.ndarray) -> np.ndarray:
    """Most recent samples trimmed to the largest power-of-two length."""
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        return x
    n = 1 << (int(x.size).bit_length() - 1)
    return x[x.size - n :]


def dominant_frequency(
    x: np.ndarray,
    dt: float,
    fmin: float = 0.7,
    fmax: float = 3.0,
) -> Optional[float]:
    """Frequency [Hz] of the strongest spectral bin inside [fmin, fmax].

    Returns None for flat or too-short input.
    """
    s = pow2_tail(x)
    n = s.size
    if n < 8 or dt <= 0 or is_flat(s):
        return None
    ps = power_spectrum(s)
    df = 1.0 / (dt * n)
    k_min = max(1, int(np.floor(fmin / df)))
    k_max = min(ps.size - 1, int(np.ceil(fmax / df)))
    if k_max < k_min:
        return None
    k_peak = k_min + int(np.argmax(ps[k_min : k_max + 1]))
    return float(k_peak * df)


def estimate_bpm(
    signal: np.ndarray,
    dt: float,
    fmin: float = 0.7,
    fmax: float = 3.0,
    bpm_min: float = 48.0,
    bpm_max: float = 180.0,
) -> Optional[float]:
    """Estimate BPM by peak in the band-limited power spectrum.

    Estimates outside [bpm_min, bpm_max] are rejected as implausible.
    """
    f_peak = dominant_frequency(signal, dt, fmin, fmax)
    if f_peak is None:
        return None
    bpm = 60.0 * f_peak
    if bpm < bpm_min or bpm > bpm_max:
        return None
    return bpm
