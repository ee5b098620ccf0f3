"""Quality metrics for rPPG signals.

Includes an autocovariance-based SNR, autocorrelation strength, beat
regularity and the composite signal-quality index (SQI).
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .preprocess import is_flat

EPS = 1e-8
SNR_FLOOR_DB = 10.0 * float(np.log10(EPS))  # -80 dB
MIN_SAMPLES = 64


def _autocov(x: np.ndarray) -> np.ndarray:
    """Autocovariance sums for lags 1..n-1 of a mean-removed signal."""
    n = x.size
    full = np.correlate(x, x, mode="full")
    return full[n:]


def snr_pulse(
    signal: np.ndarray,
    dt: float,
    min_hz: float = 0.7,
    max_hz: float = 4.0,
) -> float:
    """SNR [dB] of cardiac-band lags against all other lags.

    Autocovariance magnitude at lags whose period lies in [1/max_hz, 1/min_hz]
    counts as band power; the rest is noise. Short windows return 0 dB, flat
    signals return the -80 dB floor.
    """
    x = np.asarray(signal, dtype=np.float64)
    n = x.size
    if n < MIN_SAMPLES or dt <= 0:
        return 0.0
    if is_flat(x):
        return SNR_FLOOR_DB
    x = x - float(np.mean(x))
    acov = np.abs(_autocov(x))
    total = float(np.sum(acov))
    if total <= 0.0:
        return SNR_FLOOR_DB
    min_lag = max(1, int(np.floor(1.0 / max_hz / dt)))
    max_lag = min(n - 2, int(np.floor(1.0 / min_hz / dt)))
    # acov[0] is lag 1
    band = float(np.sum(acov[min_lag - 1 : max_lag])) if max_lag >= min_lag else 0.0
    ratio = band / total
    return 10.0 * float(np.log10(max(EPS, ratio / max(EPS, 1.0 - ratio))))


def autocorr_strength(
    signal: np.ndarray,
    dt: float,
    min_bpm: float = 48.0,
    max_bpm: float = 180.0,
) -> float:
    """Peak normalized autocorrelation within cardiac lags, in [0, 1]."""
    x = np.asarray(signal, dtype=np.float64)
    n = x.size
    if n < MIN_SAMPLES or dt <= 0 or is_flat(x):
        return 0.0
    x = x - float(np.mean(x))
    denom = float(np.dot(x, x))
    min_lag = max(1, int(np.floor(60.0 / max_bpm / dt)))
    max_lag = min(n - 2, int(np.floor(60.0 / min_bpm / dt)))
    if max_lag < min_lag:
        return 0.0
    acov = _autocov(x)
    best = float(np.max(acov[min_lag - 1 : max_lag])) / denom
    return float(np.clip(best, 0.0, 1.0))


def beat_regularity(ibis: np.ndarray) -> float:
    """1 - coefficient of variation of the IBIs, in [0, 1]."""
    ibis = np.asarray(ibis, dtype=np.float64)
    if ibis.size < 3:
        return 0.0
    mean = float(np.mean(ibis))
    cv = float(np.std(ibis)) / mean if mean > 0 else 1.0
    return 1.0 - float(np.clip(cv, 0.0, 1.0))


def snr_to_unit(snr_db: float) -> float:
    """Map SNR dB to 0..1 roughly: -12 dB -> 0, 0 dB -> 0.5, 12 dB -> 1."""
    return float(np.clip(0.5 + snr_db / 24.0, 0.0, 1.0))


def sqi_score(snr_db: float, ac: float, reg: float) -> float:
    score = 0.5 * snr_to_unit(snr_db) + 0.25 * ac + 0.25 * reg
    return float(np.clip(score, 0.0, 1.0))


def confidence_from_snr(hr: Optional[int], snr_db: float) -> float:
    if hr is None:
        return 0.3
    return float(np.clip(0.5 + snr_db / 24.0, 0.1, 0.95))


def sqi_status(snr_db: float) -> str:
    """Traffic-light category: red < -2 dB, yellow < 6 dB, else green."""
    if snr_db < -2.0:
        return "red"
    if snr_db < 6.0:
        return "yellow"
    return "green"


def sqi_label(status: str) -> str:
    return {"green": "Excellent", "yellow": "Fair"}.get(status, "Poor")
