"""SNR-weighted fusion of the three per-region pulse signals."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.special import softmax

from .quality import snr_pulse


@dataclass
class FusionResult:
    signal: np.ndarray
    snr: tuple[float, float, float]  # forehead, left cheek, right cheek [dB]
    weights: tuple[float, float, float]  # sum to 1


def snr_weights(snrs: np.ndarray, scale: float = 0.35) -> np.ndarray:
    """Softmax over scaled SNRs; every region keeps a nonzero weight."""
    w = softmax(scale * np.asarray(snrs, dtype=np.float64))
    return w / float(np.sum(w))


def fuse_regions(
    forehead: np.ndarray,
    left_cheek: np.ndarray,
    right_cheek: np.ndarray,
    dt: float,
    scale: float = 0.35,
    min_hz: float = 0.7,
    max_hz: float = 4.0,
) -> FusionResult:
    """Weighted sum of the region signals over their common length."""
    n = min(len(forehead), len(left_cheek), len(right_cheek))
    sigs = np.vstack(
        [
            np.asarray(forehead, dtype=np.float64)[-n:] if n else np.zeros(0),
            np.asarray(left_cheek, dtype=np.float64)[-n:] if n else np.zeros(0),
            np.asarray(right_cheek, dtype=np.float64)[-n:] if n else np.zeros(0),
        ]
    )
    snrs = np.array([snr_pulse(s, dt, min_hz, max_hz) for s in sigs])
    w = snr_weights(snrs, scale)
    fused = w @ sigs
    return FusionResult(
        signal=fused,
        snr=(float(snrs[0]), float(snrs[1]), float(snrs[2])),
        weights=(float(w[0]), float(w[1]), float(w[2])),
    )
