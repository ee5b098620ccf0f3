"""CHROM color projection."""

from __future__ import annotations

import numpy as np

EPS = 1e-6


def mean_normalize(x: np.ndarray) -> np.ndarray:
    """Divide a channel by its window mean and remove DC (x / mean - 1)."""
    x = np.asarray(x, dtype=np.float64)
    mean = float(np.mean(x)) if x.size else 0.0
    if abs(mean) < EPS:
        mean = EPS if mean >= 0 else -EPS
    return x / mean - 1.0


def chrom_signal(R: np.ndarray, G: np.ndarray, B: np.ndarray) -> np.ndarray:
    """Compute CHROM composite signal for a window of raw RGB means.

    Args:
        R, G, B: 1D arrays (truncated to the shortest length).
    """
    n = min(len(R), len(G), len(B))
    Rn = mean_normalize(np.asarray(R)[:n])
    Gn = mean_normalize(np.asarray(G)[:n])
    Bn = mean_normalize(np.asarray(B)[:n])
    X = 3 * Rn - 2 * Gn
    Y = 1.5 * Rn + Gn - 1.5 * Bn
    alpha = float(np.std(X)) / max(float(np.std(Y)), EPS)
    return X - alpha * Y
