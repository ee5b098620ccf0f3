"""POS (plane-orthogonal-to-skin) color projection."""

from __future__ import annotations

import numpy as np

from .chrom import EPS, mean_normalize


def pos_signal(R: np.ndarray, G: np.ndarray, B: np.ndarray) -> np.ndarray:
    """Compute POS composite signal for a window of raw RGB means.

    Args:
        R, G, B: 1D arrays (truncated to the shortest length).
    """
    n = min(len(R), len(G), len(B))
    Rn = mean_normalize(np.asarray(R)[:n])
    Gn = mean_normalize(np.asarray(G)[:n])
    Bn = mean_normalize(np.asarray(B)[:n])
    S1 = Gn - Bn
    S2 = Gn + Bn - 2 * Rn
    alpha = float(np.std(S1)) / max(float(np.std(S2)), EPS)
    return S1 + alpha * S2
