"""Per-ROI RGB to pulse-candidate signal, selected once per session."""

from __future__ import annotations

from enum import Enum

import numpy as np

from .chrom import chrom_signal
from .pos import pos_signal


class MixMode(str, Enum):
    GREEN = "green"
    CHROM = "chrom"
    POS = "pos"


def green_signal(R: np.ndarray, G: np.ndarray, B: np.ndarray) -> np.ndarray:
    """Green channel pass-through (copy, truncated to the shortest length)."""
    n = min(len(R), len(G), len(B))
    return np.array(np.asarray(G, dtype=np.float64)[:n], copy=True)


def combine(mode: MixMode | str, R: np.ndarray, G: np.ndarray, B: np.ndarray) -> np.ndarray:
    mode = MixMode(mode)
    if mode is MixMode.CHROM:
        return chrom_signal(R, G, B)
    if mode is MixMode.POS:
        return pos_signal(R, G, B)
    return green_signal(R, G, B)
