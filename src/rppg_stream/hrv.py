"""Heart-rate variability metrics from IBIs and the filtered waveform."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional

import numpy as np

from .bpm import power_spectrum

LF_BAND = (0.04, 0.15)
HF_BAND = (0.15, 0.4)


@dataclass
class HrvMetrics:
    rmssd: float  # s
    sdnn: float  # s
    pnn50: float  # %
    lf: float
    hf: float

    def as_dict(self) -> dict:
        return asdict(self)


def welch_spectrum(x: np.ndarray, seg_len: int = 256) -> np.ndarray:
    """Average power spectra of 50 %-overlapping segments."""
    x = np.asarray(x, dtype=np.float64)
    seg = min(x.size, int(seg_len))
    if seg < 2:
        return np.zeros(0, dtype=np.float64)
    step = max(1, seg // 2)
    spectra = [power_spectrum(x[s : s + seg]) for s in range(0, x.size - seg + 1, step)]
    return np.mean(spectra, axis=0)


def band_power(ps: np.ndarray, df: float, f1: float, f2: float) -> float:
    if ps.size == 0 or df <= 0:
        return 0.0
    k1 = max(1, int(np.floor(f1 / df)))
    k2 = min(ps.size - 1, int(np.ceil(f2 / df)))
    if k2 < k1:
        return 0.0
    return float(np.sum(ps[k1 : k2 + 1]))


def compute_hrv(ibis: np.ndarray, signal: np.ndarray, dt: float) -> Optional[HrvMetrics]:
    """RMSSD, SDNN, pNN50 from IBIs and LF/HF power from the waveform.

    Args:
        ibis: inter-beat intervals [s]; at least two are required.
        signal: filtered pulse waveform.
        dt: sample spacing [s].
    """
    ibis = np.asarray(ibis, dtype=np.float64)
    if ibis.size < 2:
        return None
    diffs = np.diff(ibis)
    rmssd = float(np.sqrt(np.mean(diffs**2)))
    sdnn = float(np.std(ibis))
    pnn50 = float(np.count_nonzero(np.abs(diffs) * 1000.0 > 50.0) / diffs.size * 100.0)

    sig = np.asarray(signal, dtype=np.float64)
    seg = min(sig.size, 256)
    ps = welch_spectrum(sig, seg)
    df = 1.0 / (dt * seg) if seg > 0 and dt > 0 else 0.0
    lf = band_power(ps, df, *LF_BAND)
    hf = band_power(ps, df, *HF_BAND)
    return HrvMetrics(rmssd, sdnn, pnn50, lf, hf)
