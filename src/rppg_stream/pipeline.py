"""One full recompute over the buffered window.

combine (per region) -> fuse -> detrend -> zero-phase band-pass -> Hampel ->
{peaks, spectral HR -> Kalman} -> HRV and SQI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from .bpm import estimate_bpm
from .combine import MixMode, combine
from .config import PipelineConfig
from .fusion import fuse_regions
from .hrv import HrvMetrics, compute_hrv
from .peaks import find_peaks
from .preprocess import detrend, hampel, zero_phase_bandpass
from .quality import (
    autocorr_strength,
    beat_regularity,
    confidence_from_snr,
    snr_pulse,
    sqi_score,
    sqi_status,
)
from .roi import SAMPLED_REGIONS, Region
from .tracker import ScalarKalman


@dataclass
class SqiState:
    snr: float
    ac: float
    regularity: float
    score: float
    rois: Dict[str, float]
    weights: Dict[str, float]

    @property
    def status(self) -> str:
        return sqi_status(self.snr)


@dataclass
class SampleWindow:
    timestamps: np.ndarray  # ms
    rgb: Dict[Region, np.ndarray]  # (n, 3) per sampled region

    def __len__(self) -> int:
        return int(self.timestamps.size)


@dataclass
class PipelineResult:
    hr: Optional[int]
    hrv: Optional[HrvMetrics]
    confidence: float
    signal: np.ndarray
    sqi: SqiState
    peaks: np.ndarray  # indices into the window
    ibis: np.ndarray  # seconds
    dt: float


def sample_spacing(timestamps_ms: np.ndarray, default: float = 1.0 / 30.0) -> float:
    """Mean sample spacing [s] over the window."""
    t = np.asarray(timestamps_ms, dtype=np.float64)
    if t.size < 2:
        return default
    dt = (float(t[-1]) - float(t[0])) / (t.size - 1) / 1000.0
    return dt if dt > 0 else default


def run_pipeline(
    window: SampleWindow,
    kalman: ScalarKalman,
    mix: MixMode = MixMode.GREEN,
    cfg: PipelineConfig | None = None,
) -> PipelineResult:
    """Compute HR, HRV and SQI for the current window.

    The Kalman smoother is updated in place with a valid spectral estimate.
    """
    cfg = cfg or PipelineConfig()
    dt = sample_spacing(window.timestamps, cfg.default_dt)
    fs = 1.0 / dt

    per_region = []
    for region in SAMPLED_REGIONS:
        rgb = np.asarray(window.rgb[region], dtype=np.float64).reshape(-1, 3)
        per_region.append(combine(mix, rgb[:, 0], rgb[:, 1], rgb[:, 2]))
    fused = fuse_regions(
        *per_region, dt=dt, scale=cfg.fusion_scale, min_hz=cfg.snr_fmin, max_hz=cfg.snr_fmax
    )

    bp = zero_phase_bandpass(detrend(fused.signal), fs, cfg.fmin, cfg.fmax)
    clean = hampel(bp, cfg.hampel_window, cfg.hampel_k)

    pk = find_peaks(clean, dt, cfg.refractory_sec, cfg.peak_k)

    hr: Optional[int] = None
    raw_bpm = estimate_bpm(clean, dt, cfg.fmin, cfg.fmax, cfg.hr_valid_min, cfg.hr_valid_max)
    if raw_bpm is not None:
        smoothed = kalman.filter(raw_bpm)
        hr = int(np.clip(round(smoothed), cfg.hr_min, cfg.hr_max))

    hrv = compute_hrv(pk.ibis, clean, dt)
    snr = snr_pulse(clean, dt, cfg.snr_fmin, cfg.snr_fmax)
    ac = autocorr_strength(clean, dt, cfg.hr_valid_min, cfg.hr_valid_max)
    reg = beat_regularity(pk.ibis)
    sqi = SqiState(
        snr=snr,
        ac=ac,
        regularity=reg,
        score=sqi_score(snr, ac, reg),
        rois={r.value: s for r, s in zip(SAMPLED_REGIONS, fused.snr)},
        weights=dict(zip(("wf", "wl", "wr"), fused.weights)),
    )
    return PipelineResult(
        hr=hr,
        hrv=hrv,
        confidence=confidence_from_snr(hr, snr),
        signal=clean,
        sqi=sqi,
        peaks=pk.peaks,
        ibis=pk.ibis,
        dt=dt,
    )
