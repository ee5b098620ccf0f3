"""Tunable parameters for the streaming pipeline and ROI stabilizer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PipelineConfig:
    capacity: int = 512  # samples kept per channel
    min_samples: int = 90  # shortest buffer before any estimate
    fmin: float = 0.7  # Hz, band-pass / spectral HR band
    fmax: float = 3.0
    snr_fmin: float = 0.7  # Hz, band used by the autocovariance SNR
    snr_fmax: float = 4.0
    hr_valid_min: float = 48.0  # spectral estimates outside are discarded
    hr_valid_max: float = 180.0
    hr_min: int = 40  # physiological clamp after smoothing
    hr_max: int = 180
    hampel_window: int = 5
    hampel_k: float = 3.0
    peak_k: float = 0.6  # threshold = mean + peak_k * std
    refractory_sec: float = 0.3
    fusion_scale: float = 0.35
    kalman_q: float = 0.01
    kalman_r: float = 0.1
    waveform_len: int = 128
    default_dt: float = 1.0 / 30.0


@dataclass
class StabilizerConfig:
    landmark_alpha: float = 0.6  # EMA factor for raw landmark positions
    roi_alpha: float = 0.7  # base smoothing for ROI rectangles
    motion_threshold_px: float = 12.0
    roi_layout: str = "anchors"  # "anchors" or "faceBox"
