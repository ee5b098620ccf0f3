"""Scalar Kalman smoother for frame-to-frame BPM estimates.

Random-walk model: the prediction step only inflates the variance by the
process noise; each measurement is blended in by the Kalman gain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class KalmanConfig:
    q: float = 0.01  # process noise
    r: float = 0.1  # measurement noise
    p0: float = 1.0  # initial variance


class ScalarKalman:
    def __init__(self, cfg: KalmanConfig | None = None) -> None:
        self.cfg = cfg or KalmanConfig()
        self.x: Optional[float] = None  # estimate
        self.p = self.cfg.p0  # variance
        self.k = 0.0  # last gain

    def reset(self) -> None:
        self.x = None
        self.p = self.cfg.p0
        self.k = 0.0

    def filter(self, z: float) -> float:
        if self.x is None:
            # initialize at first measurement
            self.x = float(z)
            return self.x
        self.p = self.p + self.cfg.q
        self.k = self.p / (self.p + self.cfg.r)
        self.x = self.x + self.k * (float(z) - self.x)
        self.p = (1.0 - self.k) * self.p
        return self.x

    def value(self) -> Optional[float]:
        return self.x
