"""Landmark smoothing, motion check and stabilized ROIs.

Landmarks are smoothed with an EMA before ROIs are derived. The drift of the
smoothed landmark centroid between frames (in pixels) decides whether motion
is low enough for sampling; producers should withhold frames otherwise.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .config import StabilizerConfig
from .roi import ROI, Landmark, Region, clamp_roi, layout_min_size, rois_for_layout, stabilize_roi

logger = logging.getLogger(__name__)


@dataclass
class RoiSet:
    rois: Dict[Region, ROI]
    motion_ok: bool
    drift_px: float

    def __getitem__(self, region: Region) -> ROI:
        return self.rois[region]


def _centroid(points: Sequence[Landmark]) -> tuple[float, float]:
    n = max(len(points), 1)
    return sum(p.x for p in points) / n, sum(p.y for p in points) / n


@dataclass
class LandmarkStabilizer:
    cfg: StabilizerConfig = field(default_factory=StabilizerConfig)
    _ema: Optional[List[Landmark]] = None
    _prev_rois: Optional[Dict[Region, ROI]] = None

    def reset(self) -> None:
        self._ema = None
        self._prev_rois = None

    def _smooth(self, points: Sequence[Landmark]) -> List[Landmark]:
        a = self.cfg.landmark_alpha
        if self._ema is None or len(self._ema) != len(points):
            return [Landmark(p.x, p.y, p.z) for p in points]
        return [
            Landmark(
                a * e.x + (1 - a) * p.x,
                a * e.y + (1 - a) * p.y,
                a * e.z + (1 - a) * p.z,
            )
            for e, p in zip(self._ema, points)
        ]

    def update(
        self,
        points: Sequence[Landmark],
        video_width: float,
        video_height: float,
    ) -> Optional[RoiSet]:
        """Consume one landmark set and return stabilized ROIs.

        Returns None when the landmark set lacks the anchor points.
        """
        if not points:
            return None
        smoothed = self._smooth(points)
        prev = self._ema if self._ema is not None else smoothed
        cx0, cy0 = _centroid(prev)
        cx1, cy1 = _centroid(smoothed)
        self._ema = smoothed
        drift_px = math.hypot(cx1 - cx0, cy1 - cy0) * max(video_width, video_height)

        raw = rois_for_layout(self.cfg.roi_layout, smoothed, video_width, video_height)
        if raw is None:
            return None
        min_size = layout_min_size(self.cfg.roi_layout)
        prev_rois = self._prev_rois or {}
        stab = {
            region: clamp_roi(
                stabilize_roi(prev_rois.get(region), roi, self.cfg.roi_alpha),
                video_width,
                video_height,
                min_size,
            )
            for region, roi in raw.items()
        }
        self._prev_rois = stab
        motion_ok = drift_px < self.cfg.motion_threshold_px
        if not motion_ok:
            logger.debug("Landmark drift %.1f px above threshold", drift_px)
        return RoiSet(stab, motion_ok, drift_px)
