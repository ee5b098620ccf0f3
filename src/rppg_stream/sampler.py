"""Skin-gated mean RGB sampling inside ROI rectangles."""

from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from .roi import ROI, SAMPLED_REGIONS, Region

Y_MIN, Y_MAX = 10, 245  # exclusive
CB_MIN, CB_MAX = 77, 127  # inclusive
CR_MIN, CR_MAX = 133, 173


def _as_rgb_u8(frame: np.ndarray) -> np.ndarray:
    if frame.ndim != 3 or frame.shape[2] != 3:
        raise ValueError("frame must be HxWx3 array")
    if frame.dtype != np.uint8:
        frame = np.clip(frame, 0, 255).astype(np.uint8)
    return frame


def skin_mask(patch_rgb: np.ndarray) -> np.ndarray:
    """Boolean mask of pixels that pass the broad YCbCr skin-tone gate.

    Args:
        patch_rgb: HxWx3 uint8 array in RGB order.
    """
    import cv2  # local import

    patch = np.ascontiguousarray(_as_rgb_u8(patch_rgb))
    ycrcb = cv2.cvtColor(patch, cv2.COLOR_RGB2YCrCb)
    y = ycrcb[..., 0]
    cr = ycrcb[..., 1]
    cb = ycrcb[..., 2]
    return (
        (y > Y_MIN)
        & (y < Y_MAX)
        & (cb >= CB_MIN)
        & (cb <= CB_MAX)
        & (cr >= CR_MIN)
        & (cr <= CR_MAX)
    )


def sample_roi(frame_rgb: np.ndarray, roi: ROI) -> Tuple[float, float, float]:
    """Mean (R, G, B) over skin pixels inside ``roi``.

    Returns (0, 0, 0) when no pixel is admitted.
    """
    frame = _as_rgb_u8(frame_rgb)
    h, w = frame.shape[:2]
    x0 = max(0, min(w, int(np.floor(roi.x))))
    y0 = max(0, min(h, int(np.floor(roi.y))))
    x1 = max(x0, min(w, int(np.floor(roi.x + roi.w))))
    y1 = max(y0, min(h, int(np.floor(roi.y + roi.h))))
    patch = frame[y0:y1, x0:x1]
    if patch.size == 0:
        return 0.0, 0.0, 0.0
    m = skin_mask(patch)
    sums = patch[m].astype(np.float64).sum(axis=0) if np.any(m) else np.zeros(3)
    count = max(int(np.count_nonzero(m)), 1)
    r, g, b = sums / count
    return float(r), float(g), float(b)


def sample_regions(
    frame_rgb: np.ndarray, rois: Dict[Region, ROI]
) -> Dict[Region, Tuple[float, float, float]]:
    """Sample forehead and both cheeks for one frame."""
    return {region: sample_roi(frame_rgb, rois[region]) for region in SAMPLED_REGIONS}
