"""ROI geometry built from face landmarks.

Provides two layouts:
- rois_from_face_box: rectangles proportional to the landmark bounding box
  (forehead and cheeks, minimum 4x4 px)
- rois_from_anchors: frame-proportional boxes centred on FaceMesh anchors
  (forehead, cheeks and nose, minimum 8x8 px)

Landmarks use normalized [0, 1] coordinates as produced by MediaPipe FaceMesh.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

FOREHEAD_IDX = 10
LEFT_CHEEK_IDX = 234
RIGHT_CHEEK_IDX = 454
NOSE_IDX = 1

FACE_BOX_MIN_SIZE = 4.0
ANCHOR_MIN_SIZE = 8.0


class Region(str, Enum):
    FOREHEAD = "forehead"
    LEFT_CHEEK = "leftCheek"
    RIGHT_CHEEK = "rightCheek"
    NOSE = "nose"


SAMPLED_REGIONS = (Region.FOREHEAD, Region.LEFT_CHEEK, Region.RIGHT_CHEEK)


class RoiLayout(str, Enum):
    ANCHORS = "anchors"  # forehead, cheeks and nose; min 8x8
    FACE_BOX = "faceBox"  # forehead and cheeks; min 4x4


@dataclass
class ROI:
    x: float
    y: float
    w: float
    h: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + 0.5 * self.w, self.y + 0.5 * self.h


@dataclass
class Landmark:
    x: float
    y: float
    z: float = 0.0


def clamp_roi(roi: ROI, video_width: float, video_height: float, min_size: float) -> ROI:
    """Clamp size to [min_size, frame] and keep the rectangle inside the frame."""
    w = min(max(roi.w, min_size), video_width)
    h = min(max(roi.h, min_size), video_height)
    x = max(0.0, min(video_width - w, roi.x))
    y = max(0.0, min(video_height - h, roi.y))
    return ROI(x, y, w, h)


def stabilize_roi(prev: Optional[ROI], new: ROI, alpha: float = 0.7) -> ROI:
    """Exponentially smooth a rectangle with motion-adaptive strength.

    The center displacement is normalized by a quarter of the ROI scale. Larger
    displacement lowers the effective factor so the ROI follows the face
    quickly; small jitter keeps it close to ``alpha``.

    Args:
        prev: previous stabilized rectangle, or None on the first observation.
        new: raw rectangle for the current frame.
        alpha: base weight of the previous rectangle.
    """
    if prev is None:
        return ROI(new.x, new.y, new.w, new.h)
    cx0, cy0 = prev.center
    cx1, cy1 = new.center
    disp = math.hypot(cx1 - cx0, cy1 - cy0)
    scale = max(new.w, new.h)
    norm = min(1.0, max(0.0, disp / (0.25 * scale))) if scale > 0 else 0.0
    a = min(0.9, max(0.5, alpha - 0.2 * norm))
    return ROI(
        a * prev.x + (1 - a) * new.x,
        a * prev.y + (1 - a) * new.y,
        a * prev.w + (1 - a) * new.w,
        a * prev.h + (1 - a) * new.h,
    )


def _anchors(
    landmarks: Optional[Sequence[Landmark]], indices: Sequence[int]
) -> Optional[Tuple[Sequence[Landmark], List[Landmark]]]:
    """Checked landmark list and the points at ``indices``, or None if any is missing."""
    if not landmarks or max(indices) >= len(landmarks):
        return None
    return landmarks, [landmarks[i] for i in indices]


def rois_from_face_box(
    landmarks: Optional[Sequence[Landmark]],
    video_width: float,
    video_height: float,
) -> Optional[Dict[Region, ROI]]:
    """Forehead and cheek ROIs sized relative to the face bounding box."""
    found = _anchors(landmarks, (FOREHEAD_IDX, LEFT_CHEEK_IDX, RIGHT_CHEEK_IDX))
    if found is None:
        return None
    points, pts = found
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    box_w = (max(xs) - min(xs)) * video_width
    box_h = (max(ys) - min(ys)) * video_height
    fh, lc, rc = pts
    raw = {
        Region.FOREHEAD: ROI(
            fh.x * video_width - box_w * 0.25,
            fh.y * video_height - box_h * 0.08,
            box_w * 0.5,
            box_h * 0.15,
        ),
        Region.LEFT_CHEEK: ROI(
            lc.x * video_width - box_w * 0.12,
            lc.y * video_height - box_h * 0.09,
            box_w * 0.25,
            box_h * 0.18,
        ),
        Region.RIGHT_CHEEK: ROI(
            rc.x * video_width - box_w * 0.12,
            rc.y * video_height - box_h * 0.09,
            box_w * 0.25,
            box_h * 0.18,
        ),
    }
    return {
        k: clamp_roi(v, video_width, video_height, FACE_BOX_MIN_SIZE) for k, v in raw.items()
    }


def rois_from_anchors(
    landmarks: Optional[Sequence[Landmark]],
    video_width: float,
    video_height: float,
) -> Optional[Dict[Region, ROI]]:
    """Forehead, cheek and nose ROIs with frame-proportional box sizes."""
    found = _anchors(landmarks, (FOREHEAD_IDX, LEFT_CHEEK_IDX, RIGHT_CHEEK_IDX, NOSE_IDX))
    if found is None:
        return None
    fh, lc, rc, ns = found[1]
    bw = video_width * 0.35
    bh = video_height * 0.2
    raw = {
        Region.FOREHEAD: ROI(
            fh.x * video_width - bw * 0.5, fh.y * video_height - bh * 0.5, bw, bh
        ),
        Region.LEFT_CHEEK: ROI(
            lc.x * video_width - bw * 0.35, lc.y * video_height - bh * 0.45, bw * 0.7, bh * 0.9
        ),
        Region.RIGHT_CHEEK: ROI(
            rc.x * video_width - bw * 0.35, rc.y * video_height - bh * 0.45, bw * 0.7, bh * 0.9
        ),
        Region.NOSE: ROI(
            ns.x * video_width - bw * 0.25, ns.y * video_height - bh * 0.35, bw * 0.5, bh * 0.7
        ),
    }
    return {
        k: clamp_roi(v, video_width, video_height, ANCHOR_MIN_SIZE) for k, v in raw.items()
    }


def rois_for_layout(
    layout: RoiLayout | str,
    landmarks: Optional[Sequence[Landmark]],
    video_width: float,
    video_height: float,
) -> Optional[Dict[Region, ROI]]:
    """ROIs for the selected layout, or None when anchors are missing."""
    if RoiLayout(layout) is RoiLayout.FACE_BOX:
        return rois_from_face_box(landmarks, video_width, video_height)
    return rois_from_anchors(landmarks, video_width, video_height)


def layout_min_size(layout: RoiLayout | str) -> float:
    return FACE_BOX_MIN_SIZE if RoiLayout(layout) is RoiLayout.FACE_BOX else ANCHOR_MIN_SIZE
