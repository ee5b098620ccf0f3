"""Typed wire messages exchanged with the pipeline worker.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_serializer

from .combine import MixMode
from .pipeline import PipelineResult
from .roi import ROI, Landmark, Region
from .stabilizer import RoiSet

RGB = Tuple[float, float, float]


class _Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StartMessage(_Message):
    type: Literal["start"] = "start"
    mix: Optional[MixMode] = None


class StopMessage(_Message):
    type: Literal["stop"] = "stop"


class FrameMessage(_Message):
    type: Literal["frame"] = "frame"
    ts: float  # ms
    frame_id: int = Field(alias="frameId")
    forehead: RGB
    left_cheek: RGB = Field(alias="leftCheek")
    right_cheek: RGB = Field(alias="rightCheek")


class LandmarkPoint(_Message):
    x: float
    y: float
    z: float = 0.0


class LandmarksMessage(_Message):
    type: Literal["landmarks"] = "landmarks"
    points: List[LandmarkPoint]
    video_width: float = Field(alias="videoWidth", gt=0)
    video_height: float = Field(alias="videoHeight", gt=0)

    def landmarks(self) -> List[Landmark]:
        return [Landmark(p.x, p.y, p.z) for p in self.points]


InputMessage = Annotated[
    Union[StartMessage, StopMessage, FrameMessage, LandmarksMessage],
    Field(discriminator="type"),
]

_input_adapter: TypeAdapter = TypeAdapter(InputMessage)


def parse_message(payload: Union[str, bytes, Dict[str, Any]]):
    """Validate a JSON string or dict into one of the input messages.

    Raises pydantic.ValidationError on malformed input.
    """
    if isinstance(payload, (str, bytes)):
        payload = json.loads(payload)
    return _input_adapter.validate_python(payload)


class HrvPayload(_Message):
    rmssd: float
    sdnn: float
    pnn50: float
    lf: float
    hf: float


class SqiPayload(_Message):
    snr: float
    ac: float
    regularity: float
    score: float
    rois: Dict[str, float]
    weights: Dict[str, float]


class UpdateMessage(_Message):
    type: Literal["update"] = "update"
    hr: Optional[int] = None
    hrv: Optional[HrvPayload] = None
    confidence: float = 0.0
    signal: List[float] = Field(default_factory=list)
    sqi: Optional[SqiPayload] = None

    @classmethod
    def from_result(cls, res: PipelineResult) -> "UpdateMessage":
        return cls(
            hr=res.hr,
            hrv=HrvPayload(**res.hrv.as_dict()) if res.hrv is not None else None,
            confidence=res.confidence,
            signal=[float(v) for v in res.signal],
            sqi=SqiPayload(
                snr=res.sqi.snr,
                ac=res.sqi.ac,
                regularity=res.sqi.regularity,
                score=res.sqi.score,
                rois=dict(res.sqi.rois),
                weights=dict(res.sqi.weights),
            ),
        )


class WaveformMessage(_Message):
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    type: Literal["waveform"] = "waveform"
    data: np.ndarray  # float32, owned by the message

    @field_serializer("data")
    def _data_to_list(self, data: np.ndarray) -> List[float]:
        return data.astype(float).tolist()


class BeatMessage(_Message):
    type: Literal["beat"] = "beat"


class RoiPayload(_Message):
    x: float
    y: float
    w: float
    h: float

    @classmethod
    def from_roi(cls, roi: ROI) -> "RoiPayload":
        return cls(x=roi.x, y=roi.y, w=roi.w, h=roi.h)


class RoisMessage(_Message):
    type: Literal["rois"] = "rois"
    forehead: RoiPayload
    left_cheek: RoiPayload = Field(alias="leftCheek")
    right_cheek: RoiPayload = Field(alias="rightCheek")
    nose: Optional[RoiPayload] = None  # absent in the face-box layout
    motion_ok: bool = Field(alias="motionOK")
    drift_px: float = Field(alias="driftPx")

    @classmethod
    def from_roi_set(cls, rs: RoiSet) -> "RoisMessage":
        return cls(
            forehead=RoiPayload.from_roi(rs[Region.FOREHEAD]),
            left_cheek=RoiPayload.from_roi(rs[Region.LEFT_CHEEK]),
            right_cheek=RoiPayload.from_roi(rs[Region.RIGHT_CHEEK]),
            nose=RoiPayload.from_roi(rs[Region.NOSE]) if Region.NOSE in rs.rois else None,
            motion_ok=rs.motion_ok,
            drift_px=rs.drift_px,
        )


class ErrorMessage(_Message):
    type: Literal["error"] = "error"
    detail: str


OutputMessage = Union[UpdateMessage, WaveformMessage, BeatMessage, RoisMessage, ErrorMessage]


def to_wire(msg: BaseModel) -> Dict[str, Any]:
    """JSON-ready dict with camelCase keys."""
    return msg.model_dump(by_alias=True, mode="json")
