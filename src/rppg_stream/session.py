"""Streaming session: bounded per-channel buffers and the start/frame/stop cycle.

States: idle -> running (start) -> stopped (stop); start may be issued again
from any state and always begins from empty buffers and a fresh smoother.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, List, Optional, Sequence

import numpy as np

from .combine import MixMode
from .config import PipelineConfig
from .messages import (
    BeatMessage,
    FrameMessage,
    OutputMessage,
    StartMessage,
    StopMessage,
    UpdateMessage,
    WaveformMessage,
)
from .pipeline import PipelineResult, SampleWindow, run_pipeline
from .roi import SAMPLED_REGIONS, Region
from .tracker import KalmanConfig, ScalarKalman

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class ChannelBuffer:
    """Fixed-capacity FIFO; the oldest sample is dropped on overflow."""

    def __init__(self, capacity: int) -> None:
        self._buf: Deque[float] = deque(maxlen=capacity)

    def append(self, value: float) -> None:
        self._buf.append(float(value))

    def clear(self) -> None:
        self._buf.clear()

    def __len__(self) -> int:
        return len(self._buf)

    def tail(self, n: int) -> np.ndarray:
        data = np.fromiter(self._buf, dtype=np.float64, count=len(self._buf))
        return data[len(data) - n :] if n > 0 else data[:0]


class RegionBuffers:
    """R, G and B channel buffers for one region."""

    def __init__(self, capacity: int) -> None:
        self.channels = tuple(ChannelBuffer(capacity) for _ in range(3))

    def append(self, rgb: Sequence[float]) -> None:
        for ch, v in zip(self.channels, rgb):
            ch.append(v)

    def __len__(self) -> int:
        return min(len(ch) for ch in self.channels)

    def tail(self, n: int) -> np.ndarray:
        return np.stack([ch.tail(n) for ch in self.channels], axis=1)


@dataclass
class SessionDiagnostics:
    accepted_frames: int = 0
    dropped_frames: int = 0  # non-increasing frame ids
    ignored_frames: int = 0  # frames outside a running session
    recomputes: int = 0
    beats: int = 0


class RppgSession:
    def __init__(self, cfg: PipelineConfig | None = None) -> None:
        self.cfg = cfg or PipelineConfig()
        self.state = SessionState.IDLE
        self.mix = MixMode.GREEN
        self.kalman = ScalarKalman(KalmanConfig(q=self.cfg.kalman_q, r=self.cfg.kalman_r))
        self.diagnostics = SessionDiagnostics()
        self.last_result: Optional[PipelineResult] = None
        self._regions: Optional[Dict[Region, RegionBuffers]] = None
        self._timestamps: Optional[ChannelBuffer] = None
        self._last_frame_id: Optional[int] = None
        self._last_peak_ts: Optional[float] = None
        self._peak_times: Optional[np.ndarray] = None

    @property
    def running(self) -> bool:
        return self.state is SessionState.RUNNING

    def buffer_lengths(self) -> Dict[str, int]:
        if self._regions is None:
            return {r.value: 0 for r in SAMPLED_REGIONS}
        return {r.value: len(b) for r, b in self._regions.items()}

    def start(self, mix: MixMode | str | None = None) -> List[OutputMessage]:
        self.mix = MixMode(mix) if mix is not None else MixMode.GREEN
        cap = self.cfg.capacity
        self._regions = {r: RegionBuffers(cap) for r in SAMPLED_REGIONS}
        self._timestamps = ChannelBuffer(cap)
        self._last_frame_id = None
        self._last_peak_ts = None
        self._peak_times = None
        self.last_result = None
        self.kalman.reset()
        self.diagnostics = SessionDiagnostics()
        self.state = SessionState.RUNNING
        logger.info("Session started (mix=%s)", self.mix.value)
        return [UpdateMessage(hr=None, hrv=None, confidence=0.0, signal=[])]

    def push_frame(
        self,
        ts: float,
        frame_id: int,
        forehead: Sequence[float],
        left_cheek: Sequence[float],
        right_cheek: Sequence[float],
    ) -> List[OutputMessage]:
        """Append one sample set and recompute.

        Frames with a non-increasing id are dropped without any output.
        """
        if not self.running or self._regions is None or self._timestamps is None:
            self.diagnostics.ignored_frames += 1
            logger.debug("Ignoring frame %s outside a running session", frame_id)
            return []
        if self._last_frame_id is not None and frame_id <= self._last_frame_id:
            self.diagnostics.dropped_frames += 1
            logger.debug("Dropping frame %s (last accepted %s)", frame_id, self._last_frame_id)
            return []
        self._last_frame_id = frame_id
        self.diagnostics.accepted_frames += 1
        for region, rgb in zip(SAMPLED_REGIONS, (forehead, left_cheek, right_cheek)):
            self._regions[region].append(rgb)
        self._timestamps.append(ts)

        res = self.process()
        if res is None:
            return []
        out: List[OutputMessage] = [UpdateMessage.from_result(res)]
        if self._new_beat():
            out.append(BeatMessage())
        n = min(self.cfg.waveform_len, res.signal.size)
        if n > 0:
            # Fresh array; the session keeps no reference to it
            out.append(WaveformMessage(data=np.array(res.signal[-n:], dtype=np.float32)))
        return out

    def _window(self) -> Optional[SampleWindow]:
        if self._regions is None or self._timestamps is None:
            return None
        n = min(min(len(b) for b in self._regions.values()), len(self._timestamps))
        if n < self.cfg.min_samples:
            return None
        return SampleWindow(
            timestamps=self._timestamps.tail(n),
            rgb={r: b.tail(n) for r, b in self._regions.items()},
        )

    def process(self) -> Optional[PipelineResult]:
        """Recompute over the buffered window; None until enough samples exist."""
        window = self._window()
        if window is None:
            return None
        res = run_pipeline(window, self.kalman, self.mix, self.cfg)
        self._peak_times = window.timestamps[res.peaks] if res.peaks.size else None
        self.diagnostics.recomputes += 1
        self.last_result = res
        return res

    def _new_beat(self) -> bool:
        """True once per accepted heartbeat.

        The zero-phase filter keeps reshaping the newest samples, so the tail
        peak can shift by a few frames between recomputes. A peak counts as a
        new beat only when it lies at least one refractory period after the
        last reported one.
        """
        if self._peak_times is None:
            return False
        latest = float(self._peak_times[-1])
        min_gap_ms = self.cfg.refractory_sec * 1000.0
        if self._last_peak_ts is not None and latest < self._last_peak_ts + min_gap_ms:
            return False
        self._last_peak_ts = latest
        self.diagnostics.beats += 1
        return True

    def stop(self) -> List[OutputMessage]:
        """Final recompute and emission, then discard all buffered state."""
        if not self.running:
            logger.debug("Stop received while %s", self.state.value)
            return []
        res = self.process()
        update = UpdateMessage.from_result(res) if res is not None else UpdateMessage()
        logger.info(
            "Session stopped: hr=%s accepted=%d dropped=%d",
            update.hr,
            self.diagnostics.accepted_frames,
            self.diagnostics.dropped_frames,
        )
        self._regions = None
        self._timestamps = None
        self._last_frame_id = None
        self._last_peak_ts = None
        self._peak_times = None
        self.state = SessionState.STOPPED
        return [update]

    def handle(self, msg) -> List[OutputMessage]:
        """Dispatch one typed input message."""
        if isinstance(msg, FrameMessage):
            return self.push_frame(
                msg.ts, msg.frame_id, msg.forehead, msg.left_cheek, msg.right_cheek
            )
        if isinstance(msg, StartMessage):
            return self.start(msg.mix)
        if isinstance(msg, StopMessage):
            return self.stop()
        raise ValueError(f"Unsupported message for session: {type(msg).__name__}")
