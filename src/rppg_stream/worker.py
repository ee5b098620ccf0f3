"""Single logical pipeline worker driven by an asyncio message queue.

Messages are handled one at a time and each is processed synchronously to
completion (no suspension inside a recompute). The inbound queue has a fixed
capacity: frames arriving while it is full are dropped, control messages wait
for space. Outputs go to an async ``emit`` callback.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from time import perf_counter
from typing import Awaitable, Callable, List, Optional

from .config import PipelineConfig, StabilizerConfig
from .messages import (
    FrameMessage,
    LandmarksMessage,
    OutputMessage,
    RoisMessage,
    StartMessage,
)
from .session import RppgSession
from .stabilizer import LandmarkStabilizer
from .telemetry import PerfStats

logger = logging.getLogger(__name__)

Emit = Callable[[OutputMessage], Awaitable[None]]


@dataclass
class WorkerStats:
    queue_drops: int = 0  # frames rejected because the inbound queue was full
    motion_drops: int = 0  # frames withheld while motion is excessive


class PipelineWorker:
    def __init__(
        self,
        emit: Emit,
        cfg: PipelineConfig | None = None,
        stabilizer_cfg: StabilizerConfig | None = None,
        queue_size: int = 8,
        gate_on_motion: bool = True,
    ) -> None:
        self.session = RppgSession(cfg)
        self.stabilizer = LandmarkStabilizer(stabilizer_cfg or StabilizerConfig())
        self.perf = PerfStats()
        self.stats = WorkerStats()
        self.gate_on_motion = gate_on_motion
        self._emit = emit
        self._queue: "asyncio.Queue" = asyncio.Queue(maxsize=max(1, int(queue_size)))
        self._motion_ok = True
        self._task: Optional[asyncio.Task] = None
        self.closed = False  # set once outputs can no longer be delivered

    async def submit(self, msg) -> bool:
        """Enqueue an input message.

        Returns False if a frame was dropped or the worker has stopped.
        """
        if self.closed:
            return False
        if isinstance(msg, FrameMessage):
            try:
                self._queue.put_nowait(msg)
            except asyncio.QueueFull:
                self.stats.queue_drops += 1
                logger.debug("Inbound queue full, dropping frame %s", msg.frame_id)
                return False
            return True
        await self._queue.put(msg)
        return True

    def handle(self, msg) -> List[OutputMessage]:
        """Process one message synchronously and return its outputs."""
        t0 = perf_counter()
        out: List[OutputMessage] = []
        if isinstance(msg, LandmarksMessage):
            rs = self.stabilizer.update(msg.landmarks(), msg.video_width, msg.video_height)
            if rs is not None:
                self._motion_ok = rs.motion_ok
                out = [RoisMessage.from_roi_set(rs)]
        elif isinstance(msg, FrameMessage) and self.gate_on_motion and not self._motion_ok:
            self.stats.motion_drops += 1
        else:
            if isinstance(msg, StartMessage):
                self.perf.reset()
                self.stabilizer.reset()
                self.stats = WorkerStats()
                self._motion_ok = True
            out = self.session.handle(msg)
        self.perf.record(msg.type, (perf_counter() - t0) * 1000.0)
        return out

    async def run(self) -> None:
        while True:
            msg = await self._queue.get()
            try:
                try:
                    outputs = self.handle(msg)
                except Exception:
                    # keep the worker alive for the next message
                    logger.exception("Failed to handle %s message", getattr(msg, "type", "?"))
                    continue
                try:
                    for o in outputs:
                        await self._emit(o)
                except Exception:
                    # the output channel is gone; nothing more can be delivered
                    logger.exception("Failed to emit output, stopping worker")
                    self._shutdown()
                    return
            finally:
                self._queue.task_done()

    def _shutdown(self) -> None:
        self.closed = True
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def drain(self) -> None:
        """Wait until every queued message has been handled and emitted."""
        if self.closed:
            return
        await self._queue.join()

    async def close(self) -> None:
        self.closed = True
        if self._task is None:
            return
        if not self._task.done():
            self._task.cancel()
        (result,) = await asyncio.gather(self._task, return_exceptions=True)
        if isinstance(result, Exception):
            logger.warning("Worker task ended with %r", result)
        self._task = None

    def diagnostics(self) -> dict:
        rec = self.session.last_result
        return {
            "state": self.session.state.value,
            "mix": self.session.mix.value,
            "buffers": self.session.buffer_lengths(),
            "session": asdict(self.session.diagnostics),
            "worker": asdict(self.stats),
            "motion_ok": self._motion_ok,
            "perf": self.perf.as_dict(),
            "hr": rec.hr if rec is not None else None,
            "sqi_status": rec.sqi.status if rec is not None else None,
        }
