"""FastAPI service exposing the streaming rPPG pipeline over a WebSocket.

Each WebSocket connection owns an independent worker and session. Clients
send `start`, `frame`, `landmarks` and `stop` messages as JSON and receive
`update`, `waveform`, `beat` and `rois` messages pushed by the worker.
"""

from __future__ import annotations

import itertools
import logging
import os
from typing import Dict

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from . import __version__
from .config import StabilizerConfig
from .messages import ErrorMessage, OutputMessage, parse_message, to_wire
from .roi import RoiLayout
from .worker import PipelineWorker

logger = logging.getLogger(__name__)


def make_app(
    queue_size: int = 8,
    gate_on_motion: bool = True,
    roi_layout: str = "anchors",
) -> FastAPI:
    stabilizer_cfg = StabilizerConfig(roi_layout=RoiLayout(roi_layout).value)
    app = FastAPI(title="rPPG Stream Service", version=__version__)

    workers: Dict[int, PipelineWorker] = {}
    conn_ids = itertools.count(1)

    @app.get("/health")
    async def health() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.get("/metrics")
    async def get_metrics() -> dict:
        return {"connections": {str(k): w.diagnostics() for k, w in workers.items()}}

    @app.websocket("/ws")
    async def ws_pipeline(ws: WebSocket) -> None:
        await ws.accept()

        async def emit(msg: OutputMessage) -> None:
            await ws.send_json(to_wire(msg))

        worker = PipelineWorker(
            emit,
            stabilizer_cfg=stabilizer_cfg,
            queue_size=queue_size,
            gate_on_motion=gate_on_motion,
        )
        cid = next(conn_ids)
        workers[cid] = worker
        worker.start()
        logger.info("Connection %d opened", cid)
        try:
            while True:
                event = await ws.receive()
                if event["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(event.get("code", 1000))
                text = event.get("text")
                if text is None:
                    logger.warning("Connection %d: non-text frame rejected", cid)
                    await ws.send_json(to_wire(ErrorMessage(detail="expected a text frame")))
                    continue
                try:
                    msg = parse_message(text)
                except (ValidationError, ValueError) as exc:
                    logger.warning("Connection %d: invalid message: %s", cid, exc)
                    await ws.send_json(to_wire(ErrorMessage(detail=str(exc))))
                    continue
                if not await worker.submit(msg) and worker.closed:
                    logger.info("Connection %d: worker stopped", cid)
                    break
        except WebSocketDisconnect:
            logger.info("Connection %d closed", cid)
        finally:
            workers.pop(cid, None)
            await worker.close()

    return app


app = make_app(roi_layout=os.environ.get("RPPG_ROI_LAYOUT", "anchors"))


def main() -> None:  # pragma: no cover - manual run helper
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    host = os.environ.get("RPPG_HOST", "127.0.0.1")
    port = int(os.environ.get("RPPG_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":  # pragma: no cover
    main()
