# spyfall/routes/websocket.py
"""
WebSocket endpoint.

- /ws/session/{session_id} : flux de la vue locale pour une session
  (snapshot initial, puis timer_tick / round_ended poussés par le store).
- Ping/pong pour heartbeat ; {"type": "snapshot"} renvoie l'état courant.
"""
from __future__ import annotations

import logging

import orjson
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from spyfall.services.session_store import find_session_controller
from spyfall.services.ws_manager import WS

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/session/{session_id}")
async def websocket_session_stream(ws: WebSocket, session_id: str):
    controller = find_session_controller(session_id)
    if controller is None:
        await ws.close(code=4404)
        return

    await WS.connect(ws, session_id)
    await WS.send_json(ws, {
        "type": "session_state",
        "session_id": session_id,
        "payload": controller.snapshot().model_dump(mode="json"),
    })
    try:
        while True:
            raw = await ws.receive_text()
            try:
                msg = orjson.loads(raw)
            except orjson.JSONDecodeError:
                # Message non JSON -> ignore
                continue

            mtype = msg.get("type") if isinstance(msg, dict) else None
            if mtype == "ping":
                await WS.send_json(ws, {"type": "pong"})
            elif mtype == "snapshot":
                await WS.send_json(ws, {
                    "type": "session_state",
                    "session_id": session_id,
                    "payload": controller.snapshot().model_dump(mode="json"),
                })
            else:
                await WS.send_json(ws, {"type": "ack", "received": msg})
    except WebSocketDisconnect:
        logger.debug("ws client left session %s", session_id)
    finally:
        await WS.disconnect(ws)
