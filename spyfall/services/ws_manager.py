# spyfall/services/ws_manager.py
"""
Service: ws_manager.py
- Mapping session_id -> sockets ET socket -> session_id (abonnement de la vue locale).
- Snapshots immuables pour éviter "set changed size during iteration".
- Encodage des payloads avec orjson.
- Admin: stats().
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, Set

import orjson
from starlette.websockets import WebSocket, WebSocketState

logger = logging.getLogger(__name__)


@dataclass
class WSManager:
    _lock: RLock = field(default_factory=RLock, init=False, repr=False)
    # session_id -> set(WebSocket)
    clients_by_session: Dict[str, Set[WebSocket]] = field(default_factory=dict)
    # reverse map: socket -> session_id
    ws_to_session: Dict[WebSocket, str] = field(default_factory=dict)

    async def connect(self, ws: WebSocket, session_id: str) -> None:
        """Accepte la connexion WS et l'abonne au flux de la session."""
        await ws.accept()
        with self._lock:
            self.clients_by_session.setdefault(session_id, set()).add(ws)
            self.ws_to_session[ws] = session_id

    def _unlink(self, ws: WebSocket) -> None:
        with self._lock:
            sid = self.ws_to_session.pop(ws, None)
            if sid:
                bucket = self.clients_by_session.get(sid)
                if bucket and ws in bucket:
                    bucket.discard(ws)
                    if not bucket:
                        self.clients_by_session.pop(sid, None)

    async def disconnect(self, ws: WebSocket) -> None:
        """Ferme proprement la connexion et nettoie les registres."""
        self._unlink(ws)
        if ws.client_state != WebSocketState.CONNECTED:
            return
        try:
            await ws.close()
        except RuntimeError:
            # close déjà envoyé côté serveur
            pass

    async def _send_json_one(self, ws: WebSocket, payload: Any) -> bool:
        """Envoie à un WS; renvoie True si succès, sinon False (et retire le WS mort)."""
        try:
            await ws.send_text(orjson.dumps(payload).decode("utf-8"))
            return True
        except Exception as exc:
            logger.debug("ws send failed, dropping socket: %s", exc)
            self._unlink(ws)
            return False

    async def send_json(self, ws: WebSocket, payload: Any) -> bool:
        return await self._send_json_one(ws, payload)

    def _snapshot_session(self, session_id: str) -> list[WebSocket]:
        with self._lock:
            return list(self.clients_by_session.get(session_id, set()))

    async def broadcast(self, session_id: str, payload: Any) -> int:
        conns = self._snapshot_session(session_id)
        success = 0
        for ws in conns:
            if await self._send_json_one(ws, payload):
                success += 1
        return success

    async def broadcast_type(self, session_id: str, event_type: str, payload: Any) -> int:
        return await self.broadcast(session_id, {"type": event_type, "session_id": session_id, "payload": payload})

    # ---------- admin ----------
    def stats(self) -> dict:
        with self._lock:
            per_session = {sid: len(conns) for sid, conns in self.clients_by_session.items()}
            return {"sessions": per_session, "total": sum(per_session.values())}


WS = WSManager()

# =====================================================
# WRAPPER "fire-and-forget" (utilisable depuis les observateurs sync)
# =====================================================
_PENDING: Set[asyncio.Task] = set()


def ws_broadcast_type_safe(session_id: str, event_type: str, payload: dict) -> None:
    """
    Programme un broadcast typé sans attendre (appelé depuis un callback sync).
    - Si une loop tourne (route async, RoundClock), crée une tâche.
    - Sinon (usage hors serveur), rien n'est envoyé.
    """
    coro = WS.broadcast_type(session_id, event_type, payload)
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        coro.close()
        logger.debug("no running loop, %s event for session %s dropped", event_type, session_id)
        return
    task = loop.create_task(coro)
    _PENDING.add(task)
    task.add_done_callback(_PENDING.discard)
