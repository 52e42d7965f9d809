"""
Session store registry
======================

Expose des helpers pour récupérer le `SessionController` (et son `RoundClock`)
d'une session identifiée explicitement. Les instances vivent en mémoire
uniquement ; aucune persistance.

À la création, les observateurs du contrôleur sont branchés sur le flux
WebSocket de la session (ticks + fin de manche). Une session remplacée ou
retirée voit sa boucle de ticks annulée et ses observateurs détachés : elle ne
diffuse plus rien sur le flux de son id.
"""
from __future__ import annotations

import logging
from threading import RLock
from typing import Dict, Optional
from uuid import uuid4

from spyfall.services.round_clock import RoundClock
from spyfall.services.session_controller import SessionController
from spyfall.services.ws_manager import ws_broadcast_type_safe
from spyfall.utils.time_utils import format_time

logger = logging.getLogger(__name__)

_CONTROLLERS: Dict[str, SessionController] = {}
_CLOCKS: Dict[str, RoundClock] = {}
_LOCK = RLock()


def _is_registered(controller: SessionController) -> bool:
    with _LOCK:
        return _CONTROLLERS.get(controller.session_id) is controller


def _wire_broadcasts(controller: SessionController) -> None:
    sid = controller.session_id

    def _on_tick(remaining: int) -> None:
        if not _is_registered(controller):
            return
        ws_broadcast_type_safe(sid, "timer_tick", {"remaining_seconds": remaining, "display": format_time(remaining)})

    def _on_round_ended(identities: Dict[str, str]) -> None:
        if not _is_registered(controller):
            return
        logger.info("round ended (session=%s, players=%d)", sid, len(identities))
        ws_broadcast_type_safe(sid, "round_ended", {"identities": identities})

    controller.on_tick(_on_tick)
    controller.on_round_ended(_on_round_ended)


def _retire(session_id: str) -> bool:
    """Désinscrit une session : boucle de ticks annulée, observateurs détachés."""
    with _LOCK:
        controller = _CONTROLLERS.pop(session_id, None)
        clock = _CLOCKS.pop(session_id, None)
    if clock is not None:
        clock.cancel()
    if controller is None:
        return False
    controller.clear_observers()
    # nouvelle génération : un tick déjà en vol est ignoré
    controller.reset()
    return True


def create_session(session_id: Optional[str] = None) -> SessionController:
    """Crée une session vide ; un id déjà inscrit remplace l'ancienne session."""
    sid = (session_id or uuid4().hex).strip() or uuid4().hex
    if _retire(sid):
        logger.info("session replaced: %s", sid)
    controller = SessionController(session_id=sid)
    _wire_broadcasts(controller)
    with _LOCK:
        _CONTROLLERS[sid] = controller
        _CLOCKS[sid] = RoundClock(controller)
        logger.info("session created: %s", sid)
        return controller


def find_session_controller(session_id: str) -> Optional[SessionController]:
    """Contrôleur inscrit pour `session_id`, ou None."""
    with _LOCK:
        return _CONTROLLERS.get(session_id)


def get_round_clock(session_id: str) -> Optional[RoundClock]:
    with _LOCK:
        return _CLOCKS.get(session_id)


def drop_session(session_id: str) -> bool:
    """Retire une session du registre ; False si l'id est inconnu."""
    dropped = _retire(session_id)
    if dropped:
        logger.info("session dropped: %s", session_id)
    return dropped


def list_session_ids() -> list[str]:
    with _LOCK:
        return list(_CONTROLLERS.keys())
