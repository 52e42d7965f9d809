"""
Routes de pilotage de session (vue locale).

Objectifs :
- Création, lecture du snapshot et fermeture d'une session.
- Saisie du roster (ajout / retrait de joueurs) avant la manche.
- Cycle de manche : distribution des rôles, révélation tour par tour,
  démarrage du timer, arrêt manuel, reset.

Les erreurs "valeur" du cœur sont traduites en HTTPException :
- 422 : InsufficientRoles, InvalidRoster, InvalidConfig
- 409 : InvalidTransition, NotReady
- 404 : session ou scénario inconnu
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException
from pydantic import BaseModel, Field

from spyfall.models.scenario import Scenario, is_impostor
from spyfall.models.session import SessionSnapshot, TimerSnapshot
from spyfall.services.errors import GameError
from spyfall.services.scenario_catalog import CATALOG
from spyfall.services.round_clock import RoundClock
from spyfall.services.session_controller import SessionController
from spyfall.services.session_store import (
    create_session,
    drop_session,
    find_session_controller,
    get_round_clock,
)
from spyfall.utils.time_utils import minutes_to_seconds

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])

_STATUS_BY_KIND = {
    "insufficient_roles": 422,
    "invalid_roster": 422,
    "invalid_config": 422,
    "invalid_transition": 409,
    "not_ready": 409,
}


# ---------------------------------------------------------------------------
# Modèles Pydantic
# ---------------------------------------------------------------------------
class SessionCreatePayload(BaseModel):
    session_id: Optional[str] = Field(None, description="Identifiant imposé (sinon auto)")


class PlayerPayload(BaseModel):
    name: str = Field(..., description="Nom affiché du joueur (unique dans la session)")


class RosterResponse(BaseModel):
    session_id: str
    players: List[str]


class InlineScenario(BaseModel):
    name: str = Field(..., min_length=1)
    base_pool: List[str] = Field(default_factory=list)


class RoundStartPayload(BaseModel):
    players: Optional[List[str]] = Field(
        None, description="Roster complet (défaut: joueurs déjà ajoutés à la session)"
    )
    scenario_name: Optional[str] = Field(None, description="Scénario du catalogue")
    scenario: Optional[InlineScenario] = Field(None, description="Scénario fourni par la vue")
    random_scenario: bool = Field(False, description="Tirer un scénario au hasard dans le catalogue")
    impostor_count: Optional[int] = Field(None, description="Nombre d'espions (borné à [1, n-1])")
    duration_seconds: Optional[int] = Field(None, description="Durée du timer en secondes")
    duration_minutes: Optional[float] = Field(None, ge=0, description="Durée du timer en minutes")


class RevealResponse(BaseModel):
    session_id: str
    player: str
    role: str
    is_impostor: bool


class IdentitiesResponse(BaseModel):
    session_id: str
    identities: Dict[str, str]


# ---------------------------------------------------------------------------
# Helpers internes
# ---------------------------------------------------------------------------
def _raise_for(error: GameError) -> None:
    status = _STATUS_BY_KIND.get(error.kind, 400)
    logger.info("session error %s: %s", error.kind, error.message)
    raise HTTPException(status_code=status, detail=error.to_dict())


def _controller(session_id: str) -> SessionController:
    controller = find_session_controller(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="session_not_found")
    return controller


def _clock(session_id: str) -> RoundClock:
    clock = get_round_clock(session_id)
    if clock is None:
        raise HTTPException(status_code=404, detail="session_not_found")
    return clock


def _resolve_duration(payload: RoundStartPayload) -> Optional[int]:
    if payload.duration_seconds is not None:
        return payload.duration_seconds
    if payload.duration_minutes is not None:
        return minutes_to_seconds(payload.duration_minutes)
    return None


def _resolve_scenario(payload: RoundStartPayload) -> Scenario:
    if payload.scenario is not None:
        return Scenario(name=payload.scenario.name, base_pool=payload.scenario.base_pool)
    if payload.scenario_name:
        scenario = CATALOG.get(payload.scenario_name)
        if scenario is None:
            raise HTTPException(status_code=404, detail="scenario_not_found")
        return scenario
    raise HTTPException(status_code=422, detail="scenario_required")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.post("", response_model=SessionSnapshot)
async def session_create(
    payload: SessionCreatePayload = Body(default_factory=SessionCreatePayload),
) -> SessionSnapshot:
    """Crée une session vide (phase SETUP)."""
    controller = create_session(payload.session_id)
    return controller.snapshot()


@router.get("/{session_id}", response_model=SessionSnapshot)
async def session_state(session_id: str) -> SessionSnapshot:
    """Snapshot sûr : aucun rôle n'y figure avant la fin de manche."""
    return _controller(session_id).snapshot()


@router.post("/{session_id}/players", response_model=RosterResponse)
async def session_add_player(session_id: str, payload: PlayerPayload) -> RosterResponse:
    controller = _controller(session_id)
    result = controller.add_player(payload.name)
    if isinstance(result, GameError):
        _raise_for(result)
    return RosterResponse(session_id=session_id, players=result)


@router.delete("/{session_id}/players/{name}", response_model=RosterResponse)
async def session_remove_player(session_id: str, name: str) -> RosterResponse:
    controller = _controller(session_id)
    result = controller.remove_player(name)
    if isinstance(result, GameError):
        _raise_for(result)
    return RosterResponse(session_id=session_id, players=result)


@router.post("/{session_id}/round/start", response_model=SessionSnapshot)
async def session_round_start(session_id: str, payload: RoundStartPayload) -> SessionSnapshot:
    """Distribue les rôles (scénario choisi, fourni ou tiré au hasard) et ouvre la manche."""
    controller = _controller(session_id)
    duration = _resolve_duration(payload)

    if payload.random_scenario:
        result = controller.start_random_round(CATALOG, payload.players, payload.impostor_count, duration)
    else:
        scenario = _resolve_scenario(payload)
        result = controller.start_round(payload.players, scenario, payload.impostor_count, duration)

    if isinstance(result, GameError):
        _raise_for(result)
    logger.info(
        "round started (session=%s, scenario=%s, players=%d)",
        session_id, result.scenario_name, result.player_count,
    )
    return result


@router.post("/{session_id}/reveal", response_model=RevealResponse)
async def session_reveal(session_id: str) -> RevealResponse:
    """Affiche le rôle du joueur dont c'est le tour (une seule fois)."""
    controller = _controller(session_id)
    result = controller.reveal_turn()
    if isinstance(result, GameError):
        _raise_for(result)
    player, role = result
    return RevealResponse(
        session_id=session_id,
        player=player,
        role=role,
        is_impostor=is_impostor(role, controller.impostor_label),
    )


@router.post("/{session_id}/advance", response_model=SessionSnapshot)
async def session_advance(session_id: str) -> SessionSnapshot:
    """Le joueur a vu son rôle : masque et passe au suivant."""
    result = _controller(session_id).acknowledge_and_advance()
    if isinstance(result, GameError):
        _raise_for(result)
    return result


@router.post("/{session_id}/timer/start", response_model=TimerSnapshot)
async def session_timer_start(session_id: str) -> TimerSnapshot:
    """Démarre le compte à rebours (uniquement après le dernier joueur)."""
    controller = _controller(session_id)
    error = await _clock(session_id).start()
    if error is not None:
        _raise_for(error)
    return controller.timer_snapshot()


@router.post("/{session_id}/round/terminate", response_model=IdentitiesResponse)
async def session_round_terminate(session_id: str) -> IdentitiesResponse:
    """Arrêt manuel : fige et révèle la carte joueur → rôle."""
    controller = _controller(session_id)
    await _clock(session_id).stop()
    result = controller.terminate_round()
    if isinstance(result, GameError):
        _raise_for(result)
    return IdentitiesResponse(session_id=session_id, identities=result)


@router.post("/{session_id}/reset", response_model=SessionSnapshot)
async def session_reset(session_id: str) -> SessionSnapshot:
    """Retour à l'écran d'accueil : roster, rôles et timer effacés."""
    controller = _controller(session_id)
    await _clock(session_id).stop()
    controller.reset()
    return controller.snapshot()


@router.delete("/{session_id}")
async def session_delete(session_id: str) -> Dict[str, object]:
    """Ferme la session : boucle de ticks arrêtée, session retirée du registre."""
    _controller(session_id)
    await _clock(session_id).stop()
    if not drop_session(session_id):
        raise HTTPException(status_code=404, detail="session_not_found")
    return {"ok": True, "session_id": session_id}
