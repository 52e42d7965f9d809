"""
Models / session.py
Rôle:
- Projections en lecture seule de la session exposées à la couche vue
  (snapshot global, progression des révélations, état du timer).

Notes:
- Ce sont des copies : modifier un snapshot ne touche jamais l'état interne.
- `identities` n'est rempli qu'une fois la manche terminée (ROUND_ENDED).
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SessionPhase(str, Enum):
    SETUP = "SETUP"
    ROUND_IN_PROGRESS = "ROUND_IN_PROGRESS"
    ROUND_ENDED = "ROUND_ENDED"


class RevealPhase(str, Enum):
    AWAITING_REVEAL = "AWAITING_REVEAL"
    EXPOSED = "EXPOSED"
    ALL_SEEN = "ALL_SEEN"


class TimerPhase(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    EXPIRED = "EXPIRED"


class RevealProgress(BaseModel):
    """Où en est le passage de l'appareil."""
    phase: RevealPhase
    active_index: int  # joueur dont c'est le tour (== player_count une fois ALL_SEEN)
    seen_count: int
    player_count: int
    active_player: Optional[str] = None

    @property
    def all_seen(self) -> bool:
        return self.phase == RevealPhase.ALL_SEEN


class TimerSnapshot(BaseModel):
    phase: TimerPhase
    remaining_seconds: int
    duration_seconds: int
    display: str  # "m:ss" pour l'affichage


class SessionSnapshot(BaseModel):
    """Vue d'ensemble sûre de la session (aucun rôle avant la fin de manche)."""
    session_id: str
    phase: SessionPhase
    generation: int
    players: List[str] = Field(default_factory=list)
    scenario_name: Optional[str] = None
    player_count: int = 0
    impostor_count: int = 0
    requested_impostor_count: int = 0
    impostor_clamped: bool = False
    reveal: Optional[RevealProgress] = None
    timer: Optional[TimerSnapshot] = None
    identities: Optional[Dict[str, str]] = None
