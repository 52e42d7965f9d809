"""
Service: round_timer.py
Rôle:
- Compte à rebours d'une manche, piloté par des ticks explicites.

États:
- IDLE --start(ready)--> RUNNING --tick() jusqu'à 0--> EXPIRED
- RUNNING --terminate_manually()--> EXPIRED
- * --reset(d)--> IDLE
- Pas de pause : un timer ne démarre qu'une fois par manche.

Notes:
- Le timer ne planifie rien lui-même : un ordonnanceur externe (RoundClock,
  boucle de jeu, test) appelle `tick()`.
- L'évènement terminal ("round ended") part exactement une fois par cycle.
- Les observateurs sont appelés de façon synchrone, dans l'ordre d'inscription.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Union

from spyfall.models.session import TimerPhase, TimerSnapshot
from spyfall.services.errors import InvalidTransition, NotReady
from spyfall.utils.time_utils import format_time

TickCallback = Callable[[int], None]
ExpiredCallback = Callable[[str], None]

# Raisons transmises aux observateurs de fin
EXPIRED_TIMEOUT = "timeout"
EXPIRED_MANUAL = "manual"


class RoundTimer:
    def __init__(self, duration_seconds: int = 0):
        self._duration = max(0, int(duration_seconds))
        self._remaining = self._duration
        self._phase = TimerPhase.IDLE
        self._ended_emitted = False
        self._tick_listeners: List[TickCallback] = []
        self._expired_listeners: List[ExpiredCallback] = []

    # === observateurs ===
    def on_tick(self, callback: TickCallback) -> None:
        self._tick_listeners.append(callback)

    def on_expired(self, callback: ExpiredCallback) -> None:
        self._expired_listeners.append(callback)

    # === lecture ===
    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def duration_seconds(self) -> int:
        return self._duration

    @property
    def running(self) -> bool:
        return self._phase == TimerPhase.RUNNING

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            phase=self._phase,
            remaining_seconds=self._remaining,
            duration_seconds=self._duration,
            display=format_time(self._remaining),
        )

    # === transitions ===
    def start(self, ready: bool) -> Optional[NotReady]:
        """Démarre le compte à rebours si tout le monde a vu son rôle."""
        if self._phase != TimerPhase.IDLE:
            return NotReady(reason="timer_not_idle", message=f"Timer déjà en phase {self._phase.value}.")
        if not ready:
            return NotReady(reason="reveals_pending", message="Tous les joueurs n'ont pas encore vu leur rôle.")
        self._phase = TimerPhase.RUNNING
        if self._remaining <= 0:
            self._expire(EXPIRED_TIMEOUT)
        return None

    def tick(self) -> Optional[int]:
        """Décrémente d'une seconde ; no-op (None) hors RUNNING."""
        if self._phase != TimerPhase.RUNNING or self._remaining <= 0:
            return None
        self._remaining -= 1
        for callback in list(self._tick_listeners):
            callback(self._remaining)
        if self._remaining == 0:
            self._expire(EXPIRED_TIMEOUT)
        return self._remaining

    def terminate_manually(self) -> Optional[InvalidTransition]:
        """Arrêt anticipé décidé par le meneur de jeu."""
        if self._phase != TimerPhase.RUNNING:
            return InvalidTransition(
                operation="terminate_manually",
                state=self._phase.value,
                message="Aucun timer en cours.",
            )
        self._expire(EXPIRED_MANUAL)
        return None

    def reset(self, duration_seconds: Optional[int] = None) -> None:
        """Retour en IDLE avec un temps neuf (durée précédente si non précisée)."""
        if duration_seconds is not None:
            self._duration = max(0, int(duration_seconds))
        self._remaining = self._duration
        self._phase = TimerPhase.IDLE
        self._ended_emitted = False

    def _expire(self, reason: str) -> None:
        self._phase = TimerPhase.EXPIRED
        if self._ended_emitted:
            return
        self._ended_emitted = True
        for callback in list(self._expired_listeners):
            callback(reason)
