"""
Service: reveal_sequencer.py
Rôle:
- Suivre le passage de l'appareil : à qui le tour, et si son rôle est affiché.

États:
- AWAITING_REVEAL(i) --reveal()--> EXPOSED(i)
- EXPOSED(i) --advance()--> AWAITING_REVEAL(i+1), ou ALL_SEEN si i était le dernier
- Toute autre transition renvoie `InvalidTransition` sans rien modifier.

Invariants:
- Au plus un joueur visible à la fois ; tous masqués après le dernier tour.
- L'index actif ne recule jamais : un rôle déjà passé ne peut pas être rouvert.
"""
from __future__ import annotations

from typing import List, Optional, Union

from spyfall.models.session import RevealPhase, RevealProgress
from spyfall.services.errors import InvalidTransition


class RevealSequencer:
    def __init__(self, player_count: int):
        if player_count < 1:
            raise ValueError("player_count must be >= 1")
        self.player_count = player_count
        self._index = 0
        self._phase = RevealPhase.AWAITING_REVEAL
        self._visible: List[bool] = [False] * player_count

    # === lecture ===
    @property
    def phase(self) -> RevealPhase:
        return self._phase

    @property
    def active_index(self) -> int:
        return self._index

    @property
    def all_seen(self) -> bool:
        return self._phase == RevealPhase.ALL_SEEN

    def exposed_index(self) -> Optional[int]:
        """Index actuellement visible, ou None."""
        return self._index if self._phase == RevealPhase.EXPOSED else None

    def is_visible(self, index: int) -> bool:
        return 0 <= index < self.player_count and self._visible[index]

    def progress(self, active_player: Optional[str] = None) -> RevealProgress:
        seen = self.player_count if self.all_seen else self._index
        return RevealProgress(
            phase=self._phase,
            active_index=self._index,
            seen_count=seen,
            player_count=self.player_count,
            active_player=None if self.all_seen else active_player,
        )

    def _invalid(self, operation: str) -> InvalidTransition:
        return InvalidTransition(
            operation=operation,
            state=self._phase.value,
            message=f"'{operation}' impossible en phase {self._phase.value} (index {self._index}).",
        )

    # === transitions ===
    def reveal(self) -> Union[int, InvalidTransition]:
        """Affiche le rôle du joueur courant ; renvoie son index."""
        if self._phase != RevealPhase.AWAITING_REVEAL:
            return self._invalid("reveal")
        self._visible[self._index] = True
        self._phase = RevealPhase.EXPOSED
        return self._index

    def advance(self) -> Union[bool, InvalidTransition]:
        """
        Masque le rôle courant et passe au joueur suivant.
        Renvoie True quand tout le monde a vu son rôle (le timer peut être débloqué).
        """
        if self._phase != RevealPhase.EXPOSED:
            return self._invalid("advance")
        self._visible[self._index] = False
        if self._index + 1 < self.player_count:
            self._index += 1
            self._phase = RevealPhase.AWAITING_REVEAL
            return False
        # dernier joueur : on reste sur un index "hors roster", plus rien à révéler
        self._index = self.player_count
        self._phase = RevealPhase.ALL_SEEN
        return True
