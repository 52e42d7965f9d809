"""
Service: session_controller.py
Rôle:
- Machine d'état d'une session de jeu : SETUP → ROUND_IN_PROGRESS → ROUND_ENDED.
- Compose RoleAssigner + RevealSequencer + RoundTimer ; seul point d'entrée
  pour la couche vue.

API exposée:
- add_player(name), remove_player(name), roster()
- start_round(roster, scenario, impostor_count, duration_seconds)
- start_random_round(catalog, roster, impostor_count, duration_seconds)
- reveal_current(), reveal_turn(), acknowledge_and_advance()
- start_timer(), tick(generation), on_tick(cb), on_round_ended(cb), clear_observers()
- end_round() / terminate_round(), reset()
- Projections: current_role(), identity_map(), timer_snapshot(), reveal_progress(), snapshot()

Règles:
- Les erreurs sont renvoyées comme valeurs (`GameError`), jamais levées.
- Toutes les opérations publiques sont sérialisées par un RLock : un tick ne
  peut pas s'intercaler au milieu d'un reveal/advance/reset.
- Chaque session interne porte un numéro de génération ; un tick ou une
  expiration venant d'une génération remplacée (après reset) est ignoré.
- Aucun log, aucune I/O : c'est le rôle des routes / de la vue.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from spyfall.config.settings import settings
from spyfall.models.scenario import Scenario
from spyfall.models.session import (
    RevealProgress,
    SessionPhase,
    SessionSnapshot,
    TimerSnapshot,
)
from spyfall.services.errors import (
    GameError,
    InsufficientRoles,
    InvalidConfig,
    InvalidRoster,
    InvalidTransition,
    NotReady,
)
from spyfall.services.reveal_sequencer import RevealSequencer
from spyfall.services.role_assigner import RoleAssignment, assign
from spyfall.services.round_timer import RoundTimer
from spyfall.utils.time_utils import minutes_to_seconds

TickObserver = Callable[[int], None]
RoundEndedObserver = Callable[[Dict[str, str]], None]
ScenarioLike = Union[Scenario, Mapping[str, Any]]


@dataclass
class Session:
    """État complet d'une session ; remplacé d'un bloc au reset."""
    generation: int
    phase: SessionPhase = SessionPhase.SETUP
    roster: List[str] = field(default_factory=list)
    scenario_name: Optional[str] = None
    assignment: Optional[RoleAssignment] = None
    reveal: Optional[RevealSequencer] = None
    timer: RoundTimer = field(default_factory=RoundTimer)
    identities: Optional[Dict[str, str]] = None


class SessionController:
    def __init__(
        self,
        session_id: str = "default",
        rng: Optional[random.Random] = None,
        impostor_label: Optional[str] = None,
        min_players: Optional[int] = None,
    ):
        self.session_id = session_id
        self.impostor_label = impostor_label or settings.IMPOSTOR_LABEL
        self.min_players = max(2, min_players or settings.MIN_PLAYERS)
        self._rng = rng if rng is not None else random.Random()
        self._lock = RLock()
        self._generation = 0
        self._tick_observers: List[TickObserver] = []
        self._ended_observers: List[RoundEndedObserver] = []
        self._session = self._new_session()

    # -------------------- cycle interne --------------------
    def _new_session(self) -> Session:
        self._generation += 1
        generation = self._generation
        timer = RoundTimer(0)
        timer.on_tick(lambda remaining: self._emit_tick(generation, remaining))
        timer.on_expired(lambda reason: self._handle_expired(generation))
        return Session(generation=generation, timer=timer)

    def _emit_tick(self, generation: int, remaining: int) -> None:
        if generation != self._session.generation:
            return
        for callback in list(self._tick_observers):
            callback(remaining)

    def _handle_expired(self, generation: int) -> None:
        if generation != self._session.generation:
            return
        self._finish_round(self._session)

    def _finish_round(self, sess: Session) -> None:
        if sess.phase != SessionPhase.ROUND_IN_PROGRESS or sess.assignment is None:
            return
        sess.identities = dict(zip(sess.roster, sess.assignment.roles))
        sess.phase = SessionPhase.ROUND_ENDED
        identities = dict(sess.identities)
        for callback in list(self._ended_observers):
            callback(identities)

    def _invalid(self, operation: str) -> InvalidTransition:
        phase = self._session.phase.value
        return InvalidTransition(
            operation=operation,
            state=phase,
            message=f"'{operation}' impossible en phase {phase}.",
        )

    def _validate_roster(self, names: Iterable[str]) -> Union[List[str], InvalidRoster]:
        cleaned: List[str] = []
        for raw in names:
            name = (raw or "").strip()
            if not name:
                return InvalidRoster(reason="empty_name", message="Nom de joueur vide.")
            if name in cleaned:
                return InvalidRoster(reason="duplicate_name", player=name, message=f"Joueur '{name}' déjà présent.")
            cleaned.append(name)
        if len(cleaned) < self.min_players:
            return InvalidRoster(
                reason="too_few_players",
                message=f"Au moins {self.min_players} joueurs requis (reçu {len(cleaned)}).",
            )
        return cleaned

    # -------------------- observateurs --------------------
    def on_tick(self, callback: TickObserver) -> None:
        """Observateur appelé à chaque seconde écoulée avec le temps restant (jusqu'à 0)."""
        with self._lock:
            self._tick_observers.append(callback)

    def on_round_ended(self, callback: RoundEndedObserver) -> None:
        """Observateur appelé une fois par manche avec la carte joueur → rôle."""
        with self._lock:
            self._ended_observers.append(callback)

    def clear_observers(self) -> None:
        """Détache tous les observateurs (session retirée du registre)."""
        with self._lock:
            self._tick_observers.clear()
            self._ended_observers.clear()

    # -------------------- roster --------------------
    def roster(self) -> List[str]:
        with self._lock:
            return list(self._session.roster)

    def add_player(self, name: str) -> Union[List[str], InvalidRoster, InvalidTransition]:
        """Ajoute un joueur (nom trimé, non vide, unique) ; uniquement en SETUP."""
        with self._lock:
            sess = self._session
            if sess.phase != SessionPhase.SETUP:
                return self._invalid("add_player")
            trimmed = (name or "").strip()
            if not trimmed:
                return InvalidRoster(reason="empty_name", message="Nom de joueur vide.")
            if trimmed in sess.roster:
                return InvalidRoster(reason="duplicate_name", player=trimmed, message=f"Joueur '{trimmed}' déjà présent.")
            sess.roster.append(trimmed)
            return list(sess.roster)

    def remove_player(self, name: str) -> Union[List[str], InvalidRoster, InvalidTransition]:
        with self._lock:
            sess = self._session
            if sess.phase != SessionPhase.SETUP:
                return self._invalid("remove_player")
            trimmed = (name or "").strip()
            if trimmed not in sess.roster:
                return InvalidRoster(reason="unknown_player", player=trimmed, message=f"Joueur '{trimmed}' inconnu.")
            sess.roster.remove(trimmed)
            return list(sess.roster)

    # -------------------- manche --------------------
    def start_round(
        self,
        roster: Optional[Iterable[str]],
        scenario: ScenarioLike,
        impostor_count: Optional[int] = None,
        duration_seconds: Optional[int] = None,
    ) -> Union[SessionSnapshot, GameError]:
        """
        Distribue les rôles et ouvre la manche.
        - `roster=None` → utilise le roster saisi via add_player().
        - En cas d'erreur (roster, config, InsufficientRoles) on reste en SETUP
          et l'erreur est renvoyée telle quelle.
        """
        with self._lock:
            sess = self._session
            if sess.phase != SessionPhase.SETUP:
                return self._invalid("start_round")

            names = self._validate_roster(sess.roster if roster is None else roster)
            if isinstance(names, InvalidRoster):
                return names

            if duration_seconds is None:
                duration_seconds = minutes_to_seconds(settings.DEFAULT_TIMER_MINUTES)
            if duration_seconds < 0:
                return InvalidConfig(
                    field="duration_seconds",
                    value=duration_seconds,
                    message="La durée doit être >= 0.",
                )
            if impostor_count is None:
                impostor_count = settings.DEFAULT_IMPOSTOR_COUNT

            if not isinstance(scenario, Scenario):
                try:
                    scenario = Scenario.from_record(scenario)
                except ValidationError:
                    return InvalidConfig(field="scenario", message="Fiche de scénario invalide.")

            result = assign(
                scenario.base_pool,
                len(names),
                impostor_count,
                rng=self._rng,
                impostor_label=self.impostor_label,
                scenario_name=scenario.name,
            )
            if isinstance(result, (InsufficientRoles, InvalidRoster)):
                return result

            sess.roster = names
            sess.scenario_name = scenario.name
            sess.assignment = result
            sess.reveal = RevealSequencer(len(names))
            sess.timer.reset(duration_seconds)
            sess.identities = None
            sess.phase = SessionPhase.ROUND_IN_PROGRESS
            return self.snapshot()

    def start_random_round(
        self,
        catalog,
        roster: Optional[Iterable[str]] = None,
        impostor_count: Optional[int] = None,
        duration_seconds: Optional[int] = None,
    ) -> Union[SessionSnapshot, GameError]:
        """Tire un scénario au hasard dans le catalogue puis lance la manche."""
        with self._lock:
            if self._session.phase != SessionPhase.SETUP:
                return self._invalid("start_round")
            scenario = catalog.pick_random(self._rng)
            if scenario is None:
                return InvalidConfig(field="scenario", message="Catalogue de scénarios vide.")
            return self.start_round(roster, scenario, impostor_count, duration_seconds)

    def reveal_current(self) -> Union[str, InvalidTransition]:
        """Affiche le rôle du joueur dont c'est le tour (une seule fois par tour)."""
        result = self.reveal_turn()
        if isinstance(result, InvalidTransition):
            return result
        return result[1]

    def reveal_turn(self) -> Union[Tuple[str, str], InvalidTransition]:
        """Comme reveal_current, renvoie le couple (joueur, rôle) lu sous le même verrou."""
        with self._lock:
            sess = self._session
            if sess.phase != SessionPhase.ROUND_IN_PROGRESS:
                return self._invalid("reveal")
            index = sess.reveal.reveal()
            if isinstance(index, InvalidTransition):
                return index
            return sess.roster[index], sess.assignment.roles[index]

    def acknowledge_and_advance(self) -> Union[SessionSnapshot, InvalidTransition]:
        """Le joueur a vu son rôle : on le masque et on passe l'appareil."""
        with self._lock:
            sess = self._session
            if sess.phase != SessionPhase.ROUND_IN_PROGRESS:
                return self._invalid("advance")
            result = sess.reveal.advance()
            if isinstance(result, InvalidTransition):
                return result
            return self.snapshot()

    def start_timer(self) -> Optional[NotReady]:
        """Démarre le compte à rebours ; refusé tant que tout le monde n'a pas vu son rôle."""
        with self._lock:
            sess = self._session
            if sess.phase != SessionPhase.ROUND_IN_PROGRESS:
                return NotReady(reason="no_round", message="Aucune manche en cours.")
            return sess.timer.start(ready=sess.reveal.all_seen)

    def tick(self, generation: Optional[int] = None) -> Optional[int]:
        """
        Avance le timer d'une seconde. Renvoie le temps restant, ou None si le
        tick est ignoré (génération périmée, pas de manche, timer non RUNNING).
        """
        with self._lock:
            sess = self._session
            if generation is not None and generation != sess.generation:
                return None
            if sess.phase != SessionPhase.ROUND_IN_PROGRESS:
                return None
            return sess.timer.tick()

    def end_round(self) -> Union[Dict[str, str], InvalidTransition]:
        """Fige la répartition comme carte finale (arrêt manuel ou fin du timer)."""
        with self._lock:
            sess = self._session
            if sess.phase == SessionPhase.SETUP:
                return self._invalid("end_round")
            if sess.phase == SessionPhase.ROUND_IN_PROGRESS:
                if sess.timer.running:
                    # l'expiration forcée repasse par _handle_expired → _finish_round
                    sess.timer.terminate_manually()
                else:
                    self._finish_round(sess)
            return dict(sess.identities or {})

    def terminate_round(self) -> Union[Dict[str, str], InvalidTransition]:
        return self.end_round()

    def reset(self) -> None:
        """Efface roster, répartition, révélations et timer ; retour en SETUP."""
        with self._lock:
            self._session = self._new_session()

    # -------------------- projections --------------------
    @property
    def phase(self) -> SessionPhase:
        return self._session.phase

    @property
    def generation(self) -> int:
        return self._session.generation

    def current_player(self) -> Optional[str]:
        with self._lock:
            sess = self._session
            if sess.phase != SessionPhase.ROUND_IN_PROGRESS or sess.reveal.all_seen:
                return None
            return sess.roster[sess.reveal.active_index]

    def current_role(self) -> Optional[str]:
        """Rôle du joueur courant, uniquement pendant son affichage."""
        with self._lock:
            sess = self._session
            if sess.phase != SessionPhase.ROUND_IN_PROGRESS:
                return None
            index = sess.reveal.exposed_index()
            return None if index is None else sess.assignment.roles[index]

    def identity_map(self) -> Optional[Dict[str, str]]:
        """Carte finale joueur → rôle, uniquement après la fin de manche."""
        with self._lock:
            sess = self._session
            if sess.phase != SessionPhase.ROUND_ENDED:
                return None
            return dict(sess.identities or {})

    def timer_snapshot(self) -> TimerSnapshot:
        with self._lock:
            return self._session.timer.snapshot()

    def reveal_progress(self) -> Optional[RevealProgress]:
        with self._lock:
            sess = self._session
            if sess.reveal is None:
                return None
            return sess.reveal.progress(active_player=self.current_player())

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            sess = self._session
            assignment = sess.assignment
            return SessionSnapshot(
                session_id=self.session_id,
                phase=sess.phase,
                generation=sess.generation,
                players=list(sess.roster),
                scenario_name=sess.scenario_name,
                player_count=len(sess.roster),
                impostor_count=assignment.impostor_count if assignment else 0,
                requested_impostor_count=assignment.requested_impostor_count if assignment else 0,
                impostor_clamped=assignment.clamped if assignment else False,
                reveal=self.reveal_progress(),
                timer=sess.timer.snapshot(),
                identities=self.identity_map(),
            )
