"""
Service: errors.py
Rôle:
- Définir les erreurs "valeur" renvoyées par le cœur du jeu (jamais levées).

Notes:
- Chaque erreur est un modèle Pydantic figé avec un `kind` littéral, ce qui
  permet aux routes de les sérialiser telles quelles (`to_dict()`).
- Les opérations du cœur renvoient soit une valeur, soit une `GameError` :
  l'appelant teste `isinstance(result, GameError)`.
- Aucune erreur n'est rejouée automatiquement : c'est à l'appelant de corriger
  ses entrées et de relancer l'opération.
"""
from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict


class GameError(BaseModel):
    """Base commune des erreurs renvoyées comme valeurs."""
    kind: str
    message: str = ""

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class InsufficientRoles(GameError):
    """Le scénario ne contient pas assez de rôles pour la répartition demandée."""
    kind: Literal["insufficient_roles"] = "insufficient_roles"
    required: int
    available: int
    scenario_name: Optional[str] = None


class InvalidTransition(GameError):
    """Opération appelée hors de son état valide ; l'état n'a pas bougé."""
    kind: Literal["invalid_transition"] = "invalid_transition"
    operation: str
    state: str


class NotReady(GameError):
    """Timer démarré avant la fin des révélations (ou sans manche en cours)."""
    kind: Literal["not_ready"] = "not_ready"
    reason: str = "reveals_pending"


class InvalidRoster(GameError):
    """Roster invalide : trop court, nom vide ou doublon."""
    kind: Literal["invalid_roster"] = "invalid_roster"
    reason: str
    player: Optional[str] = None


class InvalidConfig(GameError):
    """Paramètre de manche hors bornes (ex: durée négative)."""
    kind: Literal["invalid_config"] = "invalid_config"
    field: str
    value: Any = None

