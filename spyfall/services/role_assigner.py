"""
Service: role_assigner.py
Rôle:
- Distribuer les rôles d'une manche à partir du pool d'un scénario.

Comportement:
- `impostor_count` est ramené dans [1, player_count - 1] : jamais de manche
  sans espion, jamais de manche 100% espions.
- Il faut `player_count - impostor_count` rôles civils distincts ; si le pool
  est trop petit → `InsufficientRoles` (aucune répartition partielle).
- Tirage : mélange uniforme du pool (Fisher–Yates via `rng.shuffle`), on garde
  le préfixe, on ajoute les espions, puis second mélange de la liste complète
  pour que la position des espions ne dépende pas de l'ordre du pool.
- Pas d'effet de bord ; `rng` injectable (déterministe si graine fixée).
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from spyfall.config.settings import settings
from spyfall.services.errors import InsufficientRoles, InvalidRoster


@dataclass(frozen=True)
class RoleAssignment:
    """Répartition figée d'une manche, alignée sur l'ordre du roster."""
    roles: Tuple[str, ...]
    impostor_count: int
    requested_impostor_count: int
    impostor_label: str

    @property
    def clamped(self) -> bool:
        return self.impostor_count != self.requested_impostor_count


def clamp_impostor_count(impostor_count: int, player_count: int) -> int:
    """Borne le nombre d'espions dans [1, player_count - 1]."""
    return max(1, min(int(impostor_count), player_count - 1))


def assign(
    base_pool: Sequence[str],
    player_count: int,
    impostor_count: int,
    rng: Optional[random.Random] = None,
    impostor_label: Optional[str] = None,
    scenario_name: Optional[str] = None,
) -> Union[RoleAssignment, InsufficientRoles, InvalidRoster]:
    """
    Produit une répartition de `player_count` rôles ou une erreur.

    Args:
        base_pool: rôles civils du scénario (sans espion, sans doublon).
        player_count: taille du roster (>= 2).
        impostor_count: nombre d'espions demandé (sera borné).
        rng: source aléatoire injectée (défaut: module `random`).
        impostor_label: étiquette d'espion (défaut: settings.IMPOSTOR_LABEL).
        scenario_name: reporté dans l'erreur `InsufficientRoles`.
    """
    if player_count < 2:
        return InvalidRoster(
            reason="too_few_players",
            message=f"Au moins 2 joueurs requis (reçu {player_count}).",
        )

    label = impostor_label or settings.IMPOSTOR_LABEL
    impostors = clamp_impostor_count(impostor_count, player_count)
    required = player_count - impostors
    available = len(base_pool)
    if required > available:
        return InsufficientRoles(
            required=required,
            available=available,
            scenario_name=scenario_name,
            message=f"Le scénario propose {available} rôles, il en faut {required}.",
        )

    rng = rng if rng is not None else random
    pool = list(base_pool)
    rng.shuffle(pool)  # mélange in-place sur la copie
    roles = pool[:required] + [label] * impostors
    rng.shuffle(roles)

    return RoleAssignment(
        roles=tuple(roles),
        impostor_count=impostors,
        requested_impostor_count=int(impostor_count),
        impostor_label=label,
    )
