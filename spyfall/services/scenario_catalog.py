"""
Service: scenario_catalog.py
Rôle:
- Catalogue ordonné des scénarios jouables, en lecture seule pour le cœur.

Notes:
- Deux fiches par défaut ("Ristorante",
  "Aeroporto") ; elles listent "Spia" parmi les rôles, retiré lors de la
  construction des `Scenario`.
- Le catalogue ne renvoie que des `Scenario` figés : aucune référence mutable
  ne sort d'ici. L'édition / l'import-export relèvent d'un autre composant.
"""
from __future__ import annotations

import random
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from spyfall.models.scenario import Scenario

DEFAULT_SCENARIOS: Tuple[Dict[str, Any], ...] = (
    {"name": "Ristorante", "roles": ["Cameriere", "Cuoco", "Cliente", "Manager", "Spia"]},
    {"name": "Aeroporto", "roles": ["Pilota", "Controllore", "Passeggero", "Addetto sicurezza", "Spia"]},
)


class ScenarioCatalog:
    def __init__(self, records: Optional[Iterable[Mapping[str, Any]]] = None):
        source = DEFAULT_SCENARIOS if records is None else records
        self._scenarios: Tuple[Scenario, ...] = tuple(Scenario.from_record(r) for r in source)

    def __len__(self) -> int:
        return len(self._scenarios)

    def __iter__(self):
        return iter(self._scenarios)

    def list(self) -> List[Scenario]:
        return list(self._scenarios)

    def get(self, name: str) -> Optional[Scenario]:
        """Recherche par nom (insensible à la casse) ; None si inconnu."""
        target = (name or "").strip().lower()
        for scenario in self._scenarios:
            if scenario.name.lower() == target:
                return scenario
        return None

    def at(self, index: int) -> Optional[Scenario]:
        if 0 <= index < len(self._scenarios):
            return self._scenarios[index]
        return None

    def pick_random(self, rng: Optional[random.Random] = None) -> Optional[Scenario]:
        """Tirage uniforme d'un scénario (None si catalogue vide)."""
        if not self._scenarios:
            return None
        return (rng or random).choice(self._scenarios)


CATALOG = ScenarioCatalog()
