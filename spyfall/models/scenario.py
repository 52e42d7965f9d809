"""
Models / scenario.py
Rôle:
- Définir un scénario jouable : un nom + le pool ordonné des rôles "civils".

Notes:
- Le modèle est figé (frozen) et le pool est un tuple : le cœur n'emprunte
  qu'une copie en lecture seule pour la durée d'une manche.
- Les fiches du catalogue contiennent souvent l'étiquette de l'espion dans
  leurs rôles ; `from_record` la retire (insensible à la casse), ainsi que
  les entrées vides et les doublons (ordre conservé).
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spyfall.config.settings import settings


def is_impostor(label: Optional[str], impostor_label: Optional[str] = None) -> bool:
    """Vrai si `label` est l'étiquette d'imposteur (comparaison insensible à la casse)."""
    target = (impostor_label or settings.IMPOSTOR_LABEL).strip().lower()
    return (label or "").strip().lower() == target


def clean_pool(roles: Iterable[Any], impostor_label: Optional[str] = None) -> Tuple[str, ...]:
    """Normalise une liste de rôles: trim, sans vide, sans espion, sans doublon."""
    seen = set()
    pool = []
    for raw in roles:
        role = str(raw).strip()
        if not role or is_impostor(role, impostor_label):
            continue
        if role in seen:
            continue
        seen.add(role)
        pool.append(role)
    return tuple(pool)


class Scenario(BaseModel):
    """Scénario en lecture seule: `name` + `base_pool` (aucune entrée d'espion)."""
    name: str = Field(min_length=1)
    base_pool: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    @field_validator("base_pool", mode="before")
    @classmethod
    def _normalize_pool(cls, value: Any) -> Tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        return clean_pool(value)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Scenario":
        """Construit un scénario depuis une fiche `{name, roles}` ou `{name, base_pool}`."""
        roles = record.get("base_pool")
        if roles is None:
            roles = record.get("roles") or []
        return cls(name=str(record.get("name", "")).strip(), base_pool=roles)

    @property
    def size(self) -> int:
        return len(self.base_pool)
