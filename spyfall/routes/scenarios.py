"""
Module routes/scenarios.py
Rôle:
- Lecture seule du catalogue de scénarios (liste + détail) pour l'écran de setup.

Notes:
- Pas d'édition ici : ajout / modification / import-export sont hors du service.
"""
from typing import List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from spyfall.services.scenario_catalog import CATALOG

router = APIRouter(prefix="/scenarios", tags=["scenarios"])


class ScenarioOut(BaseModel):
    name: str
    base_pool: List[str]
    size: int  # nombre de rôles civils (hors espion)


def _out(scenario) -> ScenarioOut:
    return ScenarioOut(name=scenario.name, base_pool=list(scenario.base_pool), size=scenario.size)


@router.get("", response_model=List[ScenarioOut])
async def list_scenarios():
    return [_out(s) for s in CATALOG]


@router.get("/{name}", response_model=ScenarioOut)
async def get_scenario(name: str):
    scenario = CATALOG.get(name)
    if scenario is None:
        raise HTTPException(status_code=404, detail="scenario_not_found")
    return _out(scenario)
