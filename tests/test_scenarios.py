import random

from spyfall.models.scenario import Scenario, clean_pool, is_impostor
from spyfall.services.scenario_catalog import CATALOG, ScenarioCatalog


def test_record_strips_impostor_and_duplicates():
    scenario = Scenario.from_record({"name": "Banca", "roles": ["Cassiere", " spia ", "", "Cassiere", "Guardia", "Spia"]})
    assert scenario.name == "Banca"
    assert scenario.base_pool == ("Cassiere", "Guardia")
    assert scenario.size == 2


def test_base_pool_accepts_comma_string():
    scenario = Scenario(name="Scuola", base_pool="Preside, Studente ,Bidello")
    assert scenario.base_pool == ("Preside", "Studente", "Bidello")


def test_is_impostor_is_case_insensitive():
    assert is_impostor("SPIA")
    assert is_impostor("Spy", impostor_label="spy")
    assert not is_impostor("Cuoco")
    assert clean_pool(["Spy", "Agent"], impostor_label="Spy") == ("Agent",)


def test_default_catalog():
    names = [s.name for s in CATALOG]
    assert names == ["Ristorante", "Aeroporto"]
    assert CATALOG.get("ristorante").base_pool == ("Cameriere", "Cuoco", "Cliente", "Manager")
    assert CATALOG.get("Luna") is None
    assert CATALOG.at(1).name == "Aeroporto"
    assert CATALOG.at(5) is None


def test_pick_random_uses_injected_rng():
    catalog = ScenarioCatalog([{"name": "Uno", "roles": ["a"]}, {"name": "Due", "roles": ["b"]}])
    first = catalog.pick_random(random.Random(12))
    second = catalog.pick_random(random.Random(12))
    assert first == second
    assert ScenarioCatalog([]).pick_random() is None
