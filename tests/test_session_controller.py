import random
import threading

import pytest

from spyfall.models.scenario import Scenario
from spyfall.models.session import RevealPhase, SessionPhase, TimerPhase
from spyfall.services.errors import (
    InsufficientRoles,
    InvalidConfig,
    InvalidRoster,
    InvalidTransition,
    NotReady,
)
from spyfall.services.scenario_catalog import ScenarioCatalog
from spyfall.services.session_controller import SessionController

KITCHEN = Scenario(name="Cucina", base_pool=["Chef", "Waiter"])


@pytest.fixture
def controller():
    return SessionController(session_id="test", rng=random.Random(42), impostor_label="Spia")


def _reveal_everyone(ctrl):
    roles = []
    for _ in ctrl.roster():
        roles.append(ctrl.reveal_current())
        ctrl.acknowledge_and_advance()
    return roles


def test_start_round_assigns_roles(controller):
    snap = controller.start_round(["A", "B", "C"], KITCHEN, 1, 60)

    assert snap.phase == SessionPhase.ROUND_IN_PROGRESS
    assert snap.players == ["A", "B", "C"]
    assert snap.impostor_count == 1
    assert snap.identities is None
    assert snap.reveal.phase == RevealPhase.AWAITING_REVEAL
    assert snap.reveal.active_player == "A"
    assert snap.timer.phase == TimerPhase.IDLE
    assert snap.timer.remaining_seconds == 60

    roles = _reveal_everyone(controller)
    assert sorted(roles) == ["Chef", "Spia", "Waiter"]


def test_start_round_accepts_catalog_record(controller):
    record = {"name": "Ristorante", "roles": ["Cameriere", "Cuoco", "Spia"]}
    snap = controller.start_round(["A", "B", "C"], record, 1, 30)
    assert snap.scenario_name == "Ristorante"
    roles = _reveal_everyone(controller)
    assert sorted(roles) == ["Cameriere", "Cuoco", "Spia"]


def test_insufficient_roles_keeps_setup(controller):
    result = controller.start_round(["A", "B", "C", "D", "E"], KITCHEN, 1, 60)

    assert isinstance(result, InsufficientRoles)
    assert (result.required, result.available) == (4, 2)
    assert controller.phase == SessionPhase.SETUP
    assert controller.roster() == []


@pytest.mark.parametrize(
    "roster,reason",
    [(["A"], "too_few_players"), (["A", " "], "empty_name"), (["A", "A "], "duplicate_name")],
)
def test_invalid_roster(controller, roster, reason):
    result = controller.start_round(roster, KITCHEN, 1, 60)
    assert isinstance(result, InvalidRoster)
    assert result.reason == reason
    assert controller.phase == SessionPhase.SETUP


def test_negative_duration_rejected(controller):
    result = controller.start_round(["A", "B"], KITCHEN, 1, -1)
    assert isinstance(result, InvalidConfig)
    assert result.field == "duration_seconds"


def test_clamping_is_visible_in_snapshot(controller):
    snap = controller.start_round(["A", "B", "C"], KITCHEN, 5, 60)
    assert snap.impostor_count == 2
    assert snap.requested_impostor_count == 5
    assert snap.impostor_clamped is True


def test_roster_editing(controller):
    assert controller.add_player("  Anna ") == ["Anna"]
    assert isinstance(controller.add_player("Anna"), InvalidRoster)
    assert isinstance(controller.add_player("   "), InvalidRoster)
    controller.add_player("Bruno")
    controller.add_player("Carla")
    assert controller.remove_player("Bruno") == ["Anna", "Carla"]
    assert isinstance(controller.remove_player("Zeno"), InvalidRoster)

    snap = controller.start_round(None, KITCHEN, 1, 10)
    assert snap.players == ["Anna", "Carla"]
    assert isinstance(controller.add_player("Dario"), InvalidTransition)


def test_start_round_twice_is_invalid(controller):
    controller.start_round(["A", "B"], KITCHEN, 1, 10)
    result = controller.start_round(["A", "B"], KITCHEN, 1, 10)
    assert isinstance(result, InvalidTransition)
    assert result.operation == "start_round"


def test_current_role_only_while_exposed(controller):
    controller.start_round(["A", "B", "C"], KITCHEN, 1, 60)
    assert controller.current_role() is None

    role = controller.reveal_current()
    assert controller.current_role() == role
    assert controller.identity_map() is None

    controller.acknowledge_and_advance()
    assert controller.current_role() is None
    assert controller.current_player() == "B"


def test_double_advance_returns_invalid_transition(controller):
    controller.start_round(["A", "B", "C"], KITCHEN, 1, 60)
    controller.reveal_current()
    controller.acknowledge_and_advance()
    before = controller.snapshot()

    result = controller.acknowledge_and_advance()

    assert isinstance(result, InvalidTransition)
    assert controller.snapshot() == before


def test_reveal_turn_pairs_player_and_role(controller):
    controller.start_round(["A", "B", "C"], KITCHEN, 1, 60)
    assigned = {}
    for expected in ["A", "B", "C"]:
        player, role = controller.reveal_turn()
        assert player == expected
        assert controller.current_role() == role
        assert isinstance(controller.reveal_turn(), InvalidTransition)
        assigned[player] = role
        controller.acknowledge_and_advance()

    assert assigned == controller.end_round()


def test_reveal_outside_round_is_invalid(controller):
    assert isinstance(controller.reveal_turn(), InvalidTransition)
    assert isinstance(controller.reveal_current(), InvalidTransition)
    assert isinstance(controller.acknowledge_and_advance(), InvalidTransition)


def test_timer_locked_until_last_advance(controller):
    ticks, ended = [], []
    controller.on_tick(ticks.append)
    controller.on_round_ended(ended.append)
    controller.start_round(["A", "B", "C"], KITCHEN, 1, 3)

    for _ in range(2):
        controller.reveal_current()
        controller.acknowledge_and_advance()
    controller.reveal_current()
    assert isinstance(controller.start_timer(), NotReady)
    controller.acknowledge_and_advance()

    assert controller.start_timer() is None
    for _ in range(6):
        controller.tick()

    assert ticks == [2, 1, 0]
    assert len(ended) == 1
    assert set(ended[0]) == {"A", "B", "C"}
    assert controller.phase == SessionPhase.ROUND_ENDED
    assert controller.identity_map() == ended[0]


def test_start_timer_without_round(controller):
    result = controller.start_timer()
    assert isinstance(result, NotReady)
    assert result.reason == "no_round"


def test_terminate_round_freezes_identities(controller):
    ended = []
    controller.on_round_ended(ended.append)
    controller.start_round(["A", "B", "C"], KITCHEN, 1, 60)
    roles = _reveal_everyone(controller)
    controller.start_timer()
    controller.tick()

    identities = controller.terminate_round()

    assert identities == dict(zip(["A", "B", "C"], roles))
    assert controller.phase == SessionPhase.ROUND_ENDED
    assert controller.timer_snapshot().phase == TimerPhase.EXPIRED
    assert controller.terminate_round() == identities
    assert len(ended) == 1
    assert controller.snapshot().identities == identities


def test_terminate_round_before_timer(controller):
    controller.start_round(["A", "B"], KITCHEN, 1, 60)
    identities = controller.end_round()
    assert set(identities) == {"A", "B"}
    assert controller.phase == SessionPhase.ROUND_ENDED


def test_terminate_in_setup_is_invalid(controller):
    assert isinstance(controller.terminate_round(), InvalidTransition)


def test_reset_drops_stale_ticks(controller):
    ticks = []
    controller.on_tick(ticks.append)
    controller.start_round(["A", "B"], KITCHEN, 1, 5)
    _reveal_everyone(controller)
    controller.start_timer()
    stale_generation = controller.generation
    controller.tick(stale_generation)

    controller.reset()

    assert controller.tick(stale_generation) is None
    assert controller.tick() is None
    assert ticks == [4]
    snap = controller.snapshot()
    assert snap.phase == SessionPhase.SETUP
    assert snap.players == []
    assert snap.reveal is None
    assert snap.generation == stale_generation + 1


def test_zero_duration_round_ends_on_timer_start(controller):
    controller.start_round(["A", "B"], KITCHEN, 1, 0)
    _reveal_everyone(controller)
    assert controller.start_timer() is None
    assert controller.phase == SessionPhase.ROUND_ENDED


def test_random_round_picks_from_catalog():
    catalog = ScenarioCatalog()
    ctrl = SessionController(rng=random.Random(3))
    snap = ctrl.start_random_round(catalog, ["A", "B", "C"], 1, 60)
    assert snap.scenario_name in {"Ristorante", "Aeroporto"}


def test_random_round_with_empty_catalog():
    ctrl = SessionController()
    result = ctrl.start_random_round(ScenarioCatalog([]), ["A", "B"], 1, 60)
    assert isinstance(result, InvalidConfig)
    assert ctrl.phase == SessionPhase.SETUP


def test_same_seed_same_round():
    first = SessionController(rng=random.Random(8))
    second = SessionController(rng=random.Random(8))
    for ctrl in (first, second):
        ctrl.start_round(["A", "B", "C"], KITCHEN, 1, 10)
    assert _reveal_everyone(first) == _reveal_everyone(second)


def test_concurrent_ticks_and_reset_stay_consistent():
    ctrl = SessionController(rng=random.Random(1))
    ctrl.start_round(["A", "B"], KITCHEN, 1, 10_000)
    _reveal_everyone(ctrl)
    ctrl.start_timer()
    generation = ctrl.generation

    def _ticker():
        for _ in range(2000):
            ctrl.tick(generation)

    threads = [threading.Thread(target=_ticker) for _ in range(4)]
    for t in threads:
        t.start()
    ctrl.reset()
    for t in threads:
        t.join()

    snap = ctrl.snapshot()
    assert snap.phase == SessionPhase.SETUP
    assert snap.timer.phase == TimerPhase.IDLE
    assert snap.timer.remaining_seconds == 0
