from spyfall.models.session import TimerPhase
from spyfall.services.errors import InvalidTransition, NotReady
from spyfall.services.round_timer import EXPIRED_MANUAL, EXPIRED_TIMEOUT, RoundTimer


def _observed(timer):
    ticks, ended = [], []
    timer.on_tick(ticks.append)
    timer.on_expired(ended.append)
    return ticks, ended


def test_start_requires_ready():
    timer = RoundTimer(3)
    result = timer.start(ready=False)
    assert isinstance(result, NotReady)
    assert timer.phase == TimerPhase.IDLE


def test_countdown_expires_exactly_once():
    timer = RoundTimer(3)
    ticks, ended = _observed(timer)

    assert timer.start(ready=True) is None
    for _ in range(10):
        timer.tick()

    assert ticks == [2, 1, 0]
    assert ended == [EXPIRED_TIMEOUT]
    assert timer.phase == TimerPhase.EXPIRED
    assert timer.remaining_seconds == 0


def test_ticks_ignored_when_idle():
    timer = RoundTimer(5)
    assert timer.tick() is None
    assert timer.remaining_seconds == 5


def test_start_twice_is_rejected():
    timer = RoundTimer(5)
    timer.start(ready=True)
    result = timer.start(ready=True)
    assert isinstance(result, NotReady)
    assert result.reason == "timer_not_idle"


def test_manual_termination():
    timer = RoundTimer(60)
    ticks, ended = _observed(timer)
    timer.start(ready=True)
    timer.tick()

    assert timer.terminate_manually() is None
    assert timer.phase == TimerPhase.EXPIRED
    assert ended == [EXPIRED_MANUAL]
    assert timer.tick() is None
    assert isinstance(timer.terminate_manually(), InvalidTransition)
    assert ended == [EXPIRED_MANUAL]


def test_zero_duration_expires_on_start():
    timer = RoundTimer(0)
    ticks, ended = _observed(timer)
    assert timer.start(ready=True) is None
    assert timer.phase == TimerPhase.EXPIRED
    assert ticks == []
    assert ended == [EXPIRED_TIMEOUT]


def test_reset_returns_to_idle():
    timer = RoundTimer(2)
    ticks, ended = _observed(timer)
    timer.start(ready=True)
    timer.tick()
    timer.tick()

    timer.reset(90)
    snap = timer.snapshot()
    assert snap.phase == TimerPhase.IDLE
    assert snap.remaining_seconds == 90
    assert snap.display == "1:30"

    timer.start(ready=True)
    timer.terminate_manually()
    assert ended == [EXPIRED_TIMEOUT, EXPIRED_MANUAL]
