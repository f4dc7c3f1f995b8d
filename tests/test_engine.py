from datetime import datetime, timedelta, timezone

import pytest

from pokerclub.services.timer import engine
from pokerclub.services.timer.engine import TimerState, TimerStatus
from pokerclub.services.timer.errors import InvalidSchedule, InvalidTransition
from pokerclub.services.timer.schedule import BlindLevel, BreakLevel, Schedule, default_schedule


T0 = datetime(2026, 3, 14, 20, 0, 0, tzinfo=timezone.utc)

L0 = BlindLevel('1', 25, 50, 0, 600)
L1 = BlindLevel('2', 50, 100, 0, 600)
BREAK = BreakLevel('Break', 300)
L2 = BlindLevel('3', 100, 200, 25, 600)
TOURNAMENT = Schedule((L0, L1, BREAK, L2))


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def started(schedule: Schedule = TOURNAMENT) -> TimerState:
    return engine.start(TimerState(schedule=schedule), now=T0)


def test_idle_snapshot_shows_first_level_untouched() -> None:
    """Before start the clock reads as a full first level, not as zero remaining."""
    state = TimerState(schedule=TOURNAMENT)

    snap = engine.snapshot(state, at(10_000))

    assert snap.status is TimerStatus.IDLE
    assert snap.elapsed_seconds == 0
    assert snap.current_level_index == 0
    assert snap.current == L0
    assert snap.next == L1
    assert snap.remaining_seconds == 600


@pytest.mark.parametrize('offset, index, remaining', [
    (0, 0, 600),
    (599, 0, 1),
    (600, 1, 600),
    (1199, 1, 1),
    (1200, 2, 300),
    (1500, 3, 600),
    (1701, 3, 399),
    (2101, 3, 0),
])
def test_snapshot_walks_the_schedule(offset, index, remaining) -> None:
    snap = engine.snapshot(started(), at(offset))

    assert snap.current_level_index == index
    assert snap.current == TOURNAMENT[index]
    assert snap.remaining_seconds == remaining
    assert snap.elapsed_seconds == offset


def test_snapshot_reports_next_level_and_break() -> None:
    snap = engine.snapshot(started(), at(700))

    assert snap.current == L1
    assert snap.next == BREAK
    assert engine.snapshot(started(), at(1600)).next is None


def test_past_end_of_schedule_clamps_to_last_level() -> None:
    snap = engine.snapshot(started(), at(6 * 3600))

    assert snap.current_level_index == len(TOURNAMENT) - 1
    assert snap.remaining_seconds == 0
    assert snap.next is None
    assert snap.schedule_complete


def test_fractional_seconds_are_floored() -> None:
    snap = engine.snapshot(started(), at(599.9))

    assert snap.elapsed_seconds == 599
    assert snap.remaining_seconds == 1


def test_pause_freezes_the_clock() -> None:
    paused = engine.pause(started(), at(100))

    assert paused.status is TimerStatus.PAUSED
    assert paused.paused_at == at(100)
    assert engine.snapshot(paused, at(100)).elapsed_seconds == 100
    assert engine.snapshot(paused, at(5000)).elapsed_seconds == 100


def test_resume_accumulates_paused_time() -> None:
    state = engine.pause(started(), at(100))
    state = engine.resume(state, at(160))

    assert state.status is TimerStatus.RUNNING
    assert state.paused_at is None
    assert state.total_paused_seconds == 60
    assert engine.snapshot(state, at(200)).elapsed_seconds == 140


def test_resume_then_immediate_pause_keeps_paused_total() -> None:
    state = engine.pause(started(), at(100))
    state = engine.resume(state, at(130))
    before = state.total_paused_seconds

    state = engine.pause(state, at(130))

    assert state.total_paused_seconds == before
    assert engine.snapshot(state, at(130)).elapsed_seconds == 100


@pytest.mark.parametrize('cycles', [
    [],
    [(50, 70)],
    [(50, 70), (100, 105), (900, 1500)],
    [(10, 11), (20, 21), (30, 31), (40, 41), (50, 51)],
])
def test_elapsed_is_wall_time_minus_pauses(cycles) -> None:
    state = started()
    for pause_at, resume_at in cycles:
        state = engine.pause(state, at(pause_at))
        state = engine.resume(state, at(resume_at))

    paused_total = sum(resume_at - pause_at for pause_at, resume_at in cycles)
    read_at = 2000
    assert state.total_paused_seconds == paused_total
    assert engine.snapshot(state, at(read_at)).elapsed_seconds == read_at - paused_total


def test_long_pause_keeps_level_and_remaining() -> None:
    state = engine.pause(started(), at(599))
    state = engine.resume(state, at(599 + 3600))

    snap = engine.snapshot(state, at(599 + 3600))
    assert snap.current_level_index == 0
    assert snap.remaining_seconds == 1


def test_reset_returns_to_idle_and_keeps_schedule() -> None:
    state = engine.pause(started(), at(100))

    state = engine.reset(state, at(200))

    assert state.status is TimerStatus.IDLE
    assert state.started_at is None
    assert state.paused_at is None
    assert state.total_paused_seconds == 0
    assert state.schedule == TOURNAMENT


@pytest.mark.parametrize('transition, prepare', [
    ('pause', lambda: TimerState(schedule=TOURNAMENT)),
    ('resume', lambda: TimerState(schedule=TOURNAMENT)),
    ('resume', lambda: started()),
    ('pause', lambda: engine.pause(started(), at(10))),
    ('start', lambda: started()),
    ('start', lambda: engine.pause(started(), at(10))),
])
def test_invalid_transitions_are_rejected(transition, prepare) -> None:
    state = prepare()

    with pytest.raises(InvalidTransition) as excinfo:
        engine.apply_transition(state, transition, at(20))

    assert excinfo.value.action == transition
    assert excinfo.value.status is state.status


def test_start_after_reset_restarts_clock() -> None:
    state = engine.reset(engine.pause(started(), at(100)))

    state = engine.start(state, at(500))

    assert state.started_at == at(500)
    assert engine.snapshot(state, at(510)).elapsed_seconds == 10


def test_start_substitutes_default_for_empty_schedule() -> None:
    fallback = default_schedule(600, 300, 4)

    state = engine.apply_transition(TimerState(), 'start', T0, default_schedule=fallback)

    assert state.schedule == fallback
    assert state.status is TimerStatus.RUNNING


def test_start_with_empty_schedule_and_no_default_fails() -> None:
    with pytest.raises(InvalidSchedule):
        engine.start(TimerState(), T0)


def test_unknown_action_is_an_invalid_transition() -> None:
    with pytest.raises(InvalidTransition):
        engine.apply_transition(started(), 'rewind', T0)


def test_replace_schedule_keeps_elapsed_and_reclassifies() -> None:
    state = started()
    shorter_levels = Schedule((BlindLevel('1', 10, 20, 0, 300), BlindLevel('2', 20, 40, 0, 300), L2))

    replaced = engine.replace_schedule(state, shorter_levels)
    snap = engine.snapshot(replaced, at(700))

    assert replaced.started_at == state.started_at
    assert snap.elapsed_seconds == 700
    assert snap.current_level_index == 2
    assert snap.remaining_seconds == 500


def test_replace_schedule_shorter_than_elapsed_jumps_to_end() -> None:
    replaced = engine.replace_schedule(started(), Schedule((BlindLevel('1', 10, 20, 0, 60),)))

    snap = engine.snapshot(replaced, at(700))
    assert snap.current_level_index == 0
    assert snap.remaining_seconds == 0
    assert snap.schedule_complete


def test_replace_schedule_validates() -> None:
    with pytest.raises(InvalidSchedule):
        engine.replace_schedule(started(), Schedule())


def test_snapshot_of_malformed_schedule_fails() -> None:
    state = TimerState(schedule=Schedule((BlindLevel('1', 10, 20, 0, 0),)))

    with pytest.raises(InvalidSchedule):
        engine.snapshot(state, T0)


@pytest.mark.parametrize('kwargs', [
    {'status': TimerStatus.PAUSED, 'started_at': T0},
    {'status': TimerStatus.RUNNING},
    {'status': TimerStatus.IDLE, 'started_at': T0},
    {'status': TimerStatus.RUNNING, 'started_at': T0, 'paused_at': T0},
    {'total_paused_seconds': -1},
])
def test_timer_state_invariants(kwargs) -> None:
    with pytest.raises(ValueError):
        TimerState(schedule=TOURNAMENT, **kwargs)


def test_status_accepts_stored_strings() -> None:
    state = TimerState(status='running', started_at=T0, schedule=TOURNAMENT)

    assert state.status is TimerStatus.RUNNING
