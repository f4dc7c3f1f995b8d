"""Tournament clock engine.

Everything here is a pure function of a :class:`TimerState` and a wall-clock
``now``. Nothing ticks: the level on screen is recomputed on every read from
the start time and the accumulated paused seconds, which is what lets any
number of viewers poll concurrently and lets the clock survive restarts.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from math import floor
from typing import Callable, Dict, Optional

from .errors import InvalidTransition
from .schedule import Level, Schedule, cumulative_offsets, validate


class TimerStatus(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    PAUSED = 'paused'


@dataclass(frozen=True)
class TimerState:
    status: TimerStatus = TimerStatus.IDLE
    started_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    total_paused_seconds: int = 0
    schedule: Schedule = field(default_factory=Schedule)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'status', TimerStatus(self.status))
        if (self.paused_at is not None) != (self.status is TimerStatus.PAUSED):
            raise ValueError('paused_at must be set exactly when the timer is paused')
        if (self.started_at is not None) != (self.status is not TimerStatus.IDLE):
            raise ValueError('started_at must be set exactly when the timer is not idle')
        if self.total_paused_seconds < 0:
            raise ValueError('total_paused_seconds must not be negative')


@dataclass(frozen=True)
class TimerSnapshot:
    status: TimerStatus
    current_level_index: int
    current: Level
    next: Optional[Level]
    remaining_seconds: int
    elapsed_seconds: int
    schedule_seconds: int

    @property
    def schedule_complete(self) -> bool:
        return self.elapsed_seconds >= self.schedule_seconds


def _whole_seconds(start: datetime, end: datetime) -> int:
    return int(floor((end - start).total_seconds()))


def elapsed_seconds(state: TimerState, now: datetime) -> int:
    """Seconds the clock has actually run since start, excluding pauses."""
    if state.status is TimerStatus.IDLE:
        return 0
    end_reference = state.paused_at if state.status is TimerStatus.PAUSED else now
    return max(0, _whole_seconds(state.started_at, end_reference) - state.total_paused_seconds)


def snapshot(state: TimerState, now: datetime) -> TimerSnapshot:
    """Derive the point-in-time view of the clock.

    Past the end of the schedule the last level stays current with zero
    seconds remaining. Raises InvalidSchedule if the stored schedule is
    malformed.
    """
    validate(state.schedule)
    elapsed = elapsed_seconds(state, now)
    offsets = cumulative_offsets(state.schedule)

    index = len(offsets) - 1
    for i, (offset, level) in enumerate(offsets):
        if elapsed < offset + level.duration_seconds:
            index = i
            break

    offset, current = offsets[index]
    next_level = state.schedule[index + 1] if index + 1 < len(state.schedule) else None
    return TimerSnapshot(
        status=state.status,
        current_level_index=index,
        current=current,
        next=next_level,
        remaining_seconds=max(0, offset + current.duration_seconds - elapsed),
        elapsed_seconds=elapsed,
        schedule_seconds=state.schedule.total_seconds,
    )


def start(state: TimerState, now: datetime, default_schedule: Optional[Schedule] = None) -> TimerState:
    # Only an idle clock can be started; a live one must be reset first.
    if state.status is not TimerStatus.IDLE:
        raise InvalidTransition(
            f'Timer is already {state.status.value}; reset it before starting again',
            action='start', status=state.status,
        )
    schedule = state.schedule
    if len(schedule) == 0 and default_schedule is not None:
        schedule = default_schedule
    validate(schedule)
    return replace(
        state,
        status=TimerStatus.RUNNING,
        started_at=now,
        paused_at=None,
        total_paused_seconds=0,
        schedule=schedule,
    )


def pause(state: TimerState, now: datetime) -> TimerState:
    if state.status is not TimerStatus.RUNNING:
        raise InvalidTransition(
            f'Cannot pause a timer that is {state.status.value}', action='pause', status=state.status,
        )
    return replace(state, status=TimerStatus.PAUSED, paused_at=now)


def resume(state: TimerState, now: datetime) -> TimerState:
    if state.status is not TimerStatus.PAUSED:
        raise InvalidTransition(
            f'Cannot resume a timer that is {state.status.value}', action='resume', status=state.status,
        )
    paused_for = max(0, _whole_seconds(state.paused_at, now))
    return replace(
        state,
        status=TimerStatus.RUNNING,
        paused_at=None,
        total_paused_seconds=state.total_paused_seconds + paused_for,
    )


def reset(state: TimerState, now: Optional[datetime] = None) -> TimerState:
    return replace(
        state,
        status=TimerStatus.IDLE,
        started_at=None,
        paused_at=None,
        total_paused_seconds=0,
    )


def replace_schedule(state: TimerState, schedule: Schedule) -> TimerState:
    """Swap the schedule without touching the clock."""
    validate(schedule)
    return replace(state, schedule=schedule)


TRANSITIONS: Dict[str, Callable[..., TimerState]] = {
    'start': start,
    'pause': pause,
    'resume': resume,
    'reset': reset,
}


def apply_transition(
    state: TimerState,
    action: str,
    now: datetime,
    default_schedule: Optional[Schedule] = None,
) -> TimerState:
    transition = TRANSITIONS.get(action)
    if transition is None:
        raise InvalidTransition(f'Unknown timer action {action!r}', action=action, status=state.status)
    if transition is start:
        return start(state, now, default_schedule)
    return transition(state, now)
