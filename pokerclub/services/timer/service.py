"""Database binding for the tournament clock.

Reads fetch one ``game_timer`` row and derive a snapshot from it. Writes go
through :func:`_mutate`, a compare-and-set on the row's ``version`` column:
the transition is computed against the state that was read and only stored
if nobody else wrote in between, otherwise the row is re-read and the
transition re-validated. Two racing ``pause`` calls therefore resolve to one
success and one InvalidTransition.
"""
import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError

from pokerclub import db
from pokerclub.models import Game, GameTimer
from . import engine
from .engine import TimerSnapshot, TimerState, TimerStatus
from .errors import InvalidTransition, NotFound, PreconditionFailed, TimerConflict
from .presets import select_preset
from .schedule import Schedule, default_schedule, level_to_dict, parse_levels, schedule_to_list, validate


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_db(value: Optional[datetime]) -> Optional[datetime]:
    # Columns hold naive UTC
    if value is None:
        return None
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def configured_default_schedule() -> Schedule:
    cfg = current_app.config
    return default_schedule(
        int(cfg.get('TIMER_DEFAULT_LEVEL_SEC', 600)),
        int(cfg.get('TIMER_DEFAULT_BREAK_SEC', 600)),
        int(cfg.get('TIMER_DEFAULT_BREAK_AFTER', 4)),
    )


def _get_game(game_id: int) -> Game:
    game = Game.query.filter_by(id=game_id).first()
    if not game:
        raise NotFound(f'Game {game_id} not found')
    return game


def get_or_create_timer(game_id: int) -> GameTimer:
    """Fetch the game's timer row, creating an idle one on first access."""
    game = _get_game(game_id)
    timer = GameTimer.query.filter_by(game_id=game.id).populate_existing().first()
    if timer:
        return timer

    timer = GameTimer(
        game_id=game.id,
        status=TimerStatus.IDLE.value,
        total_paused_seconds=0,
        schedule=json.dumps(schedule_to_list(configured_default_schedule())),
        version=1,
    )
    db.session.add(timer)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent first read created the row
        db.session.rollback()
        return GameTimer.query.filter_by(game_id=game.id).populate_existing().first()
    current_app.logger.info(f"[timer-create] game={game.id} levels={len(timer.schedule_list)}")
    return timer


def state_from_row(timer: GameTimer) -> TimerState:
    return TimerState(
        status=TimerStatus(timer.status),
        started_at=_from_db(timer.started_at),
        paused_at=_from_db(timer.paused_at),
        total_paused_seconds=int(timer.total_paused_seconds or 0),
        schedule=parse_levels(timer.schedule_list),
    )


def _row_values(state: TimerState) -> Dict[str, Any]:
    return {
        'status': state.status.value,
        'started_at': _to_db(state.started_at),
        'paused_at': _to_db(state.paused_at),
        'total_paused_seconds': state.total_paused_seconds,
        'schedule': json.dumps(schedule_to_list(state.schedule)),
    }


def compare_and_set(timer_id: int, expected_version: int, state: TimerState) -> bool:
    """Store ``state`` only if the row is still at ``expected_version``."""
    values = _row_values(state)
    values['version'] = expected_version + 1
    values['updated_at'] = _to_db(utcnow())
    updated = (
        GameTimer.query
        .filter_by(id=timer_id, version=expected_version)
        .update(values, synchronize_session=False)
    )
    if updated:
        db.session.commit()
        return True
    db.session.rollback()
    return False


def _mutate(game_id: int, compute: Callable[[TimerState], TimerState]) -> TimerState:
    attempts = max(1, int(current_app.config.get('TIMER_CAS_ATTEMPTS', 3)))
    for attempt in range(1, attempts + 1):
        timer = get_or_create_timer(game_id)
        timer_id, version = timer.id, timer.version
        # Raises on an invalid transition for the state just read
        updated = compute(state_from_row(timer))
        if compare_and_set(timer_id, version, updated):
            return updated
        current_app.logger.warning(f"[timer-conflict] game={game_id} version={version} attempt={attempt}")
    raise TimerConflict(f'Timer for game {game_id} is being changed concurrently, try again')


def get_timer(game_id: int, now: Optional[datetime] = None) -> Tuple[TimerState, TimerSnapshot]:
    timer = get_or_create_timer(game_id)
    state = state_from_row(timer)
    return state, engine.snapshot(state, now or utcnow())


def apply_action(game_id: int, action: str, now: Optional[datetime] = None) -> Tuple[TimerState, TimerSnapshot]:
    """Apply start/pause/resume/reset to the game's timer."""
    if action not in engine.TRANSITIONS:
        raise InvalidTransition(f'Unknown timer action {action!r}', action=action)
    game = _get_game(game_id)
    if action == 'start' and not game.is_in_progress:
        raise PreconditionFailed(f'Game {game.id} is {game.status}; start the game before its timer')

    now = now or utcnow()
    fallback = configured_default_schedule() if action == 'start' else None
    state = _mutate(game.id, lambda current: engine.apply_transition(current, action, now, fallback))
    snap = engine.snapshot(state, now)
    current_app.logger.info(
        f"[timer-{action}] game={game.id} status={state.status.value} "
        f"level={snap.current_level_index} elapsed={snap.elapsed_seconds}s paused_total={state.total_paused_seconds}s"
    )
    return state, snap


def replace_schedule(game_id: int, schedule: Schedule, now: Optional[datetime] = None) -> Tuple[TimerState, TimerSnapshot]:
    """Overwrite the game's schedule; the clock keeps running against it."""
    validate(schedule)
    now = now or utcnow()
    state = _mutate(game_id, lambda current: engine.replace_schedule(current, schedule))
    snap = engine.snapshot(state, now)
    if state.status is not TimerStatus.IDLE and snap.schedule_complete:
        current_app.logger.warning(
            f"[timer-schedule] game={game_id} levels={len(schedule)} "
            f"elapsed={snap.elapsed_seconds}s beyond schedule ({snap.schedule_seconds}s)"
        )
    else:
        current_app.logger.info(
            f"[timer-schedule] game={game_id} levels={len(schedule)} level={snap.current_level_index}"
        )
    return state, snap


def replace_schedule_from_levels(game_id: int, raw_levels: Any, now: Optional[datetime] = None) -> Tuple[TimerState, TimerSnapshot]:
    return replace_schedule(game_id, parse_levels(raw_levels), now)


def apply_preset(game_id: int, index: int, now: Optional[datetime] = None) -> Tuple[TimerState, TimerSnapshot]:
    # Fail on an unknown game before looking at presets
    _get_game(game_id)
    name, schedule = select_preset(index)
    current_app.logger.info(f"[timer-preset] game={game_id} preset={index} name={name!r}")
    return replace_schedule(game_id, schedule, now)


def snapshot_to_dict(game_id: int, state: TimerState, snap: TimerSnapshot, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        'game_id': game_id,
        'status': snap.status.value,
        'current_level_index': snap.current_level_index,
        'current': level_to_dict(snap.current),
        'next': level_to_dict(snap.next) if snap.next else None,
        'remaining_seconds': snap.remaining_seconds,
        'elapsed_seconds': snap.elapsed_seconds,
        'schedule_seconds': snap.schedule_seconds,
        'schedule_complete': snap.schedule_complete,
        'started_at': _iso(state.started_at),
        'paused_at': _iso(state.paused_at),
        'total_paused_seconds': state.total_paused_seconds,
        'schedule': schedule_to_list(state.schedule),
        'server_time': _iso(now or utcnow()),
    }
