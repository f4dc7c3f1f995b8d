from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from pokerclub import db
from pokerclub.auth import admin_required
from pokerclub.models import Game, GAME_STATUSES
from pokerclub.services.timer import service as timer_service
from pokerclub.services.timer.errors import (
    TimerError,
    NotFound,
    InvalidTransition,
    InvalidSchedule,
    PreconditionFailed,
    TimerConflict,
)


games = Blueprint('games', __name__)

# Game lifecycle owned by this collaborator surface; the timer only reads status
_NEXT_STATUS = {
    'scheduled': 'in_progress',
    'in_progress': 'finished',
}

_ERROR_STATUS = {
    NotFound: 404,
    InvalidTransition: 409,
    TimerConflict: 409,
    InvalidSchedule: 400,
    PreconditionFailed: 400,
}


def timer_error_response(exc: TimerError):
    status = next((code for cls, code in _ERROR_STATUS.items() if isinstance(exc, cls)), 400)
    current_app.logger.info(f"[timer-error] reason={exc.reason} status={status} message={exc.message!r}")
    return jsonify({'error': exc.message, 'message': exc.message, 'reason': exc.reason}), status


games.register_error_handler(TimerError, timer_error_response)


def _timer_payload(game_id, state, snap, now):
    return jsonify(timer_service.snapshot_to_dict(game_id, state, snap, now))


@games.route('', methods=['GET'])
@login_required
def list_games():
    status = request.args.get('status')
    query = Game.query
    if status:
        query = query.filter_by(status=status)
    return jsonify([g.to_dict() for g in query.order_by(Game.created_at.desc(), Game.id.desc()).all()])


@games.route('', methods=['POST'])
@admin_required
def create_game():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Game name is required'}), 400
    new_game = Game(name=name[:100], created_by=current_user.id)
    db.session.add(new_game)
    db.session.commit()
    current_app.logger.info(f"[game-create] game={new_game.id} by={current_user.id}")
    return jsonify(new_game.to_dict()), 201


@games.route('/<int:game_id>', methods=['GET'])
@login_required
def get_game(game_id):
    game = Game.query.filter_by(id=game_id).first()
    if not game:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify(game.to_dict())


@games.route('/<int:game_id>/status', methods=['PUT'])
@admin_required
def update_game_status(game_id):
    """
    Moves a game along scheduled -> in_progress -> finished.
    """
    data = request.get_json(silent=True) or {}
    status = data.get('status')
    if status not in GAME_STATUSES:
        return jsonify({'error': f'Status must be one of {", ".join(GAME_STATUSES)}'}), 400

    game = Game.query.filter_by(id=game_id).first()
    if not game:
        return jsonify({'error': 'Game not found'}), 404
    if game.status == status:
        return jsonify(game.to_dict())
    if _NEXT_STATUS.get(game.status) != status:
        return jsonify({'error': f'Cannot move a {game.status} game to {status}'}), 400

    game.status = status
    db.session.commit()
    current_app.logger.info(f"[game-status] game={game.id} status={status}")
    return jsonify(game.to_dict())


@games.route('/<int:game_id>/timer', methods=['GET'])
@login_required
def get_timer(game_id):
    """
    Returns the clock as of now. Safe to poll from any number of viewers.
    """
    now = timer_service.utcnow()
    state, snap = timer_service.get_timer(game_id, now)
    return _timer_payload(game_id, state, snap, now)


@games.route('/<int:game_id>/timer/<any(start, pause, resume, reset):action>', methods=['PUT'])
@admin_required
def timer_action(game_id, action):
    now = timer_service.utcnow()
    state, snap = timer_service.apply_action(game_id, action, now)
    return _timer_payload(game_id, state, snap, now)


@games.route('/<int:game_id>/timer/schedule', methods=['PUT'])
@admin_required
def replace_timer_schedule(game_id):
    """
    Replaces the game's blind schedule. A running clock keeps its elapsed
    time and is re-read against the new levels.
    """
    data = request.get_json(silent=True) or {}
    levels = data.get('schedule', data.get('levels'))
    if levels is None:
        raise InvalidSchedule('schedule is required')
    now = timer_service.utcnow()
    state, snap = timer_service.replace_schedule_from_levels(game_id, levels, now)
    return _timer_payload(game_id, state, snap, now)


@games.route('/<int:game_id>/timer/preset', methods=['PUT'])
@admin_required
def apply_timer_preset(game_id):
    data = request.get_json(silent=True) or {}
    try:
        index = int(data.get('index'))
    except (TypeError, ValueError):
        return jsonify({'error': 'Preset index is required'}), 400
    now = timer_service.utcnow()
    state, snap = timer_service.apply_preset(game_id, index, now)
    return _timer_payload(game_id, state, snap, now)
