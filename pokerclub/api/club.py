from flask import Blueprint, jsonify, request
from pokerclub.auth import admin_required
from pokerclub.api.games import timer_error_response
from pokerclub.services.timer import presets as preset_service
from pokerclub.services.timer.errors import InvalidSchedule, TimerError

club = Blueprint('club', __name__)
club.register_error_handler(TimerError, timer_error_response)


@club.route('/timer/presets', methods=['GET'])
@admin_required
def get_presets():
    return jsonify({'presets': preset_service.list_presets()})


@club.route('/timer/presets', methods=['PUT'])
@admin_required
def save_presets():
    """
    Replaces the club's preset list. Presets are addressed by position.
    """
    data = request.get_json(silent=True) or {}
    if 'presets' not in data:
        raise InvalidSchedule('presets is required')
    saved = preset_service.save_presets(data['presets'])
    return jsonify({'message': 'Presets saved', 'presets': saved})
