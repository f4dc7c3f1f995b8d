import json
from typing import Any, Dict, List, Tuple

from flask import current_app

from pokerclub import db
from pokerclub.models import TimerPreset
from .errors import InvalidSchedule, NotFound
from .schedule import Schedule, parse_levels, schedule_to_list, validate


def list_presets() -> List[Dict[str, Any]]:
    return [p.to_dict() for p in TimerPreset.query.order_by(TimerPreset.position).all()]


def save_presets(raw_presets: Any) -> List[Dict[str, Any]]:
    """Replace the stored preset list with ``raw_presets``.

    Each entry is ``{"name": str, "levels": [...]}``. A preset may be saved
    without levels while it is being drafted, but any levels it has must be
    valid. Names are not required to be unique.
    """
    if not isinstance(raw_presets, list):
        raise InvalidSchedule('Presets must be a list')

    presets = []
    for index, raw in enumerate(raw_presets):
        if not isinstance(raw, dict):
            raise InvalidSchedule(f'Preset {index + 1}: expected an object')
        name = str(raw.get('name') or '').strip() or f'Preset {index + 1}'
        schedule = parse_levels(raw.get('levels') or [])
        if len(schedule):
            try:
                validate(schedule)
            except InvalidSchedule as exc:
                raise InvalidSchedule(f'Preset {name!r}: {exc.message}') from exc
        presets.append(TimerPreset(position=index, name=name[:100], levels=json.dumps(schedule_to_list(schedule))))

    TimerPreset.query.delete()
    db.session.add_all(presets)
    db.session.commit()
    current_app.logger.info(f"[presets-save] count={len(presets)}")
    return list_presets()


def select_preset(index: int) -> Tuple[str, Schedule]:
    """Return the name and schedule of the preset at ``index``."""
    preset = TimerPreset.query.filter_by(position=index).first()
    if not preset:
        raise NotFound(f'Preset {index} not found')
    schedule = parse_levels(json.loads(preset.levels or '[]'))
    if len(schedule) == 0:
        raise InvalidSchedule(f'Preset {preset.name!r} has no levels')
    validate(schedule)
    return preset.name, schedule
