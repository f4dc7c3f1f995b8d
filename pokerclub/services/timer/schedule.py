"""Blind schedule model.

A schedule is an ordered, immutable sequence of levels. Each level is either
a :class:`BlindLevel` or a :class:`BreakLevel`; consumers branch on the type
and raise on anything else, so adding a new kind of level fails loudly.

The wire/persisted form of a level is the dict the club frontend edits::

    {"kind": "blind", "level": 3, "sb": 100, "bb": 200, "ante": 0, "duration_sec": 600}
    {"kind": "break", "level": "break", "name": "Dinner", "duration_sec": 900}
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Tuple, Union

from .errors import InvalidSchedule


class LevelKind(str, Enum):
    BLIND = 'blind'
    BREAK = 'break'


@dataclass(frozen=True)
class BlindLevel:
    label: str
    small_blind: int
    big_blind: int
    ante: int
    duration_seconds: int

    kind = LevelKind.BLIND


@dataclass(frozen=True)
class BreakLevel:
    label: str
    duration_seconds: int

    kind = LevelKind.BREAK


Level = Union[BlindLevel, BreakLevel]


@dataclass(frozen=True)
class Schedule:
    levels: Tuple[Level, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, 'levels', tuple(self.levels))

    def __len__(self) -> int:
        return len(self.levels)

    def __iter__(self) -> Iterator[Level]:
        return iter(self.levels)

    def __getitem__(self, index: int) -> Level:
        return self.levels[index]

    @property
    def total_seconds(self) -> int:
        return sum(level.duration_seconds for level in self.levels)


# (small blind, big blind, ante) for the built-in schedule
DEFAULT_BLINDS = [
    (25, 50, 0),
    (50, 100, 0),
    (75, 150, 0),
    (100, 200, 0),
    (150, 300, 25),
    (200, 400, 50),
    (300, 600, 75),
    (400, 800, 100),
    (500, 1000, 100),
    (600, 1200, 200),
    (800, 1600, 200),
    (1000, 2000, 300),
]


def default_schedule(level_seconds: int = 600, break_seconds: int = 600, break_after: int = 4) -> Schedule:
    """Build the club's standard structure, with a break every ``break_after`` levels."""
    levels: List[Level] = []
    for number, (sb, bb, ante) in enumerate(DEFAULT_BLINDS, start=1):
        levels.append(BlindLevel(str(number), sb, bb, ante, level_seconds))
        if break_after > 0 and number % break_after == 0 and number < len(DEFAULT_BLINDS):
            levels.append(BreakLevel('Break', break_seconds))
    return Schedule(tuple(levels))


def validate(schedule: Schedule) -> None:
    """Raise :class:`InvalidSchedule` unless ``schedule`` can drive a clock."""
    if len(schedule) == 0:
        raise InvalidSchedule('Schedule must contain at least one level')
    for index, level in enumerate(schedule):
        position = index + 1
        if isinstance(level, BlindLevel):
            for field_name in ('small_blind', 'big_blind', 'ante'):
                if getattr(level, field_name) < 0:
                    raise InvalidSchedule(f'Level {position}: {field_name} must not be negative')
        elif not isinstance(level, BreakLevel):
            raise InvalidSchedule(f'Level {position}: unknown level type {type(level).__name__}')
        if level.duration_seconds <= 0:
            raise InvalidSchedule(f'Level {position}: duration must be positive')


def cumulative_offsets(schedule: Schedule) -> List[Tuple[int, Level]]:
    """Pair each level with the elapsed second at which it begins."""
    offsets = []
    offset = 0
    for level in schedule:
        offsets.append((offset, level))
        offset += level.duration_seconds
    return offsets


def _first(raw: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return default


def _as_int(value: Any, field_name: str, position: int) -> int:
    if isinstance(value, bool):
        raise InvalidSchedule(f'Level {position}: {field_name} must be an integer')
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidSchedule(f'Level {position}: {field_name} must be an integer') from None
    if isinstance(value, float) and value != number:
        raise InvalidSchedule(f'Level {position}: {field_name} must be a whole number')
    return number


def _parse_kind(raw: Dict[str, Any], position: int) -> LevelKind:
    kind = _first(raw, 'kind', 'type')
    if kind is not None:
        try:
            return LevelKind(str(kind).lower())
        except ValueError:
            raise InvalidSchedule(f'Level {position}: unknown kind {kind!r}') from None
    label = raw.get('level')
    if isinstance(label, str) and label.strip().lower() == 'break':
        return LevelKind.BREAK
    return LevelKind.BLIND


def parse_level(raw: Any, position: int, blind_number: int) -> Level:
    if not isinstance(raw, dict):
        raise InvalidSchedule(f'Level {position}: expected an object')
    duration = _first(raw, 'duration_sec', 'duration_seconds')
    if duration is None:
        raise InvalidSchedule(f'Level {position}: duration_sec is required')
    duration = _as_int(duration, 'duration_sec', position)

    kind = _parse_kind(raw, position)
    if kind is LevelKind.BREAK:
        name = _first(raw, 'name', 'label', default='Break')
        return BreakLevel(str(name), duration)
    return BlindLevel(
        label=str(_first(raw, 'level', 'label', default=blind_number)),
        small_blind=_as_int(_first(raw, 'sb', 'small_blind', default=0), 'sb', position),
        big_blind=_as_int(_first(raw, 'bb', 'big_blind', default=0), 'bb', position),
        ante=_as_int(_first(raw, 'ante', default=0), 'ante', position),
        duration_seconds=duration,
    )


def parse_levels(raw_levels: Any) -> Schedule:
    """Decode a list of wire-format levels; the result is not yet validated."""
    if not isinstance(raw_levels, (list, tuple)):
        raise InvalidSchedule('Schedule must be a list of levels')
    levels: List[Level] = []
    blind_number = 0
    for index, raw in enumerate(raw_levels):
        level = parse_level(raw, index + 1, blind_number + 1)
        if isinstance(level, BlindLevel):
            blind_number += 1
        levels.append(level)
    return Schedule(tuple(levels))


def level_to_dict(level: Level) -> Dict[str, Any]:
    if isinstance(level, BlindLevel):
        return {
            'kind': level.kind.value,
            'level': int(level.label) if level.label.isascii() and level.label.isdigit() else level.label,
            'sb': level.small_blind,
            'bb': level.big_blind,
            'ante': level.ante,
            'duration_sec': level.duration_seconds,
        }
    if isinstance(level, BreakLevel):
        return {
            'kind': level.kind.value,
            'level': 'break',
            'name': level.label,
            'duration_sec': level.duration_seconds,
        }
    raise TypeError(f'Unknown level type {type(level).__name__}')


def schedule_to_list(schedule: Iterable[Level]) -> List[Dict[str, Any]]:
    return [level_to_dict(level) for level in schedule]
