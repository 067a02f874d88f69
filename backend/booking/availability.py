"""Expansion of a doctor's weekly availability template into slot times.

A template looks like::

    {"slotLength": 30,
     "mon": {"start": "09:00", "end": "17:00"},
     "sat": {"start": "10:00", "end": "14:00"},
     "sun": null}

Weekdays without a usable entry get ``default_window()`` so a doctor with no
configured hours is still bookable.
"""

import logging
from dataclasses import dataclass
from datetime import date

from backend.booking.errors import InvalidInput, InvalidSchedule
from backend.core import config

logger = logging.getLogger(__name__)

WEEKDAY_KEYS = ('mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun')
SLOT_LENGTH_KEY = 'slotLength'
MINUTES_PER_DAY = 24 * 60


def parse_clock(value: str) -> int:
    """Return minutes after midnight for an ``H:MM`` or ``HH:MM`` string."""
    if not isinstance(value, str):
        raise ValueError(f'Expected a HH:MM string, got {value!r}.')

    hours, separator, minutes = value.strip().partition(':')
    if not separator or not hours.isdigit() or not minutes.isdigit() or len(minutes) != 2 or len(hours) > 2:
        raise ValueError(f'Expected a HH:MM string, got {value!r}.')

    hour, minute = int(hours), int(minutes)
    if hour > 23 or minute > 59:
        raise ValueError(f'Time of day out of range: {value!r}.')

    return hour * 60 + minute


def format_clock(minutes: int) -> str:
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def normalize_clock(value: str) -> str:
    """Canonical ``HH:MM`` form of a caller-supplied time of day."""
    try:
        return format_clock(parse_clock(value))
    except ValueError as exc:
        raise InvalidInput('Time must be in HH:MM format.') from exc


@dataclass(frozen=True)
class DayWindow:
    """Opening hours for one day; iterating yields the slot start times.

    ``start`` is inclusive and ``end`` exclusive, so a window whose start is not
    before its end yields nothing. Every iteration starts over from ``start``.
    """

    start: str
    end: str
    step_minutes: int

    def __post_init__(self):
        if isinstance(self.step_minutes, bool) or not isinstance(self.step_minutes, int) or self.step_minutes <= 0:
            raise InvalidSchedule(f'Slot length must be a positive number of minutes, got {self.step_minutes!r}.')
        parse_clock(self.start)
        parse_clock(self.end)

    def __iter__(self):
        current = parse_clock(self.start)
        end = parse_clock(self.end)
        while current < end:
            yield format_clock(current)
            current += self.step_minutes


def default_window() -> DayWindow:
    """Hours used for weekdays a doctor has not configured, read from config."""
    return DayWindow(config.DEFAULT_DAY_START, config.DEFAULT_DAY_END, config.DEFAULT_SLOT_MINUTES)


def _resolve_step(template: dict) -> int:
    step = template.get(SLOT_LENGTH_KEY)
    if step is None:
        return config.DEFAULT_SLOT_MINUTES

    if isinstance(step, bool) or not isinstance(step, (int, float)):
        logger.warning('Ignoring non-numeric slot length %r in availability template.', step)
        return config.DEFAULT_SLOT_MINUTES

    if isinstance(step, float):
        if not step.is_integer():
            raise InvalidSchedule(f'Slot length must be a whole number of minutes, got {step!r}.')
        step = int(step)

    return step


def expand(template: dict | None, weekday: int) -> DayWindow:
    """Opening window for ``weekday`` (0=Monday..6=Sunday) under ``template``."""
    default = default_window()
    if not isinstance(template, dict):
        return default

    step = _resolve_step(template)
    entry = template.get(WEEKDAY_KEYS[weekday])

    if not isinstance(entry, dict):
        # Missing, null and "closed" entries all use the default hours.
        return DayWindow(default.start, default.end, step)

    start = entry.get('start') or default.start
    end = entry.get('end') or default.end

    try:
        return DayWindow(format_clock(parse_clock(start)), format_clock(parse_clock(end)), step)
    except ValueError:
        logger.warning(
            'Malformed %s hours %r in availability template; using defaults.',
            WEEKDAY_KEYS[weekday],
            entry,
        )
        return DayWindow(default.start, default.end, step)


def expected_times(template: dict | None, on_date: date) -> list[str]:
    return list(expand(template, on_date.weekday()))
