"""User settings consumed by the history views.

Settings are persisted as JSON. Reading never fails: unreadable settings are
logged and replaced by the defaults.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import IntEnum
from pathlib import Path

log = logging.getLogger(__name__)


class Weekday(IntEnum):
    """Days of the week, numbered like `date.weekday()`."""
    monday = 0
    tuesday = 1
    wednesday = 2
    thursday = 3
    friday = 4
    saturday = 5
    sunday = 6


@dataclass
class Settings:
    """Display formats, the first day of the week and the goals."""
    date_format: str = '%y-%m-%d'
    time_format: str = '%H:%M'
    start_of_week: Weekday = Weekday.monday
    daily_goal: timedelta = field(default_factory=lambda: timedelta(hours=8))
    weekly_goal: timedelta = field(default_factory=lambda: timedelta(hours=40))


def deserialize(serialized) -> Settings:
    """Build settings from JSON text; None or invalid text gives the defaults."""
    from timekeeper.schemas import SettingsSchema
    from marshmallow import ValidationError

    if serialized is None:
        return Settings()

    try:
        return SettingsSchema().loads(serialized)
    except (ValidationError, ValueError) as err:
        log.warning(f'Failed to read settings: {err}')
        return Settings()


def serialize(settings: Settings) -> str:
    from timekeeper.schemas import SettingsSchema

    try:
        return SettingsSchema().dumps(settings)
    except (TypeError, ValueError, AttributeError) as err:
        log.error(f'Failed to serialize settings. {err}')
        return '{}'


def load(path) -> Settings:
    """Read settings from `path`; a missing or unreadable file gives the defaults."""
    if path is None:
        return Settings()
    path = Path(path)
    if not path.exists():
        return Settings()
    try:
        return deserialize(path.read_text(encoding='utf-8'))
    except OSError as err:
        log.warning(f'Failed to read settings from {path}: {err}')
        return Settings()


def save(settings: Settings, path) -> bool:
    """Write settings to `path`. Return whether they were written."""
    if path is None:
        return False
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(serialize(settings), encoding='utf-8')
    except OSError as err:
        log.error(f'Failed to save settings to {path}: {err}')
        return False
    return True
