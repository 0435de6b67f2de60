"""The base application configuration."""

import os
import sys
from pathlib import Path


APP_NAME = 'TimeKeeper'


def user_data_dir() -> Path:
    """Return a per-user data directory suitable for the platform."""
    if sys.platform.startswith('win'):
        base = os.environ.get('APPDATA') or Path.home() / 'AppData' / 'Roaming'
    else:
        base = os.environ.get('XDG_DATA_HOME') or Path.home() / '.local' / 'share'
    return Path(base) / APP_NAME


DATA_DIR = Path(os.environ.get('TIMEKEEPER_DATA_DIR') or user_data_dir())
DATABASE_PATH = DATA_DIR / 'database.sqlite'
SETTINGS_PATH = DATA_DIR / 'settings.json'

LOG_FILE = DATA_DIR / 'timekeeper.log'
LOG_LEVEL = 'INFO'
SQL_ECHO = False

# Keep running on an in-memory store when the database file cannot be opened
ALLOW_MEMORY_FALLBACK = True
