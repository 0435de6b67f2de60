"""Application configuration for the test suite: nothing touches the disk."""

from timekeeper.config.common import *


DATABASE_PATH = None
SETTINGS_PATH = None
LOG_FILE = None
LOG_LEVEL = 'DEBUG'
