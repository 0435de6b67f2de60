"""Application configuration for everyday use."""

from timekeeper.config.common import *


LOG_LEVEL = 'WARNING'
