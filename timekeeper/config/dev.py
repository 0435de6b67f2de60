"""Application configuration for local development."""

import os
from timekeeper.config.common import *


LOG_LEVEL = 'DEBUG'
SQL_ECHO = bool(os.getenv('SQL_ECHO'))
