"""TimeKeeper application factory."""

import logging
import logging.config
import runpy
from pathlib import Path

from timekeeper import settings as user_settings
from timekeeper.core.errors import MigrationError
from timekeeper.database import Store
from timekeeper.history import HistoryAggregator
from timekeeper.stopwatch import StopwatchController
from timekeeper.store import BlockStore, TagStore

log = logging.getLogger(__name__)

PACKAGE_ROOT = Path(__file__).resolve().parent


def load_config(config) -> dict:
    """Read the UPPER_CASE names of a config file.

    Relative paths are looked up inside the package, e.g. 'config/dev.py'."""
    path = Path(config)
    if not path.is_absolute():
        path = PACKAGE_ROOT / path
    namespace = runpy.run_path(str(path))
    return {key: value for key, value in namespace.items() if key.isupper()}


def configure_logging(config: dict):
    """Log to stderr, and errors to a weekly rotated file if one is configured."""
    handlers = {
        'stderr': {
            'class': 'logging.StreamHandler',
            'formatter': 'default',
            'level': 'DEBUG',
        },
    }

    log_file = config.get('LOG_FILE')
    if log_file is not None:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers['logfile'] = {
                'class': 'logging.handlers.TimedRotatingFileHandler',
                'filename': str(log_file),
                'formatter': 'default',
                'when': 'W0',  # will start a new file each Monday
                'backupCount': 5,  # will only keep the 5 latest files,
                'level': 'ERROR',
            }
        except OSError:
            log_file = None

    logging.config.dictConfig({
        'version': 1,
        'formatters': {
            'default': {
                'datefmt': '%d/%m %H:%M:%S',
                'format': '[%(asctime)s] [%(levelname)8s] %(message)s (%(name)s:%(lineno)s)',
            }
        },
        'handlers': handlers,
        'loggers': {
            'sqlalchemy.engine': {
                'level': 'INFO' if config.get('SQL_ECHO') else 'WARNING',
            },
            'alembic': {
                'level': 'WARNING',
            },
        },
        'root': {
            'level': config.get('LOG_LEVEL', 'INFO'),
            'handlers': list(handlers),
        },
        'disable_existing_loggers': False,
    })

    if config.get('LOG_FILE') is not None and log_file is None:
        log.warning(f'Cannot write the log file {config["LOG_FILE"]}, logging to stderr only')


class TimeKeeper:
    """An opened, migrated store together with everything that operates on it."""

    def __init__(self, store: Store, settings: user_settings.Settings, config: dict = None):
        self.store = store
        self.settings = settings
        self.config = config or {}
        self.tags = TagStore(store)
        self.blocks = BlockStore(store)
        self.stopwatch = StopwatchController(self.blocks)
        self.history = HistoryAggregator(self.blocks)

    def save_settings(self) -> bool:
        return user_settings.save(self.settings, self.config.get('SETTINGS_PATH'))

    def close(self):
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def create_app(config='config/prod.py') -> TimeKeeper:
    """Create the application with the given configuration.

    The store is migrated before anything else may use it; a store that cannot
    be migrated stops the start-up with MigrationError.
    """
    config = load_config(config)
    configure_logging(config)

    path = config.get('DATABASE_PATH')
    if config.get('ALLOW_MEMORY_FALLBACK', True):
        store = Store.open_or_fallback(path)
    elif path is None:
        store = Store.in_memory()
    else:
        store = Store.open(path)

    try:
        version = store.migrate()
    except MigrationError:
        log.exception('Refusing to run against a store that could not be migrated')
        store.close()
        raise
    log.debug(f'The store is at schema version {version}')

    settings = user_settings.load(config.get('SETTINGS_PATH'))
    return TimeKeeper(store, settings, config)
