"""Brings a store of unknown age up to the current schema version.

Stores created before version 2 carry no version record, so their version is
inferred once, in `detect_version()`, from the tables present. Every step in
`versions/` may then assume exactly "the store is at version N".
"""

import logging

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy.exc import SQLAlchemyError

from timekeeper.core.errors import MigrationError
from timekeeper.migrations.versions import all_steps
from timekeeper.models import AppInfo

log = logging.getLogger(__name__)

STEPS = {step.version: step for step in all_steps}
CURRENT_VERSION = max(STEPS)
VERSION_KEY = 'version'


def detect_version(connection: sa.engine.Connection) -> int:
    """Return the schema version of the store behind `connection`."""
    inspector = sa.inspect(connection)
    if inspector.has_table('app_info'):
        value = connection.scalar(
            sa.select(AppInfo.value).where(AppInfo.key == VERSION_KEY)
        )
        if value is None:
            raise MigrationError('The app_info table has no version record',
                                 operation='detect_version', record='app_info')
        try:
            return int(value)
        except (TypeError, ValueError) as err:
            raise MigrationError(f'Unreadable schema version {value!r}',
                                 operation='detect_version', record='app_info') from err

    # Legacy stores: version 1 if the data tables exist, version 0 if empty
    if inspector.has_table('time_blocks'):
        return 1
    return 0


def _record_version(connection: sa.engine.Connection, version: int):
    if not sa.inspect(connection).has_table('app_info'):
        return
    connection.execute(
        sa.update(AppInfo)
        .where(AppInfo.key == VERSION_KEY)
        .values(value=str(version))
    )


def apply_step(connection: sa.engine.Connection, version: int):
    """Upgrade the store from `version` to `version + 1` in one transaction.

    Nothing of a failed step is kept: the transaction is rolled back and
    MigrationError is raised.
    """
    step = STEPS.get(version + 1)
    if step is None or step.previous_version != version:
        raise MigrationError(f'No migration step from version {version}',
                             operation='apply_step', record=version)

    try:
        with connection.begin():
            context = MigrationContext.configure(connection)
            with Operations.context(context):
                step.upgrade()
            _record_version(connection, step.version)
    except SQLAlchemyError as err:
        log.exception(f'Migration to version {step.version} failed')
        raise MigrationError(f'Failed to migrate to version {step.version}: {err}',
                             operation='apply_step', record=step.version) from err

    log.info(f'Migrated the store to version {step.version} ({step.__doc__.splitlines()[0]})')


def migrate(connection: sa.engine.Connection, target: int = CURRENT_VERSION) -> int:
    """Apply every pending step up to `target` and return the resulting version.

    The connection must not be inside a transaction. Running this on a store
    that is already at `target` changes nothing.
    """
    try:
        with connection.begin():
            version = detect_version(connection)
    except SQLAlchemyError as err:
        raise MigrationError(f'Failed to read the schema version: {err}',
                             operation='migrate') from err

    if version > target:
        raise MigrationError(f'The store is at version {version}, '
                             f'newer than the supported version {target}',
                             operation='migrate', record=version)

    while version < target:
        apply_step(connection, version)
        version += 1

    return version
