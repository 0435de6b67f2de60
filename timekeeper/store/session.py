"""The unit of work shared by the stores."""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from timekeeper.core.errors import ConstraintViolation, NotFound, StoreError, TimeKeeperError

log = logging.getLogger(__name__)


@contextmanager
def session_scope(store, operation, record=None, violation=ConstraintViolation,
                  message='Data integrity violated.'):
    """Run one store operation in a session and translate database errors.

    A rejected write becomes `violation` (or NotFound when a referenced row is
    missing), any other database failure becomes StoreError.
    """
    session = store.session()
    try:
        yield session
        session.commit()
    except TimeKeeperError:
        session.rollback()
        raise
    except IntegrityError as err:
        session.rollback()
        log.exception(err)
        if 'FOREIGN KEY' in str(err.orig):
            raise NotFound('A referenced record does not exist.',
                           operation=operation, record=record) from err
        raise violation(message, operation=operation, record=record) from err
    except SQLAlchemyError as err:
        session.rollback()
        log.exception(err)
        raise StoreError(f'The store failed: {err}', operation=operation, record=record) from err
    finally:
        session.close()
