"""Exceptions raised by the time-tracking engine.

Every error carries the name of the operation that failed and, where there is
one, the record it was working on, so that it can be logged meaningfully.
"""


class TimeKeeperError(Exception):
    """Base class for all errors raised by the engine."""

    def __init__(self, message, operation=None, record=None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.record = record

    def __str__(self):
        context = []
        if self.operation is not None:
            context.append(f'operation={self.operation}')
        if self.record is not None:
            context.append(f'record={self.record}')
        if not context:
            return self.message
        return f'{self.message} ({", ".join(context)})'


class StoreError(TimeKeeperError):
    """A store operation failed in a way the caller may recover from."""


class IntegrityFault(TimeKeeperError):
    """The stored data contradicts an invariant. Never repaired silently."""


class ConstraintViolation(StoreError):
    """The operation was rejected by a store constraint."""


class UniquenessViolation(ConstraintViolation):
    """A unique value (e.g. a tag name) is already taken."""


class NotFound(StoreError):
    """The block or tag no longer exists."""


class StorageUnavailable(TimeKeeperError):
    """The on-disk store could not be created or opened."""


class MigrationError(TimeKeeperError):
    """The store could not be brought to the expected schema version."""
