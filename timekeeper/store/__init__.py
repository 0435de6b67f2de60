"""Storage operations on tags and time blocks.

Both stores open a short-lived session per call and hand back detached model
instances, so callers never hold a session open between operations.
"""

from .blocks import BlockStore
from .session import session_scope
from .tags import TagStore


__all__ = (
    'BlockStore',
    'TagStore',
    'session_scope',
)
