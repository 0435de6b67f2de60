"""Storage operations on tags.

Deleting a tag only queues it for deletion: blocks keep resolving it by id, it
disappears from `all()`, and `purge()` removes it once nothing refers to it.
"""

import logging
from typing import List

import sqlalchemy as sa

from timekeeper.core.errors import ConstraintViolation, NotFound, UniquenessViolation
from timekeeper.models import Block, Tag
from .session import session_scope

log = logging.getLogger(__name__)


def _clean_name(name: str, operation: str) -> str:
    name = (name or '').strip()
    if not name:
        raise ConstraintViolation('The tag name cannot be empty.', operation=operation)
    return name


class TagStore:
    """Creates, renames, deletes and lists tags."""

    def __init__(self, store):
        self.store = store

    def all(self) -> List[Tag]:
        """Return the tags not queued for deletion, oldest first."""
        with session_scope(self.store, 'all_tags') as session:
            return list(session.scalars(
                sa.select(Tag).where(Tag.to_delete.is_(False)).order_by(Tag.id)
            ))

    def get(self, tag_id: int) -> Tag:
        """Return the live tag with the given id."""
        with session_scope(self.store, 'get_tag', record=tag_id) as session:
            tag = session.get(Tag, tag_id)
            if tag is None or tag.to_delete:
                raise NotFound('The tag does not exist.', operation='get_tag', record=tag_id)
            return tag

    def find(self, name: str) -> Tag:
        """Return the live tag with the given name."""
        name = (name or '').strip()
        with session_scope(self.store, 'find_tag', record=name) as session:
            tag = session.scalar(sa.select(Tag).where(Tag.name == name,
                                                      Tag.to_delete.is_(False)))
            if tag is None:
                raise NotFound(f'There is no tag named {name!r}.',
                               operation='find_tag', record=name)
            return tag

    def create(self, name: str) -> Tag:
        """Create a tag, or bring back a deleted one with the same name."""
        name = _clean_name(name, 'create_tag')
        with session_scope(self.store, 'create_tag', record=name,
                           violation=UniquenessViolation,
                           message=f'A tag named {name!r} already exists.') as session:
            existing = session.scalar(sa.select(Tag).where(Tag.name == name))
            if existing is not None and existing.to_delete:
                existing.to_delete = False
                log.info(f'Restored the deleted tag {name!r}')
                return existing
            if existing is not None:
                raise UniquenessViolation(f'A tag named {name!r} already exists.',
                                          operation='create_tag', record=name)

            tag = Tag(name=name, to_delete=False)
            session.add(tag)
            session.flush()
            log.info(f'Created the tag {name!r}')
            return tag

    def rename(self, tag: Tag, new_name: str):
        """Rename a tag. Blocks referring to it see the new name."""
        new_name = _clean_name(new_name, 'rename_tag')
        with session_scope(self.store, 'rename_tag', record=tag.id,
                           violation=UniquenessViolation,
                           message=f'A tag named {new_name!r} already exists.') as session:
            stored = session.get(Tag, tag.id)
            if stored is None or stored.to_delete:
                raise NotFound('The tag does not exist.', operation='rename_tag', record=tag.id)
            holder = session.scalar(sa.select(Tag).where(Tag.name == new_name, Tag.id != tag.id))
            if holder is not None and holder.to_delete:
                raise UniquenessViolation(f'The name {new_name!r} belongs to a deleted tag; '
                                          f'create {new_name!r} to restore it.',
                                          operation='rename_tag', record=tag.id)
            if holder is not None:
                raise UniquenessViolation(f'A tag named {new_name!r} already exists.',
                                          operation='rename_tag', record=tag.id)
            stored.name = new_name
        tag.name = new_name

    def delete(self, tag: Tag):
        """Queue a tag for deletion."""
        with session_scope(self.store, 'delete_tag', record=tag.id) as session:
            stored = session.get(Tag, tag.id)
            if stored is None or stored.to_delete:
                raise NotFound('The tag does not exist.', operation='delete_tag', record=tag.id)
            stored.to_delete = True
        tag.to_delete = True

    def purge(self) -> int:
        """Remove the queued tags no block refers to. Return how many went."""
        referenced = sa.select(Block.tag_id).where(Block.tag_id.is_not(None))
        with session_scope(self.store, 'purge_tags') as session:
            result = session.execute(
                sa.delete(Tag)
                .where(Tag.to_delete.is_(True), Tag.id.not_in(referenced))
                .execution_options(synchronize_session=False)
            )
            purged = result.rowcount
        if purged:
            log.info(f'Purged {purged} deleted tags')
        return purged
