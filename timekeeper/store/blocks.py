"""Storage operations on time blocks.

The store never holds two running blocks: the partial unique index on
`time_blocks.running` rejects the second one, and `current()` treats finding
more than one as an integrity fault.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import sqlalchemy as sa

from timekeeper.core.errors import IntegrityFault, NotFound
from timekeeper.core.timezone import format_timestamp, local_now
from timekeeper.models import Block, Tag
from .session import session_scope

log = logging.getLogger(__name__)


def _check_tag(block: Block, operation: str) -> Block:
    if block.tag_id is not None and block.tag is None:
        raise IntegrityFault(f'The block refers to the missing tag {block.tag_id}',
                             operation=operation, record=block.id)
    return block


def _julianday(moment: datetime):
    return sa.func.julianday(sa.literal(format_timestamp(moment)))


class BlockStore:
    """CRUD and range queries over time blocks."""

    def __init__(self, store):
        self.store = store

    def insert(self, initializer: Optional[Callable[[Block], None]] = None,
               now: Optional[datetime] = None) -> Block:
        """Append a block starting and ending `now`, shaped by `initializer`.

        The initializer may set `running` and `tag`. Inserting a second running
        block raises ConstraintViolation.
        """
        now = now or local_now()
        block = Block(start=now, end=now, running=False)
        if initializer is not None:
            initializer(block)

        wanted_tag = block.tag
        block.tag = None
        with session_scope(self.store, 'insert_block',
                           message='Another block is already running.') as session:
            if wanted_tag is not None:
                tag = session.get(Tag, wanted_tag.id)
                if tag is None or tag.to_delete:
                    raise NotFound('The tag does not exist.',
                                   operation='insert_block', record=wanted_tag.id)
                block.tag = tag
            session.add(block)
            session.flush()
            log.debug(f'Inserted block {block.id}')
            return block

    def get(self, block_id: int) -> Block:
        with session_scope(self.store, 'get_block', record=block_id) as session:
            block = session.get(Block, block_id)
            if block is None:
                raise NotFound('The block does not exist.', operation='get_block', record=block_id)
            return _check_tag(block, 'get_block')

    def current(self) -> Optional[Block]:
        """Return the running block, if any."""
        with session_scope(self.store, 'current_block') as session:
            running = list(session.scalars(sa.select(Block).where(Block.running.is_(True))))
        if len(running) > 1:
            raise IntegrityFault(f'{len(running)} blocks are running at once',
                                 operation='current_block',
                                 record=[block.id for block in running])
        if not running:
            return None
        return _check_tag(running[0], 'current_block')

    def update_running_end_time(self, now: Optional[datetime] = None) -> int:
        """Move the end of the running block to `now`. Return the rows touched."""
        now = now or local_now()
        with session_scope(self.store, 'update_running_end_time') as session:
            result = session.execute(
                sa.update(Block)
                .where(Block.running.is_(True))
                .values(end=now)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount

    def stop(self, now: Optional[datetime] = None):
        """Close the running block at `now`."""
        now = now or local_now()
        with session_scope(self.store, 'stop_block') as session:
            result = session.execute(
                sa.update(Block)
                .where(Block.running.is_(True))
                .values(end=now, running=False)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFound('No block is running.', operation='stop_block')

    def update_tag(self, block: Block):
        """Store `block.tag` (or no tag) as the tag of the block with that id."""
        tag_id = block.tag.id if block.tag is not None else None
        with session_scope(self.store, 'update_block_tag', record=block.id) as session:
            stored = session.get(Block, block.id)
            if stored is None:
                raise NotFound('The block does not exist.',
                               operation='update_block_tag', record=block.id)
            tag = session.get(Tag, tag_id) if tag_id is not None else None
            if tag_id is not None and (tag is None or tag.to_delete):
                raise NotFound('The tag does not exist.',
                               operation='update_block_tag', record=tag_id)
            stored.tag_id = tag_id

    def delete(self, block: Block):
        """Remove a block. Deleting the running block stops tracking."""
        with session_scope(self.store, 'delete_block', record=block.id) as session:
            stored = session.get(Block, block.id)
            if stored is None:
                raise NotFound('The block does not exist.',
                               operation='delete_block', record=block.id)
            session.delete(stored)
        log.info(f'Deleted block {block.id}')

    def in_range(self, after: datetime, before: datetime,
                 include_after: bool = False) -> List[Block]:
        """Return the blocks starting strictly between `after` and `before`.

        With `include_after` a block starting exactly at `after` is included.
        """
        start = sa.func.julianday(Block.start)
        lower = start >= _julianday(after) if include_after else start > _julianday(after)
        with session_scope(self.store, 'blocks_in_range') as session:
            blocks = list(session.scalars(
                sa.select(Block)
                .where(lower, start < _julianday(before))
                .order_by(start, Block.id)
            ))
        return [_check_tag(block, 'blocks_in_range') for block in blocks]

    def total_time(self, now: Optional[datetime] = None) -> timedelta:
        """Sum the durations of all blocks, the running one up to `now`."""
        self.update_running_end_time(now)
        with session_scope(self.store, 'total_time') as session:
            rows = session.execute(sa.select(Block.start, Block.end)).all()
        return sum((end - start for start, end in rows), timedelta(0))
