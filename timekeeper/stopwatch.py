"""The start/stop state machine of the stopwatch.

The state is never stored on its own: the stopwatch is running exactly when
the store has a running block.
"""

import logging
from typing import Callable, Optional

from timekeeper.core.errors import ConstraintViolation, NotFound, StoreError
from timekeeper.core.timezone import local_now
from timekeeper.models import Block, Tag
from timekeeper.store import BlockStore

log = logging.getLogger(__name__)


class StopwatchController:
    """Starts and stops time blocks on top of a BlockStore."""

    def __init__(self, blocks: BlockStore, clock: Callable = local_now):
        self.blocks = blocks
        self.clock = clock

    def is_running(self) -> bool:
        return self.blocks.current() is not None

    def start(self, tag: Optional[Tag] = None) -> Block:
        """Start a new running block, optionally tagged.

        Raises ConstraintViolation, leaving the running block alone, if the
        stopwatch is already running.
        """
        if self.blocks.current() is not None:
            log.warning('Tried to start the stopwatch when it was already running')
            raise ConstraintViolation('The stopwatch is already running.', operation='start')

        def initializer(block):
            block.running = True
            block.tag = tag

        try:
            block = self.blocks.insert(initializer, now=self.clock())
        except ConstraintViolation:
            log.warning('Another start won the race; the stopwatch is already running')
            raise
        log.info(f'Started the stopwatch (block {block.id})')
        return block

    def stop(self):
        """Close the running block. Raises NotFound if nothing is running."""
        try:
            self.blocks.stop(now=self.clock())
        except NotFound:
            log.warning("Tried to stop the stopwatch when it wasn't running")
            raise
        log.info('Stopped the stopwatch')

    def tick(self):
        """Bring the end of the running block up to now."""
        self.blocks.update_running_end_time(now=self.clock())

    def current(self) -> Optional[Block]:
        """Return the running block with its end refreshed to now, if any.

        A failing store is logged and reported as "not running".
        """
        try:
            block = self.blocks.current()
            if block is None:
                return None
            now = self.clock()
            self.blocks.update_running_end_time(now=now)
        except StoreError as err:
            log.warning(f'{err}')
            return None
        block.end = now
        return block
