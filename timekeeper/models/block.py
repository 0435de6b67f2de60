"""The Block model."""

from datetime import timedelta

import sqlalchemy as sa
from sqlalchemy.orm import relationship

from timekeeper.database import Base, LocalDateTime


class Block(Base):
    """Represents an interval of tracked time.

    At most one block is running. For the running block `end` is only the
    last observed moment and is refreshed on every read."""
    __tablename__ = 'time_blocks'
    __table_args__ = (
        sa.Index('ix_time_blocks_single_running', 'running',
                 unique=True,
                 sqlite_where=sa.text('running = 1')),
        {'sqlite_autoincrement': True},
    )

    id = sa.Column(sa.Integer, primary_key=True)
    start = sa.Column(LocalDateTime, nullable=False)
    end = sa.Column(LocalDateTime, nullable=False)
    running = sa.Column(sa.Boolean, nullable=False, default=False, server_default=sa.false())
    tag_id = sa.Column('tag', sa.Integer, sa.ForeignKey('tags.id'), nullable=True)
    tag = relationship('Tag', lazy='joined')

    @property
    def duration(self) -> timedelta:
        """The length of the block; may be slightly negative after clock adjustments."""
        return self.end - self.start

    def __repr__(self):
        state = 'running' if self.running else 'stopped'
        return f'<Block {self.id} {self.start.isoformat()} {state}>'
