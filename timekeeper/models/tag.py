"""The Tag model."""

import sqlalchemy as sa

from timekeeper.database import Base


class Tag(Base):
    """Represents a named label that can be attached to time blocks.

    Two tags are equal when they have the same id, so a renamed tag still
    matches the one held by a block loaded before the rename."""
    __tablename__ = 'tags'

    id = sa.Column(sa.Integer, primary_key=True)
    name = sa.Column(sa.Text, nullable=False, unique=True)
    to_delete = sa.Column(sa.Boolean, nullable=False, default=False, server_default=sa.false())

    def __eq__(self, other):
        if not isinstance(other, Tag):
            return NotImplemented
        if self.id is None or other.id is None:
            return self is other
        return self.id == other.id

    def __hash__(self):
        return hash((Tag, self.id))

    def __repr__(self):
        return f'<Tag {self.id} {self.name!r}>'
