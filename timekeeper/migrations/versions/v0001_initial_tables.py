"""Create the tags and time_blocks tables

Schema version: 1
Previous version: 0

This is the layout stores had before the version was recorded explicitly:
the running block is marked with the 'Y' sentinel in a UNIQUE text column.
"""
from alembic import op
import sqlalchemy as sa


version = 1
previous_version = 0


def upgrade():
    op.create_table(
        'tags',
        sa.Column('id', sa.Integer, nullable=False),
        sa.Column('name', sa.Text, nullable=False, unique=True),
        sa.Column('protected', sa.Text, sa.CheckConstraint("protected = 'Y'")),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'time_blocks',
        sa.Column('id', sa.Integer),
        sa.Column('start', sa.Text, nullable=False),
        sa.Column('end', sa.Text, nullable=False),
        sa.Column('running', sa.Text, sa.CheckConstraint("running = 'Y'"), unique=True),
        sa.Column('tag', sa.Integer, sa.ForeignKey('tags.id')),
        sa.PrimaryKeyConstraint('id'),
    )
