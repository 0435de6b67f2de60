"""Record the version explicitly, soft-delete tags, boolean running flag

Schema version: 2
Previous version: 1

- app_info holds the 'version' key from now on.
- tags.protected is replaced by the tags.to_delete marker.
- time_blocks.running becomes a boolean; a partial unique index keeps at most
  one row with running = 1. Rows carrying the old 'Y' sentinel stay running.
- time_blocks.id becomes AUTOINCREMENT so ids of deleted blocks are not reused.
"""
from alembic import op
import sqlalchemy as sa


version = 2
previous_version = 1


def upgrade():
    app_info_table = op.create_table(
        'app_info',
        sa.Column('id', sa.Integer, nullable=False),
        sa.Column('key', sa.Text, nullable=False, unique=True),
        sa.Column('value', sa.Text),
        sa.PrimaryKeyConstraint('id'),
    )

    op.add_column('tags', sa.Column('to_delete', sa.Boolean,
                                    nullable=False, server_default=sa.false()))
    op.execute('ALTER TABLE tags DROP COLUMN protected')

    op.create_table(
        'time_blocks_v2',
        sa.Column('id', sa.Integer),
        sa.Column('start', sa.Text, nullable=False),
        sa.Column('end', sa.Text, nullable=False),
        sa.Column('running', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('tag', sa.Integer, sa.ForeignKey('tags.id')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.execute(
        'INSERT INTO time_blocks_v2 (id, start, "end", running, tag) '
        'SELECT id, start, "end", CASE WHEN running = \'Y\' THEN 1 ELSE 0 END, tag '
        'FROM time_blocks'
    )
    op.drop_table('time_blocks')
    op.rename_table('time_blocks_v2', 'time_blocks')
    op.create_index('ix_time_blocks_single_running', 'time_blocks', ['running'],
                    unique=True, sqlite_where=sa.text('running = 1'))

    op.bulk_insert(app_info_table, [{'key': 'version', 'value': str(version)}])
