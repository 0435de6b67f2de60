'''Helpers shared by the tests.'''

from datetime import datetime, timedelta

import sqlalchemy as sa


def local(*args) -> datetime:
    '''Build an aware datetime in the local offset, e.g. local(2024, 3, 13, 10).'''
    return datetime(*args).astimezone()


def count_running(store) -> int:
    '''Count the running rows directly in the database.'''
    with store.engine.connect() as connection:
        return connection.execute(
            sa.text('SELECT count(*) FROM time_blocks WHERE running = 1')
        ).scalar()


class FrozenClock:
    '''A clock that only moves when told to.'''

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now
