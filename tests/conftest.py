'''Fixtures defined for all tests.'''

from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Generator

import pytest

from timekeeper.database import Store
from timekeeper.history import HistoryAggregator
from timekeeper.models import Block, Tag
from timekeeper.stopwatch import StopwatchController
from timekeeper.store import BlockStore, TagStore
from tests.helpers import FrozenClock, local


@pytest.fixture
def store() -> Generator[Store, None, None]:
    '''Open a fresh in-memory store at the current schema version.'''
    store = Store.in_memory()
    store.migrate()
    yield store
    store.close()


@pytest.fixture
def clock() -> FrozenClock:
    '''A clock stopped on Wednesday, 13 March 2024, 10:00 local time.'''
    return FrozenClock(local(2024, 3, 13, 10))


@pytest.fixture
def tags(store: Store) -> TagStore:
    return TagStore(store)


@pytest.fixture
def blocks(store: Store) -> BlockStore:
    return BlockStore(store)


@pytest.fixture
def stopwatch(blocks: BlockStore, clock: FrozenClock) -> StopwatchController:
    return StopwatchController(blocks, clock=clock)


@pytest.fixture
def history(blocks: BlockStore, clock: FrozenClock) -> HistoryAggregator:
    return HistoryAggregator(blocks, clock=clock)


@pytest.fixture
def tag(tags: TagStore, faker) -> Tag:
    '''Create a tag with a generated name.'''
    return tags.create(faker.unique.word())


@pytest.fixture
def make_block(blocks: BlockStore) -> Callable[..., Block]:
    '''Insert a block with the given start, duration, tag and running flag.'''
    def _make_block(start: datetime, duration=timedelta(hours=1), tag=None, running=False):
        def initializer(block):
            block.end = start + duration
            block.tag = tag
            block.running = running
        return blocks.insert(initializer, now=start)
    return _make_block


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    '''Write a config file keeping the store and the settings under tmp_path.'''
    def _write_config(database_path=None, **overrides):
        database_path = database_path or tmp_path / 'data' / 'database.sqlite'
        lines = [
            'from timekeeper.config.common import *',
            f'DATABASE_PATH = {str(database_path)!r}',
            f'SETTINGS_PATH = {str(tmp_path / "data" / "settings.json")!r}',
            'LOG_FILE = None',
            "LOG_LEVEL = 'DEBUG'",
        ]
        lines += [f'{key} = {value!r}' for key, value in overrides.items()]
        path = tmp_path / 'config.py'
        path.write_text('\n'.join(lines) + '\n')
        return path
    return _write_config
