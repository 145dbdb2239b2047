"""Root conftest for all tests.

Shared fixtures: a Brussels zone clock, the default policy, a block factory and
fresh stores/services per test.
"""

import itertools

import pytest

from weekplanner.scheduling.models import Block
from weekplanner.scheduling.policy import get_policy
from weekplanner.scheduling.service import BlockService
from weekplanner.store.memory import InMemoryStore
from weekplanner.store.sql import SqlStore
from weekplanner.utils.calendar import window_for
from weekplanner.utils.timezone import ZoneClock

# Monday 15 January 2024 (CET, UTC+1)
MONDAY = "2024-01-15"


@pytest.fixture
def clock() -> ZoneClock:
    return ZoneClock("Europe/Brussels")


@pytest.fixture
def policy():
    return get_policy("weekdays")


@pytest.fixture
def window(clock, policy):
    """Mon 2024-01-15 .. Fri 2024-01-19 window."""
    return window_for(MONDAY, policy.window_days, clock)


@pytest.fixture
def make_block():
    """Factory for blocks with sequential ids (b1, b2, ...)."""
    counter = itertools.count(1)

    def _make(start: str, end: str, person_id: str = "anna", block_id: str | None = None) -> Block:
        return Block(id=block_id or f"b{next(counter)}", person_id=person_id, start=start, end=end)

    return _make


@pytest.fixture
def memory_store(clock) -> InMemoryStore:
    return InMemoryStore(clock)


@pytest.fixture
def sql_store(clock) -> SqlStore:
    """Store on a fresh in-memory SQLite database."""
    store = SqlStore.from_url("sqlite://", clock, history_retention=5)
    yield store
    store.engine.dispose()


@pytest.fixture
def service(memory_store, policy, clock) -> BlockService:
    return BlockService(memory_store, policy, clock)
