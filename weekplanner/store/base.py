"""Collaborator interfaces the scheduling service depends on.

The core never performs I/O. Stores implement these protocols and provide a
transaction() scope that makes read-validate-write atomic for the caller.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Protocol

from weekplanner.scheduling.models import Block, HistoryAction, HistoryEntry, Person

DEFAULT_ROSTER: tuple[Person, ...] = (
    Person(id="anna", name="Anna", color="#3b82f6"),
    Person(id="bob", name="Bob", color="#22c55e"),
    Person(id="carla", name="Carla", color="#f97316"),
    Person(id="dan", name="Dan", color="#a855f7"),
)


class RosterProvider(Protocol):
    def list_persons(self) -> list[Person]:
        """All persons, ordered by id."""
        ...

    def get_person(self, person_id: str) -> Person | None: ...


class BlockRepository(Protocol):
    def blocks_overlapping(self, start: datetime, end: datetime) -> list[Block]:
        """Blocks whose [start, end) intersects the given instant range."""
        ...

    def get_block(self, block_id: str) -> Block | None: ...

    def save_block(self, block: Block) -> None:
        """Insert the block, or replace the stored block with the same id."""
        ...

    def delete_block(self, block_id: str) -> Block | None:
        """Remove and return the block, or None when it does not exist."""
        ...


class HistorySink(Protocol):
    def record(
        self,
        actor_person_id: str,
        target_person_id: str,
        action: HistoryAction,
        details: str,
    ) -> HistoryEntry: ...

    def recent(self, limit: int) -> list[HistoryEntry]:
        """Most recent entries first."""
        ...


class SchedulingStore(RosterProvider, BlockRepository, HistorySink, Protocol):
    def transaction(self) -> AbstractContextManager[None]:
        """Scope in which reads and writes are not interleaved with other writers."""
        ...
