"""In-memory scheduling store.

Holds persons, blocks and history in process memory. A re-entrant lock makes
transaction() a single-writer scope, so concurrent read-validate-write cycles
within one process cannot both pass validation against a stale snapshot.
"""

from __future__ import annotations

import threading
import uuid
from collections import deque
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from datetime import datetime

from weekplanner.scheduling.fragments import resolve_interval
from weekplanner.scheduling.models import Block, HistoryAction, HistoryEntry, Person
from weekplanner.store.base import DEFAULT_ROSTER
from weekplanner.utils.timezone import ZoneClock


class InMemoryStore:
    """Roster, block repository and history sink backed by dicts."""

    def __init__(
        self,
        clock: ZoneClock,
        persons: Iterable[Person] = DEFAULT_ROSTER,
        blocks: Iterable[Block] = (),
        history_retention: int = 50,
    ):
        self.clock = clock
        self._lock = threading.RLock()
        self._persons: dict[str, Person] = {p.id: p for p in persons}
        self._blocks: dict[str, Block] = {b.id: b for b in blocks}
        self._history: deque[HistoryEntry] = deque(maxlen=history_retention)

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        with self._lock:
            yield

    # Roster

    def list_persons(self) -> list[Person]:
        return [self._persons[key] for key in sorted(self._persons)]

    def get_person(self, person_id: str) -> Person | None:
        return self._persons.get(person_id)

    # Blocks

    def blocks_overlapping(self, start: datetime, end: datetime) -> list[Block]:
        with self._lock:
            out = []
            for block in self._blocks.values():
                interval = resolve_interval(block, self.clock)
                if interval is not None and interval[0] < end and start < interval[1]:
                    out.append(block)
            return out

    def get_block(self, block_id: str) -> Block | None:
        return self._blocks.get(block_id)

    def save_block(self, block: Block) -> None:
        with self._lock:
            self._blocks[block.id] = block

    def delete_block(self, block_id: str) -> Block | None:
        with self._lock:
            return self._blocks.pop(block_id, None)

    # History

    def record(
        self,
        actor_person_id: str,
        target_person_id: str,
        action: HistoryAction,
        details: str,
    ) -> HistoryEntry:
        entry = HistoryEntry(
            id=uuid.uuid4().hex,
            timestamp=self.clock.now(),
            actor_person_id=actor_person_id,
            target_person_id=target_person_id,
            action=action,
            details=details,
        )
        with self._lock:
            self._history.append(entry)
        return entry

    def recent(self, limit: int) -> list[HistoryEntry]:
        with self._lock:
            return list(reversed(self._history))[:limit]
