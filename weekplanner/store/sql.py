"""SQLAlchemy-backed scheduling store.

Persons, blocks and history live in three tables (see weekplanner.db.models).
Each call opens its own session. transaction() takes a per-store lock so a
read-validate-write cycle is serialised against other writers sharing the store
object; multi-process deployments need database-level locking on top.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from weekplanner.db.models import BlockRow, HistoryRow, PersonRow
from weekplanner.db.session import build_engine, init_schema, session_scope
from weekplanner.scheduling.fragments import resolve_interval
from weekplanner.scheduling.models import Block, HistoryAction, HistoryEntry, Person
from weekplanner.store.base import DEFAULT_ROSTER
from weekplanner.utils.timezone import ZoneClock


def _naive_utc(instant: datetime) -> datetime:
    return instant.astimezone(UTC).replace(tzinfo=None)


def _person_from_row(row: PersonRow) -> Person:
    return Person(id=row.id, name=row.name, color=row.color)


def _block_from_row(row: BlockRow) -> Block:
    return Block(id=row.id, person_id=row.person_id, start=row.start_text, end=row.end_text)


def _history_from_row(row: HistoryRow) -> HistoryEntry:
    timestamp = row.timestamp if row.timestamp.tzinfo else row.timestamp.replace(tzinfo=UTC)
    return HistoryEntry(
        id=row.entry_id,
        timestamp=timestamp,
        actor_person_id=row.actor_person_id,
        target_person_id=row.target_person_id,
        action=row.action,
        details=row.details,
    )


class SqlStore:
    """Roster, block repository and history sink on a SQL database."""

    def __init__(
        self,
        engine: Engine,
        clock: ZoneClock,
        history_retention: int = 50,
        seed_roster: Iterable[Person] | None = DEFAULT_ROSTER,
    ):
        self.engine = engine
        self.clock = clock
        self.history_retention = history_retention
        self._factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        self._lock = threading.RLock()
        init_schema(engine)
        if seed_roster is not None:
            self._seed_roster(seed_roster)

    @classmethod
    def from_url(cls, database_url: str, clock: ZoneClock, **kwargs) -> SqlStore:
        return cls(build_engine(database_url), clock, **kwargs)

    def _session(self):
        return session_scope(self._factory)

    def _seed_roster(self, persons: Iterable[Person]) -> None:
        with self._session() as session:
            if session.execute(select(PersonRow.id).limit(1)).first() is not None:
                return
            persons = list(persons)
            session.add_all([PersonRow(id=p.id, name=p.name, color=p.color) for p in persons])
            logger.info(f"Seeded roster with {len(persons)} persons")

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        with self._lock:
            yield

    # Roster

    def list_persons(self) -> list[Person]:
        with self._session() as session:
            rows = session.execute(select(PersonRow).order_by(PersonRow.id)).scalars().all()
            return [_person_from_row(row) for row in rows]

    def get_person(self, person_id: str) -> Person | None:
        with self._session() as session:
            row = session.get(PersonRow, person_id)
            return _person_from_row(row) if row else None

    # Blocks

    def blocks_overlapping(self, start: datetime, end: datetime) -> list[Block]:
        with self._session() as session:
            rows = session.execute(
                select(BlockRow)
                .where(BlockRow.starts_at < _naive_utc(end), BlockRow.ends_at > _naive_utc(start))
                .order_by(BlockRow.starts_at, BlockRow.id)
            ).scalars().all()
            return [_block_from_row(row) for row in rows]

    def get_block(self, block_id: str) -> Block | None:
        with self._session() as session:
            row = session.get(BlockRow, block_id)
            return _block_from_row(row) if row else None

    def save_block(self, block: Block) -> None:
        interval = resolve_interval(block, self.clock)
        if interval is None:
            raise ValueError(f"Refusing to store malformed block {block.id}")
        starts_at, ends_at = (_naive_utc(value) for value in interval)
        with self._lock, self._session() as session:
            row = session.get(BlockRow, block.id)
            if row is None:
                row = BlockRow(id=block.id)
                session.add(row)
            row.person_id = block.person_id
            row.start_text = block.start
            row.end_text = block.end
            row.starts_at = starts_at
            row.ends_at = ends_at

    def delete_block(self, block_id: str) -> Block | None:
        with self._lock, self._session() as session:
            row = session.get(BlockRow, block_id)
            if row is None:
                return None
            block = _block_from_row(row)
            session.delete(row)
            return block

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
        with self._lock, self._session() as session:
            session.add(
                HistoryRow(
                    entry_id=entry.id,
                    timestamp=entry.timestamp.astimezone(UTC),
                    actor_person_id=entry.actor_person_id,
                    target_person_id=entry.target_person_id,
                    action=entry.action,
                    details=entry.details,
                )
            )
            session.flush()
            self._trim_history(session)
        return entry

    def _trim_history(self, session: Session) -> None:
        stale = session.execute(
            select(HistoryRow.seq).order_by(HistoryRow.seq.desc()).offset(self.history_retention)
        ).scalars().all()
        if stale:
            session.execute(delete(HistoryRow).where(HistoryRow.seq.in_(stale)))

    def recent(self, limit: int) -> list[HistoryEntry]:
        with self._session() as session:
            rows = session.execute(
                select(HistoryRow).order_by(HistoryRow.seq.desc()).limit(limit)
            ).scalars().all()
            return [_history_from_row(row) for row in rows]
