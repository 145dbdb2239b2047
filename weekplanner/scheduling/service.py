"""Block Service - single entry point for block reads and writes.

Every write runs read -> validate -> write inside store.transaction(), so two
submissions for the same week cannot both pass validation against a stale
snapshot. Validation failures leave the store untouched.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from loguru import logger

from weekplanner.scheduling.aggregation import blocks_in_window, day_summaries, remaining_hours
from weekplanner.scheduling.errors import (
    BlockNotFoundError,
    BlockValidationError,
    InvalidDateError,
    MissingFieldError,
    UnknownPersonError,
)
from weekplanner.scheduling.models import Block, HistoryEntry, WeekPayload
from weekplanner.scheduling.payload import build_week_payload
from weekplanner.scheduling.policy import SchedulingPolicy
from weekplanner.scheduling.validator import DAY_NAMES, validate_block
from weekplanner.store.base import SchedulingStore
from weekplanner.utils.calendar import WeekWindow, window_for
from weekplanner.utils.timezone import ZoneClock

_UPDATABLE_FIELDS = {"personId": "person_id", "person_id": "person_id", "start": "start", "end": "end"}


class BlockService:
    """Create, update, delete and summarise blocks against one store."""

    def __init__(
        self,
        store: SchedulingStore,
        policy: SchedulingPolicy,
        clock: ZoneClock,
        history_limit: int = 3,
    ):
        self.store = store
        self.policy = policy
        self.clock = clock
        self.history_limit = history_limit

    # Helpers

    def window_for(self, value: datetime | str) -> WeekWindow:
        return window_for(value, self.policy.window_days, self.clock)

    def _candidate_window(self, candidate: Block) -> WeekWindow:
        """Window of the week the candidate starts in (current week if start is malformed)."""
        start = self.clock.parse_instant(candidate.start)
        return self.window_for(start if start is not None else self.clock.now())

    def _existing_for(self, candidate: Block, window: WeekWindow) -> list[Block]:
        """Blocks relevant to validating the candidate: the window plus the candidate's own span."""
        start = self.clock.parse_instant(candidate.start) or window.start
        end = self.clock.parse_instant(candidate.end) or window.end
        lo = min(window.start, start)
        hi = max(window.end, end)
        return self.store.blocks_overlapping(lo, hi)

    def _window_blocks(self, window: WeekWindow) -> list[Block]:
        return self.store.blocks_overlapping(window.start, window.end)

    def _payload(self, window: WeekWindow) -> WeekPayload:
        blocks = self._window_blocks(window)
        return build_week_payload(window, self.store.list_persons(), blocks, self.policy, self.clock)

    def _check(self, candidate: Block, window: WeekWindow) -> None:
        errors = validate_block(candidate, self._existing_for(candidate, window), window, self.policy, self.clock)
        if errors:
            logger.info(
                "[BLOCKS] Candidate rejected",
                block_id=candidate.id,
                person_id=candidate.person_id,
                errors=errors,
            )
            raise BlockValidationError(errors)

    def _describe(self, block: Block) -> str:
        start = self.clock.parse_instant(block.start)
        end = self.clock.parse_instant(block.end)
        if start is None or end is None:
            return f"{block.start}-{block.end}"
        local_start = self.clock.local(start)
        return f"{DAY_NAMES[local_start.weekday()][:3]} {local_start:%H:%M}-{self.clock.local(end):%H:%M}"

    # Reads

    def get_week(self, date_text: str | None) -> WeekPayload:
        """Summary of the week containing `date_text` (YYYY-MM-DD).

        Raises:
            MissingFieldError: If no date is given
            InvalidDateError: If the date cannot be parsed
        """
        if not date_text:
            raise MissingFieldError("start is required (YYYY-MM-DD)")
        return self._payload(self.window_for(date_text))

    def history(self, limit: int | None = None) -> list[HistoryEntry]:
        return self.store.recent(limit if limit is not None else self.history_limit)

    def remaining(self, date_text: str) -> dict[str, float]:
        """Hours left to reach each day's target in the week containing `date_text`."""
        window = self.window_for(date_text)
        blocks = blocks_in_window(self._window_blocks(window), window, self.clock)
        summaries = day_summaries(blocks, window, self.policy, self.clock)
        return {day.isoformat(): remaining_hours(summaries, day, window, self.policy) for day in window.days()}

    # Writes

    def create_block(
        self,
        person_id: str | None,
        start: str | datetime | float | None,
        end: str | datetime | float | None,
        actor_id: str | None = None,
    ) -> WeekPayload:
        """Validate and store a new block, returning the affected week's payload.

        Raises:
            MissingFieldError: If person, start or end is missing
            UnknownPersonError: If the person is not on the roster
            BlockValidationError: If the block violates the policy
        """
        if not person_id or not start or not end:
            raise MissingFieldError("personId, start and end are required.")
        if self.store.get_person(person_id) is None:
            raise UnknownPersonError(person_id)

        candidate = Block(id=uuid.uuid4().hex, person_id=person_id, start=start, end=end)
        with self.store.transaction():
            window = self._candidate_window(candidate)
            self._check(candidate, window)
            self.store.save_block(candidate)
            self.store.record(actor_id or person_id, person_id, "create", f"Created block {self._describe(candidate)} for {person_id}")

        logger.info("[BLOCKS] Block created", block_id=candidate.id, person_id=person_id)
        return self._payload(window)

    def update_block(
        self,
        block_id: str,
        changes: Mapping[str, Any],
        actor_id: str | None = None,
    ) -> WeekPayload:
        """Apply personId/start/end changes to a stored block.

        Unknown keys in `changes` are ignored. The block's own id is excluded
        from overlap and capacity checks.

        Raises:
            BlockNotFoundError: If no block has this id
            MissingFieldError: If personId is cleared
            UnknownPersonError: If the new person is not on the roster
            BlockValidationError: If the updated block violates the policy
        """
        with self.store.transaction():
            original = self.store.get_block(block_id)
            if original is None:
                raise BlockNotFoundError(block_id)

            update = {_UPDATABLE_FIELDS[key]: value for key, value in changes.items() if key in _UPDATABLE_FIELDS}
            if "person_id" in update and not update["person_id"]:
                raise MissingFieldError("personId, start and end are required.")
            updated = Block.model_validate({**original.model_dump(), **update})
            if self.store.get_person(updated.person_id) is None:
                raise UnknownPersonError(updated.person_id)

            window = self._candidate_window(updated)
            self._check(updated, window)
            self.store.save_block(updated)
            self.store.record(
                actor_id or updated.person_id,
                updated.person_id,
                "update",
                f"Updated block to {self._describe(updated)} for {updated.person_id}",
            )

        logger.info("[BLOCKS] Block updated", block_id=block_id, person_id=updated.person_id)
        return self._payload(window)

    def delete_block(self, block_id: str, actor_id: str | None = None) -> WeekPayload:
        """Remove a block, returning the payload of the week it started in.

        Raises:
            BlockNotFoundError: If no block has this id
        """
        with self.store.transaction():
            removed = self.store.delete_block(block_id)
            if removed is None:
                raise BlockNotFoundError(block_id)
            self.store.record(
                actor_id or removed.person_id,
                removed.person_id,
                "delete",
                f"Deleted block {self._describe(removed)} for {removed.person_id}",
            )

        logger.info("[BLOCKS] Block deleted", block_id=block_id, person_id=removed.person_id)
        try:
            window = self.window_for(removed.start)
        except InvalidDateError:
            window = self.window_for(self.clock.now())
        return self._payload(window)
