"""Tests for BlockService: the read-validate-write entry point."""

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest

from weekplanner.scheduling.errors import (
    BlockNotFoundError,
    BlockValidationError,
    InvalidDateError,
    MissingFieldError,
    UnknownPersonError,
)
from weekplanner.scheduling.models import Block
from weekplanner.scheduling.service import BlockService
from weekplanner.store.memory import InMemoryStore


def _only_block(payload):
    (block,) = payload.blocks
    return block


class TestCreateBlock:
    """create_block validates, stores and records new blocks."""

    def test_first_block_of_the_week(self, service):
        """A full day on an empty week is accepted and summarised."""
        payload = service.create_block("anna", "2024-01-15T09:00", "2024-01-15T17:00")

        assert payload.week_start == "2024-01-15"
        assert payload.day_summaries["2024-01-15"]["total"] == 8
        assert payload.person_summaries == {"anna": 8}
        assert _only_block(payload).person_id == "anna"

    def test_overlap_leaves_store_untouched(self, service):
        """An overlapping submission is rejected and nothing is written."""
        service.create_block("anna", "2024-01-15T09:00", "2024-01-15T17:00")

        with pytest.raises(BlockValidationError) as exc_info:
            service.create_block("anna", "2024-01-15T16:00", "2024-01-15T18:00")

        assert exc_info.value.messages == ["This block overlaps with another for the same person."]
        assert len(service.get_week("2024-01-15").blocks) == 1
        assert len(service.history(10)) == 1

    def test_error_message_joins_all_violations(self, service):
        """The exception text joins every message with a space."""
        for day in (15, 16, 17, 18):
            service.create_block("anna", f"2024-01-{day}T09:00", f"2024-01-{day}T17:00")

        with pytest.raises(BlockValidationError) as exc_info:
            service.create_block("bob", "2024-01-19T09:00", "2024-01-19T17:00:36")

        assert str(exc_info.value) == (
            "This change would exceed 8h total for Friday. This change would exceed 40h for the week."
        )

    def test_accepts_datetimes(self, service, clock):
        """Aware datetimes are accepted for start and end."""
        start = clock.parse_instant("2024-01-15T09:00")
        end = clock.parse_instant("2024-01-15T10:00")
        payload = service.create_block("bob", start, end)
        assert payload.person_summaries == {"bob": 1}

    def test_accepts_epoch_seconds(self, service):
        """Numeric start and end are read as Unix timestamps."""
        payload = service.create_block("anna", 1705305600, 1705309200)

        assert payload.week_start == "2024-01-15"
        assert payload.day_summaries["2024-01-15"]["total"] == 1
        assert _only_block(payload).start == "2024-01-15T08:00:00+00:00"

    @pytest.mark.parametrize("start", [{"at": "09:00"}, ["2024-01-15T09:00"], float("nan"), 1e30])
    def test_unusable_start_is_a_validation_error(self, service, start):
        """Values that are neither text, datetimes nor valid timestamps come back as a message."""
        with pytest.raises(BlockValidationError) as exc_info:
            service.create_block("anna", start, "2024-01-15T10:00")
        assert exc_info.value.messages == ["Start and end must be valid datetimes."]

    @pytest.mark.parametrize(
        "person,start,end",
        [(None, "2024-01-15T09:00", "2024-01-15T10:00"), ("anna", "", "2024-01-15T10:00"), ("anna", "2024-01-15T09:00", None)],
    )
    def test_missing_fields(self, service, person, start, end):
        """Person, start and end are all required."""
        with pytest.raises(MissingFieldError) as exc_info:
            service.create_block(person, start, end)
        assert exc_info.value.message == "personId, start and end are required."

    def test_unknown_person(self, service):
        """Persons must be on the roster."""
        with pytest.raises(UnknownPersonError):
            service.create_block("zoe", "2024-01-15T09:00", "2024-01-15T10:00")

    def test_malformed_start_is_a_validation_error(self, service):
        """Unparseable text is a validation message, not a crash."""
        with pytest.raises(BlockValidationError) as exc_info:
            service.create_block("anna", "yesterday", "2024-01-15T10:00")
        assert exc_info.value.messages == ["Start and end must be valid datetimes."]

    def test_overlaps_block_stored_before_the_window(self, clock, policy):
        """A Sunday-night block still blocks Monday 00:30 for the same person."""
        store = InMemoryStore(clock, blocks=[Block(id="sun", person_id="anna", start="2024-01-14T23:00", end="2024-01-15T01:00")])
        service = BlockService(store, policy, clock)

        with pytest.raises(BlockValidationError):
            service.create_block("anna", "2024-01-15T00:30", "2024-01-15T02:00")

    def test_concurrent_overlapping_submissions(self, service):
        """Of two simultaneous overlapping submissions only one is stored."""
        barrier = Barrier(2, timeout=5)

        def submit():
            barrier.wait()
            try:
                service.create_block("carla", "2024-01-17T09:00", "2024-01-17T12:00")
            except BlockValidationError:
                return False
            return True

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(lambda _: submit(), range(2)))

        assert sorted(results) == [False, True]
        assert len(service.get_week("2024-01-17").blocks) == 1


class TestUpdateBlock:
    """update_block re-validates the merged block."""

    def test_move_within_day(self, service):
        """Moving a block keeps its id and updates the summary."""
        block = _only_block(service.create_block("anna", "2024-01-15T09:00", "2024-01-15T17:00"))

        payload = service.update_block(block.id, {"start": "2024-01-15T10:00", "end": "2024-01-15T18:00"})

        moved = _only_block(payload)
        assert moved.id == block.id
        assert moved.start == "2024-01-15T10:00"
        assert payload.day_summaries["2024-01-15"]["after"] == 1

    def test_reassign_person(self, service):
        """A block can change owner; the actor is recorded."""
        block = _only_block(service.create_block("anna", "2024-01-15T09:00", "2024-01-15T12:00"))

        payload = service.update_block(block.id, {"personId": "dan", "color": "ignored"}, actor_id="bob")

        assert payload.person_summaries == {"dan": 3}
        entry = service.history(1)[0]
        assert entry.action == "update"
        assert entry.actor_person_id == "bob"
        assert entry.target_person_id == "dan"

    def test_move_to_another_week(self, service):
        """The payload follows the block to its new week."""
        block = _only_block(service.create_block("anna", "2024-01-15T09:00", "2024-01-15T12:00"))

        payload = service.update_block(block.id, {"start": "2024-01-22T09:00", "end": "2024-01-22T12:00"})

        assert payload.week_start == "2024-01-22"
        assert service.get_week("2024-01-15").blocks == []

    def test_rejected_update_keeps_original(self, service):
        """A failed update leaves the stored block as it was."""
        block = _only_block(service.create_block("anna", "2024-01-15T09:00", "2024-01-15T12:00"))

        with pytest.raises(BlockValidationError):
            service.update_block(block.id, {"end": "2024-01-15T08:00"})

        assert service.store.get_block(block.id).end == "2024-01-15T12:00"

    def test_cleared_start_is_a_validation_error(self, service):
        """A null start in the changes is reported, and the stored block is kept."""
        block = _only_block(service.create_block("anna", "2024-01-15T09:00", "2024-01-15T12:00"))

        with pytest.raises(BlockValidationError) as exc_info:
            service.update_block(block.id, {"start": None})

        assert exc_info.value.messages == ["Start and end must be valid datetimes."]
        assert service.store.get_block(block.id).start == "2024-01-15T09:00"

    def test_move_end_with_epoch_seconds(self, service):
        """A numeric end in the changes is read as a Unix timestamp."""
        block = _only_block(service.create_block("anna", "2024-01-15T09:00", "2024-01-15T12:00"))

        payload = service.update_block(block.id, {"end": 1705309200})

        assert payload.day_summaries["2024-01-15"]["total"] == 1

    def test_cleared_person_is_a_missing_field(self, service):
        """Removing the person from a block is refused."""
        block = _only_block(service.create_block("anna", "2024-01-15T09:00", "2024-01-15T12:00"))

        with pytest.raises(MissingFieldError):
            service.update_block(block.id, {"personId": None})

    def test_unknown_block(self, service):
        """Updating a missing block raises BlockNotFoundError."""
        with pytest.raises(BlockNotFoundError) as exc_info:
            service.update_block("missing", {"start": "2024-01-15T09:00"})
        assert exc_info.value.message == "Block not found"

    def test_unknown_person(self, service):
        """Reassigning to an unknown person is refused."""
        block = _only_block(service.create_block("anna", "2024-01-15T09:00", "2024-01-15T12:00"))
        with pytest.raises(UnknownPersonError):
            service.update_block(block.id, {"personId": "zoe"})


class TestDeleteBlock:
    """delete_block removes blocks and their hours."""

    def test_delete_removes_hours(self, service):
        """Deleted hours disappear from the day summary and the person's total."""
        keep = _only_block(service.create_block("anna", "2024-01-15T09:00", "2024-01-15T12:00"))
        payload = service.create_block("anna", "2024-01-15T13:00", "2024-01-15T15:00")
        drop = next(b for b in payload.blocks if b.id != keep.id)

        payload = service.delete_block(drop.id)

        assert payload.day_summaries["2024-01-15"]["total"] == 3
        assert payload.day_summaries["2024-01-15"]["blocks"] == [keep.id]
        assert payload.person_summaries == {"anna": 3}

    def test_delete_last_block_of_person(self, service):
        """A person without blocks drops out of the totals."""
        block = _only_block(service.create_block("bob", "2024-01-16T09:00", "2024-01-16T12:00"))

        payload = service.delete_block(block.id, actor_id="anna")

        assert payload.week_start == "2024-01-15"
        assert payload.person_summaries == {}
        entry = service.history(1)[0]
        assert (entry.action, entry.actor_person_id, entry.target_person_id) == ("delete", "anna", "bob")

    def test_unknown_block(self, service):
        """Deleting a missing block raises BlockNotFoundError."""
        with pytest.raises(BlockNotFoundError):
            service.delete_block("missing")


class TestReads:
    """Week, history and remaining-hours reads."""

    def test_get_week_requires_date(self, service):
        """A week read needs a date."""
        with pytest.raises(MissingFieldError) as exc_info:
            service.get_week("")
        assert exc_info.value.message == "start is required (YYYY-MM-DD)"

    def test_get_week_rejects_bad_date(self, service):
        """Unparseable dates raise InvalidDateError."""
        with pytest.raises(InvalidDateError):
            service.get_week("next tuesday")

    def test_get_week_from_any_day(self, service):
        """Any day of the week selects that week."""
        assert service.get_week("2024-01-18").week_start == "2024-01-15"

    def test_block_starting_before_week_is_not_listed(self, clock, policy):
        """A Sunday-night block belongs to the previous week even if it runs into Monday."""
        store = InMemoryStore(clock, blocks=[Block(id="sun", person_id="anna", start="2024-01-14T23:00", end="2024-01-15T01:00")])
        service = BlockService(store, policy, clock)

        payload = service.get_week("2024-01-15")

        assert payload.blocks == []
        assert payload.week_total == 0
        assert service.remaining("2024-01-15")["2024-01-15"] == 8

    def test_history_newest_first_with_default_limit(self, service):
        """History is newest first and capped at three by default."""
        for day in (15, 16, 17, 18):
            service.create_block("anna", f"2024-01-{day}T09:00", f"2024-01-{day}T10:00")

        entries = service.history()

        assert len(entries) == 3
        assert all(entry.action == "create" for entry in entries)
        assert "Thu 09:00-10:00" in entries[0].details
        assert "Tue 09:00-10:00" in entries[2].details

    def test_remaining(self, service):
        """Remaining hours per day of the week."""
        service.create_block("anna", "2024-01-15T09:00", "2024-01-15T14:00")
        service.create_block("bob", "2024-01-15T14:00", "2024-01-15T16:30")

        remaining = service.remaining("2024-01-15")

        assert remaining["2024-01-15"] == 0.5
        assert remaining["2024-01-19"] == 8
        assert len(remaining) == 5
