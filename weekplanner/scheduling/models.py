"""Data models for the week planner.

Wire models (Person, Block, HistoryEntry, WeekPayload) are pydantic models that
serialise with camelCase keys. Ephemeral computation results (DayFragment,
DaySummary) are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

HistoryAction = Literal["create", "update", "delete"]


class WireModel(BaseModel):
    """Base for models exchanged with storage, HTTP and UI layers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Person(WireModel):
    """Roster entry. Reference data owned by the roster provider."""

    id: str = Field(description="Stable person key")
    name: str = Field(description="Display name")
    color: str = Field(description="Display colour (CSS hex)")


class Block(WireModel):
    """A single person's scheduled time interval.

    start/end are kept as the ISO-8601 text the caller supplied so malformed
    values reach the validator and come back as a message rather than a crash.
    Datetimes and epoch seconds are converted to ISO text, None to an empty
    string and any other value to its str().
    """

    id: str = Field(description="Unique block id, assigned by the creator")
    person_id: str = Field(description="Owning person id")
    start: str = Field(description="ISO-8601 start instant")
    end: str = Field(description="ISO-8601 end instant (exclusive)")

    @field_validator("start", "end", mode="before")
    @classmethod
    def _instant_to_text(cls, value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, int | float) and not isinstance(value, bool):
            try:
                return datetime.fromtimestamp(value, UTC).isoformat()
            except (OverflowError, OSError, ValueError):
                return str(value)
        return "" if value is None else str(value)


class HistoryEntry(WireModel):
    """One change recorded by a history sink."""

    id: str
    timestamp: datetime
    actor_person_id: str
    target_person_id: str
    action: HistoryAction
    details: str


@dataclass(frozen=True)
class DayFragment:
    """Portion of one block falling on one local calendar day.

    Attributes:
        block_id: Block the fragment was cut from
        day: Local calendar date
        total: Hours of the block inside [day 00:00, next day 00:00)
        periods: Hours inside each configured sub-period, keyed by name
    """

    block_id: str
    day: date
    total: float
    periods: dict[str, float] = field(default_factory=dict)


@dataclass
class DaySummary:
    """Unrounded aggregate of every fragment landing on one day."""

    day: date
    total: float = 0.0
    periods: dict[str, float] = field(default_factory=dict)
    block_ids: list[str] = field(default_factory=list)

    def add(self, fragment: DayFragment) -> None:
        self.total += fragment.total
        for name, hours in fragment.periods.items():
            self.periods[name] = self.periods.get(name, 0.0) + hours
        self.block_ids.append(fragment.block_id)

    def period(self, name: str) -> float:
        return self.periods.get(name, 0.0)

    def to_wire(self, precision: int = 2) -> dict[str, Any]:
        """Rounded representation: {"total", <sub-period names>..., "blocks"}."""
        out: dict[str, Any] = {"total": round(self.total, precision)}
        for name, hours in self.periods.items():
            out[name] = round(hours, precision)
        out["blocks"] = list(self.block_ids)
        return out


class WeekPayload(WireModel):
    """Summary of one week as consumed by the UI/API layer."""

    week_start: str = Field(description="ISO date of the window's Monday")
    week_end: str = Field(description="ISO date of the window's last day (inclusive)")
    persons: list[Person]
    blocks: list[Block] = Field(description="Blocks starting inside the window, ascending start")
    day_summaries: dict[str, dict[str, Any]]
    person_summaries: dict[str, float]
    week_total: float
