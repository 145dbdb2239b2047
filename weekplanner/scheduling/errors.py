"""Canonical scheduling error types.

Validation outcomes inside the core are data (lists of messages), never
exceptions. These types are raised at the service boundary, or for invariant
violations that indicate a bug in the core itself.
"""


class SchedulingError(Exception):
    """Base exception for scheduling errors surfaced to callers."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MissingFieldError(SchedulingError):
    """Raised when a required request field is absent."""


class InvalidDateError(SchedulingError, ValueError):
    """Raised when a date string cannot be parsed as a calendar date."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


class UnknownPersonError(SchedulingError):
    """Raised when a block references a person missing from the roster."""

    def __init__(self, person_id: str):
        self.person_id = person_id
        super().__init__(f"Unknown person: {person_id}")


class BlockNotFoundError(SchedulingError):
    """Raised when a block id does not exist in the repository."""

    def __init__(self, block_id: str):
        self.block_id = block_id
        super().__init__("Block not found")


class UnknownPolicyError(SchedulingError, KeyError):
    """Raised when a policy preset name is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown policy: {name}")

    def __str__(self) -> str:
        return self.message


class BlockValidationError(SchedulingError):
    """Raised when a candidate block violates the scheduling policy.

    Attributes:
        messages: Violation messages in the order they were discovered
    """

    def __init__(self, messages: list[str]):
        self.messages = list(messages)
        super().__init__(" ".join(self.messages))


class SummaryInvariantError(RuntimeError):
    """Raised when an aggregation invariant is violated (a bug, not user error).

    Attributes:
        code: Error code (e.g., "MISSING_DAY_KEY")
        details: List of error detail strings
    """

    def __init__(self, code: str, details: list[str]):
        self.code = code
        self.details = details
        super().__init__(f"{code}: {details}")
