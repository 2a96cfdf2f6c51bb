"""Exceptions and warnings raised by the classification engine."""

from typing import Any


class CabinetWatchError(Exception):
    """Base class for CabinetWatch errors."""


class InvalidReadingError(CabinetWatchError, ValueError):
    """A raw metric value is not a finite number."""

    def __init__(self, name: str, value: Any):
        self.name = name
        self.value = value
        super().__init__(f"Invalid reading for {name}: {value!r} is not a finite number")


class EmptyAggregationError(CabinetWatchError, ValueError):
    """A severity fold was attempted over zero inputs."""

    def __init__(self, what: str = "severities"):
        self.what = what
        super().__init__(f"Cannot aggregate empty {what}")


class SnapshotValidationError(CabinetWatchError):
    """A raw snapshot does not match the fleet schema."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        self.errors = errors or []
        super().__init__(message)


class ConsistencyWarning(UserWarning):
    """A precomputed severity disagrees with the joined severity."""

    def __init__(self, issue: Any):
        self.issue = issue
        super().__init__(str(issue))
