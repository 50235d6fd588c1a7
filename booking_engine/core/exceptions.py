from typing import Any


class SchedulingError(Exception):
    """Base class for scheduling engine errors."""


class NotFoundError(SchedulingError):
    """Referenced service or staff member does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidRangeError(SchedulingError, ValueError):
    """Date range, time interval or duration that cannot be scheduled."""
