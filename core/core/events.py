"""Event records describing what happened to a resource property.

An EventRecord is created once per synchronized (or audited) property and is
never modified afterwards. Transaction statuses collect them in order.

Event names:
    - installed / removed / updated: outcome of a corrective install action
    - success / failure / audit: generic outcomes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class EventStatus(str, Enum):
    """Recognized event statuses."""

    SUCCESS = "success"
    FAILURE = "failure"
    AUDIT = "audit"


class EventName(str, Enum):
    """Vocabulary of event names."""

    INSTALLED = "installed"
    REMOVED = "removed"
    UPDATED = "updated"
    SUCCESS = "success"
    FAILURE = "failure"
    AUDIT = "audit"


def format_time(value: datetime) -> str:
    """Format a timestamp as ISO 8601 with full microsecond precision."""
    return value.isoformat(timespec="microseconds")


def parse_time(value: str) -> datetime:
    """Parse a timestamp written by format_time."""
    return datetime.fromisoformat(value)


@dataclass(frozen=True, slots=True)
class EventRecord:
    """Outcome of synchronizing one declared property of a resource.

    Attributes:
        name: Event name, e.g. ``installed`` or ``failure``.
        status: Event status. Kept as a plain string so that decoded events
            carrying an unknown status reach TransactionStatus.record_event,
            which is where the vocabulary is enforced.
        message: Human-readable description of the outcome.
        time: When the event was created.
        property: Name of the property the event is about.
        resource: Reference of the resource, e.g. ``Package[vim]``.
        previous_value: Observed value before the change.
        desired_value: Value the property was synchronized towards.
    """

    name: str
    status: str
    message: str = ""
    time: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    property: str | None = None
    resource: str | None = None
    previous_value: str | None = None
    desired_value: str | None = None

    def __post_init__(self) -> None:
        """Store enum members as their plain string values."""
        for attr in ("name", "status"):
            value = getattr(self, attr)
            if isinstance(value, Enum):
                object.__setattr__(self, attr, value.value)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "status": self.status,
            "message": self.message,
            "time": format_time(self.time),
            "property": self.property,
            "resource": self.resource,
            "previous_value": self.previous_value,
            "desired_value": self.desired_value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventRecord:
        """Create from dictionary."""
        return cls(
            name=data["name"],
            status=data["status"],
            message=data.get("message", ""),
            time=parse_time(data["time"]),
            property=data.get("property"),
            resource=data.get("resource"),
            previous_value=data.get("previous_value"),
            desired_value=data.get("desired_value"),
        )
