"""Transaction status of a single resource.

A TransactionStatus is created when evaluation of a resource starts, collects
the events produced while its properties are synchronized, and keeps the
change/failure bookkeeping that reports and exit codes depend on.

Counting rules:
    - change_count counts events with status ``success``
    - out_of_sync_count counts events whose status is not ``audit``
    - a ``failure`` event sets failed, a ``success`` event sets changed;
      neither flag ever reverts
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from .errors import InvalidEventStatusError, StatusFinalizedError
from .events import EventRecord, EventStatus, format_time, parse_time

if TYPE_CHECKING:
    from .resource import PackageResource

logger = structlog.get_logger(__name__)

# Fields written to long-term report storage
PERSISTED_FIELDS: tuple[str, ...] = (
    "resource",
    "file",
    "line",
    "evaluation_time",
    "change_count",
    "out_of_sync_count",
    "tags",
    "time",
    "events",
    "out_of_sync",
    "changed",
    "resource_type",
    "title",
    "skipped",
    "failed",
    "containment_path",
)


@dataclass(frozen=True)
class StatusSnapshot:
    """Immutable, serializable view of a TransactionStatus."""

    resource: str
    resource_type: str
    title: str
    file: str | None
    line: int | None
    containment_path: tuple[str, ...]
    tags: tuple[str, ...]
    time: datetime
    evaluation_time: float | None
    change_count: int
    out_of_sync_count: int
    changed: bool
    out_of_sync: bool
    skipped: bool
    failed: bool
    failed_to_restart: bool
    restarted: bool
    scheduled: bool
    events: tuple[EventRecord, ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "title": self.title,
            "file": self.file,
            "line": self.line,
            "resource": self.resource,
            "resource_type": self.resource_type,
            "containment_path": list(self.containment_path),
            "evaluation_time": self.evaluation_time,
            "tags": list(self.tags),
            "time": format_time(self.time),
            "failed": self.failed,
            "changed": self.changed,
            "out_of_sync": self.out_of_sync,
            "skipped": self.skipped,
            "failed_to_restart": self.failed_to_restart,
            "restarted": self.restarted,
            "scheduled": self.scheduled,
            "change_count": self.change_count,
            "out_of_sync_count": self.out_of_sync_count,
            "events": [event.to_dict() for event in self.events],
        }

    def to_storage(self) -> dict[str, Any]:
        """Convert to the reduced dictionary kept in report storage."""
        data = self.to_dict()
        return {name: data[name] for name in PERSISTED_FIELDS}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StatusSnapshot:
        """Create from a dictionary written by to_dict or to_storage.

        Fields missing from the stored subset decode to False.
        """
        return cls(
            resource=data["resource"],
            resource_type=data["resource_type"],
            title=data["title"],
            file=data.get("file"),
            line=data.get("line"),
            containment_path=tuple(data.get("containment_path") or ()),
            tags=tuple(data.get("tags") or ()),
            time=parse_time(data["time"]),
            evaluation_time=data.get("evaluation_time"),
            change_count=data["change_count"],
            out_of_sync_count=data["out_of_sync_count"],
            changed=data["changed"],
            out_of_sync=data["out_of_sync"],
            skipped=data["skipped"],
            failed=data["failed"],
            failed_to_restart=data.get("failed_to_restart", False),
            restarted=data.get("restarted", False),
            scheduled=data.get("scheduled", False),
            events=tuple(EventRecord.from_dict(event) for event in data["events"]),
        )


class TransactionStatus:
    """What happened to one resource during one convergence pass."""

    def __init__(
        self,
        resource: PackageResource,
        *,
        skipped: bool = False,
        scheduled: bool = False,
        restarted: bool = False,
        failed_to_restart: bool = False,
        time: datetime | None = None,
    ) -> None:
        """Initialize the status from the resource's identity.

        Args:
            resource: The resource being evaluated.
            skipped: Whether evaluation of the resource is skipped.
            scheduled: Whether the resource was in its schedule window.
            restarted: Whether the resource was restarted.
            failed_to_restart: Whether a restart was attempted and failed.
            time: Creation time. Defaults to now.
        """
        self.resource = resource.ref
        self.resource_type = resource.resource_type
        self.title = resource.title
        self.file = resource.file
        self.line = resource.line
        self.containment_path: tuple[str, ...] = tuple(resource.containment_path)
        self.source_description = resource.path
        self.tags: frozenset[str] = frozenset(resource.tags)
        self.time = time or datetime.now(tz=UTC)

        self.skipped = skipped
        self.scheduled = scheduled
        self.restarted = restarted
        self.failed_to_restart = failed_to_restart

        self._events: list[EventRecord] = []
        self._change_count = 0
        self._out_of_sync_count = 0
        self._changed = False
        self._out_of_sync = False
        self._failed = False
        self._evaluation_time: float | None = None
        self._final = False

    @property
    def events(self) -> tuple[EventRecord, ...]:
        """Events recorded so far, in order."""
        return tuple(self._events)

    @property
    def change_count(self) -> int:
        return self._change_count

    @property
    def out_of_sync_count(self) -> int:
        return self._out_of_sync_count

    @property
    def changed(self) -> bool:
        return self._changed

    @property
    def out_of_sync(self) -> bool:
        return self._out_of_sync

    @property
    def failed(self) -> bool:
        return self._failed

    @property
    def evaluation_time(self) -> float | None:
        """Seconds spent evaluating the resource, once finalized."""
        return self._evaluation_time

    @property
    def final(self) -> bool:
        return self._final

    def record_event(self, event: EventRecord) -> None:
        """Append an event and update flags and counters.

        Args:
            event: The event to append.

        Raises:
            InvalidEventStatusError: If the event status is not success,
                failure or audit. The status is left unchanged.
            StatusFinalizedError: If the status has been finalized.
        """
        if self._final:
            raise StatusFinalizedError(f"Status for {self.resource} is final")
        try:
            status = EventStatus(event.status)
        except ValueError:
            raise InvalidEventStatusError(event.status) from None

        self._events.append(event)
        if status == EventStatus.FAILURE:
            self._failed = True
        elif status == EventStatus.SUCCESS:
            self._change_count += 1
            self._changed = True
        if status != EventStatus.AUDIT:
            self._out_of_sync_count += 1
            self._out_of_sync = True

        logger.debug(
            "event_recorded",
            resource=self.resource,
            event_name=event.name,
            status=status.value,
        )

    def finalize(self, evaluation_time: float | None = None) -> None:
        """Freeze the status once the resource has been fully evaluated.

        Args:
            evaluation_time: Seconds spent evaluating the resource.
        """
        if evaluation_time is not None:
            self._evaluation_time = evaluation_time
        self._final = True

    def snapshot(self) -> StatusSnapshot:
        """Return an immutable view of the current state."""
        return StatusSnapshot(
            resource=self.resource,
            resource_type=self.resource_type,
            title=self.title,
            file=self.file,
            line=self.line,
            containment_path=self.containment_path,
            tags=tuple(sorted(self.tags)),
            time=self.time,
            evaluation_time=self._evaluation_time,
            change_count=self._change_count,
            out_of_sync_count=self._out_of_sync_count,
            changed=self._changed,
            out_of_sync=self._out_of_sync,
            skipped=self.skipped,
            failed=self._failed,
            failed_to_restart=self.failed_to_restart,
            restarted=self.restarted,
            scheduled=self.scheduled,
            events=self.events,
        )

    def __repr__(self) -> str:
        return (
            f"TransactionStatus({self.resource}, changed={self._changed}, "
            f"failed={self._failed}, events={len(self._events)})"
        )
