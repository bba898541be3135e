"""Tests for event records."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import UTC, datetime

import pytest

from core.events import EventName, EventRecord, EventStatus, format_time, parse_time


class TestEventRecord:
    """Tests for EventRecord."""

    def test_enum_members_stored_as_strings(self) -> None:
        """Test enum name and status are stored as plain strings."""
        event = EventRecord(name=EventName.INSTALLED, status=EventStatus.SUCCESS)

        assert event.name == "installed"
        assert event.status == "success"
        assert type(event.status) is str

    def test_is_immutable(self) -> None:
        event = EventRecord(name="installed", status="success")

        with pytest.raises(FrozenInstanceError):
            event.message = "changed"  # type: ignore[misc]

    def test_to_dict(self) -> None:
        """Test serialization to dictionary."""
        event = EventRecord(
            name="updated",
            status="success",
            message="updated (was 1.0, now 2.0)",
            time=datetime(2025, 1, 1, 12, 0, 0, 500, tzinfo=UTC),
            property="install",
            resource="Package[vim]",
            previous_value="1.0",
            desired_value="2.0",
        )

        data = event.to_dict()

        assert data["name"] == "updated"
        assert data["status"] == "success"
        assert data["time"] == "2025-01-01T12:00:00.000500+00:00"
        assert data["resource"] == "Package[vim]"
        assert data["previous_value"] == "1.0"

    def test_from_dict(self) -> None:
        """Test deserialization from dictionary."""
        data = {
            "name": "removed",
            "status": "success",
            "message": "removed",
            "time": "2025-01-01T00:00:00.000000+00:00",
            "property": "install",
            "resource": "Package[nano]",
            "previous_value": "7.2",
            "desired_value": "notinstalled",
        }

        event = EventRecord.from_dict(data)

        assert event.name == "removed"
        assert event.time == datetime(2025, 1, 1, tzinfo=UTC)
        assert event.desired_value == "notinstalled"

    def test_round_trip(self) -> None:
        """Test decoding an encoded event yields an equal event."""
        event = EventRecord(name="failure", status="failure", message="boom")

        assert EventRecord.from_dict(event.to_dict()) == event


class TestTimeFormat:
    """Tests for timestamp encoding."""

    def test_keeps_microseconds_when_zero(self) -> None:
        value = datetime(2025, 6, 1, tzinfo=UTC)

        assert format_time(value) == "2025-06-01T00:00:00.000000+00:00"

    def test_round_trip(self) -> None:
        value = datetime(2025, 6, 1, 3, 4, 5, 123456, tzinfo=UTC)

        assert parse_time(format_time(value)) == value
