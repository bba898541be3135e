"""Transaction reports and their storage.

A TransactionReport aggregates the status snapshots of every resource
evaluated during one convergence pass. ReportStore keeps the persisted
subset of each status as JSON under the XDG data directory.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from .events import format_time, parse_time
from .status import StatusSnapshot

logger = structlog.get_logger(__name__)


@dataclass
class TransactionReport:
    """Result of one convergence pass."""

    run_id: str
    start_time: datetime
    end_time: datetime | None = None
    statuses: list[StatusSnapshot] = field(default_factory=list)

    @property
    def total_resources(self) -> int:
        return len(self.statuses)

    @property
    def changed_resources(self) -> int:
        return sum(1 for s in self.statuses if s.changed)

    @property
    def out_of_sync_resources(self) -> int:
        return sum(1 for s in self.statuses if s.out_of_sync)

    @property
    def failed_resources(self) -> int:
        return sum(1 for s in self.statuses if s.failed)

    @property
    def skipped_resources(self) -> int:
        return sum(1 for s in self.statuses if s.skipped)

    @property
    def total_changes(self) -> int:
        """Number of successful changes across all resources."""
        return sum(s.change_count for s in self.statuses)

    @property
    def duration_seconds(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def exit_code(self) -> int:
        """1 if any resource failed, else 0."""
        return 1 if self.failed_resources else 0

    @property
    def detailed_exit_code(self) -> int:
        """Bit field: 2 when something changed, 4 when something failed."""
        code = 0
        if self.changed_resources:
            code |= 2
        if self.failed_resources:
            code |= 4
        return code

    def status_for(self, resource: str) -> StatusSnapshot | None:
        """Find the snapshot for a resource reference such as ``Package[vim]``."""
        for status in self.statuses:
            if status.resource == resource:
                return status
        return None

    def to_dict(self, *, storage: bool = False) -> dict[str, Any]:
        """Convert to dictionary for serialization.

        Args:
            storage: Only include the persisted field subset of each status.
        """
        return {
            "run_id": self.run_id,
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time) if self.end_time else None,
            "statuses": [s.to_storage() if storage else s.to_dict() for s in self.statuses],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionReport:
        """Create from dictionary."""
        return cls(
            run_id=data["run_id"],
            start_time=parse_time(data["start_time"]),
            end_time=parse_time(data["end_time"]) if data.get("end_time") else None,
            statuses=[StatusSnapshot.from_dict(s) for s in data.get("statuses", [])],
        )


def get_report_dir() -> Path:
    """Get the default report directory following the XDG spec."""
    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
    return base / "converge-all" / "reports"


class ReportStore:
    """Stores transaction reports as JSON files."""

    def __init__(self, report_dir: Path | None = None) -> None:
        """Initialize the store.

        Args:
            report_dir: Directory for report files. Uses the XDG default if not provided.
        """
        self.report_dir = report_dir or get_report_dir()

    def save(self, report: TransactionReport) -> Path:
        """Write the persisted subset of a report.

        Args:
            report: Report to store.

        Returns:
            Path of the written file.
        """
        self.report_dir.mkdir(parents=True, exist_ok=True)
        stamp = report.start_time.strftime("%Y%m%d_%H%M%S_%f")
        path = self.report_dir / f"report_{stamp}_{report.run_id}.json"
        with path.open("w") as f:
            json.dump(report.to_dict(storage=True), f, indent=2)

        logger.info("report_saved", path=str(path), resources=report.total_resources)
        return path

    def list_reports(self) -> list[Path]:
        """List stored report files, oldest first."""
        if not self.report_dir.exists():
            return []
        return sorted(self.report_dir.glob("report_*.json"))

    def load(self, path: Path) -> TransactionReport:
        """Load a stored report."""
        with path.open() as f:
            return TransactionReport.from_dict(json.load(f))

    def load_latest(self) -> TransactionReport | None:
        """Load the most recent report, or None if none are stored."""
        reports = self.list_reports()
        if not reports:
            return None
        return self.load(reports[-1])
