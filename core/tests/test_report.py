"""Tests for transaction reports and report storage."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from core.events import EventRecord
from core.report import ReportStore, TransactionReport, get_report_dir
from core.resource import PackageResource
from core.status import PERSISTED_FIELDS, StatusSnapshot, TransactionStatus

if TYPE_CHECKING:
    from pathlib import Path

START = datetime(2025, 4, 1, 8, 0, 0, tzinfo=UTC)


def _snapshot(name: str, *statuses: str, skipped: bool = False) -> StatusSnapshot:
    status = TransactionStatus(PackageResource(name=name), skipped=skipped, time=START)
    for value in statuses:
        status.record_event(EventRecord(name=value, status=value, resource=status.resource))
    status.finalize(0.1)
    return status.snapshot()


def _report(*snapshots: StatusSnapshot, run_id: str = "abc12345") -> TransactionReport:
    return TransactionReport(
        run_id=run_id,
        start_time=START,
        end_time=START + timedelta(seconds=3),
        statuses=list(snapshots),
    )


class TestTransactionReport:
    """Tests for TransactionReport aggregates."""

    def test_counts(self) -> None:
        report = _report(
            _snapshot("vim", "success"),
            _snapshot("nano", "failure"),
            _snapshot("git", "success", "success"),
            _snapshot("curl", skipped=True),
            _snapshot("less", "audit"),
        )

        assert report.total_resources == 5
        assert report.changed_resources == 2
        assert report.failed_resources == 1
        assert report.skipped_resources == 1
        assert report.out_of_sync_resources == 3
        assert report.total_changes == 3
        assert report.duration_seconds == 3.0

    def test_exit_codes_clean(self) -> None:
        report = _report(_snapshot("vim"))

        assert report.exit_code == 0
        assert report.detailed_exit_code == 0

    def test_exit_codes_changed(self) -> None:
        report = _report(_snapshot("vim", "success"))

        assert report.exit_code == 0
        assert report.detailed_exit_code == 2

    def test_exit_codes_failed(self) -> None:
        report = _report(_snapshot("vim", "failure"))

        assert report.exit_code == 1
        assert report.detailed_exit_code == 4

    def test_duration_unknown_while_running(self) -> None:
        report = TransactionReport(run_id="x", start_time=START)

        assert report.duration_seconds is None

    def test_status_for(self) -> None:
        report = _report(_snapshot("vim"), _snapshot("nano"))

        found = report.status_for("Package[nano]")

        assert found is not None
        assert found.title == "nano"
        assert report.status_for("Package[emacs]") is None

    def test_storage_dict(self) -> None:
        """Test the storage form keeps only persisted status fields."""
        data = _report(_snapshot("vim", "success")).to_dict(storage=True)

        assert data["run_id"] == "abc12345"
        assert set(data["statuses"][0]) == set(PERSISTED_FIELDS)

    def test_from_dict(self) -> None:
        report = _report(_snapshot("vim", "success"), _snapshot("nano"))

        restored = TransactionReport.from_dict(report.to_dict())

        assert restored.run_id == report.run_id
        assert restored.end_time == report.end_time
        assert restored.statuses == report.statuses


class TestReportStore:
    """Tests for ReportStore."""

    def test_default_dir_follows_xdg(self, isolated_xdg_dirs: Path) -> None:
        assert get_report_dir() == isolated_xdg_dirs / "converge-all" / "reports"
        assert ReportStore().report_dir == get_report_dir()

    def test_save_and_load(self, tmp_path: Path) -> None:
        store = ReportStore(tmp_path / "reports")
        report = _report(_snapshot("vim", "success"))

        path = store.save(report)

        assert path.exists()
        assert path.name.startswith("report_20250401_080000")
        assert path.name.endswith("_abc12345.json")
        stored = json.loads(path.read_text())
        assert "failed_to_restart" not in stored["statuses"][0]

        loaded = store.load(path)
        assert loaded.run_id == "abc12345"
        assert loaded.statuses[0].changed
        assert loaded.statuses[0].events[0].status == "success"

    def test_load_latest(self, tmp_path: Path) -> None:
        store = ReportStore(tmp_path)
        older = _report(_snapshot("vim"), run_id="older000")
        newer = TransactionReport(
            run_id="newer000",
            start_time=START + timedelta(hours=1),
            statuses=[_snapshot("nano")],
        )

        store.save(newer)
        store.save(older)

        latest = store.load_latest()
        assert latest is not None
        assert latest.run_id == "newer000"
        assert len(store.list_reports()) == 2

    def test_load_latest_empty(self, tmp_path: Path) -> None:
        store = ReportStore(tmp_path / "missing")

        assert store.list_reports() == []
        assert store.load_latest() is None
