"""Transaction driver for convergence passes.

This module evaluates package resources in the order they are given,
converting the outcome of each install state into events on a per-resource
TransactionStatus, and collects the snapshots into a TransactionReport.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from .errors import (
    QueryError,
    SyncActionError,
    UnknownProviderError,
    UnsupportedOperationError,
)
from .events import EventName, EventRecord, EventStatus
from .models import DesiredKind
from .report import TransactionReport
from .state import InstallState, LatestVersionCache
from .status import TransactionStatus

if TYPE_CHECKING:
    from .interfaces import ProviderFactory
    from .resource import PackageResource

logger = structlog.get_logger(__name__)

# Errors that fail one resource without affecting the others
RESOURCE_ERRORS = (SyncActionError, UnsupportedOperationError, QueryError, UnknownProviderError)

_CHANGE_MESSAGES = {
    EventName.INSTALLED: "installed",
    EventName.REMOVED: "removed",
    EventName.UPDATED: "updated",
}


class Transaction:
    """Runs one convergence pass over a sequence of package resources.

    The transaction is responsible for:
    - Binding each resource to a provider
    - Skipping resources outside the tag filter
    - Recording audit, change and failure events
    - Timing each resource and building the report
    """

    def __init__(
        self,
        providers: ProviderFactory,
        *,
        tags: Iterable[str] | None = None,
        latest_cache: LatestVersionCache | None = None,
    ) -> None:
        """Initialize the transaction.

        Args:
            providers: Selects and binds providers for resources.
            tags: Only evaluate resources carrying at least one of these tags.
            latest_cache: Latest-version cache shared by all resources in the pass.
        """
        self.providers = providers
        self.tags = frozenset(tags or ())
        self.latest_cache = latest_cache or LatestVersionCache()
        self._log = logger.bind(component="transaction")

    def evaluate(self, resources: Sequence[PackageResource]) -> TransactionReport:
        """Evaluate all resources in order.

        Args:
            resources: Resources to converge, in evaluation order.

        Returns:
            TransactionReport with one status per resource.
        """
        report = TransactionReport(
            run_id=str(uuid.uuid4())[:8],
            start_time=datetime.now(tz=UTC),
        )
        self.latest_cache.clear()

        self._log.info("pass_started", run_id=report.run_id, resource_count=len(resources))

        for resource in resources:
            status = self.evaluate_resource(resource)
            report.statuses.append(status.snapshot())

        report.end_time = datetime.now(tz=UTC)

        self._log.info(
            "pass_completed",
            run_id=report.run_id,
            total=report.total_resources,
            changed=report.changed_resources,
            failed=report.failed_resources,
            skipped=report.skipped_resources,
            duration_seconds=report.duration_seconds,
        )
        return report

    def evaluate_resource(self, resource: PackageResource) -> TransactionStatus:
        """Evaluate a single resource.

        Args:
            resource: The resource to converge.

        Returns:
            The finalized TransactionStatus for the resource.
        """
        log = self._log.bind(resource=resource.ref)

        if not self._selected(resource):
            log.info("resource_skipped", reason="tags")
            status = TransactionStatus(resource, skipped=True)
            status.finalize()
            return status

        status = TransactionStatus(resource)
        started = time.monotonic()
        state: InstallState | None = None

        try:
            state = self._prepare(resource)
            if resource.audit:
                status.record_event(self._audit_event(resource, state))
            elif state.insync():
                log.debug("resource_in_sync", current=str(state.current))
            else:
                previous = str(state.current)
                name = state.sync()
                status.record_event(self._change_event(resource, state, name, previous))
        except RESOURCE_ERRORS as e:
            log.warning("resource_failed", error=str(e))
            status.record_event(self._failure_event(resource, state, e))

        status.finalize(time.monotonic() - started)
        return status

    def _selected(self, resource: PackageResource) -> bool:
        return not self.tags or bool(self.tags & resource.tags)

    def _prepare(self, resource: PackageResource) -> InstallState:
        """Bind the resource on first use; reset its state on later passes."""
        if resource.install_state is None:
            provider = self.providers.provider_for(resource)
            return resource.bind(provider, self.latest_cache)
        resource.install_state.reset()
        return resource.install_state

    def _audit_event(self, resource: PackageResource, state: InstallState) -> EventRecord:
        current = str(state.current)
        return EventRecord(
            name=EventName.AUDIT,
            status=EventStatus.AUDIT,
            message=f"audit: install is {current}",
            property=state.name,
            resource=resource.ref,
            previous_value=current,
        )

    def _change_event(
        self,
        resource: PackageResource,
        state: InstallState,
        name: EventName,
        previous: str,
    ) -> EventRecord:
        desired = self._desired(state)
        return EventRecord(
            name=name,
            status=EventStatus.SUCCESS,
            message=f"{_CHANGE_MESSAGES[name]} (was {previous}, now {desired})",
            property=state.name,
            resource=resource.ref,
            previous_value=previous,
            desired_value=desired,
        )

    def _failure_event(
        self,
        resource: PackageResource,
        state: InstallState | None,
        error: Exception,
    ) -> EventRecord:
        return EventRecord(
            name=EventName.FAILURE,
            status=EventStatus.FAILURE,
            message=str(error),
            property=InstallState.name,
            resource=resource.ref,
            desired_value=self._desired(state) if state is not None else None,
        )

    @staticmethod
    def _desired(state: InstallState) -> str:
        should = state.should[0]
        if should.kind == DesiredKind.LATEST and state.latest_version:
            return state.latest_version
        return str(should)
