"""Install state machine for package resources.

InstallState compares the declared desired values of a package against what
the bound provider reports, and performs exactly one corrective action when
they differ.

Stages within one convergence pass:
    UNEVALUATED -> RETRIEVED -> IN_SYNC | OUT_OF_SYNC -> SYNCED | SYNC_FAILED

In-sync rules, applied to each desired value in declaration order and
stopping at the first match:
    - installed: anything but not-installed
    - latest: the observed version equals the provider's latest version
    - notinstalled: not-installed
    - exact version: the observed version equals it

Synchronization always acts on the first desired value only.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

from .errors import QueryError, SyncActionError, UnsupportedOperationError
from .events import EventName
from .interfaces import Capability
from .models import NOT_INSTALLED, DesiredKind, DesiredValue

if TYPE_CHECKING:
    from .interfaces import Provider
    from .models import PackageInfo

logger = structlog.get_logger(__name__)


class Stage(str, Enum):
    """Progress of an InstallState through one convergence pass."""

    UNEVALUATED = "unevaluated"
    RETRIEVED = "retrieved"
    IN_SYNC = "in_sync"
    OUT_OF_SYNC = "out_of_sync"
    SYNCED = "synced"
    SYNC_FAILED = "sync_failed"


class LatestVersionCache:
    """Latest-version lookups memoized per (provider kind, package name).

    Lookups for the same key are serialized so that at most one query per
    key is in flight; different keys do not block each other.
    """

    def __init__(self) -> None:
        self._values: dict[tuple[str, str], str] = {}
        self._locks: dict[tuple[str, str], threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, kind: str, package: str, fetch: Callable[[], str]) -> str:
        """Return the cached latest version, fetching it on first use.

        Args:
            kind: Provider kind name.
            package: Package name.
            fetch: Called to obtain the version when it is not cached.

        Returns:
            The latest version string.
        """
        key = (kind, package)
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
        with lock:
            if key not in self._values:
                self._values[key] = fetch()
                logger.debug("latest_version_cached", provider=kind, package=package)
            return self._values[key]

    def clear(self) -> None:
        """Forget all cached versions."""
        with self._guard:
            # Per-key locks outlive clear(); an in-flight fetch still owns its key
            self._values.clear()

    def __len__(self) -> int:
        return len(self._values)


class InstallState:
    """Should-versus-is comparison for the install property of a package."""

    name = "install"

    def __init__(
        self,
        should: Sequence[Any] | Any,
        provider: Provider,
        *,
        package: str,
        latest_cache: LatestVersionCache | None = None,
    ) -> None:
        """Initialize the state.

        Args:
            should: One raw desired value or an ordered sequence of them.
            provider: Provider bound to the package.
            package: Package name, used for logging and latest-version caching.
            latest_cache: Optional shared cache for latest-version lookups.

        Raises:
            ValueError: If no desired value is given or one is not recognized.
            UnsupportedOperationError: If ``latest`` is declared and the
                provider cannot report latest versions.
        """
        raw_values = list(should) if isinstance(should, (list, tuple)) else [should]
        if not raw_values:
            raise ValueError("At least one desired value is required")

        self._should = tuple(DesiredValue.parse(value) for value in raw_values)
        self._provider = provider
        self._package = package
        self._latest_cache = latest_cache
        self._log = logger.bind(package=package, provider=provider.kind_name)

        if any(v.kind == DesiredKind.LATEST for v in self._should):
            if not provider.supports_latest:
                raise UnsupportedOperationError(provider.kind_name, "installing later versions")

        self._stage = Stage.UNEVALUATED
        self._current: str | None = None
        self._info: PackageInfo | None = None
        self._latest: str | None = None

    @property
    def should(self) -> tuple[DesiredValue, ...]:
        """Declared desired values, in preference order."""
        return self._should

    @property
    def provider(self) -> Provider:
        return self._provider

    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def current(self) -> str:
        """Observed value, retrieved on first access.

        Returns:
            The installed version, or NOT_INSTALLED.
        """
        if self._current is None:
            self.retrieve()
        assert self._current is not None
        return self._current

    @property
    def info(self) -> PackageInfo | None:
        """Full query result from the last retrieval, if the package is installed."""
        return self._info

    @property
    def latest_version(self) -> str | None:
        """Latest version seen by the last insync() check, if any."""
        return self._latest

    def retrieve(self) -> None:
        """Query the provider for the observed value, once per pass.

        Raises:
            QueryError: If the provider query fails.
        """
        if self._current is not None:
            return

        try:
            info = self._provider.query()
        except UnsupportedOperationError:
            raise
        except Exception as e:
            self._log.error("query_failed", error=str(e))
            raise QueryError(f"query {self._package}", e) from e

        self._info = info
        self._current = NOT_INSTALLED if info is None else info.version
        self._stage = Stage.RETRIEVED
        self._log.debug("state_retrieved", current=str(self._current))

    def insync(self) -> bool:
        """Check whether the observed value satisfies any desired value.

        Returns:
            True if in sync.

        Raises:
            QueryError: If retrieval or the latest-version lookup fails.
        """
        current = self.current

        for should in self._should:
            if should.kind == DesiredKind.INSTALLED:
                if current != NOT_INSTALLED:
                    return self._mark(True)
            elif should.kind == DesiredKind.LATEST:
                latest = self._lookup_latest()
                if current == latest:
                    return self._mark(True)
                self._log.debug("latest_differs", latest=latest, current=str(current))
            elif should.kind == DesiredKind.NOT_INSTALLED:
                if current == NOT_INSTALLED:
                    return self._mark(True)
            elif should.kind == DesiredKind.VERSION:
                if current == should.version:
                    return self._mark(True)
            else:
                raise ValueError(f"Unrecognized desired value: {should!r}")

        return self._mark(False)

    def sync(self) -> EventName:
        """Perform the corrective action for the first desired value.

        Returns:
            The name of the event describing what was done.

        Raises:
            UnsupportedOperationError: If the provider lacks the needed
                capability. No provider action is attempted.
            SyncActionError: If the provider action fails.
        """
        should = self._should[0]
        version: str | None = None

        if should.kind == DesiredKind.INSTALLED:
            action, event = Capability.INSTALL, EventName.INSTALLED
        elif should.kind == DesiredKind.NOT_INSTALLED:
            action, event = Capability.REMOVE, EventName.REMOVED
        elif should.kind == DesiredKind.LATEST:
            if self.current == NOT_INSTALLED:
                action, event = Capability.INSTALL, EventName.INSTALLED
            else:
                action, event = Capability.UPDATE, EventName.UPDATED
        elif should.kind == DesiredKind.VERSION:
            if not self._provider.versionable:
                self._stage = Stage.SYNC_FAILED
                raise UnsupportedOperationError(self._provider.kind_name, "specifying versions")
            action, event = Capability.INSTALL, EventName.INSTALLED
            version = should.version
        else:
            raise ValueError(f"Unrecognized desired value: {should!r}")

        if not self._provider.supports(action):
            self._stage = Stage.SYNC_FAILED
            raise UnsupportedOperationError(self._provider.kind_name, action.value)

        self._log.info("sync_started", action=action.value, should=str(should))
        try:
            if action == Capability.INSTALL:
                self._provider.install(version)
            elif action == Capability.REMOVE:
                self._provider.remove()
            else:
                self._provider.update()
        except Exception as e:
            self._stage = Stage.SYNC_FAILED
            self._log.error("sync_failed", action=action.value, error=str(e))
            raise SyncActionError(action.value, e) from e

        self._stage = Stage.SYNCED
        self._log.info("sync_completed", result=event.value)
        return event

    def reset(self) -> None:
        """Forget the observed value so the next pass retrieves it again."""
        self._current = None
        self._info = None
        self._latest = None
        self._stage = Stage.UNEVALUATED

    def _lookup_latest(self) -> str:
        """Ask the provider (or the shared cache) for the latest version."""
        try:
            if self._latest_cache is not None:
                latest = self._latest_cache.get(
                    self._provider.kind_name, self._package, self._provider.latest
                )
            else:
                latest = self._provider.latest()
        except UnsupportedOperationError:
            raise
        except Exception as e:
            self._log.error("latest_lookup_failed", error=str(e))
            raise QueryError(f"find latest version of {self._package}", e) from e

        self._latest = latest
        return latest

    def _mark(self, insync: bool) -> bool:
        self._stage = Stage.IN_SYNC if insync else Stage.OUT_OF_SYNC
        return insync
