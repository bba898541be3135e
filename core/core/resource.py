"""Package resource declarations.

A PackageResource is the declared intent for one package: its name, the
acceptable install values, which provider kind manages it and where it was
declared. It owns the InstallState used to converge it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .models import DesiredValue
from .sources import validate_source
from .state import InstallState

if TYPE_CHECKING:
    from .interfaces import Provider
    from .models import PackageInfo
    from .state import LatestVersionCache


@dataclass
class PackageResource:
    """A declared package.

    Attributes:
        name: Package name.
        ensure: Raw desired install value, or an ordered list of them.
            Defaults to installed.
        provider: Provider kind name. None means the platform default.
        source: Package file location for providers that install from files.
        tags: Labels used to select resources for a run.
        file: Declaration file.
        line: Declaration line.
        containment_path: Titles of the enclosing declarations, outermost first.
        audit: Record the observed value without changing anything.
    """

    name: str
    ensure: Any = True
    provider: str | None = None
    source: str | None = None
    tags: set[str] = field(default_factory=set)
    file: str | None = None
    line: int | None = None
    containment_path: list[str] = field(default_factory=list)
    audit: bool = False
    install_state: InstallState | None = field(default=None, init=False, repr=False)

    resource_type = "Package"

    def __post_init__(self) -> None:
        """Validate and normalize the declaration."""
        if not self.name or not self.name.strip():
            raise ValueError("Package name must be non-empty")
        if self.source is not None:
            validate_source(self.source)
        # Normalize eagerly so invalid values fail at declaration time
        self.desired_values()
        self.tags = {*self.tags, self.resource_type.lower(), self.name}

    @property
    def title(self) -> str:
        return self.name

    @property
    def ref(self) -> str:
        """Resource reference, e.g. ``Package[vim]``."""
        return f"{self.resource_type}[{self.name}]"

    @property
    def path(self) -> str:
        """Full path of the resource in the declaration tree."""
        return "/" + "/".join([*self.containment_path, self.ref])

    @property
    def info(self) -> PackageInfo | None:
        """Read-only details reported by the provider on the last retrieval."""
        if self.install_state is None:
            return None
        return self.install_state.info

    def desired_values(self) -> tuple[DesiredValue, ...]:
        """Return the normalized desired values in declaration order."""
        raw = self.ensure if isinstance(self.ensure, (list, tuple)) else [self.ensure]
        if not raw:
            raise ValueError(f"{self.ref} declares no install value")
        return tuple(DesiredValue.parse(value) for value in raw)

    def bind(
        self,
        provider: Provider,
        latest_cache: LatestVersionCache | None = None,
    ) -> InstallState:
        """Create the install state for this package with a bound provider.

        Args:
            provider: Provider bound to this package.
            latest_cache: Optional shared latest-version cache.

        Returns:
            The new InstallState, also kept on the resource.
        """
        self.install_state = InstallState(
            list(self.desired_values()),
            provider,
            package=self.name,
            latest_cache=latest_cache,
        )
        return self.install_state
