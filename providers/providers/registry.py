"""Provider registry for package provider kinds.

A provider kind is a named table of capability implementations. A kind may
name a parent; it then inherits every capability and feature it does not
define itself. Kinds are registered once at startup and never changed or
removed afterwards, so the registry can be read concurrently once
registration is complete.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import structlog

from core.errors import DuplicateProviderError, UnknownParentError, UnknownProviderError
from core.interfaces import Capability, Feature, ProviderFactory
from core.sources import SourceResolver

from .base import CommandRunner, PackageProvider

if TYPE_CHECKING:
    from core.resource import PackageResource

logger = structlog.get_logger(__name__)

CapabilityImpl = Callable[..., Any]

# Platform identifier -> default provider kind
PLATFORM_DEFAULTS: Mapping[str, str] = MappingProxyType(
    {
        "debian": "apt",
        "ubuntu": "apt",
        "linuxmint": "apt",
        "fedora": "yum",
        "redhat": "rpm",
        "rhel": "rpm",
        "centos": "rpm",
        "solaris": "sun",
    }
)


@dataclass(frozen=True)
class ProviderKind:
    """A registered provider kind with its effective capabilities.

    Attributes:
        name: Unique kind name.
        parent: Name of the parent kind, if any.
        capabilities: Effective capability table, inherited entries included.
        features: Effective feature flags, inherited entries included.
        own_capabilities: Capabilities defined by this kind itself.
        description: Human-readable description.
    """

    name: str
    parent: str | None
    capabilities: Mapping[Capability, CapabilityImpl]
    features: Mapping[Feature, bool]
    own_capabilities: frozenset[Capability] = field(default_factory=frozenset)
    description: str = ""

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def has_feature(self, feature: Feature) -> bool:
        return self.features.get(feature, False)

    def __str__(self) -> str:
        return f"ProviderKind({self.name})"


class ProviderRegistry(ProviderFactory):
    """Registry of provider kinds.

    Also selects the provider kind for a resource: the kind it names, or the
    default kind for the platform.
    """

    def __init__(
        self,
        *,
        platform: str | None = None,
        default: str | None = None,
        runner: CommandRunner | None = None,
        sources: SourceResolver | None = None,
    ) -> None:
        """Initialize an empty registry.

        Args:
            platform: Platform identifier used to pick the default kind.
            default: Explicit default kind, overriding the platform table.
            runner: Command runner handed to bound providers.
            sources: Package source resolver handed to bound providers.
        """
        self.platform = platform.lower() if platform else None
        self._explicit_default = default
        self.runner = runner or CommandRunner()
        self.sources = sources or SourceResolver()
        self._kinds: dict[str, ProviderKind] = {}
        self._defaults: dict[str, str | None] = {}

    def register(
        self,
        name: str,
        parent: str | None = None,
        capabilities: Mapping[Capability, CapabilityImpl] | None = None,
        features: Mapping[Feature, bool] | Iterable[Feature] = (),
        description: str = "",
    ) -> ProviderKind:
        """Register a provider kind.

        Args:
            name: Unique kind name.
            parent: Name of an already registered kind to inherit from.
            capabilities: Capability implementations defined by this kind.
            features: Feature flags, as a mapping or an iterable of enabled features.
            description: Human-readable description.

        Returns:
            The registered ProviderKind.

        Raises:
            DuplicateProviderError: If the name is already registered.
            UnknownParentError: If the parent is not registered.
        """
        if name in self._kinds:
            raise DuplicateProviderError(name)

        own_capabilities = dict(capabilities or {})
        own_features = (
            dict(features) if isinstance(features, Mapping) else dict.fromkeys(features, True)
        )

        effective_capabilities: dict[Capability, CapabilityImpl] = {}
        effective_features: dict[Feature, bool] = {}
        if parent is not None:
            parent_kind = self._kinds.get(parent)
            if parent_kind is None:
                raise UnknownParentError(name, parent)
            effective_capabilities.update(parent_kind.capabilities)
            effective_features.update(parent_kind.features)
        effective_capabilities.update(own_capabilities)
        effective_features.update(own_features)

        kind = ProviderKind(
            name=name,
            parent=parent,
            capabilities=MappingProxyType(effective_capabilities),
            features=MappingProxyType(effective_features),
            own_capabilities=frozenset(own_capabilities),
            description=description,
        )
        self._kinds[name] = kind
        logger.debug(
            "provider_registered",
            provider=name,
            parent=parent,
            capabilities=sorted(c.value for c in effective_capabilities),
        )
        return kind

    def lookup(self, name: str) -> ProviderKind:
        """Get a provider kind by name.

        Raises:
            UnknownProviderError: If no kind is registered under the name.
        """
        kind = self._kinds.get(name)
        if kind is None:
            raise UnknownProviderError(name)
        return kind

    def list_names(self) -> list[str]:
        """List registered kind names in registration order."""
        return list(self._kinds)

    def __contains__(self, name: object) -> bool:
        return name in self._kinds

    def __iter__(self) -> Iterator[ProviderKind]:
        return iter(self._kinds.values())

    def __len__(self) -> int:
        return len(self._kinds)

    def resolve_default(self, platform: str | None) -> str | None:
        """Return the default provider kind name for a platform.

        The answer for each platform is computed once and cached.

        Args:
            platform: Platform identifier, e.g. ``debian``.

        Returns:
            Kind name, or None if the platform has no default.
        """
        key = (platform or "").lower()
        if key in self._defaults:
            return self._defaults[key]

        default = PLATFORM_DEFAULTS.get(key)
        if default is None:
            if key == "gentoo":
                logger.info("platform_not_supported", platform=key)
            else:
                logger.warning("no_default_provider", platform=key or None)
        else:
            logger.debug("default_provider_resolved", platform=key, provider=default)

        self._defaults[key] = default
        return default

    @property
    def default_kind(self) -> str | None:
        """Default kind for this registry's platform, or the explicit override."""
        if self._explicit_default is not None:
            return self._explicit_default
        return self.resolve_default(self.platform)

    def provider_for(self, resource: PackageResource) -> PackageProvider:
        """Bind a provider to a package resource.

        Args:
            resource: The package to bind.

        Returns:
            PackageProvider of the resource's kind, or of the default kind.

        Raises:
            UnknownProviderError: If the kind is unknown or no kind applies.
        """
        name = resource.provider or self.default_kind
        if name is None:
            raise UnknownProviderError(None)
        return PackageProvider(self.lookup(name), resource, self.runner, self.sources)
