"""converge-all providers package.

This package contains the provider registry and the built-in provider kinds
for the supported package managers.
"""

from __future__ import annotations

from providers import apt, dpkg, rpm, sun, yum
from providers.base import CommandResult, CommandRunner, PackageProvider
from providers.registry import PLATFORM_DEFAULTS, ProviderKind, ProviderRegistry

__all__ = [
    "PLATFORM_DEFAULTS",
    "CommandResult",
    "CommandRunner",
    "PackageProvider",
    "ProviderKind",
    "ProviderRegistry",
    "register_builtin_providers",
]


def register_builtin_providers(registry: ProviderRegistry) -> ProviderRegistry:
    """Register all built-in provider kinds with the registry.

    Parents are registered before the kinds that inherit from them.

    Args:
        registry: Registry to populate.

    Returns:
        The registry with built-in kinds registered.
    """
    dpkg.register(registry)
    apt.register(registry)
    rpm.register(registry)
    yum.register(registry)
    sun.register(registry)
    return registry
