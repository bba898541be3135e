"""RPM provider kind.

Queries and removes RPM packages, and installs or upgrades them from a
local ``.rpm`` file given as the package source. Repository-aware
installation is provided by the ``yum`` kind, which inherits from this one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.interfaces import Capability
from core.models import PackageInfo

if TYPE_CHECKING:
    from .base import PackageProvider
    from .registry import ProviderKind, ProviderRegistry

NAME = "rpm"

QUERY_FORMAT = "%{NAME}\t%{VERSION}-%{RELEASE}\t%{ARCH}\t%{VENDOR}\t%{SUMMARY}\n"


def parse_query_output(output: str) -> PackageInfo | None:
    """Parse ``rpm -q --queryformat`` output written with QUERY_FORMAT."""
    for line in output.splitlines():
        fields = line.split("\t")
        if len(fields) < 2:
            continue
        return PackageInfo(
            name=fields[0],
            version=fields[1],
            platform=fields[2] if len(fields) > 2 else None,
            vendor=fields[3] if len(fields) > 3 and fields[3] != "(none)" else None,
            description=fields[4] if len(fields) > 4 else None,
        )
    return None


def query(provider: PackageProvider) -> PackageInfo | None:
    result = provider.run(
        ["rpm", "-q", "--queryformat", QUERY_FORMAT, provider.package],
        check=False,
    )
    if not result.ok:
        # "package foo is not installed"
        return None
    return parse_query_output(result.stdout)


def install(provider: PackageProvider, version: str | None = None) -> None:  # noqa: ARG001
    provider.run(["rpm", "-i", str(provider.source_path())])


def update(provider: PackageProvider) -> None:
    provider.run(["rpm", "-U", str(provider.source_path())])


def remove(provider: PackageProvider) -> None:
    provider.run(["rpm", "-e", provider.package])


def register(registry: ProviderRegistry) -> ProviderKind:
    """Register the rpm kind."""
    return registry.register(
        NAME,
        capabilities={
            Capability.QUERY: query,
            Capability.INSTALL: install,
            Capability.UPDATE: update,
            Capability.REMOVE: remove,
        },
        description="RPM (installs from local .rpm files)",
    )
