"""dpkg provider kind.

Queries and removes Debian packages with dpkg, and installs them from a
local ``.deb`` given as the package source. Repository-aware installation
is provided by the ``apt`` kind, which inherits from this one.

Official documentation:
- dpkg-query: https://manpages.debian.org/dpkg-query
- dpkg: https://manpages.debian.org/dpkg
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.interfaces import Capability
from core.models import PackageInfo

if TYPE_CHECKING:
    from .base import PackageProvider
    from .registry import ProviderKind, ProviderRegistry

NAME = "dpkg"

# Tab separated; the summary goes last because it may contain spaces
QUERY_FORMAT = "${Status}\t${Package}\t${Version}\t${Architecture}\t${binary:Summary}\n"


def parse_query_output(output: str) -> PackageInfo | None:
    """Parse dpkg-query output.

    Only packages whose status is ``install ok installed`` count as present;
    removed packages with leftover config files report ``config-files``.

    Args:
        output: Output of dpkg-query -W with QUERY_FORMAT.

    Returns:
        PackageInfo, or None if the package is not installed.
    """
    for line in output.splitlines():
        fields = line.split("\t")
        if len(fields) < 3:
            continue
        status = fields[0].split()
        if not status or status[-1] != "installed":
            return None
        return PackageInfo(
            name=fields[1],
            version=fields[2],
            status=fields[0],
            platform=fields[3] if len(fields) > 3 and fields[3] else None,
            description=fields[4] if len(fields) > 4 and fields[4] else None,
        )
    return None


def query(provider: PackageProvider) -> PackageInfo | None:
    result = provider.run(
        ["dpkg-query", "-W", f"--showformat={QUERY_FORMAT}", provider.package],
        check=False,
    )
    if not result.ok:
        # dpkg-query exits 1 for packages it has never heard of
        return None
    return parse_query_output(result.stdout)


def install(provider: PackageProvider, version: str | None = None) -> None:  # noqa: ARG001
    provider.run(["dpkg", "-i", str(provider.source_path())])


def remove(provider: PackageProvider) -> None:
    provider.run(["dpkg", "-r", provider.package])


def register(registry: ProviderRegistry) -> ProviderKind:
    """Register the dpkg kind."""
    return registry.register(
        NAME,
        capabilities={
            Capability.QUERY: query,
            Capability.INSTALL: install,
            Capability.REMOVE: remove,
        },
        description="Debian dpkg (installs from local .deb files)",
    )
