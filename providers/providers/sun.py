"""Solaris SVR4 package provider kind.

Uses pkginfo, pkgadd and pkgrm. Installation needs a package datastream or
directory given as the package source.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from core.interfaces import Capability
from core.models import PackageInfo

if TYPE_CHECKING:
    from .base import PackageProvider
    from .registry import ProviderKind, ProviderRegistry

NAME = "sun"

FIELD_PATTERN = re.compile(r"^\s*([A-Z]+):\s+(.*?)\s*$")


def parse_pkginfo(output: str) -> PackageInfo | None:
    """Parse ``pkginfo -l`` output into PackageInfo.

    Returns:
        PackageInfo, or None if the output has no VERSION field.
    """
    fields: dict[str, str] = {}
    for line in output.splitlines():
        match = FIELD_PATTERN.match(line)
        if match:
            fields[match.group(1)] = match.group(2)

    if "VERSION" not in fields:
        return None

    return PackageInfo(
        name=fields.get("PKGINST", ""),
        version=fields["VERSION"],
        status=fields.get("STATUS"),
        description=fields.get("NAME"),
        vendor=fields.get("VENDOR"),
        category=fields.get("CATEGORY"),
        platform=fields.get("ARCH"),
        root=fields.get("BASEDIR"),
        instance=fields.get("PKGINST"),
    )


def query(provider: PackageProvider) -> PackageInfo | None:
    result = provider.run(["pkginfo", "-l", provider.package], check=False)
    if not result.ok:
        return None
    return parse_pkginfo(result.stdout)


def install(provider: PackageProvider, version: str | None = None) -> None:  # noqa: ARG001
    provider.run(["pkgadd", "-d", str(provider.source_path()), "-n", provider.package])


def remove(provider: PackageProvider) -> None:
    provider.run(["pkgrm", "-n", provider.package])


def register(registry: ProviderRegistry) -> ProviderKind:
    """Register the sun kind."""
    return registry.register(
        NAME,
        capabilities={
            Capability.QUERY: query,
            Capability.INSTALL: install,
            Capability.REMOVE: remove,
        },
        description="Solaris pkgadd/pkgrm",
    )
