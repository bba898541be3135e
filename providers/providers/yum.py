"""Yum provider kind.

Installs and updates packages from the configured repositories using yum on
Fedora and Red Hat style systems. Inherits querying and removal from the
``rpm`` kind.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from core.interfaces import Capability

from . import rpm

if TYPE_CHECKING:
    from .base import PackageProvider
    from .registry import ProviderKind, ProviderRegistry

NAME = "yum"

EPOCH_PATTERN = re.compile(r"^\d+:")


def parse_available(output: str, package: str) -> str | None:
    """Find the available version of a package in ``yum list available`` output.

    Lines look like ``vim-enhanced.x86_64   2:9.0.2081-1.fc39   updates``.
    The epoch is dropped so the result compares equal to what rpm reports.
    """
    for line in output.splitlines():
        fields = line.split()
        if len(fields) < 2:
            continue
        name = fields[0].rsplit(".", 1)[0]
        if name == package:
            return EPOCH_PATTERN.sub("", fields[1])
    return None


def install(provider: PackageProvider, version: str | None = None) -> None:
    target = f"{provider.package}-{version}" if version else provider.package
    provider.run(["yum", "-y", "install", target])


def update(provider: PackageProvider) -> None:
    provider.run(["yum", "-y", "update", provider.package])


def latest(provider: PackageProvider) -> str:
    result = provider.run(["yum", "-q", "list", "available", provider.package], check=False)
    available = parse_available(result.stdout, provider.package)
    if available is not None:
        return available

    # Nothing newer is available, so the installed version is the latest
    info = provider.query()
    if info is None:
        raise LookupError(f"No package {provider.package} available")
    return info.version


def register(registry: ProviderRegistry) -> ProviderKind:
    """Register the yum kind. Requires rpm to be registered first."""
    return registry.register(
        NAME,
        parent=rpm.NAME,
        capabilities={
            Capability.INSTALL: install,
            Capability.UPDATE: update,
            Capability.LATEST: latest,
        },
        description="Fedora/Red Hat yum package manager",
    )
