"""APT provider kind.

Installs packages from the configured repositories using APT on
Debian-based distributions (Debian, Ubuntu, Linux Mint, etc.). Inherits
querying and removal from the ``dpkg`` kind.

Official documentation:
- apt-get man page: https://manpages.debian.org/bookworm/apt/apt-get.8.en.html
- apt-cache man page: https://manpages.debian.org/bookworm/apt/apt-cache.8.en.html

Note: Requires root privileges for install and update.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from core.interfaces import Capability, Feature

from . import dpkg

if TYPE_CHECKING:
    from .base import PackageProvider
    from .registry import ProviderKind, ProviderRegistry

NAME = "apt"

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}

CANDIDATE_PATTERN = re.compile(r"^\s*Candidate:\s*(\S+)", re.MULTILINE)


def parse_candidate(output: str) -> str | None:
    """Extract the candidate version from ``apt-cache policy`` output.

    Returns:
        The candidate version, or None if there is none.
    """
    match = CANDIDATE_PATTERN.search(output)
    if not match or match.group(1) == "(none)":
        return None
    return match.group(1)


def install(provider: PackageProvider, version: str | None = None) -> None:
    target = f"{provider.package}={version}" if version else provider.package
    provider.run(["apt-get", "-q", "-y", "install", target], env=APT_ENV)


def update(provider: PackageProvider) -> None:
    # install upgrades an already installed package to the candidate version
    install(provider)


def latest(provider: PackageProvider) -> str:
    result = provider.run(["apt-cache", "policy", provider.package])
    candidate = parse_candidate(result.stdout)
    if candidate is None:
        raise LookupError(f"No installation candidate for {provider.package}")
    return candidate


def register(registry: ProviderRegistry) -> ProviderKind:
    """Register the apt kind. Requires dpkg to be registered first."""
    return registry.register(
        NAME,
        parent=dpkg.NAME,
        capabilities={
            Capability.INSTALL: install,
            Capability.UPDATE: update,
            Capability.LATEST: latest,
        },
        features={Feature.VERSIONABLE},
        description="Debian/Ubuntu APT package manager",
    )
