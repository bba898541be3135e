"""Core interfaces for converge-all.

This module defines the capability vocabulary of provider kinds and the
abstract provider interface the install state machine works against.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import PackageInfo
    from .resource import PackageResource


class Capability(str, Enum):
    """Named operations a provider kind may implement."""

    QUERY = "query"
    INSTALL = "install"
    REMOVE = "remove"
    UPDATE = "update"
    LATEST = "latest"


class Feature(str, Enum):
    """Boolean features a provider kind may declare."""

    VERSIONABLE = "versionable"


class Provider(ABC):
    """A provider bound to one package resource.

    Implementations perform the actual query and corrective actions. Calling
    an operation the provider does not support raises
    UnsupportedOperationError; an operation that is supported but fails
    raises whatever the underlying mechanism raised.
    """

    @property
    @abstractmethod
    def kind_name(self) -> str:
        """Return the name of the provider kind, e.g. ``apt``."""
        ...

    @abstractmethod
    def supports(self, capability: Capability) -> bool:
        """Check whether the provider implements a capability."""
        ...

    @property
    def versionable(self) -> bool:
        """Whether the provider can install an exact version.

        Returns:
            False unless a provider declares version support.
        """
        return False

    @property
    def supports_latest(self) -> bool:
        """Whether the provider can report the latest available version."""
        return self.supports(Capability.LATEST)

    @abstractmethod
    def query(self) -> PackageInfo | None:
        """Return what is installed, or None if the package is absent."""
        ...

    @abstractmethod
    def install(self, version: str | None = None) -> None:
        """Install the package, optionally at an exact version."""
        ...

    @abstractmethod
    def remove(self) -> None:
        """Remove the package."""
        ...

    @abstractmethod
    def update(self) -> None:
        """Update the package to the latest available version."""
        ...

    @abstractmethod
    def latest(self) -> str:
        """Return the latest available version."""
        ...


class ProviderFactory(ABC):
    """Selects and binds providers for package resources."""

    @abstractmethod
    def provider_for(self, resource: PackageResource) -> Provider:
        """Return a provider bound to the resource.

        Raises:
            UnknownProviderError: If the resource names an unknown provider
                kind, or names none and the platform has no default.
        """
        ...
