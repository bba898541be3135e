"""Core data models for converge-all.

This module defines the desired/observed value types used by the install
state machine and the Pydantic models for agent configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path  # noqa: TC003 - needed at runtime by Pydantic
from typing import Any

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    """Log level for agent output."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# =============================================================================
# Desired and observed values
# =============================================================================


class DesiredKind(str, Enum):
    """Tag of a declared desired value."""

    INSTALLED = "installed"
    NOT_INSTALLED = "notinstalled"
    LATEST = "latest"
    VERSION = "version"


# Keywords matched after surrounding whitespace is stripped
_SYMBOLIC_VALUES = frozenset(
    {DesiredKind.INSTALLED.value, DesiredKind.NOT_INSTALLED.value, DesiredKind.LATEST.value}
)


class ObservedState(str, Enum):
    """Sentinel observed values."""

    NOT_INSTALLED = "notinstalled"

    def __str__(self) -> str:
        return self.value


NOT_INSTALLED = ObservedState.NOT_INSTALLED


@dataclass(frozen=True)
class DesiredValue:
    """One acceptable target value for the install property.

    Attributes:
        kind: Which of the four desired value variants this is.
        version: The exact version string; set only for ``VERSION``.

    Example:
        >>> DesiredValue.parse(True)
        DesiredValue(kind=<DesiredKind.INSTALLED: 'installed'>, version=None)
        >>> DesiredValue.parse("1.2.3").version
        '1.2.3'
    """

    kind: DesiredKind
    version: str | None = None

    def __post_init__(self) -> None:
        """Validate that only VERSION carries a version string."""
        if self.kind == DesiredKind.VERSION:
            if not self.version:
                raise ValueError("version must be non-empty for an explicit version")
        elif self.version is not None:
            raise ValueError(f"{self.kind.value} does not take a version")

    @classmethod
    def parse(cls, raw: Any) -> DesiredValue:
        """Normalize a raw declared value.

        ``True`` and ``"installed"`` mean installed (any version), ``False``
        and ``"notinstalled"`` mean not installed, ``"latest"`` means keep
        current, and any other non-empty string is an exact version.

        Args:
            raw: Value as written in the resource declaration.

        Returns:
            The normalized DesiredValue.

        Raises:
            ValueError: If the raw value is not one of the recognized forms.
        """
        if isinstance(raw, DesiredValue):
            return raw
        if raw is True:
            return cls(DesiredKind.INSTALLED)
        if raw is False:
            return cls(DesiredKind.NOT_INSTALLED)
        if isinstance(raw, str) and raw.strip():
            value = raw.strip()
            if value in _SYMBOLIC_VALUES:
                return cls(DesiredKind(value))
            return cls(DesiredKind.VERSION, value)
        raise ValueError(f"Invalid desired value for install: {raw!r}")

    def __str__(self) -> str:
        if self.kind == DesiredKind.VERSION:
            return self.version or ""
        return self.kind.value


@dataclass(frozen=True)
class PackageInfo:
    """What a provider reports about an installed package.

    Attributes:
        name: Package name.
        version: Installed version string.
        status: Package manager status string, if reported.
        description: One-line description.
        vendor: Package vendor.
        category: Package category or section.
        platform: Architecture or platform string.
        root: Installation root.
        instance: Package instance identifier.
    """

    name: str
    version: str
    status: str | None = None
    description: str | None = None
    vendor: str | None = None
    category: str | None = None
    platform: str | None = None
    root: str | None = None
    instance: str | None = None
    extra: dict[str, str] = field(default_factory=dict)


# =============================================================================
# Configuration
# =============================================================================


class AgentConfig(BaseModel):
    """Global configuration for the converge agent."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    platform: str | None = Field(
        default=None,
        description="Platform identifier override. None = detect from the running system.",
    )
    default_provider: str | None = Field(
        default=None,
        description="Provider kind used when a package does not name one. "
        "None = platform default.",
    )
    report_dir: Path | None = Field(
        default=None,
        description="Directory for stored transaction reports. None = XDG data directory.",
    )
    store_reports: bool = Field(default=True, description="Persist reports after each run")
    tags: list[str] = Field(
        default_factory=list,
        description="Only evaluate resources carrying one of these tags. Empty = all.",
    )
