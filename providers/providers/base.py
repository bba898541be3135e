"""Base provider implementation with common functionality."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from core.errors import CommandError, SourceError, UnsupportedOperationError
from core.interfaces import Capability, Feature, Provider

if TYPE_CHECKING:
    from pathlib import Path
    from typing import Any

    from core.models import PackageInfo
    from core.resource import PackageResource
    from core.sources import SourceResolver

    from .registry import ProviderKind

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of an external command."""

    cmd: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs package manager commands as blocking subprocesses."""

    def run(
        self,
        cmd: list[str],
        *,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Run a command and capture its output.

        Args:
            cmd: Command and arguments.
            check: Raise CommandError on a non-zero exit status.
            env: Additional environment variables.

        Returns:
            CommandResult with exit status and output.

        Raises:
            CommandError: If the command is missing, or fails and check is set.
        """
        full_env = {**os.environ, **env} if env else None
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                env=full_env,
            )
        except FileNotFoundError as e:
            raise CommandError(cmd, 127, str(e)) from e

        result = CommandResult(cmd, proc.returncode, proc.stdout, proc.stderr)
        if check and not result.ok:
            raise CommandError(cmd, result.returncode, result.stderr or result.stdout)
        return result


class PackageProvider(Provider):
    """A provider kind bound to one package resource.

    Capability implementations are plain functions taking the bound provider
    as their first argument; they reach the package through ``package`` and
    ``resource`` and run commands through ``run``.
    """

    def __init__(
        self,
        kind: ProviderKind,
        resource: PackageResource,
        runner: CommandRunner,
        sources: SourceResolver,
    ) -> None:
        self.kind = kind
        self.resource = resource
        self.runner = runner
        self.sources = sources
        self._log = logger.bind(provider=kind.name, package=resource.name)

    @property
    def kind_name(self) -> str:
        return self.kind.name

    @property
    def package(self) -> str:
        """Name of the bound package."""
        return self.resource.name

    @property
    def versionable(self) -> bool:
        return self.kind.has_feature(Feature.VERSIONABLE)

    def supports(self, capability: Capability) -> bool:
        return self.kind.supports(capability)

    def run(
        self,
        cmd: list[str],
        *,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Run a command through the registry's runner."""
        self._log.debug("command_started", cmd=" ".join(cmd))
        result = self.runner.run(cmd, check=check, env=env)
        self._log.debug("command_completed", cmd=cmd[0], returncode=result.returncode)
        return result

    def source_path(self) -> Path:
        """Resolve the resource's source to a local package file.

        Raises:
            SourceError: If no source is declared or it cannot be resolved.
        """
        if self.resource.source is None:
            raise SourceError(f"{self.kind.name} packages must specify a package source")
        return self.sources.resolve(self.resource.source)

    def query(self) -> PackageInfo | None:
        return self._call(Capability.QUERY)

    def install(self, version: str | None = None) -> None:
        self._call(Capability.INSTALL, version)

    def remove(self) -> None:
        self._call(Capability.REMOVE)

    def update(self) -> None:
        self._call(Capability.UPDATE)

    def latest(self) -> str:
        return self._call(Capability.LATEST)

    def _call(self, capability: Capability, *args: Any) -> Any:
        impl = self.kind.capabilities.get(capability)
        if impl is None:
            raise UnsupportedOperationError(self.kind.name, capability.value)
        return impl(self, *args)

    def __repr__(self) -> str:
        return f"PackageProvider({self.kind.name}, {self.resource.ref})"
