"""Shared test fixtures for provider tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from core.errors import CommandError
from providers import ProviderRegistry, register_builtin_providers
from providers.base import CommandResult, CommandRunner

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


class FakeRunner(CommandRunner):
    """Command runner that records commands and replays canned results.

    Responses are keyed by the command name (``cmd[0]``) and consumed in
    order; a command with no canned response succeeds with empty output.
    """

    def __init__(self) -> None:
        self.commands: list[list[str]] = []
        self.envs: list[dict[str, str] | None] = []
        self._responses: dict[str, list[tuple[int, str, str]]] = {}

    def respond(self, program: str, stdout: str = "", returncode: int = 0, stderr: str = "") -> None:
        """Queue a response for the next call of a program."""
        self._responses.setdefault(program, []).append((returncode, stdout, stderr))

    def run(
        self,
        cmd: list[str],
        *,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        self.commands.append(cmd)
        self.envs.append(env)
        queued = self._responses.get(cmd[0])
        returncode, stdout, stderr = queued.pop(0) if queued else (0, "", "")
        result = CommandResult(cmd, returncode, stdout, stderr)
        if check and not result.ok:
            raise CommandError(cmd, returncode, stderr or stdout)
        return result


@pytest.fixture
def runner() -> FakeRunner:
    """A fresh fake command runner."""
    return FakeRunner()


@pytest.fixture
def registry(runner: FakeRunner) -> ProviderRegistry:
    """Registry with the built-in kinds and the fake runner."""
    return register_builtin_providers(ProviderRegistry(platform="debian", runner=runner))


@pytest.fixture(autouse=True)
def isolated_xdg_dirs(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Isolate tests from the real user config and data directories."""
    data_home = tmp_path / "xdg_data"
    config_home = tmp_path / "xdg_config"
    data_home.mkdir(parents=True, exist_ok=True)
    config_home.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_DATA_HOME", str(data_home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))

    yield data_home
