"""Shared test fixtures for core tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from core.interfaces import Capability, Provider, ProviderFactory
from core.models import PackageInfo

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path

    from core.resource import PackageResource


class MockProvider(Provider):
    """Provider test double that records every call."""

    def __init__(
        self,
        *,
        kind: str = "mock",
        installed: str | None = None,
        latest: str = "2.0",
        capabilities: frozenset[Capability] | None = None,
        versionable: bool = True,
        failures: dict[str, Exception] | None = None,
    ) -> None:
        self._kind = kind
        self.installed = installed
        self._latest = latest
        self.capabilities = frozenset(Capability) if capabilities is None else capabilities
        self._versionable = versionable
        self.failures = failures or {}
        self.calls: list[tuple[str, str | None]] = []

    @property
    def kind_name(self) -> str:
        return self._kind

    @property
    def versionable(self) -> bool:
        return self._versionable

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def _record(self, name: str, arg: str | None = None) -> None:
        self.calls.append((name, arg))
        if name in self.failures:
            raise self.failures[name]

    def query(self) -> PackageInfo | None:
        self._record("query")
        if self.installed is None:
            return None
        return PackageInfo(name="pkg", version=self.installed)

    def install(self, version: str | None = None) -> None:
        self._record("install", version)
        self.installed = version or self._latest

    def remove(self) -> None:
        self._record("remove")
        self.installed = None

    def update(self) -> None:
        self._record("update")
        self.installed = self._latest

    def latest(self) -> str:
        self._record("latest")
        return self._latest

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


class MockProviderFactory(ProviderFactory):
    """Hands out pre-built mock providers by package name."""

    def __init__(self, providers: dict[str, MockProvider]) -> None:
        self.providers = providers
        self.bound: list[str] = []

    def provider_for(self, resource: PackageResource) -> MockProvider:
        self.bound.append(resource.name)
        return self.providers[resource.name]


@pytest.fixture
def mock_provider() -> type[MockProvider]:
    """The MockProvider class, for building test doubles."""
    return MockProvider


@pytest.fixture
def provider_factory() -> type[MockProviderFactory]:
    """The MockProviderFactory class."""
    return MockProviderFactory


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
