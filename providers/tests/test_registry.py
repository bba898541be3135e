"""Tests for the provider registry."""

from __future__ import annotations

import pytest

from core.errors import DuplicateProviderError, UnknownParentError, UnknownProviderError
from core.interfaces import Capability, Feature
from core.resource import PackageResource
from providers import PLATFORM_DEFAULTS, ProviderRegistry
from providers.base import PackageProvider


def _noop(provider: PackageProvider, *args: object) -> None:
    return None


def _other(provider: PackageProvider, *args: object) -> None:
    return None


def _third(provider: PackageProvider, *args: object) -> None:
    return None


class TestRegister:
    """Tests for ProviderRegistry.register."""

    def test_register_standalone_kind(self) -> None:
        registry = ProviderRegistry()

        kind = registry.register(
            "base",
            capabilities={Capability.QUERY: _noop, Capability.REMOVE: _noop},
            description="Base kind",
        )

        assert kind.name == "base"
        assert kind.parent is None
        assert kind.supports(Capability.QUERY)
        assert not kind.supports(Capability.LATEST)
        assert "base" in registry
        assert len(registry) == 1
        assert str(kind) == "ProviderKind(base)"

    def test_child_inherits_parent_capabilities(self) -> None:
        """Test a child gets every parent capability it does not define."""
        registry = ProviderRegistry()
        registry.register("base", capabilities={Capability.QUERY: _noop, Capability.REMOVE: _noop})

        child = registry.register(
            "child",
            parent="base",
            capabilities={Capability.INSTALL: _other},
        )

        assert set(child.capabilities) == {Capability.QUERY, Capability.REMOVE, Capability.INSTALL}
        assert child.own_capabilities == frozenset({Capability.INSTALL})

    def test_child_overrides_parent(self) -> None:
        registry = ProviderRegistry()
        registry.register("base", capabilities={Capability.INSTALL: _noop})

        child = registry.register("child", parent="base", capabilities={Capability.INSTALL: _other})

        assert child.capabilities[Capability.INSTALL] is _other
        assert registry.lookup("base").capabilities[Capability.INSTALL] is _noop

    def test_grandchild_inherits_through_chain(self) -> None:
        """Test capabilities resolve through every level of the chain."""
        registry = ProviderRegistry()
        registry.register(
            "grandparent", capabilities={Capability.QUERY: _noop, Capability.INSTALL: _noop}
        )
        registry.register("parent", parent="grandparent", capabilities={Capability.INSTALL: _other})

        grandchild = registry.register(
            "grandchild", parent="parent", capabilities={Capability.REMOVE: _third}
        )

        assert set(grandchild.capabilities) == {
            Capability.QUERY,
            Capability.INSTALL,
            Capability.REMOVE,
        }
        assert grandchild.capabilities[Capability.QUERY] is _noop
        assert grandchild.capabilities[Capability.INSTALL] is _other
        assert grandchild.capabilities[Capability.REMOVE] is _third
        assert grandchild.own_capabilities == frozenset({Capability.REMOVE})
        assert not registry.lookup("parent").supports(Capability.REMOVE)

    def test_features_inherited_and_overridden(self) -> None:
        registry = ProviderRegistry()
        registry.register("base", features={Feature.VERSIONABLE})

        inherited = registry.register("child", parent="base")
        disabled = registry.register("other", parent="base", features={Feature.VERSIONABLE: False})

        assert inherited.has_feature(Feature.VERSIONABLE)
        assert not disabled.has_feature(Feature.VERSIONABLE)

    def test_capabilities_are_read_only(self) -> None:
        registry = ProviderRegistry()
        kind = registry.register("base", capabilities={Capability.QUERY: _noop})

        with pytest.raises(TypeError):
            kind.capabilities[Capability.INSTALL] = _noop  # type: ignore[index]

    def test_duplicate_rejected(self) -> None:
        """Test registering the same name twice fails and keeps the first."""
        registry = ProviderRegistry()
        first = registry.register("base", capabilities={Capability.QUERY: _noop})

        with pytest.raises(DuplicateProviderError, match="base already defined"):
            registry.register("base")

        assert registry.lookup("base") is first

    def test_unknown_parent_rejected(self) -> None:
        registry = ProviderRegistry()

        with pytest.raises(UnknownParentError, match="No parent kind missing"):
            registry.register("child", parent="missing")

        assert "child" not in registry


class TestLookup:
    """Tests for lookup and iteration."""

    def test_lookup_unknown(self) -> None:
        with pytest.raises(UnknownProviderError, match="Invalid provider kind nope"):
            ProviderRegistry().lookup("nope")

    def test_iteration_in_registration_order(self, registry: ProviderRegistry) -> None:
        assert registry.list_names() == ["dpkg", "apt", "rpm", "yum", "sun"]
        assert [kind.name for kind in registry] == registry.list_names()


class TestDefaults:
    """Tests for platform default resolution."""

    @pytest.mark.parametrize(
        ("platform", "expected"),
        [
            ("debian", "apt"),
            ("Ubuntu", "apt"),
            ("fedora", "yum"),
            ("redhat", "rpm"),
            ("solaris", "sun"),
            ("gentoo", None),
            ("plan9", None),
            (None, None),
        ],
    )
    def test_resolve_default(self, platform: str | None, expected: str | None) -> None:
        assert ProviderRegistry().resolve_default(platform) == expected

    def test_resolve_default_is_stable(self) -> None:
        registry = ProviderRegistry()

        assert registry.resolve_default("debian") == registry.resolve_default("debian")
        assert registry.resolve_default("plan9") is None
        assert registry.resolve_default("plan9") is None

    def test_platform_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            PLATFORM_DEFAULTS["arch"] = "pacman"  # type: ignore[index]

    def test_explicit_default_wins(self) -> None:
        registry = ProviderRegistry(platform="debian", default="rpm")

        assert registry.default_kind == "rpm"

    def test_default_kind_from_platform(self) -> None:
        assert ProviderRegistry(platform="Fedora").default_kind == "yum"


class TestProviderFor:
    """Tests for binding providers to resources."""

    def test_named_kind(self, registry: ProviderRegistry) -> None:
        provider = registry.provider_for(PackageResource(name="vim", provider="yum"))

        assert isinstance(provider, PackageProvider)
        assert provider.kind_name == "yum"
        assert provider.package == "vim"

    def test_platform_default(self, registry: ProviderRegistry) -> None:
        """Test resources without a kind get the platform default."""
        provider = registry.provider_for(PackageResource(name="vim"))

        assert provider.kind_name == "apt"
        assert provider.versionable

    def test_unknown_kind(self, registry: ProviderRegistry) -> None:
        with pytest.raises(UnknownProviderError, match="pacman"):
            registry.provider_for(PackageResource(name="vim", provider="pacman"))

    def test_no_default(self) -> None:
        registry = ProviderRegistry(platform="gentoo")

        with pytest.raises(UnknownProviderError, match="no default for this platform"):
            registry.provider_for(PackageResource(name="vim"))
