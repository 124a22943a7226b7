"""Tests for recordmigrate.registry - registration and ordering."""

import dataclasses
import types

import pytest

from recordmigrate.exceptions import DuplicateVersionError
from recordmigrate.registry import MigrationRegistry, MigrationUnit


def _noop(store):
    pass


class TestRegister:
    def test_returns_unit(self, registry):
        unit = registry.register(100, _noop, _noop, name="100_initial")
        assert isinstance(unit, MigrationUnit)
        assert unit.version == 100
        assert unit.label == "100_initial"
        assert 100 in registry

    def test_default_name_is_version(self, registry):
        assert registry.register(5, _noop, _noop).label == "5"

    def test_duplicate_version(self, registry):
        registry.register(100, _noop, _noop)
        with pytest.raises(DuplicateVersionError, match="100") as exc:
            registry.register(100, _noop, _noop)
        assert exc.value.version == 100
        assert len(registry) == 1

    def test_version_must_be_int(self, registry):
        with pytest.raises(TypeError):
            registry.register("100", _noop, _noop)
        with pytest.raises(TypeError):
            registry.register(True, _noop, _noop)

    def test_unit_is_frozen(self, registry):
        unit = registry.register(1, _noop, _noop)
        with pytest.raises(dataclasses.FrozenInstanceError):
            unit.version = 2


class TestOrdering:
    def test_sorted_by_version_not_insertion(self, registry):
        for v in (300, 100, 200):
            registry.register(v, _noop, _noop)
        assert [u.version for u in registry] == [100, 200, 300]
        assert registry.versions() == [100, 200, 300]

    def test_pending_ascending(self, registry):
        for v in (300, 100, 200, 400):
            registry.register(v, _noop, _noop)
        assert [u.version for u in registry.pending([200])] == [100, 300, 400]

    def test_pending_is_lazy(self, registry):
        registry.register(1, _noop, _noop)
        assert isinstance(registry.pending([]), types.GeneratorType)

    def test_pending_empty_when_all_applied(self, registry):
        registry.register(1, _noop, _noop)
        registry.register(2, _noop, _noop)
        assert list(registry.pending([1, 2])) == []

    def test_applied_reverse_of_log_order(self, registry):
        for v in (100, 200, 300):
            registry.register(v, _noop, _noop)
        assert [u.version for u in registry.applied([100, 200, 300])] == [300, 200, 100]

    def test_applied_follows_application_order(self, registry):
        # 150 was registered late and applied after 300
        for v in (100, 150, 300):
            registry.register(v, _noop, _noop)
        assert [u.version for u in registry.applied([100, 300, 150])] == [150, 300, 100]

    def test_applied_skips_unregistered(self, registry):
        registry.register(100, _noop, _noop)
        assert [u.version for u in registry.applied([100, 999])] == [100]

    def test_applied_rejects_unordered(self, registry):
        registry.register(100, _noop, _noop)
        registry.register(200, _noop, _noop)
        with pytest.raises(TypeError, match="ordered"):
            registry.applied({100, 200})

    def test_applied_accepts_tuple(self, registry):
        registry.register(100, _noop, _noop)
        registry.register(200, _noop, _noop)
        assert [u.version for u in registry.applied((100, 200))] == [200, 100]


def test_get(registry):
    registry.register(7, _noop, _noop)
    assert registry.get(7).version == 7
    assert registry.get(8) is None


def test_independent_registries():
    a = MigrationRegistry()
    b = MigrationRegistry()
    a.register(1, _noop, _noop)
    assert len(b) == 0
