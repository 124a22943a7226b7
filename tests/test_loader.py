"""Tests for recordmigrate.loader - migration discovery and import."""

import textwrap
import time
from pathlib import Path

import pytest

from recordmigrate.exceptions import DuplicateVersionError
from recordmigrate.loader import get_next_version, load_migrations, migration_files
from recordmigrate.registry import MigrationRegistry


# ── Helpers ──────────────────────────────────────────────────────────


def _write_migration(tmp_path: Path, filename: str, content: str) -> Path:
    f = tmp_path / filename
    f.write_text(textwrap.dedent(content))
    return f


def _unit_source(version: int, name: str) -> str:
    return f"""\
        def up(store):
            pass

        def down(store):
            pass

        def register(registry):
            registry.register({version}, up, down, name="{name}")
    """


# ── load_migrations ──────────────────────────────────────────────────


class TestLoadMigrations:
    def test_empty_directory(self, tmp_path):
        assert len(load_migrations(tmp_path)) == 0

    def test_nonexistent_directory(self, tmp_path):
        assert len(load_migrations(tmp_path / "nope")) == 0

    def test_loads_single_migration(self, tmp_path):
        _write_migration(tmp_path, "100_initial.py", _unit_source(100, "100_initial"))
        registry = load_migrations(tmp_path)
        assert registry.versions() == [100]
        assert registry.get(100).label == "100_initial"

    def test_loads_multiple_sorted(self, tmp_path):
        _write_migration(tmp_path, "200_second.py", _unit_source(200, "200_second"))
        _write_migration(tmp_path, "100_first.py", _unit_source(100, "100_first"))
        registry = load_migrations(tmp_path)
        assert [u.version for u in registry] == [100, 200]

    def test_ignores_non_migration_files(self, tmp_path):
        _write_migration(tmp_path, "__init__.py", "")
        _write_migration(tmp_path, "README.md", "# hi")
        _write_migration(tmp_path, "helper.py", "x = 1")
        assert len(load_migrations(tmp_path)) == 0

    def test_ignores_files_without_register(self, tmp_path):
        _write_migration(tmp_path, "100_bad.py", """\
            # No register function here
            x = 42
        """)
        assert len(load_migrations(tmp_path)) == 0

    def test_uses_given_registry(self, tmp_path):
        _write_migration(tmp_path, "100_first.py", _unit_source(100, "100_first"))
        registry = MigrationRegistry()
        assert load_migrations(tmp_path, registry) is registry
        assert 100 in registry

    def test_duplicate_version_across_files(self, tmp_path):
        _write_migration(tmp_path, "100_a.py", _unit_source(100, "100_a"))
        _write_migration(tmp_path, "101_b.py", _unit_source(100, "101_b"))
        with pytest.raises(DuplicateVersionError):
            load_migrations(tmp_path)

    def test_example_migrations(self, example_migrations_dir):
        registry = load_migrations(example_migrations_dir)
        assert registry.versions() == [1768297640, 1768297641, 1768297642]
        assert registry.get(1768297642).label == "1768297642_tags_and_links"


class TestMigrationFiles:
    def test_numeric_sort(self, tmp_path):
        _write_migration(tmp_path, "9_a.py", "")
        _write_migration(tmp_path, "10_b.py", "")
        assert [p.name for p in migration_files(tmp_path)] == ["9_a.py", "10_b.py"]


# ── get_next_version ─────────────────────────────────────────────────


class TestGetNextVersion:
    def test_empty_uses_current_time(self, tmp_path):
        before = int(time.time())
        assert get_next_version(tmp_path) >= before

    def test_after_future_version(self, tmp_path):
        future = int(time.time()) + 10_000
        _write_migration(tmp_path, f"{future}_x.py", "")
        assert get_next_version(tmp_path) == future + 1
