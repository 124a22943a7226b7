"""Tests for recordmigrate.writer - migration file generation."""

from recordmigrate.loader import load_migrations
from recordmigrate.writer import generate_migration, normalize_suffix


class TestFilename:
    def test_version_and_suffix(self):
        filename, _ = generate_migration(1768297642, "tags and links")
        assert filename == "1768297642_tags_and_links.py"

    def test_default_suffix(self):
        filename, _ = generate_migration(5)
        assert filename == "5_auto.py"

    def test_normalize_suffix(self):
        assert normalize_suffix("Add Users!") == "add_users"
        assert normalize_suffix("---") == "auto"


class TestContent:
    def test_defines_functions(self):
        _, content = generate_migration(7, "x")
        assert "def up(store: Store) -> None:" in content
        assert "def down(store: Store) -> None:" in content
        assert "def register(registry: MigrationRegistry) -> None:" in content
        assert "VERSION = 7" in content

    def test_generated_file_loads(self, tmp_path):
        filename, content = generate_migration(42, "first")
        (tmp_path / filename).write_text(content)
        registry = load_migrations(tmp_path)
        assert registry.get(42).label == "42_first"
