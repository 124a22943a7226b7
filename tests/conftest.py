"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from recordmigrate.registry import MigrationRegistry
from recordmigrate.store import MemoryStore

EXAMPLE_MIGRATIONS = Path(__file__).resolve().parent.parent / "examples" / "migrations"


@pytest.fixture
def store() -> MemoryStore:
    """A fresh in-memory store with cheap password hashing."""
    return MemoryStore(bcrypt_rounds=4)


@pytest.fixture
def registry() -> MigrationRegistry:
    return MigrationRegistry()


@pytest.fixture
def example_migrations_dir() -> Path:
    return EXAMPLE_MIGRATIONS
