"""Migration loader - discover migration files in a directory and register them."""

from __future__ import annotations

import importlib.util
import logging
import re
import time
from pathlib import Path

from recordmigrate.registry import MigrationRegistry

logger = logging.getLogger("recordmigrate")

_MIGRATION_RE = re.compile(r"^(\d+)_.+\.py$")


def migration_files(directory: str | Path) -> list[Path]:
    """Return migration files (``<version>_<name>.py``) sorted by version."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    found = []
    for entry in directory.iterdir():
        if entry.is_file() and _MIGRATION_RE.match(entry.name):
            found.append(entry)
    return sorted(found, key=lambda p: int(_MIGRATION_RE.match(p.name).group(1)))


def load_migrations(
    directory: str | Path,
    registry: MigrationRegistry | None = None,
) -> MigrationRegistry:
    """Import every migration file in ``directory`` and call its ``register(registry)``.

    Files without a callable ``register`` are skipped.  Returns the registry.
    """
    if registry is None:
        registry = MigrationRegistry()

    for entry in migration_files(directory):
        name = entry.stem  # e.g. "1768297642_tags_and_links"
        spec = importlib.util.spec_from_file_location(f"recordmigrate_migrations.{name}", entry)
        if spec is None or spec.loader is None:
            continue
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        register = getattr(module, "register", None)
        if not callable(register):
            logger.debug(f"Skipping {entry.name}: no register() function")
            continue
        register(registry)

    return registry


def get_next_version(directory: str | Path) -> int:
    """Next free version: the current Unix time, or one past the latest file."""
    now = int(time.time())
    files = migration_files(directory)
    if not files:
        return now
    latest = int(_MIGRATION_RE.match(files[-1].name).group(1))
    return max(now, latest + 1)
