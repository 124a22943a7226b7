"""Migration file writer - generates Python source for new migration files."""

from __future__ import annotations

import re

_SUFFIX_RE = re.compile(r"[^a-z0-9]+")

_TEMPLATE = '''\
# Migration: {filename}
# Created by recordmigrate

from recordmigrate.registry import MigrationRegistry
from recordmigrate.store import Store

VERSION = {version}
NAME = "{name}"


def up(store: Store) -> None:
    pass


def down(store: Store) -> None:
    pass


def register(registry: MigrationRegistry) -> None:
    registry.register(VERSION, up, down, name=NAME)
'''


def normalize_suffix(name: str) -> str:
    """Turn a free-form description into a filename suffix."""
    suffix = _SUFFIX_RE.sub("_", name.lower()).strip("_")
    return suffix or "auto"


def generate_migration(version: int, name: str | None = None) -> tuple[str, str]:
    """Generate an empty migration file.

    Returns (filename, content).
    """
    suffix = normalize_suffix(name or "")
    stem = f"{version}_{suffix}"
    filename = f"{stem}.py"
    return filename, _TEMPLATE.format(filename=filename, version=version, name=stem)
