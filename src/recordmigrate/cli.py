"""CLI entry point for the migration system."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from recordmigrate.exceptions import RecordMigrateError
from recordmigrate.loader import get_next_version, load_migrations
from recordmigrate.runner import migrate_down, migrate_up, show_migrations
from recordmigrate.store import JsonFileStore
from recordmigrate.writer import generate_migration


def _cmd_create(args: argparse.Namespace) -> int:
    """Write a new, empty migration file."""
    migrations_dir = Path(args.migrations_dir)
    migrations_dir.mkdir(parents=True, exist_ok=True)

    version = get_next_version(migrations_dir)
    filename, content = generate_migration(version, args.name)

    filepath = migrations_dir / filename
    filepath.write_text(content)
    print(f"Created migration: {filepath}")
    return 0


def _cmd_up(args: argparse.Namespace) -> int:
    """Apply pending migrations."""
    registry = load_migrations(args.migrations_dir)
    if not len(registry):
        print("No migrations found.")
        return 0

    store = JsonFileStore(args.store)
    applied = migrate_up(store, registry, target=args.target)

    if applied:
        print(f"Applied {len(applied)} migration(s):")
        for version in applied:
            print(f"  [X] {registry.get(version).label}")
    else:
        print("No migrations to apply.")
    return 0


def _cmd_down(args: argparse.Namespace) -> int:
    """Revert the most recently applied migrations."""
    registry = load_migrations(args.migrations_dir)
    store = JsonFileStore(args.store)
    reverted = migrate_down(store, registry, steps=args.steps)

    if reverted:
        print(f"Reverted {len(reverted)} migration(s):")
        for version in reverted:
            print(f"  [ ] {registry.get(version).label}")
    else:
        print("Nothing to revert.")
    return 0


def _cmd_status(args: argparse.Namespace) -> int:
    """Show migration status."""
    registry = load_migrations(args.migrations_dir)
    if not len(registry):
        print("No migrations found.")
        return 0

    store = JsonFileStore(args.store)
    for unit, applied in show_migrations(store, registry):
        mark = "X" if applied else " "
        print(f"  [{mark}] {unit.label}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="recordmigrate",
        description="Versioned schema migrations for record stores",
    )
    parser.add_argument(
        "--migrations-dir",
        default="migrations",
        help="Directory for migration files (default: ./migrations)",
    )
    parser.add_argument(
        "--store",
        default="pb_data/data.json",
        help="Path of the JSON store file (default: ./pb_data/data.json)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # create
    create = subparsers.add_parser("create", help="Create a new, empty migration file")
    create.add_argument("name", help="Short description used in the filename")
    create.set_defaults(func=_cmd_create)

    # up
    up = subparsers.add_parser("up", help="Apply pending migrations")
    up.add_argument("--target", type=int, default=None, help="Stop after this version")
    up.set_defaults(func=_cmd_up)

    # down
    down = subparsers.add_parser("down", help="Revert applied migrations")
    down.add_argument("--steps", type=int, default=1, help="Number of migrations to revert (default: 1)")
    down.set_defaults(func=_cmd_down)

    # status
    status = subparsers.add_parser("status", help="Show migration status")
    status.set_defaults(func=_cmd_status)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except RecordMigrateError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
