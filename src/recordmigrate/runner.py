"""Migration runner - apply and revert migration units against a store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from recordmigrate.exceptions import (
    MigrationError,
    MigrationFailedError,
    NotFoundError,
    RollbackFailedError,
)
from recordmigrate.recorder import MigrationRecorder

if TYPE_CHECKING:
    from recordmigrate.registry import MigrationRegistry, MigrationUnit
    from recordmigrate.store import Store

logger = logging.getLogger("recordmigrate")


def _run_backward(store: Store, unit: MigrationUnit) -> None:
    try:
        unit.backward(store)
    except NotFoundError as e:
        # Already removed by hand or never created.
        logger.warning(f"Rollback of {unit.label}: resource already absent ({e})")


def apply_migration(store: Store, unit: MigrationUnit) -> None:
    """Run a single unit's forward function in its own transaction."""
    with store.transaction():
        unit.forward(store)


def revert_migration(store: Store, unit: MigrationUnit) -> None:
    """Run a single unit's backward function in its own transaction."""
    with store.transaction():
        _run_backward(store, unit)


def migrate_up(
    store: Store,
    registry: MigrationRegistry,
    *,
    target: int | None = None,
) -> list[int]:
    """Apply pending migrations up to and including target (or all if target is None).

    Each unit and its log entry commit together.  The first failure stops the
    pass with MigrationFailedError; units committed before it stay applied.

    Returns list of applied versions.
    """
    if target is not None and target not in registry:
        raise MigrationError(f"Migration {target!r} not found")

    recorder = MigrationRecorder(store)
    applied_versions: list[int] = []

    with store.migration_lock():
        for unit in registry.pending(recorder.get_applied()):
            if target is not None and unit.version > target:
                break

            logger.info(f"Applying migration {unit.label}")
            try:
                with store.transaction():
                    unit.forward(store)
                    recorder.record_applied(unit)
            except Exception as e:
                logger.error(f"Migration {unit.label} failed: {e}")
                raise MigrationFailedError(unit.version, e) from e
            applied_versions.append(unit.version)

    if not applied_versions:
        logger.info("No migrations to apply")
    return applied_versions


def migrate_down(
    store: Store,
    registry: MigrationRegistry,
    *,
    steps: int = 1,
) -> list[int]:
    """Revert the ``steps`` most recently applied migrations, newest first.

    Returns list of reverted versions.
    """
    if steps < 0:
        raise ValueError(f"steps must be >= 0, got {steps}")

    recorder = MigrationRecorder(store)
    reverted: list[int] = []

    with store.migration_lock():
        applied = recorder.get_applied()
        window = applied[len(applied) - steps:] if steps else []

        unknown = [v for v in window if v not in registry]
        if unknown:
            raise MigrationError(
                f"Applied migration(s) {', '.join(map(str, unknown))} are not registered; cannot roll back"
            )

        for unit in registry.applied(window):
            logger.info(f"Reverting migration {unit.label}")
            try:
                with store.transaction():
                    _run_backward(store, unit)
                    recorder.record_reverted(unit.version)
            except Exception as e:
                logger.error(f"Rollback of {unit.label} failed: {e}")
                raise RollbackFailedError(unit.version, e) from e
            reverted.append(unit.version)

    return reverted


def show_migrations(store: Store, registry: MigrationRegistry) -> list[tuple[MigrationUnit, bool]]:
    """Return every registered unit with whether it is applied."""
    applied = set(MigrationRecorder(store).get_applied())
    return [(unit, unit.version in applied) for unit in registry]
