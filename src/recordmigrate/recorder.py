"""Migration recorder - track applied migrations in the store being migrated."""

from __future__ import annotations

from typing import TYPE_CHECKING

from recordmigrate.exceptions import RecordNotFoundError
from recordmigrate.store import MIGRATIONS

if TYPE_CHECKING:
    from recordmigrate.registry import MigrationUnit
    from recordmigrate.store import Store


class MigrationRecorder:
    """Read and write the applied-version log.

    Entries live in the ``_migrations`` system collection, so writes join
    whatever transaction the runner has open.
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    def get_applied(self) -> list[int]:
        """Return applied versions in the order they were applied."""
        records = self._store.find_all_records(MIGRATIONS)
        return [int(r.get("version")) for r in records]

    def is_applied(self, version: int) -> bool:
        try:
            self._store.find_first_record_by_data(MIGRATIONS, "version", str(version))
        except RecordNotFoundError:
            return False
        return True

    def record_applied(self, unit: MigrationUnit) -> None:
        """Record that a migration has been applied."""
        collection = self._store.find_collection_by_name_or_id(MIGRATIONS)
        record = self._store.new_record(collection)
        record.set("version", str(unit.version))
        record.set("name", unit.label)
        self._store.save(record)

    def record_reverted(self, version: int) -> None:
        """Remove the record for a reverted migration."""
        record = self._store.find_first_record_by_data(MIGRATIONS, "version", str(version))
        self._store.delete(record)
