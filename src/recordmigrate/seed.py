"""Seed helpers - create and remove administrative auth records from migrations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from recordmigrate.exceptions import RecordNotFoundError, StoreError

if TYPE_CHECKING:
    from recordmigrate.schema import Record
    from recordmigrate.store import Store

logger = logging.getLogger("recordmigrate")


def ensure_auth_record(
    store: Store,
    collection: str,
    email: str,
    password: str,
    **data: Any,
) -> Record:
    """Create an auth record unless one with ``email`` already exists.

    Raises CollectionNotFoundError if ``collection`` does not exist yet; seed
    units must be versioned after the migration that creates it.
    """
    auth_collection = store.find_collection_by_name_or_id(collection)
    if not auth_collection.is_auth:
        raise StoreError(f"Collection {auth_collection.name!r} is not an auth collection")

    try:
        existing = store.find_auth_record_by_identifier(auth_collection, email)
    except RecordNotFoundError:
        existing = None
    if existing is not None:
        logger.warning(f"Auth record {email} already exists in {auth_collection.name}, not seeding")
        return existing

    record = store.new_record(auth_collection)
    record.set("email", email)
    record.set("password", password)
    for key, value in data.items():
        record.set(key, value)
    store.save(record)
    logger.info(f"Seeded auth record {email} in {auth_collection.name}")
    return record


def delete_auth_record_if_exists(store: Store, collection: str, email: str) -> bool:
    """Delete the auth record for ``email`` if present.  Returns whether one was deleted."""
    try:
        record = store.find_auth_record_by_identifier(collection, email)
    except RecordNotFoundError:
        return False
    store.delete(record)
    logger.info(f"Deleted auth record {email} from {collection}")
    return True
