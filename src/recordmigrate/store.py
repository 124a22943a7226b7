"""Storage engine - the Store protocol consumed by migrations, plus local implementations.

``MemoryStore`` keeps the whole state in memory and gives each transaction
snapshot/restore semantics.  ``JsonFileStore`` adds durability: the state is
rewritten to a JSON file after every committed transaction, and the migration
lock is backed by an exclusive lock file so two processes cannot migrate the
same store concurrently.
"""

from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Protocol, Union

import bcrypt
from pydantic import BaseModel, Field

from recordmigrate.exceptions import (
    CollectionNotFoundError,
    DuplicateFieldError,
    MigrationInProgressError,
    RecordNotFoundError,
    ReferenceConstraintError,
    StoreError,
    UniqueConstraintError,
    ValidationError,
)
from recordmigrate.schema import (
    AccessRules,
    AutodateField,
    Collection,
    EmailField,
    PasswordField,
    Record,
    RelationField,
    Settings,
    TextField,
)

logger = logging.getLogger("recordmigrate.store")

SUPERUSERS = "_superusers"
USERS = "users"
MIGRATIONS = "_migrations"

SUPERUSER_RULE = "@request.auth.collectionName = '_superusers'"

Entity = Union[Collection, Record, Settings]
CollectionRef = Union[Collection, str]


class Store(Protocol):
    """Minimal storage interface used by migration units and the runner."""

    def find_collection_by_name_or_id(self, key: str) -> Collection: ...

    def find_record_by_id(self, collection: CollectionRef, record_id: str) -> Record: ...

    def find_first_record_by_data(self, collection: CollectionRef, field: str, value: Any) -> Record: ...

    def find_auth_record_by_identifier(self, collection: CollectionRef, identifier: str) -> Record: ...

    def find_all_records(self, collection: CollectionRef) -> list[Record]: ...

    def new_record(self, collection: Collection) -> Record: ...

    def save(self, entity: Entity) -> None: ...

    def delete(self, entity: Collection | Record) -> None: ...

    def settings(self) -> Settings: ...

    def transaction(self) -> Any: ...

    def migration_lock(self) -> Any: ...


class StoreState(BaseModel):
    """Everything a store persists."""

    collections: dict[str, Collection] = Field(default_factory=dict)
    records: dict[str, dict[str, Record]] = Field(default_factory=dict)
    settings: Settings = Field(default_factory=Settings)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _system_collections() -> list[Collection]:
    superusers = Collection(
        name=SUPERUSERS,
        type="auth",
        system=True,
        fields=[
            EmailField(name="email", required=True),
            PasswordField(name="password", required=True, hidden=True),
            AutodateField(name="created", on_create=True),
            AutodateField(name="updated", on_create=True, on_update=True),
        ],
        rules=AccessRules.same(SUPERUSER_RULE),
    )
    users = Collection(
        name=USERS,
        type="auth",
        fields=[
            EmailField(name="email", required=True),
            PasswordField(name="password", required=True, hidden=True),
            TextField(name="name", max=255),
            AutodateField(name="created", on_create=True),
            AutodateField(name="updated", on_create=True, on_update=True),
        ],
        rules=AccessRules(
            list_rule="id = @request.auth.id",
            view_rule="id = @request.auth.id",
            create_rule=None,
            update_rule="id = @request.auth.id",
            delete_rule="id = @request.auth.id",
        ),
    )
    migrations = Collection(
        name=MIGRATIONS,
        system=True,
        fields=[
            TextField(name="version", required=True),
            TextField(name="name"),
            AutodateField(name="applied", on_create=True),
        ],
        rules=AccessRules.same(SUPERUSER_RULE),
    )
    return [superusers, users, migrations]


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def check_password(record: Record, password: str) -> bool:
    """Verify a password against an auth record's stored hash."""
    hashed = record.get("password_hash")
    if not hashed:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


class MemoryStore:
    """In-memory store with snapshot transactions.

    Lookups return deep copies; nothing changes until ``save``/``delete``.
    """

    def __init__(self, *, state: StoreState | None = None, bcrypt_rounds: int = 12) -> None:
        if state is None:
            state = StoreState()
            for c in _system_collections():
                state.collections[c.id] = c
                state.records[c.id] = {}
        self._state = state
        self._bcrypt_rounds = bcrypt_rounds
        self._tx_depth = 0
        self._lock = threading.Lock()

    # ── Transactions / locking ────────────────────────────────────────

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    @contextmanager
    def transaction(self) -> Iterator[MemoryStore]:
        """Run a block atomically.

        A nested call is a savepoint: if its block raises, only the changes
        made inside it are undone and the enclosing transaction carries on
        or fails as it chooses.  Only the outermost transaction commits.
        """
        outermost = self._tx_depth == 0
        if outermost:
            self._refresh()
        snapshot = self._state.model_copy(deep=True)
        self._tx_depth += 1
        try:
            yield self
        except BaseException:
            self._state = snapshot
            logger.debug("Transaction rolled back" if outermost else "Savepoint rolled back")
            raise
        else:
            if outermost:
                self._commit()
        finally:
            self._tx_depth -= 1

    def _refresh(self) -> None:
        """Hook called before an outermost transaction or a migration pass starts."""

    def _commit(self) -> None:
        """Hook called after an outermost transaction commits."""

    @contextmanager
    def migration_lock(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise MigrationInProgressError("A migration pass is already running against this store")
        try:
            yield
        finally:
            self._lock.release()

    # ── Lookups ───────────────────────────────────────────────────────

    def _collection(self, ref: CollectionRef) -> Collection:
        key = ref.id if isinstance(ref, Collection) else ref
        found = self._state.collections.get(key)
        if found is not None:
            return found
        for c in self._state.collections.values():
            if c.name.lower() == str(key).lower():
                return c
        raise CollectionNotFoundError(ref.name if isinstance(ref, Collection) else key)

    def find_collection_by_name_or_id(self, key: str) -> Collection:
        return self._collection(key).model_copy(deep=True)

    def collections(self) -> list[Collection]:
        return [c.model_copy(deep=True) for c in self._state.collections.values()]

    def find_record_by_id(self, collection: CollectionRef, record_id: str) -> Record:
        c = self._collection(collection)
        rec = self._state.records[c.id].get(record_id)
        if rec is None:
            raise RecordNotFoundError(f"Record {record_id!r} not found in {c.name!r}")
        return rec.model_copy(deep=True)

    def find_first_record_by_data(self, collection: CollectionRef, field: str, value: Any) -> Record:
        c = self._collection(collection)
        for rec in self._state.records[c.id].values():
            if rec.get(field) == value:
                return rec.model_copy(deep=True)
        raise RecordNotFoundError(f"No record in {c.name!r} with {field} = {value!r}")

    def find_auth_record_by_identifier(self, collection: CollectionRef, identifier: str) -> Record:
        c = self._collection(collection)
        if not c.is_auth:
            raise StoreError(f"Collection {c.name!r} is not an auth collection")
        wanted = identifier.lower()
        for rec in self._state.records[c.id].values():
            if rec.email.lower() == wanted:
                return rec.model_copy(deep=True)
        raise RecordNotFoundError(f"No auth record in {c.name!r} for {identifier!r}")

    def find_all_records(self, collection: CollectionRef) -> list[Record]:
        c = self._collection(collection)
        return [rec.model_copy(deep=True) for rec in self._state.records[c.id].values()]

    def new_record(self, collection: Collection) -> Record:
        return Record(collection_id=collection.id, collection_name=collection.name)

    def settings(self) -> Settings:
        return self._state.settings.model_copy(deep=True)

    # ── Save ──────────────────────────────────────────────────────────

    def save(self, entity: Entity) -> None:
        with self.transaction():
            if isinstance(entity, Collection):
                self._save_collection(entity)
            elif isinstance(entity, Record):
                self._save_record(entity)
            elif isinstance(entity, Settings):
                self._state.settings = entity.model_copy(deep=True)
            else:
                raise TypeError(f"Cannot save {type(entity).__name__}")

    def _save_collection(self, collection: Collection) -> None:
        existing = self._state.collections.get(collection.id)
        if existing is not None and existing.name != collection.name:
            raise ValidationError(
                f"Collection {collection.id!r} cannot be renamed "
                f"({existing.name!r} -> {collection.name!r})"
            )
        for other in self._state.collections.values():
            if other.id != collection.id and other.name.lower() == collection.name.lower():
                raise UniqueConstraintError(f"Collection name {collection.name!r} is already in use")

        seen: set[str] = set()
        for f in collection.fields:
            if f.name in seen:
                raise DuplicateFieldError(collection.name, f.name)
            seen.add(f.name)

        for f in collection.relation_fields():
            if f.collection_id != collection.id and f.collection_id not in self._state.collections:
                raise ReferenceConstraintError(
                    f"Relation field {f.name!r} of {collection.name!r} "
                    f"targets non-existent collection {f.collection_id!r}"
                )

        self._state.collections[collection.id] = collection.model_copy(deep=True)
        self._state.records.setdefault(collection.id, {})
        logger.debug(f"Saved collection {collection.name} ({collection.id})")

    def _save_record(self, record: Record) -> None:
        c = self._collection(record.collection_id)
        stored = self._state.records[c.id]
        previous = stored.get(record.id)
        is_new = previous is None
        now = _now()

        data: dict[str, Any] = {}
        errors: dict[str, str] = {}
        for f in c.fields:
            value = record.data.get(f.name)
            if isinstance(f, AutodateField):
                if (is_new and f.on_create) or (not is_new and f.on_update):
                    data[f.name] = now
                else:
                    data[f.name] = value if value is not None else (previous.get(f.name) if previous else "")
                continue
            if isinstance(f, PasswordField):
                current_hash = record.data.get("password_hash") or (previous.get("password_hash") if previous else None)
                if value:
                    if len(value) < f.min:
                        errors[f.name] = f"must be at least {f.min} characters"
                    else:
                        current_hash = hash_password(value, self._bcrypt_rounds)
                elif f.required and not current_hash:
                    errors[f.name] = "cannot be blank"
                if current_hash:
                    data["password_hash"] = current_hash
                continue
            try:
                data[f.name] = f.validate_value(value)
            except ValueError as e:
                errors[f.name] = str(e)
                continue
            if isinstance(f, RelationField):
                missing = self._missing_relation_ids(f, data[f.name])
                if missing:
                    errors[f.name] = f"references missing record(s) {', '.join(missing)}"

        if errors:
            raise ValidationError(f"Failed to save record in {c.name!r}", errors=errors)

        if c.is_auth:
            email = data.get("email", "").lower()
            for other in stored.values():
                if other.id != record.id and other.email.lower() == email:
                    raise UniqueConstraintError(f"Email {email!r} is already in use in {c.name!r}")

        record.data = data
        stored[record.id] = record.model_copy(deep=True)
        logger.debug(f"Saved record {record.id} in {c.name}")

    def _missing_relation_ids(self, field: RelationField, value: Any) -> list[str]:
        targets = self._state.records.get(field.collection_id, {})
        return [rid for rid in field.ids(value) if rid not in targets]

    # ── Delete ────────────────────────────────────────────────────────

    def delete(self, entity: Collection | Record) -> None:
        with self.transaction():
            if isinstance(entity, Collection):
                self._delete_collection(entity)
            elif isinstance(entity, Record):
                self._delete_record(entity.collection_id, entity.id, set())
            else:
                raise TypeError(f"Cannot delete {type(entity).__name__}")

    def _delete_collection(self, collection: Collection) -> None:
        existing = self._state.collections.get(collection.id)
        if existing is None:
            raise CollectionNotFoundError(collection.name)
        if existing.system:
            raise StoreError(f"System collection {existing.name!r} cannot be deleted")
        for other in self._state.collections.values():
            if other.id == existing.id:
                continue
            for f in other.relation_fields():
                if f.collection_id == existing.id:
                    raise ReferenceConstraintError(
                        f"Collection {existing.name!r} is still referenced by {other.name}.{f.name}"
                    )
        del self._state.collections[existing.id]
        self._state.records.pop(existing.id, None)
        logger.debug(f"Deleted collection {existing.name} ({existing.id})")

    def _delete_record(self, collection_id: str, record_id: str, visited: set[str]) -> None:
        c = self._collection(collection_id)
        if record_id not in self._state.records[c.id]:
            raise RecordNotFoundError(f"Record {record_id!r} not found in {c.name!r}")
        visited.add(record_id)
        del self._state.records[c.id][record_id]

        for other in list(self._state.collections.values()):
            for f in other.relation_fields():
                if f.collection_id != c.id:
                    continue
                for rec in list(self._state.records.get(other.id, {}).values()):
                    ids = f.ids(rec.get(f.name))
                    if record_id not in ids:
                        continue
                    if f.cascade_delete:
                        if rec.id not in visited:
                            self._delete_record(other.id, rec.id, visited)
                        continue
                    remaining = [i for i in ids if i != record_id]
                    if f.required and not remaining:
                        raise ReferenceConstraintError(
                            f"Record {rec.id!r} in {other.name!r} requires {f.name!r} "
                            f"and would be left without a relation"
                        )
                    rec.set(f.name, remaining if f.is_multiple else "")
        logger.debug(f"Deleted record {record_id} from {c.name}")


class JsonFileStore(MemoryStore):
    """A MemoryStore persisted to a JSON file.

    Other instances may write the same file, so the state is re-read from
    disk when a migration pass takes the lock and before every outermost
    transaction.  Lookups made outside both can be stale.
    """

    def __init__(self, path: str | Path, *, bcrypt_rounds: int = 12) -> None:
        self.path = Path(path)
        super().__init__(state=self._load(), bcrypt_rounds=bcrypt_rounds)

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    def _load(self) -> StoreState | None:
        if not self.path.exists():
            return None
        return StoreState.model_validate_json(self.path.read_text(encoding="utf-8"))

    def _refresh(self) -> None:
        state = self._load()
        if state is not None:
            self._state = state

    def _commit(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(self._state.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    @contextmanager
    def migration_lock(self) -> Iterator[None]:
        with super().migration_lock():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                raise MigrationInProgressError(
                    f"Lock file {self.lock_path} exists: another migration pass is running, "
                    f"or a killed one left it behind (delete the file if no pass is running)"
                ) from None
            try:
                os.write(fd, str(os.getpid()).encode("ascii"))
            finally:
                os.close(fd)
            try:
                if not self.in_transaction:
                    self._refresh()
                yield
            finally:
                self.lock_path.unlink(missing_ok=True)
