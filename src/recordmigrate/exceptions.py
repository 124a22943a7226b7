"""Exception hierarchy for recordmigrate."""

from __future__ import annotations

from typing import Any


class RecordMigrateError(Exception):
    """Base exception for all recordmigrate errors."""


# ── Registry / runner ─────────────────────────────────────────────────


class MigrationError(RecordMigrateError):
    """Raised when the runner cannot plan or execute a pass."""


class DuplicateVersionError(MigrationError):
    """A migration with the same version is already registered."""

    def __init__(self, version: int) -> None:
        super().__init__(f"Migration version {version} is already registered")
        self.version = version


class MigrationFailedError(MigrationError):
    """A forward migration failed; its transaction was rolled back."""

    def __init__(self, version: int, cause: BaseException) -> None:
        super().__init__(f"Migration {version} failed: {cause}")
        self.version = version
        self.cause = cause


class RollbackFailedError(MigrationError):
    """A backward migration failed; no further rollback steps were run."""

    def __init__(self, version: int, cause: BaseException) -> None:
        super().__init__(f"Rollback of migration {version} failed: {cause}")
        self.version = version
        self.cause = cause


class MigrationInProgressError(MigrationError):
    """Another migration pass holds the lock on this store."""


# ── Schema declaration ────────────────────────────────────────────────


class DuplicateFieldError(RecordMigrateError):
    """The collection already declares a field with this name."""

    def __init__(self, collection: str, field: str) -> None:
        super().__init__(f"Collection {collection!r} already has a field named {field!r}")
        self.collection = collection
        self.field = field


# ── Store ─────────────────────────────────────────────────────────────


class NotFoundError(RecordMigrateError):
    """The requested collection or record does not exist."""


class CollectionNotFoundError(NotFoundError):
    """No collection matches the given name or id."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Collection {key!r} not found")
        self.key = key


class RecordNotFoundError(NotFoundError):
    """No record matches the lookup."""


class StoreError(RecordMigrateError):
    """The store rejected a save or delete."""


class ValidationError(StoreError):
    """Entity data failed validation against its schema."""

    def __init__(self, message: str, *, errors: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


class UniqueConstraintError(StoreError):
    """A unique value (collection name, auth identifier) is already taken."""


class ReferenceConstraintError(StoreError):
    """The entity is still referenced and cannot be removed."""
