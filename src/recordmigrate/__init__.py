"""recordmigrate - versioned schema migrations for record-oriented data stores."""

# Schema model
from recordmigrate.schema import (
    AccessRules,
    AutodateField,
    BoolField,
    Collection,
    EmailField,
    PasswordField,
    Record,
    RelationField,
    SchemaField,
    Settings,
    TextField,
    URLField,
)

# Registry / runner
from recordmigrate.registry import MigrationRegistry, MigrationUnit
from recordmigrate.runner import (
    apply_migration,
    migrate_down,
    migrate_up,
    revert_migration,
    show_migrations,
)
from recordmigrate.recorder import MigrationRecorder
from recordmigrate.loader import load_migrations

# Builder / seed
from recordmigrate.builder import (
    CollectionBuilder,
    add_fields,
    drop_collection_if_exists,
    ensure_collection,
    relation,
    set_access_rules,
)
from recordmigrate.seed import delete_auth_record_if_exists, ensure_auth_record

# Store
from recordmigrate.store import JsonFileStore, MemoryStore, Store

# Config
from recordmigrate.config import MigrationSettings

# Exceptions
from recordmigrate.exceptions import (
    CollectionNotFoundError,
    DuplicateFieldError,
    DuplicateVersionError,
    MigrationError,
    MigrationFailedError,
    MigrationInProgressError,
    NotFoundError,
    RecordMigrateError,
    RecordNotFoundError,
    ReferenceConstraintError,
    RollbackFailedError,
    StoreError,
    UniqueConstraintError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    # Schema
    "AccessRules",
    "AutodateField",
    "BoolField",
    "Collection",
    "EmailField",
    "PasswordField",
    "Record",
    "RelationField",
    "SchemaField",
    "Settings",
    "TextField",
    "URLField",
    # Registry / runner
    "MigrationRegistry",
    "MigrationUnit",
    "MigrationRecorder",
    "apply_migration",
    "revert_migration",
    "migrate_up",
    "migrate_down",
    "show_migrations",
    "load_migrations",
    # Builder / seed
    "CollectionBuilder",
    "ensure_collection",
    "add_fields",
    "set_access_rules",
    "drop_collection_if_exists",
    "relation",
    "ensure_auth_record",
    "delete_auth_record_if_exists",
    # Store
    "Store",
    "MemoryStore",
    "JsonFileStore",
    # Config
    "MigrationSettings",
    # Exceptions
    "RecordMigrateError",
    "MigrationError",
    "DuplicateVersionError",
    "MigrationFailedError",
    "RollbackFailedError",
    "MigrationInProgressError",
    "DuplicateFieldError",
    "NotFoundError",
    "CollectionNotFoundError",
    "RecordNotFoundError",
    "StoreError",
    "ValidationError",
    "UniqueConstraintError",
    "ReferenceConstraintError",
]
