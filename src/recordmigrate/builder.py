"""Collection builder - fluent, idempotent collection declaration for migration units."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Literal, Union

from recordmigrate.exceptions import (
    CollectionNotFoundError,
    DuplicateFieldError,
    ReferenceConstraintError,
)
from recordmigrate.schema import AccessRules, Collection, RelationField, SchemaField

if TYPE_CHECKING:
    from recordmigrate.store import Store

logger = logging.getLogger("recordmigrate")


class CollectionBuilder:
    """Accumulate fields and rules, then build or save a Collection.

    Usage::

        CollectionBuilder("tags")
            .add_fields(TextField(name="name", required=True, max=100))
            .set_rules(AccessRules.owner_only())
            .save(store)

    Rules are never defaulted: call ``set_rules(AccessRules.unrestricted())``
    to make a collection open on purpose.
    """

    def __init__(self, name: str, *, type: Literal["base", "auth"] = "base") -> None:
        self.name = name
        self.type = type
        self._fields: list[SchemaField] = []
        self._rules: AccessRules | None = None

    @property
    def fields(self) -> list[SchemaField]:
        return list(self._fields)

    def add_field(self, field: SchemaField) -> CollectionBuilder:
        if any(f.name == field.name for f in self._fields):
            raise DuplicateFieldError(self.name, field.name)
        self._fields.append(field)
        return self

    def add_fields(self, *fields: SchemaField) -> CollectionBuilder:
        for f in fields:
            self.add_field(f)
        return self

    def set_rules(self, rules: AccessRules) -> CollectionBuilder:
        self._rules = rules
        return self

    def build(self) -> Collection:
        if self._rules is None:
            raise ValueError(
                f"Access rules for {self.name!r} were not set; "
                f"use AccessRules.unrestricted() to leave it open explicitly"
            )
        return Collection(name=self.name, type=self.type, fields=list(self._fields), rules=self._rules)

    def save(self, store: Store) -> Collection:
        collection = self.build()
        check_relation_targets(store, collection)
        store.save(collection)
        return collection


CollectionFactory = Callable[[], Union[CollectionBuilder, Collection]]


def check_relation_targets(store: Store, collection: Collection) -> None:
    """Raise ReferenceConstraintError if a relation field targets a missing collection."""
    for f in collection.relation_fields():
        if f.collection_id == collection.id:
            continue
        try:
            store.find_collection_by_name_or_id(f.collection_id)
        except CollectionNotFoundError:
            raise ReferenceConstraintError(
                f"Relation field {f.name!r} of {collection.name!r} "
                f"targets non-existent collection {f.collection_id!r}"
            ) from None


def relation(store: Store, name: str, target: str, **options: Any) -> RelationField:
    """Build a RelationField pointing at the collection named (or with id) ``target``."""
    target_collection = store.find_collection_by_name_or_id(target)
    return RelationField(name=name, collection_id=target_collection.id, **options)


def ensure_collection(store: Store, name: str, factory: CollectionFactory) -> Collection:
    """Return the collection called ``name``, creating it via ``factory`` if absent.

    An existing collection is returned unchanged; its fields are never redeclared.
    """
    try:
        existing = store.find_collection_by_name_or_id(name)
    except CollectionNotFoundError:
        existing = None
    if existing is not None:
        logger.debug(f"Collection {name} already exists, leaving it unchanged")
        return existing

    built = factory()
    collection = built.build() if isinstance(built, CollectionBuilder) else built
    if collection.name != name:
        raise ValueError(f"Factory for {name!r} produced collection {collection.name!r}")

    check_relation_targets(store, collection)
    store.save(collection)
    logger.info(f"Created collection {collection.name} ({collection.id})")
    return collection


def add_fields(collection: Collection, *fields: SchemaField) -> Collection:
    """Append fields in order.  Nothing is added if any name clashes."""
    names = set(collection.field_names())
    for f in fields:
        if f.name in names:
            raise DuplicateFieldError(collection.name, f.name)
        names.add(f.name)
    collection.fields.extend(fields)
    return collection


def set_access_rules(collection: Collection, rules: AccessRules) -> Collection:
    """Replace all five access rules."""
    collection.rules = rules
    return collection


def drop_collection_if_exists(store: Store, name: str) -> bool:
    """Delete the named collection if present.  Returns whether anything was deleted."""
    try:
        collection = store.find_collection_by_name_or_id(name)
    except CollectionNotFoundError:
        logger.debug(f"Collection {name} does not exist, nothing to drop")
        return False
    store.delete(collection)
    logger.info(f"Dropped collection {name}")
    return True
