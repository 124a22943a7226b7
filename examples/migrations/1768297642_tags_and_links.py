# Migration: 1768297642_tags_and_links.py

from recordmigrate.builder import CollectionBuilder, drop_collection_if_exists, ensure_collection, relation
from recordmigrate.registry import MigrationRegistry
from recordmigrate.schema import AccessRules, AutodateField, BoolField, RelationField, TextField, URLField
from recordmigrate.store import USERS, Store

VERSION = 1768297642
NAME = "1768297642_tags_and_links"


def _timestamps() -> list:
    return [
        AutodateField(name="created", on_create=True),
        AutodateField(name="updated", on_create=True, on_update=True),
    ]


def _owner(store: Store) -> RelationField:
    return relation(store, "user", USERS, cascade_delete=True, max_select=1, required=True)


def up(store: Store) -> None:
    tags = ensure_collection(
        store,
        "tags",
        lambda: CollectionBuilder("tags")
        .add_fields(*_timestamps())
        .add_fields(
            TextField(name="name", required=True, max=100),
            TextField(name="color", required=True, max=100),
            _owner(store),
        )
        .set_rules(AccessRules.owner_only("user")),
    )

    ensure_collection(
        store,
        "links",
        lambda: CollectionBuilder("links")
        .add_fields(
            URLField(name="url", required=True),
            TextField(name="title", max=1000),
            TextField(name="description", max=5000),
            URLField(name="og_image"),
            TextField(name="og_site_name", max=200),
            TextField(name="og_type", max=100),
            TextField(name="favicon", max=200),
            TextField(name="notes", max=5000),
            relation(store, "tags", tags.id, max_select=100),
            _owner(store),
            BoolField(name="is_favorite"),
            BoolField(name="archived"),
        )
        .add_fields(*_timestamps())
        .set_rules(AccessRules.owner_only("user")),
    )


def down(store: Store) -> None:
    # links references tags, so it goes first
    drop_collection_if_exists(store, "links")
    drop_collection_if_exists(store, "tags")


def register(registry: MigrationRegistry) -> None:
    registry.register(VERSION, up, down, name=NAME)
