# Migration: 1768297641_admin_user.py

from recordmigrate.config import MigrationSettings
from recordmigrate.registry import MigrationRegistry
from recordmigrate.seed import delete_auth_record_if_exists, ensure_auth_record
from recordmigrate.store import SUPERUSERS, Store

VERSION = 1768297641
NAME = "1768297641_admin_user"


def up(store: Store) -> None:
    config = MigrationSettings.from_env()
    ensure_auth_record(store, SUPERUSERS, config.admin_email, config.admin_password)


def down(store: Store) -> None:
    config = MigrationSettings.from_env()
    delete_auth_record_if_exists(store, SUPERUSERS, config.admin_email)


def register(registry: MigrationRegistry) -> None:
    registry.register(VERSION, up, down, name=NAME)
