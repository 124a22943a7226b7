# Migration: 1768297640_server_settings.py

from recordmigrate.config import MigrationSettings
from recordmigrate.registry import MigrationRegistry
from recordmigrate.store import Store

VERSION = 1768297640
NAME = "1768297640_server_settings"


def up(store: Store) -> None:
    config = MigrationSettings.from_env()

    settings = store.settings()
    settings.meta.app_name = "LinknLink"
    settings.meta.app_url = config.app_url
    settings.logs.max_days = 2
    settings.logs.log_auth_id = True
    settings.logs.log_ip = False

    store.save(settings)


def down(store: Store) -> None:
    # Previous settings are not kept; nothing to restore.
    pass


def register(registry: MigrationRegistry) -> None:
    registry.register(VERSION, up, down, name=NAME)
