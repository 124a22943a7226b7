"""Configuration inputs read by migration units."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_ADMIN_EMAIL = "admin@example.com"
DEFAULT_ADMIN_PASSWORD = "admin123456789"
DEFAULT_APP_URL = "http://localhost:8090"


def _get(environ: Mapping[str, str], key: str, default: str) -> str:
    # Empty values count as unset
    return environ.get(key) or default


@dataclass(frozen=True)
class MigrationSettings:
    """Values sourced from the environment, with defaults.

    POCKETBASE_ADMIN_EMAIL     superuser email    (admin@example.com)
    POCKETBASE_ADMIN_PASSWORD  superuser password (admin123456789)
    POCKETBASE_DOMAIN          public base URL    (http://localhost:8090)
    """

    admin_email: str = DEFAULT_ADMIN_EMAIL
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    app_url: str = DEFAULT_APP_URL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> MigrationSettings:
        env = os.environ if environ is None else environ
        return cls(
            admin_email=_get(env, "POCKETBASE_ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL),
            admin_password=_get(env, "POCKETBASE_ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
            app_url=_get(env, "POCKETBASE_DOMAIN", DEFAULT_APP_URL),
        )
