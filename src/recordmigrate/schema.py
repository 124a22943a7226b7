"""Schema model - collections, typed fields, access rules, records, and settings.

Everything here is a Pydantic model so that a store snapshot can be dumped to
and loaded from JSON without a separate serialization layer.  Field variants
form a discriminated union on ``type``::

    tags = Collection(
        name="tags",
        fields=[
            TextField(name="name", required=True, max=100),
            RelationField(name="user", collection_id=users.id, cascade_delete=True),
        ],
        rules=AccessRules.owner_only(),
    )
"""

from __future__ import annotations

import re
import secrets
import string
from typing import Annotated, Any, Literal, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

_ID_ALPHABET = string.ascii_lowercase + string.digits
_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

OWNER_RULE = "@request.auth.id != '' && {field} = @request.auth.id"


def new_id(prefix: str = "", length: int = 15) -> str:
    """Generate a random lowercase alphanumeric id."""
    return prefix + "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


# ── Fields ────────────────────────────────────────────────────────────


class _BaseField(BaseModel):
    """Shape shared by every field variant."""

    id: str = Field(default_factory=lambda: new_id("field", 10))
    name: str
    required: bool = False
    hidden: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not _NAME_RE.match(v):
            raise ValueError(f"Invalid field name {v!r}")
        return v

    def validate_value(self, value: Any) -> Any:
        """Normalize a record value, raising ValueError if it is not acceptable."""
        return value


class TextField(_BaseField):
    type: Literal["text"] = "text"
    max: int = 0  # 0 = unbounded
    min: int = 0

    def validate_value(self, value: Any) -> str:
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValueError("must be a string")
        if not value:
            if self.required:
                raise ValueError("cannot be blank")
            return value
        if self.max and len(value) > self.max:
            raise ValueError(f"must be at most {self.max} characters")
        if len(value) < self.min:
            raise ValueError(f"must be at least {self.min} characters")
        return value


class URLField(_BaseField):
    type: Literal["url"] = "url"

    def validate_value(self, value: Any) -> str:
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValueError("must be a string")
        if not value:
            if self.required:
                raise ValueError("cannot be blank")
            return value
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("must be a valid http(s) URL")
        return value


class BoolField(_BaseField):
    """Boolean flag.  A required bool must be ``True``."""

    type: Literal["bool"] = "bool"

    def validate_value(self, value: Any) -> bool:
        if value is None:
            value = False
        if not isinstance(value, bool):
            raise ValueError("must be a boolean")
        if self.required and not value:
            raise ValueError("must be true")
        return value


class RelationField(_BaseField):
    """Reference to records of another collection, by collection id.

    Values are a single record id when ``max_select == 1``, otherwise a list of ids.
    """

    type: Literal["relation"] = "relation"
    collection_id: str
    cascade_delete: bool = False
    min_select: int = 0
    max_select: int = 1

    @property
    def is_multiple(self) -> bool:
        return self.max_select != 1

    def ids(self, value: Any) -> list[str]:
        """Return the referenced ids of a stored value as a list."""
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]

    def validate_value(self, value: Any) -> str | list[str]:
        if value is not None and not isinstance(value, (str, list, tuple)):
            raise ValueError("must be a record id or a list of record ids")
        ids = list(dict.fromkeys(self.ids(value)))
        if not ids and self.required:
            raise ValueError("cannot be blank")
        if ids and len(ids) < self.min_select:
            raise ValueError(f"must select at least {self.min_select} record(s)")
        if self.max_select and len(ids) > self.max_select:
            raise ValueError(f"must select at most {self.max_select} record(s)")
        if self.is_multiple:
            return ids
        return ids[0] if ids else ""


class AutodateField(_BaseField):
    """Timestamp maintained by the store on create and/or update."""

    type: Literal["autodate"] = "autodate"
    on_create: bool = True
    on_update: bool = False


class EmailField(_BaseField):
    type: Literal["email"] = "email"

    def validate_value(self, value: Any) -> str:
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValueError("must be a string")
        if not value:
            if self.required:
                raise ValueError("cannot be blank")
            return value
        if not _EMAIL_RE.match(value):
            raise ValueError("must be a valid email address")
        return value.lower()


class PasswordField(_BaseField):
    """Write-only secret; the store keeps a bcrypt hash, never the value."""

    type: Literal["password"] = "password"
    min: int = 8


SchemaField = Annotated[
    Union[
        TextField,
        URLField,
        BoolField,
        RelationField,
        AutodateField,
        EmailField,
        PasswordField,
    ],
    Field(discriminator="type"),
]


# ── Access rules ──────────────────────────────────────────────────────


class AccessRules(BaseModel):
    """Per-operation access predicates, opaque to the migration engine.

    ``None`` means unrestricted.  All five must be given explicitly.
    """

    model_config = ConfigDict(frozen=True)

    list_rule: str | None
    view_rule: str | None
    create_rule: str | None
    update_rule: str | None
    delete_rule: str | None

    @classmethod
    def same(cls, rule: str | None) -> AccessRules:
        """Use one rule for every operation kind."""
        return cls(
            list_rule=rule,
            view_rule=rule,
            create_rule=rule,
            update_rule=rule,
            delete_rule=rule,
        )

    @classmethod
    def owner_only(cls, field: str = "user") -> AccessRules:
        """Only the authenticated owner (via relation ``field``) may act."""
        return cls.same(OWNER_RULE.format(field=field))

    @classmethod
    def unrestricted(cls) -> AccessRules:
        return cls.same(None)


# ── Collections ───────────────────────────────────────────────────────


class Collection(BaseModel):
    """A named, typed entity schema."""

    id: str = Field(default_factory=lambda: new_id("pbc_"))
    name: str
    type: Literal["base", "auth"] = "base"
    system: bool = False
    fields: list[SchemaField] = Field(default_factory=list)
    rules: AccessRules

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not _NAME_RE.match(v):
            raise ValueError(f"Invalid collection name {v!r}")
        return v

    @property
    def is_auth(self) -> bool:
        return self.type == "auth"

    def get_field(self, name: str) -> SchemaField | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def relation_fields(self) -> list[RelationField]:
        return [f for f in self.fields if isinstance(f, RelationField)]


# ── Records ───────────────────────────────────────────────────────────


class Record(BaseModel):
    """A single row of a collection."""

    id: str = Field(default_factory=new_id)
    collection_id: str
    collection_name: str
    data: dict[str, Any] = Field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        if key == "id":
            return self.id
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    @property
    def email(self) -> str:
        return self.data.get("email", "")


# ── Settings ──────────────────────────────────────────────────────────


class MetaSettings(BaseModel):
    app_name: str = "Acme"
    app_url: str = "http://localhost:8090"


class LogsSettings(BaseModel):
    max_days: int = 5
    log_auth_id: bool = False
    log_ip: bool = True


class Settings(BaseModel):
    """Store-wide application settings."""

    meta: MetaSettings = Field(default_factory=MetaSettings)
    logs: LogsSettings = Field(default_factory=LogsSettings)
