"""Pydantic v2 models for crudgen scaffolding sessions.

Defines the entity/field specification collected from the operator, the
artifact kinds and rendered artifacts, and the single naming derivation that
every renderer and the bootstrap patcher share.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ScaffoldError(Exception):
    """Base class for every error crudgen reports to the operator."""


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class LogicalType(str, Enum):
    """Field types the operator can choose from."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    TEXT = "text"

    @classmethod
    def choices(cls) -> list[str]:
        return [member.value for member in cls]


class ArtifactKind(str, Enum):
    """Kinds of generated files, each with a fixed output path pattern."""
    ENTITY = "entity"
    MODEL = "model"
    CONTROLLER = "controller"
    ROUTES = "routes"
    VIEW = "view"
    VIEW_ROUTES = "view_routes"


# ---------------------------------------------------------------------------
# Entity specification
# ---------------------------------------------------------------------------

class FieldSpec(BaseModel):
    """A single field of an entity.

    ``type`` is kept as a plain string rather than a ``LogicalType`` so that
    values outside the closed set still reach the type map, which falls back
    to ``String`` instead of failing generation.
    """
    name: str = Field(..., description="Field identifier, e.g. 'title'")
    type: str = Field(default=LogicalType.STRING.value, description="Logical field type")
    required: bool = Field(default=True, description="Whether the field is required")

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("field name cannot be empty")
        return value

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, value: object) -> str:
        if isinstance(value, LogicalType):
            return value.value
        if value is None:
            return LogicalType.STRING.value
        return str(value)


class EntitySpec(BaseModel):
    """An entity with its ordered fields, built by the field collector."""
    name: str = Field(..., description="Capitalised entity name, e.g. 'Task'")
    fields: list[FieldSpec] = Field(default_factory=list)
    timestamps: bool = Field(default=True, description="Emit createdAt/updatedAt")

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("entity name cannot be empty")
        return value

    @model_validator(mode="after")
    def check_unique_field_names(self) -> "EntitySpec":
        seen: set[str] = set()
        for field in self.fields:
            if field.name in seen:
                raise ValueError(f"duplicate field name: {field.name!r}")
            seen.add(field.name)
        return self

    @property
    def names(self) -> "EntityNames":
        return EntityNames.derive(self.name)


# ---------------------------------------------------------------------------
# Naming derivation
# ---------------------------------------------------------------------------

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

# Route suffixes shared by the route module and the view's fetch calls.
CRUD_ENDPOINTS: dict[str, str] = {
    "create": "/create",
    "read": "/get",
    "update": "/edit/:id",
    "delete": "/delete/:id",
}


def is_identifier(value: str) -> bool:
    """Return ``True`` if *value* is usable as a JavaScript identifier."""
    return bool(_IDENTIFIER_RE.match(value))


def resource_base(name: str) -> str:
    """Lower-case path segment for an entity, e.g. ``'TaskItem'`` -> ``'taskitem'``."""
    return name.strip().lower()


class EntityNames(BaseModel):
    """Every name derived from an entity name.

    Route rendering, view rendering and bootstrap registration all read from
    this one object so that mount paths and fetch URLs agree byte-for-byte.
    """
    model_config = ConfigDict(frozen=True)

    model: str
    controller: str
    routes: str
    view_routes: str
    view_file: str
    base: str
    api_prefix: str = "api"

    @classmethod
    def derive(cls, name: str, api_prefix: str = "api") -> "EntityNames":
        name = name.strip()
        return cls(
            model=name,
            controller=f"{name}Controller",
            routes=f"{name}Routes",
            view_routes=f"{name}ViewRoutes",
            view_file=f"{name}.html",
            base=resource_base(name),
            api_prefix=api_prefix.strip("/"),
        )

    @property
    def api_path(self) -> str:
        """Mount path of the CRUD router, e.g. ``/api/task``."""
        if self.api_prefix:
            return f"/{self.api_prefix}/{self.base}"
        return f"/{self.base}"

    @property
    def view_path(self) -> str:
        """Mount path of the view-serving router, e.g. ``/task``."""
        return f"/{self.base}"

    @property
    def endpoints(self) -> dict[str, str]:
        return dict(CRUD_ENDPOINTS)

    def endpoint_url(self, operation: str) -> str:
        """Full client URL for a CRUD operation, without the ``:id`` parameter."""
        suffix = CRUD_ENDPOINTS[operation]
        if suffix.endswith("/:id"):
            suffix = suffix[: -len(":id")]
        return f"{self.api_path}{suffix}"


# ---------------------------------------------------------------------------
# Rendered output
# ---------------------------------------------------------------------------

class RenderedArtifact(BaseModel):
    """Rendered file content bound to its output path.  Immutable."""
    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    path: Path
    content: str


class RouteRegistration(BaseModel):
    """A router module to import and mount in the bootstrap file."""
    model_config = ConfigDict(frozen=True)

    binding: str = Field(..., description="Identifier bound to the required module")
    module: str = Field(..., description="Module file name under ./routes, without extension")
    mount_path: str = Field(..., description="Path passed to app.use()")

    @property
    def import_line(self) -> str:
        return f"const {self.binding} = require('./routes/{self.module}');"

    @property
    def use_line(self) -> str:
        return f"app.use('{self.mount_path}', {self.binding});"

    @classmethod
    def for_routes(cls, names: EntityNames) -> "RouteRegistration":
        return cls(binding=names.routes, module=names.routes, mount_path=names.api_path)

    @classmethod
    def for_view_routes(cls, names: EntityNames) -> "RouteRegistration":
        return cls(
            binding=names.view_routes,
            module=names.view_routes,
            mount_path=names.view_path,
        )
