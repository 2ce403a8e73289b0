"""Artifact rendering: entity specifications in, file contents out.

Every method on ``ArtifactRenderer`` is pure.  It builds a template context
from its inputs, renders one Jinja2 template and binds the text to the output
path derived from the configuration; nothing is written here.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from .introspect import ViewField
from .models import (
    CRUD_ENDPOINTS,
    ArtifactKind,
    EntityNames,
    EntitySpec,
    RenderedArtifact,
)
from .templates import TemplateRenderer, to_json
from .type_map import map_type

if TYPE_CHECKING:
    from crudgen.config import ScaffoldConfig


# Template name per artifact kind.
ARTIFACT_TEMPLATES: dict[ArtifactKind, str] = {
    ArtifactKind.ENTITY: "entity.js.j2",
    ArtifactKind.MODEL: "model.js.j2",
    ArtifactKind.CONTROLLER: "controller.js.j2",
    ArtifactKind.ROUTES: "routes.js.j2",
    ArtifactKind.VIEW: "view.html.j2",
    ArtifactKind.VIEW_ROUTES: "view_routes.js.j2",
}

# Project skeleton written by ``init``: template -> path below src/.
PROJECT_TEMPLATES: dict[str, str] = {
    "project/index.js.j2": "index",
    "project/CrudController.js.j2": "controllers/CrudController",
    "project/database.js.j2": "configs/database",
}


class ArtifactRenderer:
    """Renders every artifact kind for a scaffolding session."""

    def __init__(
        self,
        config: "ScaffoldConfig",
        templates: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.templates = templates or TemplateRenderer()

    def names_for(self, name: str) -> EntityNames:
        return EntityNames.derive(name, api_prefix=self.config.api_prefix)

    # -- Per-kind renderers ------------------------------------------------

    def entity(self, spec: EntitySpec) -> RenderedArtifact:
        """Plain data class with no storage annotations."""
        return self._render(ArtifactKind.ENTITY, spec.name, self._spec_context(spec))

    def model(self, spec: EntitySpec) -> RenderedArtifact:
        """Mongoose schema with one declaration per field, in field order."""
        return self._render(ArtifactKind.MODEL, spec.name, self._spec_context(spec))

    def controller(self, name: str) -> RenderedArtifact:
        """Controller composed from the shared CRUD base.

        Only the entity name flows into the output; field data never does.
        """
        context = {
            "names": self.names_for(name),
            "operations": list(CRUD_ENDPOINTS),
        }
        return self._render(ArtifactKind.CONTROLLER, name, context)

    def routes(self, name: str) -> RenderedArtifact:
        """Express router binding the four CRUD endpoints to the controller."""
        names = self.names_for(name)
        context = {"names": names, "endpoints": names.endpoints}
        return self._render(ArtifactKind.ROUTES, name, context)

    def view(self, name: str, fields: list[ViewField]) -> RenderedArtifact:
        """Self-contained HTML page calling the entity's CRUD endpoints.

        Fetch URLs come from the same ``EntityNames`` used to mount the
        router, so the page and the routes always agree on the base path.
        """
        names = self.names_for(name)
        urls = {operation: names.endpoint_url(operation) for operation in CRUD_ENDPOINTS}
        columns = [field.name for field in fields]
        context = {
            "names": names,
            "fields": [field.model_dump() for field in fields],
            "columns": columns,
            "urls_json": to_json(urls),
            "columns_json": to_json(columns),
        }
        return self._render(ArtifactKind.VIEW, name, context)

    def view_routes(self, name: str) -> RenderedArtifact:
        """Router that serves the generated view page."""
        return self._render(ArtifactKind.VIEW_ROUTES, name, {"names": self.names_for(name)})

    # -- Project skeleton ----------------------------------------------------

    def project_files(self) -> list[tuple[Path, str]]:
        """Render the bootstrap file, shared CRUD controller and DB config."""
        context = {
            "anchors": self.config.anchors,
            "project_name": self.config.root.resolve().name or "app",
        }
        rendered: list[tuple[Path, str]] = []
        for template_name, stem in PROJECT_TEMPLATES.items():
            path = self.config.src_path / f"{stem}.{self.config.ext}"
            rendered.append((path, self.templates.render(template_name, context)))
        return rendered

    # -- Internals -----------------------------------------------------------

    def _spec_context(self, spec: EntitySpec) -> dict[str, Any]:
        return {
            "names": self.names_for(spec.name),
            "fields": [
                {
                    "name": field.name,
                    "type": field.type,
                    "storage_type": map_type(field.type),
                    "required": field.required,
                }
                for field in spec.fields
            ],
            "timestamps": spec.timestamps,
        }

    def _render(self, kind: ArtifactKind, name: str, context: dict[str, Any]) -> RenderedArtifact:
        content = self.templates.render(ARTIFACT_TEMPLATES[kind], context)
        return RenderedArtifact(
            kind=kind,
            path=self.config.artifact_path(kind, name),
            content=content,
        )
